"""
Request-scoped dependencies for the routers
"""
from .services.issuers import CodeIssuer, get_code_issuer


def get_issuer() -> CodeIssuer:
    """
    The process-wide code issuer.

    Routers depend on this rather than the factory so tests can override it.
    """
    return get_code_issuer()
