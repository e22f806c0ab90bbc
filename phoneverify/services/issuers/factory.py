"""
Code issuer factory
"""
import logging
from typing import Optional

from ...core.config import settings
from .base import CodeIssuer
from .local import LocalCodeIssuer
from .twilio_verify import TwilioVerifyIssuer

logger = logging.getLogger(__name__)

_issuer_instance: Optional[CodeIssuer] = None


def build_code_issuer(config=None) -> CodeIssuer:
    """Pick the issuer for a configuration: Twilio Verify if fully configured, else local."""
    config = config or settings
    if config.twilio_verify_configured:
        logger.info("[Issuer] Using Twilio Verify")
        return TwilioVerifyIssuer(config)

    logger.info("[Issuer] Twilio Verify not configured, using locally issued codes")
    return LocalCodeIssuer()


def get_code_issuer() -> CodeIssuer:
    """Process-wide issuer, built once on first use."""
    global _issuer_instance
    if _issuer_instance is None:
        _issuer_instance = build_code_issuer()
    return _issuer_instance


def reset_code_issuer():
    """Drop the cached issuer (useful for testing)"""
    global _issuer_instance
    _issuer_instance = None
