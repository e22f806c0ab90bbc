"""
Code issuers: Twilio Verify and the local fallback
"""
from .base import CodeIssuer, IssuedCode
from .local import LocalCodeIssuer
from .twilio_verify import TwilioVerifyIssuer
from .factory import build_code_issuer, get_code_issuer, reset_code_issuer

__all__ = [
    "CodeIssuer",
    "IssuedCode",
    "LocalCodeIssuer",
    "TwilioVerifyIssuer",
    "build_code_issuer",
    "get_code_issuer",
    "reset_code_issuer",
]
