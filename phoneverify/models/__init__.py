"""
Models package
"""
from .user import User
from .phone_verification import PhoneVerification, VerificationStatus, TWILIO_MANAGED_CODE

__all__ = [
    "User",
    "PhoneVerification",
    "VerificationStatus",
    "TWILIO_MANAGED_CODE",
]
