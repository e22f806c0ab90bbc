"""
Phone number normalization and validation utilities
"""
import re
import phonenumbers

from ..core.config import settings
from ..core.errors import InvalidPhoneNumber

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def format_phone_e164(phone: str, default_region: str = None) -> str:
    """
    Best-effort conversion of user input to E.164.

    Args:
        phone: Phone number as typed (spaces, dashes, parentheses allowed)
        default_region: Region whose country code is assumed for bare 10-digit
            numbers (default: settings.PHONE_DEFAULT_REGION)

    Returns:
        Candidate E.164 string. Not validated; see normalize_phone.
    """
    phone = (phone or "").strip()
    if phone.startswith("+"):
        return phone

    digits = phonenumbers.normalize_digits_only(phone)
    if len(digits) == 10:
        region = (default_region or settings.PHONE_DEFAULT_REGION).upper()
        country_code = phonenumbers.country_code_for_region(region)
        if country_code:
            return f"+{country_code}{digits}"

    # Assume an international number typed without the leading '+'
    return f"+{digits}"


def normalize_phone(phone: str, default_region: str = None) -> str:
    """
    Normalize phone number to E.164 format.

    Raises:
        InvalidPhoneNumber: If the formatted number is not E.164 shaped
    """
    formatted = format_phone_e164(phone, default_region)
    if not E164_PATTERN.match(formatted):
        raise InvalidPhoneNumber()
    return formatted


def validate_phone(phone: str, default_region: str = None) -> bool:
    """Validate phone number without raising exception."""
    try:
        normalize_phone(phone, default_region)
        return True
    except InvalidPhoneNumber:
        return False


def get_phone_last4(phone: str) -> str:
    """
    Get last 4 digits of phone number for safe logging.

    Returns:
        Last 4 digits as string, or all digits if fewer than 4
    """
    digits = ''.join(filter(str.isdigit, phone or ""))

    if len(digits) >= 4:
        return digits[-4:]
    return digits
