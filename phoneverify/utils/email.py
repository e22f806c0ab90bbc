"""
Email normalization shared by sign-up and lookups
"""
from email_validator import validate_email, EmailNotValidError


def normalize_email(email: str) -> str:
    """
    Canonical stored form of an address, matching what EmailStr yields.

    The domain is lowercased; the local part is kept as typed.

    Raises:
        EmailNotValidError: If the address is not syntactically valid
    """
    return validate_email(email, check_deliverability=False).normalized


def try_normalize_email(email: str):
    """normalize_email, or None for an invalid address"""
    try:
        return normalize_email(email)
    except EmailNotValidError:
        return None
