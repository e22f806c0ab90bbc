"""
Error taxonomy for phone verification.

PhoneVerificationError subclasses are expected, user-correctable outcomes.
The lifecycle service converts them into `{success: false, message}` results.
StorageError is not one of them and always propagates to the caller.
"""
from typing import Optional


class PhoneVerificationError(Exception):
    """Base class for recoverable verification outcomes"""

    code = "PhoneVerificationError"
    default_message = "Phone verification failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# Validation

class ValidationError(PhoneVerificationError):
    """Malformed input, rejected before any store access"""
    code = "ValidationError"


class InvalidPhoneNumber(ValidationError):
    code = "InvalidPhoneNumber"
    default_message = "Phone number must be in E.164 format (e.g., +1234567890)"


class InvalidCodeFormat(ValidationError):
    code = "InvalidCodeFormat"
    default_message = "Verification code must be 6 digits"


class InvalidCode(ValidationError):
    """Submitted code did not match; the attempt stays usable"""
    code = "InvalidCode"
    default_message = "Invalid verification code. Please try again."


class InvalidAccountState(ValidationError):
    """An account update would leave phone_verified set without a phone number"""
    code = "InvalidAccountState"
    default_message = "A verified account must have a phone number"


# Not found

class NotFoundError(PhoneVerificationError):
    code = "NotFoundError"


class AccountNotFound(NotFoundError):
    code = "AccountNotFound"
    default_message = "User not found"


class NoVerificationFound(NotFoundError):
    code = "NoVerificationFound"
    default_message = "No phone verification found. Please start the verification process first."


class NoPendingVerification(NotFoundError):
    code = "NoPendingVerification"
    default_message = "No pending verification found. Please start a new phone verification."


# Conflict

class ConflictError(PhoneVerificationError):
    code = "ConflictError"


class AlreadyVerified(ConflictError):
    code = "AlreadyVerified"
    default_message = "Phone number is already verified"


class AlreadyUsed(ConflictError):
    code = "AlreadyUsed"
    default_message = "This verification code has already been used."


class CooldownActive(ConflictError):
    code = "CooldownActive"
    default_message = "Verification code already sent recently. Please wait before requesting another."

    def __init__(self, message: Optional[str] = None, remaining_seconds: Optional[int] = None):
        self.remaining_seconds = remaining_seconds
        super().__init__(message)


class EmailAlreadyRegistered(ConflictError):
    code = "EmailAlreadyRegistered"
    default_message = "User with this email already exists"


# Expired

class ExpiredError(PhoneVerificationError):
    code = "ExpiredError"


class CodeExpired(ExpiredError):
    code = "CodeExpired"
    default_message = "Verification code has expired. Please request a new code."


class VerificationExpired(ExpiredError):
    code = "VerificationExpired"
    default_message = "Verification has expired. Please start a new phone verification."


# Provider

class ProviderError(PhoneVerificationError):
    code = "ProviderError"


class DeliveryFailed(ProviderError):
    code = "DeliveryFailed"
    default_message = "Failed to send verification code. Please try again later."


class InvalidDestination(DeliveryFailed):
    """Provider rejected the destination number (HTTP 400)"""
    default_message = "Invalid phone number or other Twilio error."


class ProviderRateLimited(DeliveryFailed):
    """Provider throttled the request (HTTP 429)"""
    default_message = "Too many verification attempts. Please wait a few minutes before trying again."


# Storage

class StorageError(Exception):
    """Backing store unreachable or constraint violated. Never recovered locally."""
    pass


class AccountReconciliationError(StorageError):
    """
    The verification attempt was marked verified but the account update failed.

    The attempt is consumed while the account still reads unverified, so an
    operator has to reconcile the two records.
    """

    def __init__(self, user_id: int, verification_id: int, message: Optional[str] = None):
        self.user_id = user_id
        self.verification_id = verification_id
        super().__init__(
            message or f"Verification {verification_id} consumed but user {user_id} was not updated"
        )
