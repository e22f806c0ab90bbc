"""
Abstract code issuer interface
"""
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional


class IssuedCode(NamedTuple):
    code: str  # real code, or TWILIO_MANAGED_CODE when the provider owns it
    provider_reference: Optional[str] = None


class CodeIssuer(ABC):
    """Issues one-time codes to a phone number and checks submitted codes."""

    name = "base"

    # True when the real code lives with an external provider
    manages_codes = False

    @abstractmethod
    async def issue(self, phone: str, previous_code: Optional[str] = None) -> IssuedCode:
        """
        Issue a new code and deliver it to phone.

        Args:
            phone: Normalized phone number in E.164 format
            previous_code: Code being replaced on resend; a locally generated
                code never repeats it

        Returns:
            IssuedCode to persist on the verification attempt

        Raises:
            DeliveryFailed: If the provider rejected the request
        """
        pass

    @abstractmethod
    async def check(self, phone: str, submitted_code: str, stored_code: str) -> bool:
        """
        Check a submitted code.

        Args:
            phone: Phone number the code was issued to
            submitted_code: Code typed by the user
            stored_code: Code persisted on the attempt

        Returns:
            True if the code is valid

        Raises:
            DeliveryFailed: If the provider could not perform the check
        """
        pass
