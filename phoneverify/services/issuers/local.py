"""
Local code issuer (no external provider)
"""
import hmac
import logging
import secrets
from typing import Optional

from ...core.config import VERIFICATION_CODE_LENGTH
from ...core.env import is_production_env
from ...utils.phone import get_phone_last4
from .base import CodeIssuer, IssuedCode

logger = logging.getLogger(__name__)


class LocalCodeIssuer(CodeIssuer):
    """
    Generates 6-digit codes in-process and compares them locally.

    Used whenever Twilio Verify is not configured. Delivery is a log line,
    which keeps the full lifecycle usable in dev and in tests.
    """

    name = "local"

    def generate_code(self) -> str:
        """Uniformly random code in 100000-999999"""
        low = 10 ** (VERIFICATION_CODE_LENGTH - 1)
        return str(low + secrets.randbelow(9 * low))

    async def issue(self, phone: str, previous_code: Optional[str] = None) -> IssuedCode:
        code = self.generate_code()
        while code == previous_code:
            code = self.generate_code()
        if is_production_env():
            logger.warning(f"[Issuer][Local] Code issued to {get_phone_last4(phone)} without a delivery provider")
        else:
            logger.info(f"[Issuer][Local] Mock SMS to {get_phone_last4(phone)}: your verification code is {code}")
        return IssuedCode(code=code, provider_reference=None)

    async def check(self, phone: str, submitted_code: str, stored_code: str) -> bool:
        return self.codes_match(submitted_code, stored_code)

    @staticmethod
    def codes_match(submitted_code: str, stored_code: str) -> bool:
        """Exact string equality, constant time"""
        if submitted_code is None or stored_code is None:
            return False
        return hmac.compare_digest(submitted_code.encode("utf-8"), stored_code.encode("utf-8"))
