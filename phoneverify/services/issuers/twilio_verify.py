"""
Twilio Verify code issuer
"""
import asyncio
import logging
from typing import Optional
from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from twilio.base.exceptions import TwilioException, TwilioRestException

from ...core.config import settings
from ...core.errors import DeliveryFailed, InvalidDestination, ProviderRateLimited
from ...models.phone_verification import TWILIO_MANAGED_CODE
from ...utils.phone import get_phone_last4
from .base import CodeIssuer, IssuedCode

logger = logging.getLogger(__name__)


class TwilioVerifyIssuer(CodeIssuer):
    """
    Twilio Verify issuer.

    Twilio generates, delivers and checks the code. Locally we keep only the
    verification SID and a sentinel in place of the code. Calls are made once;
    a failure is returned to the caller, who may resend.
    """

    name = "twilio_verify"
    manages_codes = True

    def __init__(self, config=None, client: Client = None):
        config = config or settings
        if not config.TWILIO_ACCOUNT_SID or not config.TWILIO_AUTH_TOKEN:
            raise ValueError("Twilio credentials not configured")

        if not config.TWILIO_VERIFY_SERVICE_SID:
            raise ValueError("TWILIO_VERIFY_SERVICE_SID not configured")

        self.timeout_seconds = config.TWILIO_TIMEOUT_SECONDS
        self.service_sid = config.TWILIO_VERIFY_SERVICE_SID
        self.channel = config.TWILIO_CHANNEL

        if client is None:
            # Explicit timeout so a stalled provider cannot hang the request
            http_client = TwilioHttpClient(timeout=self.timeout_seconds)
            client = Client(
                config.TWILIO_ACCOUNT_SID,
                config.TWILIO_AUTH_TOKEN,
                http_client=http_client,
            )
        self.client = client

    def _service(self):
        return self.client.verify.v2.services(self.service_sid)

    async def issue(self, phone: str, previous_code: Optional[str] = None) -> IssuedCode:
        # Twilio replaces the code itself; previous_code is only the sentinel
        phone_last4 = get_phone_last4(phone)

        def _send_verification():
            return self._service().verifications.create(to=phone, channel=self.channel)

        try:
            verification = await asyncio.wait_for(
                asyncio.to_thread(_send_verification),
                timeout=self.timeout_seconds + 5  # buffer for executor overhead
            )
        except asyncio.TimeoutError:
            logger.error(f"[Issuer][TwilioVerify] Timeout sending verification to {phone_last4} (>{self.timeout_seconds}s)")
            raise DeliveryFailed()
        except TwilioRestException as e:
            logger.error(f"[Issuer][TwilioVerify] Twilio error sending to {phone_last4}: status={e.status} code={e.code}: {e.msg}")
            if e.status == 400:
                raise InvalidDestination(e.msg or None)
            if e.status == 429:
                raise ProviderRateLimited()
            raise DeliveryFailed()
        except TwilioException as e:
            logger.error(f"[Issuer][TwilioVerify] Twilio error sending to {phone_last4}: {type(e).__name__}: {e}")
            raise DeliveryFailed()

        if verification.status != "pending":
            logger.warning(f"[Issuer][TwilioVerify] Unexpected status for {phone_last4}: {verification.status}")
            raise DeliveryFailed(f"Failed to initiate Twilio verification. Status: {verification.status}")

        logger.info(f"[Issuer][TwilioVerify] Verification sent to {phone_last4}, SID: {verification.sid}")
        return IssuedCode(code=TWILIO_MANAGED_CODE, provider_reference=verification.sid)

    async def check(self, phone: str, submitted_code: str, stored_code: str) -> bool:
        phone_last4 = get_phone_last4(phone)

        def _verify_code():
            return self._service().verification_checks.create(to=phone, code=submitted_code)

        try:
            verification_check = await asyncio.wait_for(
                asyncio.to_thread(_verify_code),
                timeout=self.timeout_seconds + 5
            )
        except asyncio.TimeoutError:
            logger.error(f"[Issuer][TwilioVerify] Timeout verifying code for {phone_last4} (>{self.timeout_seconds}s)")
            raise DeliveryFailed("Failed to check verification code. Please try again later.")
        except TwilioException as e:
            logger.error(f"[Issuer][TwilioVerify] Twilio error verifying code for {phone_last4}: {type(e).__name__}: {e}")
            raise DeliveryFailed("Failed to check verification code. Please try again later.")

        is_valid = verification_check.status == "approved"
        if is_valid:
            logger.info(f"[Issuer][TwilioVerify] Verification approved for {phone_last4}")
        else:
            logger.warning(f"[Issuer][TwilioVerify] Verification not approved for {phone_last4}: {verification_check.status}")
        return is_valid
