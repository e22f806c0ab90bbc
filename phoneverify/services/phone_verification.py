"""
Phone verification lifecycle: start, verify and resend.

A verification attempt is PENDING until it is either VERIFIED (terminal) or
its expires_at passes (EXPIRED, derived at read time). Expected failures are
returned as `{success: false, message, error_code}` results; storage faults
propagate as StorageError.
"""
import logging
import math
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..core.config import (
    VERIFICATION_CODE_LENGTH,
    VERIFICATION_CODE_TTL,
    START_COOLDOWN,
    RESEND_COOLDOWN,
)
from ..core.errors import (
    PhoneVerificationError,
    InvalidCodeFormat,
    InvalidCode,
    AccountNotFound,
    NoVerificationFound,
    NoPendingVerification,
    AlreadyVerified,
    AlreadyUsed,
    CooldownActive,
    CodeExpired,
    VerificationExpired,
    DeliveryFailed,
    StorageError,
    AccountReconciliationError,
)
from ..models import User, PhoneVerification
from ..schemas import PhoneVerificationResponse, VerifyCodeResponse, UserOut
from ..utils.clock import utcnow
from ..utils.phone import normalize_phone, get_phone_last4
from .audit import AuditService
from .issuers import CodeIssuer, LocalCodeIssuer

logger = logging.getLogger(__name__)


class PhoneVerificationService:
    """
    Drives the users and phone_verifications tables and a code issuer.

    One instance per request. Holds no state beyond its collaborators.
    """

    def __init__(self, db: Session, issuer: CodeIssuer, request_id: Optional[str] = None):
        self.db = db
        self.issuer = issuer
        self.request_id = request_id

    @contextmanager
    def _storage(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[Verify] Storage failure during {action}: {e}", exc_info=True)
            raise StorageError(f"{action} failed: {e}") from e

    # Queries

    def _get_user(self, user_id: int) -> Optional[User]:
        with self._storage("load user"):
            return self.db.query(User).filter(User.id == user_id).first()

    def _latest_for_phone(self, user_id: int, phone: str) -> Optional[PhoneVerification]:
        with self._storage("load latest verification for phone"):
            return (
                self.db.query(PhoneVerification)
                .filter(
                    PhoneVerification.user_id == user_id,
                    PhoneVerification.phone_number == phone,
                )
                .order_by(PhoneVerification.created_at.desc(), PhoneVerification.id.desc())
                .first()
            )

    def _latest_any(self, user_id: int) -> Optional[PhoneVerification]:
        """Latest attempt for the user across numbers, verified or not."""
        with self._storage("load latest verification"):
            return (
                self.db.query(PhoneVerification)
                .filter(PhoneVerification.user_id == user_id)
                .order_by(PhoneVerification.created_at.desc(), PhoneVerification.id.desc())
                .first()
            )

    def _latest_unverified(self, user_id: int) -> Optional[PhoneVerification]:
        # Deliberately not the same predicate as _latest_any: resend skips consumed history
        with self._storage("load latest pending verification"):
            return (
                self.db.query(PhoneVerification)
                .filter(
                    PhoneVerification.user_id == user_id,
                    PhoneVerification.verified == False,  # noqa: E712
                )
                .order_by(PhoneVerification.created_at.desc(), PhoneVerification.id.desc())
                .first()
            )

    # Start

    async def start_verification(self, user_id: int, phone_number: str) -> PhoneVerificationResponse:
        """
        Issue a code to phone_number and record a new pending attempt.

        Args:
            user_id: Account to verify
            phone_number: Number as typed; normalized to E.164 before use

        Returns:
            PhoneVerificationResponse with verification_id on success
        """
        try:
            verification = await self._start(user_id, phone_number)
        except PhoneVerificationError as e:
            logger.info(f"[Verify][Start] Rejected for user {user_id}: {e.code}")
            AuditService.log_verification_start_rejected(
                user_id, phone_number, e.code, request_id=self.request_id
            )
            return PhoneVerificationResponse(success=False, message=e.message, error_code=e.code)

        AuditService.log_verification_started(
            user_id,
            verification.phone_number,
            verification.id,
            self.issuer.name,
            request_id=self.request_id,
        )
        return PhoneVerificationResponse(
            success=True,
            message="Verification code sent successfully",
            verification_id=verification.id,
        )

    async def _start(self, user_id: int, phone_number: str) -> PhoneVerification:
        phone = normalize_phone(phone_number)

        user = self._get_user(user_id)
        if user is None:
            raise AccountNotFound()

        # A verified account may still verify a different number
        if user.phone_verified and user.phone_number == phone:
            raise AlreadyVerified()

        now = utcnow()
        latest = self._latest_for_phone(user_id, phone)
        if latest is not None:
            recent = now - latest.created_at < START_COOLDOWN
            if recent and latest.expires_at > now:
                raise CooldownActive()

        issued = await self.issuer.issue(phone)

        now = utcnow()
        verification = PhoneVerification(
            user_id=user_id,
            phone_number=phone,
            verification_code=issued.code,
            twilio_sid=issued.provider_reference,
            verified=False,
            expires_at=now + VERIFICATION_CODE_TTL,
            created_at=now,
        )
        with self._storage("insert verification"):
            self.db.add(verification)
            self.db.commit()
            self.db.refresh(verification)

        logger.info(
            f"[Verify][Start] Verification {verification.id} created for user {user_id} "
            f"to {get_phone_last4(phone)} via {self.issuer.name}"
        )
        return verification

    # Verify

    async def verify_code(self, user_id: int, verification_code: str) -> VerifyCodeResponse:
        """
        Check a submitted code against the user's latest attempt.

        On success the attempt is consumed and the account is marked
        phone-verified with the attempt's number.

        Raises:
            StorageError: Store failure, including AccountReconciliationError
                when the attempt was consumed but the account was not updated
        """
        try:
            user, verification_id = await self._verify(user_id, verification_code)
        except PhoneVerificationError as e:
            logger.info(f"[Verify][Check] Rejected for user {user_id}: {e.code}")
            AuditService.log_code_rejected(user_id, e.code, request_id=self.request_id)
            return VerifyCodeResponse(success=False, message=e.message, error_code=e.code)

        AuditService.log_code_verified(
            user_id, user.phone_number, verification_id, request_id=self.request_id
        )
        return VerifyCodeResponse(
            success=True,
            message="Phone number verified successfully.",
            user=UserOut.model_validate(user),
        )

    async def _verify(self, user_id: int, code: str):
        if code is None or len(code) != VERIFICATION_CODE_LENGTH:
            raise InvalidCodeFormat()

        verification = self._latest_any(user_id)
        if verification is None:
            raise NoVerificationFound()

        now = utcnow()
        if verification.is_expired(now):
            raise CodeExpired()

        if verification.verified:
            raise AlreadyUsed()

        verification_id = verification.id
        phone = verification.phone_number

        if verification.is_provider_managed:
            if not self.issuer.manages_codes:
                raise DeliveryFailed("Verification provider is not available. Please request a new code.")
            is_valid = await self.issuer.check(phone, code, verification.verification_code)
        else:
            is_valid = LocalCodeIssuer.codes_match(code, verification.verification_code)

        if not is_valid:
            raise InvalidCode()

        # Consume the attempt before touching the account
        with self._storage("mark verification verified"):
            verification.verified = True
            self.db.commit()

        try:
            user = self.db.query(User).filter(User.id == user_id).first()
            if user is None:
                raise AccountReconciliationError(user_id, verification_id, "User disappeared after verification")
            user.phone_number = phone
            user.phone_verified = True
            user.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"[Verify][Check] Verification {verification_id} consumed but user {user_id} not updated: {e}",
                exc_info=True,
            )
            AuditService.log_reconciliation_required(
                user_id, phone, verification_id, str(e), request_id=self.request_id
            )
            raise AccountReconciliationError(user_id, verification_id) from e
        except AccountReconciliationError as e:
            AuditService.log_reconciliation_required(
                user_id, phone, verification_id, str(e), request_id=self.request_id
            )
            raise

        logger.info(f"[Verify][Check] User {user_id} verified {get_phone_last4(phone)}")
        return user, verification_id

    # Resend

    async def resend_code(self, user_id: int) -> PhoneVerificationResponse:
        """Reissue the code on the user's latest pending attempt."""
        try:
            verification = await self._resend(user_id)
        except PhoneVerificationError as e:
            logger.info(f"[Verify][Resend] Rejected for user {user_id}: {e.code}")
            AuditService.log_code_resend_rejected(user_id, e.code, request_id=self.request_id)
            return PhoneVerificationResponse(success=False, message=e.message, error_code=e.code)

        AuditService.log_code_resent(
            user_id,
            verification.phone_number,
            verification.id,
            self.issuer.name,
            request_id=self.request_id,
        )
        return PhoneVerificationResponse(
            success=True,
            message="New verification code sent successfully",
            verification_id=verification.id,
        )

    async def _resend(self, user_id: int) -> PhoneVerification:
        if self._get_user(user_id) is None:
            raise AccountNotFound()

        verification = self._latest_unverified(user_id)
        if verification is None:
            raise NoPendingVerification()

        now = utcnow()
        elapsed = now - verification.created_at
        if elapsed < RESEND_COOLDOWN:
            remaining = math.ceil((RESEND_COOLDOWN - elapsed).total_seconds())
            remaining = min(remaining, int(RESEND_COOLDOWN.total_seconds()))
            raise CooldownActive(
                f"Please wait {remaining} seconds before requesting a new code",
                remaining_seconds=remaining,
            )

        # Resend never revives an expired attempt
        if verification.is_expired(now):
            raise VerificationExpired()

        issued = await self.issuer.issue(
            verification.phone_number, previous_code=verification.verification_code
        )

        now = utcnow()
        with self._storage("update verification"):
            verification.verification_code = issued.code
            verification.twilio_sid = issued.provider_reference
            verification.created_at = now  # re-arms the resend cooldown
            verification.expires_at = now + VERIFICATION_CODE_TTL
            self.db.commit()
            self.db.refresh(verification)

        logger.info(f"[Verify][Resend] Verification {verification.id} reissued for user {user_id}")
        return verification
