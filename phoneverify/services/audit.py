"""
Structured audit logging for phone verification events
"""
import logging
import json
from typing import Optional

from ..core.env import get_env_name
from ..utils.clock import utcnow
from ..utils.phone import get_phone_last4

logger = logging.getLogger(__name__)


class AuditService:
    """
    One JSON line per lifecycle event.

    Never logs codes or full phone numbers.
    """

    @staticmethod
    def _log_audit_event(
        event_type: str,
        outcome: str,
        user_id: Optional[int] = None,
        phone: Optional[str] = None,
        verification_id: Optional[int] = None,
        error: Optional[str] = None,
        request_id: Optional[str] = None,
        level: int = logging.INFO,
        **kwargs
    ):
        audit_data = {
            "event_type": event_type,
            "timestamp": utcnow().isoformat() + "Z",
            "outcome": outcome,
            "env": get_env_name(),
        }

        if user_id is not None:
            audit_data["user_id"] = user_id
        if phone:
            audit_data["phone_last4"] = get_phone_last4(phone)
        if verification_id is not None:
            audit_data["verification_id"] = verification_id
        if error:
            audit_data["error"] = error
        if request_id:
            audit_data["request_id"] = request_id

        audit_data.update(kwargs)

        logger.log(level, f"[Verify][Audit] {json.dumps(audit_data)}")

    @staticmethod
    def log_verification_started(user_id, phone, verification_id, issuer, request_id=None):
        AuditService._log_audit_event(
            "verification_started",
            outcome="sent",
            user_id=user_id,
            phone=phone,
            verification_id=verification_id,
            issuer=issuer,
            request_id=request_id,
        )

    @staticmethod
    def log_verification_start_rejected(user_id, phone, error, request_id=None):
        AuditService._log_audit_event(
            "verification_start_rejected",
            outcome="rejected",
            user_id=user_id,
            phone=phone,
            error=error,
            request_id=request_id,
        )

    @staticmethod
    def log_code_resent(user_id, phone, verification_id, issuer, request_id=None):
        AuditService._log_audit_event(
            "code_resent",
            outcome="sent",
            user_id=user_id,
            phone=phone,
            verification_id=verification_id,
            issuer=issuer,
            request_id=request_id,
        )

    @staticmethod
    def log_code_resend_rejected(user_id, error, verification_id=None, request_id=None):
        AuditService._log_audit_event(
            "code_resend_rejected",
            outcome="rejected",
            user_id=user_id,
            verification_id=verification_id,
            error=error,
            request_id=request_id,
        )

    @staticmethod
    def log_code_verified(user_id, phone, verification_id, request_id=None):
        AuditService._log_audit_event(
            "code_verified",
            outcome="success",
            user_id=user_id,
            phone=phone,
            verification_id=verification_id,
            request_id=request_id,
        )

    @staticmethod
    def log_code_rejected(user_id, error, verification_id=None, request_id=None):
        AuditService._log_audit_event(
            "code_rejected",
            outcome="fail",
            user_id=user_id,
            verification_id=verification_id,
            error=error,
            request_id=request_id,
        )

    @staticmethod
    def log_reconciliation_required(user_id, phone, verification_id, error, request_id=None):
        """Attempt consumed but the account update failed."""
        AuditService._log_audit_event(
            "verification_reconciliation_required",
            outcome="partial_failure",
            user_id=user_id,
            phone=phone,
            verification_id=verification_id,
            error=error,
            request_id=request_id,
            level=logging.ERROR,
        )
