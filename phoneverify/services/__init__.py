from .audit import AuditService
from .user_service import UserService
from .phone_verification import PhoneVerificationService

__all__ = ["AuditService", "UserService", "PhoneVerificationService"]
