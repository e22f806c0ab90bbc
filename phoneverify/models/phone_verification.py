from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..db import Base
from ..utils.clock import utcnow

# Stored in verification_code when Twilio Verify owns the real code
TWILIO_MANAGED_CODE = "TWILIO_MANAGED"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRED = "expired"


class PhoneVerification(Base):
    __tablename__ = "phone_verifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    phone_number = Column(String, nullable=False)  # E.164 destination of the code
    verification_code = Column(String, nullable=False)
    twilio_sid = Column(String, nullable=True)  # provider reference, null for local codes
    verified = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="phone_verifications")

    __table_args__ = (
        Index("ix_phone_verifications_user_created", "user_id", "created_at"),
    )

    @property
    def is_provider_managed(self) -> bool:
        return bool(self.twilio_sid)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at < (now or utcnow())

    def status(self, now: Optional[datetime] = None) -> VerificationStatus:
        """Derived lifecycle state; expiry is never written to the row."""
        if self.verified:
            return VerificationStatus.VERIFIED
        if self.is_expired(now):
            return VerificationStatus.EXPIRED
        return VerificationStatus.PENDING

    def __repr__(self):
        return (
            f"<PhoneVerification id={self.id} user_id={self.user_id} "
            f"verified={self.verified} expires_at={self.expires_at}>"
        )
