from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from ..db import Base
from ..utils.clock import utcnow


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)  # E.164, set once verified
    phone_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    phone_verifications = relationship(
        "PhoneVerification",
        back_populates="user",
        lazy="dynamic",
    )

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r} phone_verified={self.phone_verified}>"
