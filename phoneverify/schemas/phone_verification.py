"""
Schemas for the phone verification endpoints
"""
from typing import Optional
from pydantic import BaseModel, Field

from ..core.config import VERIFICATION_CODE_LENGTH
from .users import UserOut


class StartPhoneVerificationRequest(BaseModel):
    user_id: int
    phone_number: str = Field(..., min_length=1)  # normalized and validated by the service


class VerifyPhoneCodeRequest(BaseModel):
    user_id: int
    verification_code: str = Field(
        ...,
        min_length=VERIFICATION_CODE_LENGTH,
        max_length=VERIFICATION_CODE_LENGTH,
    )


class ResendVerificationCodeRequest(BaseModel):
    user_id: int


class PhoneVerificationResponse(BaseModel):
    success: bool
    message: str
    verification_id: Optional[int] = None
    error_code: Optional[str] = None


class VerifyCodeResponse(BaseModel):
    success: bool
    message: str
    user: Optional[UserOut] = None
    error_code: Optional[str] = None
