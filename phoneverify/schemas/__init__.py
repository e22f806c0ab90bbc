from .users import CreateUserRequest, UpdateUserRequest, UserOut
from .phone_verification import (
    StartPhoneVerificationRequest,
    VerifyPhoneCodeRequest,
    ResendVerificationCodeRequest,
    PhoneVerificationResponse,
    VerifyCodeResponse,
)

__all__ = [
    "CreateUserRequest",
    "UpdateUserRequest",
    "UserOut",
    "StartPhoneVerificationRequest",
    "VerifyPhoneCodeRequest",
    "ResendVerificationCodeRequest",
    "PhoneVerificationResponse",
    "VerifyCodeResponse",
]
