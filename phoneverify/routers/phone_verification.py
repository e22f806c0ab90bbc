"""
Phone verification endpoints.

Every lifecycle outcome, including rejections, is an HTTP 200 with
`success` set accordingly. Only storage faults surface as 500.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_issuer
from ..schemas import (
    StartPhoneVerificationRequest,
    VerifyPhoneCodeRequest,
    ResendVerificationCodeRequest,
    PhoneVerificationResponse,
    VerifyCodeResponse,
)
from ..services.issuers import CodeIssuer
from ..services.phone_verification import PhoneVerificationService

router = APIRouter(prefix="/phone-verification", tags=["phone-verification"])


def _service(request: Request, db: Session, issuer: CodeIssuer) -> PhoneVerificationService:
    return PhoneVerificationService(db, issuer, request_id=getattr(request.state, "request_id", None))


@router.post("/start", response_model=PhoneVerificationResponse, name="startPhoneVerification")
async def start_phone_verification(
    payload: StartPhoneVerificationRequest,
    request: Request,
    db: Session = Depends(get_db),
    issuer: CodeIssuer = Depends(get_issuer),
):
    service = _service(request, db, issuer)
    return await service.start_verification(payload.user_id, payload.phone_number)


@router.post("/verify", response_model=VerifyCodeResponse, name="verifyPhoneCode")
async def verify_phone_code(
    payload: VerifyPhoneCodeRequest,
    request: Request,
    db: Session = Depends(get_db),
    issuer: CodeIssuer = Depends(get_issuer),
):
    service = _service(request, db, issuer)
    return await service.verify_code(payload.user_id, payload.verification_code)


@router.post("/resend", response_model=PhoneVerificationResponse, name="resendVerificationCode")
async def resend_verification_code(
    payload: ResendVerificationCodeRequest,
    request: Request,
    db: Session = Depends(get_db),
    issuer: CodeIssuer = Depends(get_issuer),
):
    service = _service(request, db, issuer)
    return await service.resend_code(payload.user_id)
