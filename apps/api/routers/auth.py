"""Signup, login and one-time code endpoints."""

import logging
import re

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db, get_email_sender, get_otp_verifier
from apps.api.schemas import CamelModel, UserOut
from core.config import settings
from core.errors import EmailAlreadyRegistered, InvalidVerificationCode, ValidationFailed
from core.security import create_access_token
from services import accounts
from services.email import EmailSender, deliver_verification_email
from services.otp import OtpOutcome, OtpVerifier

router = APIRouter()
logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^\d{4}$")

# Distinct reasons so the client can offer "resend" vs "re-enter" vs "start over"
_OTP_ERRORS: dict[OtpOutcome, tuple[str, str]] = {
    OtpOutcome.MAX_ATTEMPTS: (
        "MAX_ATTEMPTS_EXCEEDED",
        "Maximum verification attempts exceeded. Please request a new code.",
    ),
    OtpOutcome.EXPIRED: ("CODE_EXPIRED", "Verification code has expired. Please request a new code."),
    OtpOutcome.NOT_FOUND: (
        "CODE_NOT_FOUND",
        "No verification code found for this email. Please request a new code.",
    ),
    OtpOutcome.INVALID_CODE: ("INVALID_CODE", "Invalid verification code. Please try again."),
}


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SignupResponse(CamelModel):
    user_id: str
    message: str


class CompleteSignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    code: str


class LoginRequest(CamelModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    token: str
    user: UserOut


class SendCodeRequest(CamelModel):
    email: EmailStr


class VerifyCodeRequest(CamelModel):
    email: EmailStr
    code: str


class OkResponse(CamelModel):
    ok: bool = True


async def _check_code(verifier: OtpVerifier, email: str, code: str) -> None:
    """Raise the caller-visible error for any outcome other than valid."""
    outcome = await verifier.verify(email, code)
    if outcome is OtpOutcome.VALID:
        return
    error_code, message = _OTP_ERRORS[outcome]
    raise InvalidVerificationCode(message, code=error_code)


@router.post("/signup", response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    verifier: OtpVerifier = Depends(get_otp_verifier),
    sender: EmailSender = Depends(get_email_sender),
) -> SignupResponse:
    """
    Start signup: check the email domain and send a verification code.

    The account itself is created by ``/complete-signup``.
    """
    email = accounts.check_email_domain(body.email, settings.allowed_email_domain)
    logger.info(f"Signup request received for: {email}")

    if await accounts.email_exists(db, email):
        raise EmailAlreadyRegistered()

    code = await verifier.issue(email)
    background_tasks.add_task(deliver_verification_email, sender, email, code)

    return SignupResponse(user_id="", message=f"Verification code sent to {email}. Please check your email.")


@router.post("/complete-signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def complete_signup(
    body: CompleteSignupRequest,
    db: AsyncSession = Depends(get_db),
    verifier: OtpVerifier = Depends(get_otp_verifier),
) -> SignupResponse:
    """Verify the code and create the account."""
    email = accounts.check_email_domain(body.email, settings.allowed_email_domain)

    await _check_code(verifier, email, body.code)

    if await accounts.email_exists(db, email):
        raise EmailAlreadyRegistered()

    user = await accounts.create_verified_user(db, email, body.password)
    return SignupResponse(user_id=str(user.id), message=f"Account created successfully for {email}")


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    user = await accounts.authenticate(db, body.email, body.password)
    return LoginResponse(token=create_access_token(user.id), user=UserOut.from_model(user))


@router.post("/send-code", response_model=OkResponse)
async def send_code(
    body: SendCodeRequest,
    background_tasks: BackgroundTasks,
    verifier: OtpVerifier = Depends(get_otp_verifier),
    sender: EmailSender = Depends(get_email_sender),
) -> OkResponse:
    """
    Send a fresh 4-digit code.

    Always answers ok once the email is well-formed, so the response does not
    reveal whether the address is registered or whether delivery worked.
    """
    code = await verifier.issue(body.email)
    background_tasks.add_task(deliver_verification_email, sender, body.email.lower(), code)
    return OkResponse()


@router.post("/verify-code", response_model=OkResponse)
async def verify_code(body: VerifyCodeRequest, verifier: OtpVerifier = Depends(get_otp_verifier)) -> OkResponse:
    """Check a code without creating an account."""
    if not CODE_PATTERN.match(body.code):
        raise ValidationFailed("Code must be exactly 4 digits", code="INVALID_CODE_FORMAT")

    await _check_code(verifier, body.email, body.code)
    return OkResponse()
