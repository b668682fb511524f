import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError
from src.api.utils.csrf import verify_csrf_token
from src.app.services.auth.email_verifier import EmailVerifier
from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.services.auth.request_context import RequestContext
from src.app.services.auth.resend_verification_throttle import ResendVerificationThrottle
from src.depends import get_email_verifier, get_request_context, get_resend_throttle
from src.libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/email", tags=["Email Verification"])

RESEND_MESSAGE = (
    "If that email address is registered and not yet verified, "
    "a new verification link has been sent."
)


class MessageResponse(BaseModel):
    status: str
    message: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., description="Email verification token")


@router.post("/verify", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def verify_email(
    request: VerifyEmailRequest,
    verifier: EmailVerifier = Depends(get_email_verifier),
):
    """
    Email Verification

    Marks the email as verified and activates an inactive account.

    Raises:
        - 400 Bad Request: Invalid or expired token (one code for both)
    """
    if not await verifier.verify_email(request.token):
        raise ClientError(Error("INVALID_TOKEN", "Invalid or expired verification token"))

    return MessageResponse(status="verified", message="Your email address has been verified.")


class ResendVerificationRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email address")


@router.post(
    "/resend",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def resend_verification(
    request: ResendVerificationRequest,
    verifier: EmailVerifier = Depends(get_email_verifier),
    throttle: ResendVerificationThrottle = Depends(get_resend_throttle),
    context: RequestContext = Depends(get_request_context),
):
    """
    Resend Verification Email

    Throttled per client IP and per email address.

    Raises:
        - 429 Too Many Requests: Either throttle window is exhausted
    """
    if not await throttle.allow(context.ip, request.email):
        logger.warning(f"Resend verification throttled for {context.ip}")
        raise ClientError(
            Error("TOO_MANY_REQUESTS", "Too many requests. Please try again later."),
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    try:
        await verifier.resend_verification(request.email)
    except EmailDeliveryError as exc:
        logger.error(f"Verification email could not be delivered: {exc}")

    return MessageResponse(status="requested", message=RESEND_MESSAGE)
