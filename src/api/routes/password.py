import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.api.utils.csrf import verify_csrf_token
from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.services.auth.password_resetter import PasswordResetter
from src.app.services.auth.request_context import RequestContext
from src.depends import get_password_resetter, get_request_context
from src.libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/password", tags=["Password Reset"])

RESET_REQUESTED_MESSAGE = (
    "If an account exists for that email address, a password reset link has been sent."
)


class MessageResponse(BaseModel):
    status: str
    message: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email address")


@router.post(
    "/forgot",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def forgot_password(
    request: ForgotPasswordRequest,
    resetter: PasswordResetter = Depends(get_password_resetter),
    context: RequestContext = Depends(get_request_context),
):
    """
    Request Password Reset

    Always answers the same way whether or not the email is registered.
    """
    try:
        await resetter.request_reset(request.email, ip=context.ip)
    except EmailDeliveryError as exc:
        # Same response as success so delivery problems do not reveal the account
        logger.error(f"Password reset email could not be delivered: {exc}")

    return MessageResponse(status="requested", message=RESET_REQUESTED_MESSAGE)


class ValidateResetTokenResponse(BaseModel):
    valid: bool


@router.get(
    "/reset/validate",
    status_code=status.HTTP_200_OK,
    response_model=ValidateResetTokenResponse,
)
async def validate_reset_token(
    token: str = Query(..., description="Token from the reset link"),
    resetter: PasswordResetter = Depends(get_password_resetter),
):
    """Check a reset link before showing the new-password form"""
    return ValidateResetTokenResponse(valid=await resetter.validate_token(token) is not None)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., description="Token from the reset link")
    password: str = Field(..., description="New password")
    password_confirmation: str = Field(..., description="Must match password")


@router.post(
    "/reset",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def reset_password(
    request: ResetPasswordRequest,
    resetter: PasswordResetter = Depends(get_password_resetter),
    context: RequestContext = Depends(get_request_context),
):
    """
    Confirm Password Reset

    Raises:
        - 400 Bad Request: Invalid/expired token, mismatched or weak password
    """
    if request.password != request.password_confirmation:
        raise ClientError(Error("PASSWORD_MISMATCH", "Passwords do not match."))

    result = await resetter.reset_password(request.token, request.password, ip=context.ip)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_TOKEN", "WEAK_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return MessageResponse(
        status="reset", message="Your password has been reset. You can now log in."
    )
