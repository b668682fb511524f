"""
Admin API Routes - Maintenance Endpoints

These endpoints are for operators and scheduled jobs.
Authentication is via Admin API Key, not member sessions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.auth.email_verifier import EmailVerifier
from src.app.services.auth.password_resetter import PasswordResetter
from src.app.services.auth.resend_verification_throttle import ResendVerificationThrottle
from src.depends import get_email_verifier, get_password_resetter, get_resend_throttle

router = APIRouter(prefix="/admin", tags=["Admin"])


class TokenCleanupResponse(BaseModel):
    password_reset_tokens: int
    email_verification_tokens: int


@router.post(
    "/tokens/cleanup",
    status_code=status.HTTP_200_OK,
    response_model=TokenCleanupResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def cleanup_expired_tokens(
    resetter: PasswordResetter = Depends(get_password_resetter),
    verifier: EmailVerifier = Depends(get_email_verifier),
):
    """
    Delete Expired Tokens

    Sweeps expired password reset and email verification tokens.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    return TokenCleanupResponse(
        password_reset_tokens=await resetter.cleanup_expired_tokens(),
        email_verification_tokens=await verifier.cleanup_expired_tokens(),
    )


class RateLimitResetRequest(BaseModel):
    ip: Optional[str] = Field(None, description="Reset the per-IP resend window")
    email: Optional[str] = Field(None, description="Reset the per-email resend window")


class RateLimitResetResponse(BaseModel):
    status: str
    scope: str


@router.post(
    "/rate-limits/reset",
    status_code=status.HTTP_200_OK,
    response_model=RateLimitResetResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def reset_rate_limits(
    request: RateLimitResetRequest,
    throttle: ResendVerificationThrottle = Depends(get_resend_throttle),
):
    """
    Reset Resend-Verification Throttle

    Resets the given IP and/or email windows; with neither, clears every counter.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    if request.ip is None and request.email is None:
        await throttle.clear()
        return RateLimitResetResponse(status="reset", scope="all")

    scopes = []
    if request.ip is not None:
        await throttle.reset_ip(request.ip)
        scopes.append("ip")
    if request.email is not None:
        await throttle.reset_email(request.email)
        scopes.append("email")
    return RateLimitResetResponse(status="reset", scope="+".join(scopes))
