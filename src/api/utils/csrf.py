"""
CSRF Protection

Rejects state-changing requests that do not echo the session's CSRF token.
"""

import logging

from fastapi import Depends, Request, status
from src.libs.result import Error
from src.api.error import ClientError
from src.app.services.auth.csrf_token import FORM_FIELD, HEADER_NAME, CsrfTokenManager
from src.depends import get_csrf_manager

logger = logging.getLogger(__name__)

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")


async def _submitted_token(request: Request):
    token = request.headers.get(HEADER_NAME)
    if token:
        return token

    if "application/json" not in request.headers.get("content-type", ""):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        value = body.get(FORM_FIELD)
        return value if isinstance(value, str) else None
    return None


async def verify_csrf_token(
    request: Request, csrf: CsrfTokenManager = Depends(get_csrf_manager)
):
    """
    Check the X-CSRF-Token header (or ``csrf_token`` in a JSON body).

    Raises:
        ClientError: 403 if the token is missing or does not match the session
    """
    if request.method in SAFE_METHODS:
        return True

    client = request.client.host if request.client else "unknown"
    token = await _submitted_token(request)

    if not token:
        logger.warning(f"CSRF token missing: {request.method} {request.url.path} from {client}")
        raise ClientError(
            Error("CSRF_TOKEN_MISSING", "CSRF token missing"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    if not csrf.validate(token):
        logger.warning(f"CSRF token invalid: {request.method} {request.url.path} from {client}")
        raise ClientError(
            Error("CSRF_TOKEN_INVALID", "CSRF token invalid"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return True
