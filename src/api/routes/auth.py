from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.api.utils.csrf import verify_csrf_token
from src.api.utils.redirects import is_safe_redirect_url
from src.app.services.auth.authentication import Authentication
from src.app.services.auth.csrf_token import CsrfTokenManager
from src.app.use_cases.members import (
    MemberInfo,
    RegisterMemberCommand,
    RegisterMemberResponse,
    RegisterMemberUseCase,
)
from src.depends import (
    get_authentication,
    get_csrf_manager,
    get_current_user,
    get_email_verifier,
    get_event_sink,
    get_password_hasher,
    get_unit_of_work,
)
from src.domain.entities import User
from src.libs.result import Error
from config import ApplicationConfig

router = APIRouter(prefix="/auth", tags=["Authentication"])

DEFAULT_REDIRECT = "/admin/dashboard"


class CsrfTokenResponse(BaseModel):
    csrf_token: str


@router.get("/csrf-token", status_code=status.HTTP_200_OK, response_model=CsrfTokenResponse)
async def csrf_token(csrf: CsrfTokenManager = Depends(get_csrf_manager)):
    """
    Issue (or re-issue) the session's CSRF token.

    Clients echo it back in the X-CSRF-Token header on every state-changing request.
    """
    token = csrf.get_token()
    return CsrfTokenResponse(csrf_token=token)


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    username: str = Field(..., min_length=1, max_length=50, description="Username")
    password: str = Field(..., min_length=1, description="User password")
    remember: bool = Field(False, description="Issue a 30-day remember-me cookie")
    redirect_url: Optional[str] = Field(None, description="Relative URL to continue to")


class LoginResponse(BaseModel):
    user: MemberInfo
    redirect_url: str


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def login(
    request: LoginRequest,
    auth: Authentication = Depends(get_authentication),
):
    """
    User Login

    Authenticates with username/password and establishes a session.
    Failed attempts count towards a temporary account lockout.

    Raises:
        - 401 Unauthorized: Invalid credentials (deliberately generic)
        - 403 Forbidden: Missing or invalid CSRF token
    """
    if not await auth.attempt(request.username, request.password, request.remember):
        raise ClientError(
            Error("INVALID_CREDENTIALS", "Invalid username or password."),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    user = await auth.user()
    if user is None:
        raise ServerError(Error("SESSION_ERROR", "Session could not be established"))

    redirect_url = request.redirect_url or DEFAULT_REDIRECT
    if not is_safe_redirect_url(redirect_url):
        redirect_url = DEFAULT_REDIRECT

    return LoginResponse(user=MemberInfo.from_user(user), redirect_url=redirect_url)


class MessageResponse(BaseModel):
    status: str
    message: str


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def logout(auth: Authentication = Depends(get_authentication)):
    """
    User Logout

    Destroys the session and revokes the remember-me token. A caller whose
    session has expired is identified by the remember-me cookie alone, without
    logging them back in first.

    Raises:
        - 401 Unauthorized: Not logged in
    """
    if await auth.logout() is None:
        raise ClientError(
            Error("NOT_AUTHENTICATED", "Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return MessageResponse(status="logged_out", message="You have been logged out successfully.")


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MemberInfo)
async def me(user: User = Depends(get_current_user)):
    """
    Current user

    Resolves the session (or remember-me cookie) to the logged-in member.

    Raises:
        - 401 Unauthorized: Not logged in
    """
    return MemberInfo.from_user(user)


class RegisterRequest(BaseModel):
    """
    Registration HTTP request payload

    Validates incoming HTTP request before converting to RegisterMemberCommand.
    """

    username: str = Field(..., max_length=50, description="Letters, digits and underscores")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    password_confirmation: str = Field(..., description="Must match password")


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterMemberResponse,
    dependencies=[Depends(verify_csrf_token)],
)
async def register(
    request: RegisterRequest,
    uow=Depends(get_unit_of_work),
    hasher=Depends(get_password_hasher),
    verifier=Depends(get_email_verifier),
    events=Depends(get_event_sink),
):
    """
    Member Registration

    Creates a subscriber account. When email verification is required the
    account stays inactive until the emailed link is used.

    Raises:
        - 403 Forbidden: Registration disabled
        - 409 Conflict: Username or email already registered
        - 400 Bad Request: Invalid username, mismatched or weak password
    """
    command = RegisterMemberCommand(
        username=request.username,
        email=request.email,
        password=request.password,
        password_confirmation=request.password_confirmation,
    )

    use_case = RegisterMemberUseCase(
        uow,
        hasher,
        verifier,
        events=events,
        require_email_verification=ApplicationConfig.REQUIRE_EMAIL_VERIFICATION,
        registration_enabled=ApplicationConfig.REGISTRATION_ENABLED,
    )
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code == "REGISTRATION_DISABLED":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        elif error.code in ("USERNAME_TAKEN", "EMAIL_ALREADY_EXISTS"):
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        elif error.code in ("INVALID_USERNAME", "PASSWORD_MISMATCH", "WEAK_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value
