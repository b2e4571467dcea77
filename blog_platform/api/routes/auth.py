"""Authentication routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from ...config import Settings
from ...core.exceptions import InvalidCredentialsError, NotFoundError
from ...core.security import (
    client_ip,
    get_auth_service,
    get_current_user,
    get_session_token,
    get_settings,
)
from ...schemas.auth import (
    AuthResponse,
    AuthResult,
    IdentitySnapshot,
    LoginRequest,
    PasswordChangeRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdate,
    UserCreate,
    UserResponse,
)
from ...schemas.common import SuccessResponse
from ...services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_session_cookie(response: Response, settings: Settings, result: AuthResult) -> None:
    response.set_cookie(
        key=settings.auth.session_cookie_name,
        value=result.session_token,
        max_age=settings.auth.session_expire_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )


async def _auth_response(auth_service: AuthService, result: AuthResult) -> AuthResponse:
    user = await auth_service.get_user_by_id(result.identity.id)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        session_token=result.session_token,
        token=result.signed_token,
        expires_at=result.expires_at,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register_user(
    user_create: UserCreate,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Register a new user and open a session."""
    result = await auth_service.register(
        user_create,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    _set_session_cookie(response, settings, result)
    return await _auth_response(auth_service, result)


@router.post("/login", response_model=AuthResponse)
async def login_user(
    login_request: LoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Login user and return session and identity tokens."""
    try:
        result = await auth_service.login(
            login_request.email,
            login_request.password,
            user_agent=request.headers.get("user-agent"),
            ip_address=client_ip(request),
        )
    except NotFoundError:
        # Unknown email answers like a wrong password over HTTP
        raise InvalidCredentialsError()

    _set_session_cookie(response, settings, result)
    return await _auth_response(auth_service, result)


@router.post("/logout", response_model=SuccessResponse)
async def logout_user(
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Delete the current session, if any."""
    if session_token:
        await auth_service.logout(session_token)
    response.delete_cookie(settings.auth.session_cookie_name)
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: IdentitySnapshot = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get current user information."""
    user = await auth_service.get_user_by_id(current_user.id)
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user(
    profile: ProfileUpdate,
    current_user: IdentitySnapshot = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Update profile fields of the current user."""
    user = await auth_service.update_profile(current_user.id, profile)
    return UserResponse.model_validate(user)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    password_change: PasswordChangeRequest,
    current_user: IdentitySnapshot = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Change user password."""
    await auth_service.change_password(
        current_user.id,
        password_change.current_password,
        password_change.new_password,
    )
    return SuccessResponse(message="Password changed successfully")


@router.post("/password-reset/request", response_model=SuccessResponse)
async def request_password_reset(
    reset_request: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Issue a reset token.

    Delivery is out of band; outside development the token is never echoed.
    """
    data = None
    try:
        token = await auth_service.request_password_reset(reset_request.email)
        if settings.is_development:
            data = {"token": token}
    except NotFoundError:
        # Same answer whether or not the address is registered
        pass
    return SuccessResponse(
        message="If the address is registered, a reset link has been sent",
        data=data,
    )


@router.post("/password-reset/confirm", response_model=SuccessResponse)
async def confirm_password_reset(
    reset_confirm: PasswordResetConfirm,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Set a new password using a reset token."""
    await auth_service.consume_password_reset(
        reset_confirm.token, reset_confirm.new_password
    )
    return SuccessResponse(message="Password has been reset")
