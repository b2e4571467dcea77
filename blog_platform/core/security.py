"""Security dependencies and response headers."""
from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..database import get_db
from ..models import ROLE_ADMIN
from ..schemas.auth import IdentitySnapshot
from ..services.auth import AuthService
from .auth import CredentialService
from .exceptions import AuthenticationError, AuthorizationError
from .logging import SecurityLogger

# Security scheme; the session cookie is tried first
security = HTTPBearer(auto_error=False)

CSP_DIRECTIVES = (
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' 'unsafe-eval'",
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data: https:",
    "font-src 'self' data:",
    "connect-src 'self'",
    "media-src 'self'",
    "object-src 'none'",
    "base-uri 'self'",
    "form-action 'self'",
    "frame-ancestors 'none'",
    "upgrade-insecure-requests",
)


def content_security_policy() -> str:
    return "; ".join(CSP_DIRECTIVES)


def security_headers() -> Dict[str, str]:
    """Fixed header map attached to every response."""
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
        "Content-Security-Policy": content_security_policy(),
    }


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_credentials(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_auth_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthService:
    return AuthService(db, get_credentials(request), get_settings(request).auth)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Session token from a bearer header, else the session cookie.

    An explicit header wins so a stale browser cookie cannot mask it.
    """
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(get_settings(request).auth.session_cookie_name)


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def get_current_user(
    request: Request,
    session_token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> IdentitySnapshot:
    """Get current authenticated identity."""
    try:
        return await auth_service.require_auth(session_token)
    except AuthenticationError:
        SecurityLogger.log_unauthorized_access(
            path=request.url.path,
            method=request.method,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
            reason="no_valid_session",
        )
        raise


async def get_optional_user(
    session_token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[IdentitySnapshot]:
    """Get current identity if authenticated, otherwise None."""
    return await auth_service.resolve_session(session_token)


def require_role(required_role: str):
    """Dependency to require specific role."""
    async def check_role(
        request: Request,
        session_token: Optional[str] = Depends(get_session_token),
        auth_service: AuthService = Depends(get_auth_service),
    ) -> IdentitySnapshot:
        try:
            return await auth_service.require_role(session_token, required_role)
        except (AuthenticationError, AuthorizationError) as exc:
            SecurityLogger.log_unauthorized_access(
                path=request.url.path,
                method=request.method,
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent"),
                reason=exc.error_code,
            )
            raise

    return check_role


admin_required = require_role(ROLE_ADMIN)
