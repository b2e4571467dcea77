"""Account and session lifecycle service."""
import uuid
from datetime import timedelta
from typing import Dict, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from ..config.settings import AuthSettings
from ..core.auth import (
    CredentialService,
    check_password_strength,
    generate_reset_token,
    generate_session_token,
)
from ..core.exceptions import (
    AccountDeactivatedError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    NotFoundError,
    ValidationError,
)
from ..core.logging import SecurityLogger
from ..core.validation import sanitize_optional
from ..models import ROLE_ADMIN, ROLE_USER, PasswordResetToken, Session, User, utcnow
from ..schemas.auth import AuthResult, IdentitySnapshot, ProfileUpdate, UserCreate


def identity_from_user(user: User) -> IdentitySnapshot:
    return IdentitySnapshot(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        name=user.name,
    )


class AuthService:
    """Registration, login, sessions and password resets.

    Bound to one database session; construct one per request.
    """

    def __init__(
        self,
        db: AsyncSession,
        credentials: CredentialService,
        settings: AuthSettings,
    ):
        self.db = db
        self.credentials = credentials
        self.session_lifetime = timedelta(days=settings.session_expire_days)
        self.reset_lifetime = timedelta(minutes=settings.reset_token_expire_minutes)

    # Lookups

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    # Login / registration

    async def login(
        self,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """Authenticate by email and password and open a new session."""
        user = await self.get_user_by_email(email)
        if user is None:
            # Match the cost of a wrong password so timing does not reveal the account
            await run_in_threadpool(self.credentials.burn_verification, password)
            SecurityLogger.log_login_attempt(
                email, False, ip_address, user_agent, failure_reason="unknown_email"
            )
            raise NotFoundError("Invalid email or password")

        if not user.is_active:
            SecurityLogger.log_login_attempt(
                email, False, ip_address, user_agent, failure_reason="deactivated"
            )
            raise AccountDeactivatedError()

        valid = await run_in_threadpool(
            self.credentials.verify_password, password, user.hashed_password
        )
        if not valid:
            SecurityLogger.log_login_attempt(
                email, False, ip_address, user_agent, failure_reason="bad_password"
            )
            raise InvalidCredentialsError()

        user.last_login = utcnow()
        result = self._open_session(user, user_agent, ip_address)
        await self.db.commit()

        SecurityLogger.log_login_attempt(email, True, ip_address, user_agent)
        return result

    async def register(
        self,
        data: UserCreate,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """Create an account and open its first session."""
        if await self.get_user_by_email(data.email) is not None:
            raise ConflictError("User with this email already exists")
        if await self.get_user_by_username(data.username) is not None:
            raise ConflictError("Username already taken")

        self._require_strong_password(data.password)
        hashed_password = await run_in_threadpool(
            self.credentials.hash_password, data.password
        )

        user = User(
            email=data.email,
            username=data.username,
            hashed_password=hashed_password,
            name=sanitize_optional(data.name),
            bio=sanitize_optional(data.bio),
            role=ROLE_USER,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            raise ConflictError("Email or username already taken")

        result = self._open_session(user, user_agent, ip_address)
        await self.db.commit()

        SecurityLogger.log_registration(str(user.id), user.email, user.username)
        return result

    def _open_session(
        self,
        user: User,
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> AuthResult:
        token = generate_session_token()
        expires_at = utcnow() + self.session_lifetime
        self.db.add(
            Session(
                token=token,
                user_id=user.id,
                expires_at=expires_at,
                user_agent=user_agent,
                ip_address=ip_address,
            )
        )

        identity = identity_from_user(user)
        return AuthResult(
            identity=identity,
            session_token=token,
            signed_token=self.credentials.issue_token(identity),
            expires_at=expires_at,
        )

    # Sessions

    async def logout(self, session_token: str) -> bool:
        """Delete the session; unknown tokens are ignored."""
        result = await self.db.execute(
            delete(Session).where(Session.token == session_token)
        )
        await self.db.commit()

        found = result.rowcount > 0
        SecurityLogger.log_logout(found)
        return found

    async def resolve_session(self, session_token: Optional[str]) -> Optional[IdentitySnapshot]:
        """Identity for a live session, or None when absent or expired.

        Expired rows are deleted on sight. Unknown and expired tokens are
        indistinguishable to the caller.
        """
        if not session_token:
            return None

        stmt = select(Session).where(Session.token == session_token)
        result = await self.db.execute(stmt)
        session = result.scalar_one_or_none()
        if session is None:
            return None

        if session.is_expired(utcnow()):
            await self.db.execute(delete(Session).where(Session.id == session.id))
            await self.db.commit()
            return None

        if not session.user.is_active:
            return None

        return identity_from_user(session.user)

    async def require_auth(self, session_token: Optional[str]) -> IdentitySnapshot:
        identity = await self.resolve_session(session_token)
        if identity is None:
            raise AuthenticationError()
        return identity

    async def require_role(self, session_token: Optional[str], role: str) -> IdentitySnapshot:
        """Require ``role``; administrators pass every role check."""
        identity = await self.require_auth(session_token)
        if identity.role != role and identity.role != ROLE_ADMIN:
            raise AuthorizationError(details={"required_role": role})
        return identity

    # Password management

    async def request_password_reset(self, email: str) -> str:
        """Create a single-use reset token for the account behind ``email``."""
        user = await self.get_user_by_email(email)
        if user is None:
            SecurityLogger.log_password_reset(email=email, success=False)
            raise NotFoundError("User not found")

        token = generate_reset_token()
        self.db.add(
            PasswordResetToken(
                token=token,
                user_id=user.id,
                expires_at=utcnow() + self.reset_lifetime,
            )
        )
        await self.db.commit()

        SecurityLogger.log_password_reset(email=email, user_id=str(user.id))
        return token

    async def consume_password_reset(self, token: str, new_password: str) -> bool:
        """Set a new password using a reset token.

        Claiming the token and updating the password commit together; a
        concurrent consumer of the same token fails its claim.
        """
        now = utcnow()
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token)
        result = await self.db.execute(stmt)
        reset = result.scalar_one_or_none()
        if reset is None or not reset.is_usable(now):
            SecurityLogger.log_password_reset(stage="confirmed", success=False)
            raise InvalidResetTokenError()

        self._require_strong_password(new_password)
        hashed_password = await run_in_threadpool(
            self.credentials.hash_password, new_password
        )

        claim = await self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == reset.id,
                PasswordResetToken.used.is_(False),
                PasswordResetToken.expires_at > now,
            )
            .values(used=True)
        )
        if claim.rowcount != 1:
            await self.db.rollback()
            raise InvalidResetTokenError()

        await self.db.execute(
            update(User)
            .where(User.id == reset.user_id)
            .values(hashed_password=hashed_password)
        )
        # Existing sessions do not survive a reset
        await self.db.execute(delete(Session).where(Session.user_id == reset.user_id))
        await self.db.commit()

        SecurityLogger.log_password_reset(user_id=str(reset.user_id), stage="confirmed")
        return True

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> bool:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        valid = await run_in_threadpool(
            self.credentials.verify_password, current_password, user.hashed_password
        )
        if not valid:
            raise InvalidCredentialsError("Current password is incorrect")

        self._require_strong_password(new_password)
        user.hashed_password = await run_in_threadpool(
            self.credentials.hash_password, new_password
        )
        await self.db.commit()
        return True

    def _require_strong_password(self, password: str) -> None:
        strength = check_password_strength(password)
        if not strength.valid:
            raise ValidationError(
                "Password is too weak",
                details={"errors": strength.violations},
            )

    # Profile

    async def update_profile(self, user_id: uuid.UUID, data: ProfileUpdate) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, sanitize_optional(value))

        await self.db.commit()
        await self.db.refresh(user)
        return user

    # Maintenance

    async def cleanup_expired(self) -> Dict[str, int]:
        """Delete expired sessions and reset tokens."""
        now = utcnow()
        sessions = await self.db.execute(
            delete(Session).where(Session.expires_at <= now)
        )
        tokens = await self.db.execute(
            delete(PasswordResetToken).where(PasswordResetToken.expires_at <= now)
        )
        await self.db.commit()
        return {"sessions": sessions.rowcount, "reset_tokens": tokens.rowcount}
