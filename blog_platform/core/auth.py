"""Credential handling: password hashing, identity tokens, strength rules."""
import re
import secrets
from datetime import datetime, timedelta, timezone
from functools import cached_property
from typing import List, Optional

import bcrypt
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from ..config.settings import AuthSettings
from ..schemas.auth import IdentitySnapshot, PasswordStrengthResult

TOKEN_TYPE = "identity"
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

PASSWORD_RULES = (
    (lambda p: len(p) >= 8, "Password must be at least 8 characters long"),
    (lambda p: re.search(r"[A-Z]", p), "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r"[a-z]", p), "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r"\d", p), "Password must contain at least one number"),
    (lambda p: SPECIAL_CHARACTERS.search(p), "Password must contain at least one special character"),
)


def check_password_strength(password: str) -> PasswordStrengthResult:
    """Evaluate every strength rule and report all violations."""
    violations: List[str] = [
        message for rule, message in PASSWORD_RULES if not rule(password)
    ]
    return PasswordStrengthResult(valid=not violations, violations=violations)


def generate_session_token() -> str:
    """Opaque session token, 32 random bytes hex encoded."""
    return secrets.token_hex(32)


def generate_reset_token() -> str:
    return secrets.token_hex(32)


class CredentialService:
    """Password hashing and signed identity tokens."""

    def __init__(self, settings: AuthSettings):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.token_expire_days = settings.token_expire_days
        self.bcrypt_rounds = settings.bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash password using bcrypt."""
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify password against hash."""
        try:
            return bcrypt.checkpw(
                plain_password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError:
            # Malformed hash
            return False

    @cached_property
    def dummy_hash(self) -> str:
        """Hash of a random secret at the configured cost, for unknown accounts."""
        return self.hash_password(secrets.token_hex(16))

    def burn_verification(self, plain_password: str) -> bool:
        """Spend the same bcrypt work as a real check; always False."""
        self.verify_password(plain_password, self.dummy_hash)
        return False

    def issue_token(
        self,
        identity: IdentitySnapshot,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a signed identity token."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=self.token_expire_days))

        to_encode = {
            "sub": str(identity.id),
            "email": identity.email,
            "username": identity.username,
            "role": identity.role,
            "name": identity.name,
            "iat": now,
            "exp": expire,
            "type": TOKEN_TYPE,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Optional[IdentitySnapshot]:
        """Verify signature and expiry; any failure yields None."""
        try:
            payload = jwt.decode(
                token, self.secret_key, algorithms=[self.algorithm]
            )
        except JWTError:
            return None

        if payload.get("type") != TOKEN_TYPE:
            return None

        try:
            return IdentitySnapshot(
                id=payload.get("sub"),
                email=payload.get("email"),
                username=payload.get("username"),
                role=payload.get("role"),
                name=payload.get("name"),
            )
        except PydanticValidationError:
            return None
