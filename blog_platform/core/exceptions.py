"""Custom exceptions for the application."""


class BaseAPIException(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = None,
        details: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BaseAPIException):
    """Unknown email, username, slug or token."""

    def __init__(self, message: str = "Resource not found", details: dict = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND_ERROR",
            details=details
        )


class ConflictError(BaseAPIException):
    """Duplicate email, username or slug."""

    def __init__(self, message: str = "Resource conflict", details: dict = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT_ERROR",
            details=details
        )


class InvalidCredentialsError(BaseAPIException):
    """Password did not match the stored hash."""

    def __init__(self, message: str = "Invalid email or password", details: dict = None):
        super().__init__(
            message=message,
            status_code=401,
            error_code="INVALID_CREDENTIALS",
            details=details
        )


class AccountDeactivatedError(BaseAPIException):
    """Account exists but has been disabled."""

    def __init__(self, message: str = "Account is deactivated", details: dict = None):
        super().__init__(
            message=message,
            status_code=403,
            error_code="ACCOUNT_DEACTIVATED",
            details=details
        )


class AuthenticationError(BaseAPIException):
    """Missing, invalid or expired session."""

    def __init__(self, message: str = "Authentication required", details: dict = None):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_ERROR",
            details=details
        )


class AuthorizationError(BaseAPIException):
    """Authorization error."""

    def __init__(self, message: str = "Insufficient permissions", details: dict = None):
        super().__init__(
            message=message,
            status_code=403,
            error_code="AUTHORIZATION_ERROR",
            details=details
        )


class InvalidResetTokenError(BaseAPIException):
    """Password reset token is missing, used or expired."""

    def __init__(self, message: str = "Invalid or expired reset token", details: dict = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_RESET_TOKEN",
            details=details
        )


class ValidationError(BaseAPIException):
    """Validation error."""

    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details
        )


class RateLimitExceeded(BaseAPIException):
    """Rate limit exceeded error."""

    def __init__(self, message: str = "Rate limit exceeded", details: dict = None):
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMIT_EXCEEDED",
            details=details
        )


class ConfigurationError(BaseAPIException):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", details: dict = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details
        )
