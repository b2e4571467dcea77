"""Logging configuration and utilities."""
import logging
import sys
from typing import Any, Dict

import structlog
from structlog.stdlib import LoggerFactory

from ..config import Settings


def configure_logging(settings: Settings):
    """Configure structured logging."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.monitoring.log_level.upper()),
    )

    # Set third-party log levels
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Query logging is verbose in development only
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.environment == "development" else logging.WARNING
    )


class RequestLogger:
    """Request logging utility."""

    @staticmethod
    def log_request(
        method: str,
        path: str,
        user_id: str = None,
        request_id: str = None,
        extra_data: Dict[str, Any] = None
    ):
        """Log incoming request."""
        logger = structlog.get_logger("api.request")
        logger.info(
            "Request started",
            method=method,
            path=path,
            user_id=user_id,
            request_id=request_id,
            **(extra_data or {})
        )

    @staticmethod
    def log_response(
        method: str,
        path: str,
        status_code: int,
        response_time_ms: float,
        user_id: str = None,
        request_id: str = None,
    ):
        """Log response."""
        logger = structlog.get_logger("api.response")
        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=status_code,
            response_time_ms=response_time_ms,
            user_id=user_id,
            request_id=request_id,
        )


class BusinessLogger:
    """Business event logging utility."""

    @staticmethod
    def log_post_created(
        post_id: str,
        slug: str,
        author_id: str,
        status: str,
    ):
        logger = structlog.get_logger("business.post")
        logger.info(
            "Post created",
            event_type="post_created",
            post_id=post_id,
            slug=slug,
            author_id=author_id,
            status=status,
        )

    @staticmethod
    def log_post_deleted(post_id: str, slug: str, deleted_by: str):
        logger = structlog.get_logger("business.post")
        logger.info(
            "Post deleted",
            event_type="post_deleted",
            post_id=post_id,
            slug=slug,
            deleted_by=deleted_by,
        )

    @staticmethod
    def log_comment_created(
        comment_id: str,
        post_id: str,
        author_id: str,
        parent_id: str = None,
    ):
        logger = structlog.get_logger("business.comment")
        logger.info(
            "Comment created",
            event_type="comment_created",
            comment_id=comment_id,
            post_id=post_id,
            author_id=author_id,
            parent_id=parent_id,
        )


class SecurityLogger:
    """Security event logging utility."""

    @staticmethod
    def log_login_attempt(
        email: str,
        success: bool,
        ip_address: str = None,
        user_agent: str = None,
        failure_reason: str = None
    ):
        """Log login attempt."""
        logger = structlog.get_logger("security.auth")
        logger.info(
            "Login attempt",
            event_type="login_attempt",
            email=email,
            success=success,
            ip_address=ip_address,
            user_agent=user_agent,
            failure_reason=failure_reason
        )

    @staticmethod
    def log_registration(user_id: str, email: str, username: str):
        logger = structlog.get_logger("security.auth")
        logger.info(
            "User registered",
            event_type="user_registered",
            user_id=user_id,
            email=email,
            username=username,
        )

    @staticmethod
    def log_logout(session_found: bool):
        logger = structlog.get_logger("security.auth")
        logger.info("Logout", event_type="logout", session_found=session_found)

    @staticmethod
    def log_password_reset(
        email: str = None,
        user_id: str = None,
        stage: str = "requested",
        success: bool = True,
    ):
        """Log a password reset request or confirmation."""
        logger = structlog.get_logger("security.password_reset")
        logger.info(
            "Password reset",
            event_type=f"password_reset_{stage}",
            email=email,
            user_id=user_id,
            success=success,
        )

    @staticmethod
    def log_unauthorized_access(
        path: str,
        method: str,
        ip_address: str = None,
        user_agent: str = None,
        reason: str = None
    ):
        """Log unauthorized access attempt."""
        logger = structlog.get_logger("security.access")
        logger.warning(
            "Unauthorized access attempt",
            event_type="unauthorized_access",
            path=path,
            method=method,
            ip_address=ip_address,
            user_agent=user_agent,
            reason=reason
        )

    @staticmethod
    def log_rate_limit_exceeded(
        identifier: str,
        path: str,
        limit_type: str = "auth"
    ):
        """Log rate limit exceeded."""
        logger = structlog.get_logger("security.rate_limit")
        logger.warning(
            "Rate limit exceeded",
            event_type="rate_limit_exceeded",
            identifier=identifier,
            path=path,
            limit_type=limit_type
        )
