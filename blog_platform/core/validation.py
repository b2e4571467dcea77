"""Input validation and sanitization for untrusted payloads."""
import html
import re
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


@dataclass
class ValidationResult(Generic[SchemaT]):
    """Either validated data or the full list of violated constraints."""

    success: bool
    data: Optional[SchemaT] = None
    errors: List[str] = field(default_factory=list)

    def unwrap(self) -> SchemaT:
        """Return the data or raise ``ValidationError`` carrying every error."""
        if not self.success:
            raise ValidationError(details={"errors": self.errors})
        return self.data


def format_errors(errors: Sequence[Dict[str, Any]]) -> List[str]:
    """Render pydantic error dicts as ``"field: message"`` lines."""
    messages = []
    for error in errors:
        loc = list(error.get("loc", ()))
        # Request errors are prefixed with where the value came from
        if loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        location = ".".join(str(part) for part in loc)
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_input(schema: Type[SchemaT], data: Any) -> ValidationResult[SchemaT]:
    """Validate ``data`` against ``schema`` without failing on the first error."""
    try:
        return ValidationResult(success=True, data=schema.model_validate(data))
    except PydanticValidationError as exc:
        return ValidationResult(success=False, errors=format_errors(exc.errors()))


def sanitize_input(value: str) -> str:
    """Strip markup-ish fragments from free text.

    Complements output encoding; it does not replace it.
    """
    value = value.strip()
    value = _ANGLE_BRACKETS.sub("", value)
    value = _JAVASCRIPT_URI.sub("", value)
    return _EVENT_HANDLER.sub("", value)


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    return sanitize_input(value) if value is not None else None


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)
