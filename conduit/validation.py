"""
Conduit - Input validation helpers.

Provides validation functions for configuration values and input events,
run before any network request or tool dispatch is attempted.
"""

import re
from typing import Any, Optional

from .exceptions import ValidationError as ConduitValidationError
from .models import InputEvent, InputType


class InputValidationError(ConduitValidationError):
    """Raised when a value fails validation before it is used."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, status_code=None, response=None)
        self.field = field
        self.value = value


ValidationError = InputValidationError

_URL_PATTERN = re.compile(
    r"^https?://"
    r"(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|"
    r"localhost|"
    r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"
    r"(?::\d+)?"
    r"(?:/?|[/?]\S+)$",
    re.IGNORECASE,
)

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def validate_required(value: Any, field_name: str) -> None:
    """Validate that a required field is not None or empty."""
    if value is None:
        raise ValidationError(f"{field_name} is required", field=field_name)
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{field_name} cannot be empty", field=field_name, value=value)


def validate_positive_int(value: int, field_name: str) -> None:
    """Validate that a number is a positive integer."""
    if value is None:
        return

    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name, value=value)

    if value <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name, value=value)


def validate_positive_number(value: float, field_name: str) -> None:
    """Validate that a value is a number greater than zero."""
    if value is None:
        return

    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name, value=value)

    if value <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name, value=value)


def validate_url(value: str, field_name: str) -> None:
    """Validate URL format (http or https only)."""
    if value is None:
        return

    if not _URL_PATTERN.match(value):
        raise ValidationError(f"{field_name} must be a valid URL", field=field_name, value=value)


def validate_in_list(value: Any, field_name: str, allowed_values: tuple) -> None:
    """Validate that a value is one of the allowed values."""
    if value is None:
        return

    if value not in allowed_values:
        raise ValidationError(
            f"{field_name} must be one of: {', '.join(str(v) for v in allowed_values)}",
            field=field_name,
            value=value,
        )


def validate_encodings(value: tuple, field_name: str = "text_encodings") -> None:
    """Validate that every entry names a codec Python knows."""
    import codecs

    if not value:
        raise ValidationError(f"{field_name} cannot be empty", field=field_name, value=value)
    for name in value:
        try:
            codecs.lookup(name)
        except LookupError:
            raise ValidationError(
                f"{field_name} contains unknown encoding '{name}'",
                field=field_name,
                value=name,
            ) from None


def validate_config(config: Any) -> None:
    """
    Validate an ``AgentConfig``.

    A missing API key is deliberately not checked here: it is reported per
    turn as an in-band error so that the rest of the runtime stays usable.
    """
    validate_required(config.endpoint, "endpoint")
    validate_url(config.endpoint, "endpoint")
    validate_required(config.model, "model")
    validate_positive_int(config.max_tokens, "max_tokens")
    validate_positive_int(config.max_input_bytes, "max_input_bytes")
    validate_positive_number(config.timeout, "timeout")
    validate_required(config.api_version, "api_version")
    validate_encodings(config.text_encodings)
    validate_in_list(str(config.log_level).lower(), "log_level", _LOG_LEVELS)


def validate_input_event(event: InputEvent) -> None:
    """Validate the minimum shape each input type needs to be described."""
    if event.type == InputType.TEXT:
        if not event.content and not event.metadata.get("text"):
            raise ValidationError("text input cannot be empty", field="content")
        return

    if not event.content:
        raise ValidationError(f"{event.type.value} input has no content", field="content")

    if event.type in (InputType.FILE, InputType.IMAGE) and not event.metadata.get("filename"):
        raise ValidationError(
            f"{event.type.value} input requires a filename", field="metadata.filename"
        )
