"""
Conduit - Custom exceptions for error handling.
"""

from typing import Any, Optional


class ConduitError(Exception):
    """Base exception for all Conduit errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(ConduitError):
    """Raised when the runtime configuration is unusable."""

    pass


class ValidationError(ConduitError):
    """Raised when a value fails validation."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


class CredentialMissingError(ConfigurationError):
    """Raised when a request is attempted without an API key."""

    def __init__(self, message: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(
            message
            or "No API key provided. Set ANTHROPIC_API_KEY or configure api_key.",
            **kwargs,
        )


# ---------------------------------------------------------------------------
# LLM endpoint
# ---------------------------------------------------------------------------


class LLMError(ConduitError):
    """Base class for failures talking to the LLM endpoint."""

    pass


class TransportError(LLMError):
    """Raised on network failures and non-2xx responses."""

    pass


class NoResponseBodyError(LLMError):
    """Raised when the endpoint answers with an empty body."""

    def __init__(self, message: str = "No data received from AI service.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class MalformedResponseError(LLMError):
    """Raised when a response does not match the expected schema."""

    pass


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolError(ConduitError):
    """Base class for tool failures."""

    def __init__(self, message: str, tool_name: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Raised when an invocation names an unregistered tool."""

    def __init__(self, tool_name: str, **kwargs: Any) -> None:
        super().__init__(f"Tool '{tool_name}' not found", tool_name=tool_name, **kwargs)


class ToolParameterError(ToolError):
    """Raised when a required tool parameter is absent."""

    def __init__(self, parameter: str, tool_name: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(f"Missing '{parameter}' parameter", tool_name=tool_name, **kwargs)
        self.parameter = parameter


class ToolExecutionError(ToolError):
    """Raised when a tool fails while running; wraps the underlying message."""

    pass


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------


class InputError(ConduitError):
    """Base class for input normalization failures."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.source = source


class UnreadableSourceError(InputError):
    """Raised when an input source cannot be read at all."""

    pass


class UnsupportedInputError(InputError):
    """Raised when an input is of a type or shape that cannot be processed."""

    pass


class SourceTooLargeError(UnsupportedInputError):
    """Raised when an input exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int, source: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(
            f"Input is too large ({size} bytes, maximum {limit} bytes)",
            source=source,
            **kwargs,
        )
        self.size = size
        self.limit = limit


class ExtractionFailedError(InputError):
    """Raised when content could not be extracted from a readable source."""

    pass
