"""
Conduit - Conversational agent runtime.

Sits between a caller and a streaming LLM endpoint: keeps the conversation,
streams replies, executes tool calls embedded in model output and turns
text, audio, image, video and file inputs into prompt text.
"""

from .agent import Agent, build_system_prompt
from .config import AgentConfig, load_config
from .exceptions import (
    ConduitError,
    ConfigurationError,
    CredentialMissingError,
    ExtractionFailedError,
    InputError,
    LLMError,
    MalformedResponseError,
    NoResponseBodyError,
    SourceTooLargeError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolParameterError,
    TransportError,
    UnreadableSourceError,
    UnsupportedInputError,
)
from .executor import ToolExecutor
from .inputs import (
    InputCoordinator,
    InputNormalizer,
    MediaInspector,
    PillowImageInspector,
    Transcriber,
    WhisperTranscriber,
    format_byte_count,
)
from .llm import LLMClient
from .models import (
    Conversation,
    InputEvent,
    InputProcessingResult,
    InputType,
    Message,
    MessageKind,
    Role,
    ToolInvocation,
    ToolResult,
    TurnResult,
    TurnState,
    TurnUpdate,
    TurnUpdateKind,
)
from .tool_calls import extract, extract_tool_calls, format_tool_call, parse_parameters
from .tools import BaseTool, FileOperationsTool, ToolDef, ToolRegistry, define_tool
from .validation import InputValidationError, validate_config, validate_input_event

__version__ = "0.1.0"
__all__ = [
    # Agent
    "Agent",
    "build_system_prompt",
    "AgentConfig",
    "load_config",
    "LLMClient",
    # Models
    "Conversation",
    "InputEvent",
    "InputProcessingResult",
    "InputType",
    "Message",
    "MessageKind",
    "Role",
    "ToolInvocation",
    "ToolResult",
    "TurnResult",
    "TurnState",
    "TurnUpdate",
    "TurnUpdateKind",
    # Tools
    "BaseTool",
    "ToolDef",
    "define_tool",
    "ToolRegistry",
    "FileOperationsTool",
    "ToolExecutor",
    "extract",
    "extract_tool_calls",
    "format_tool_call",
    "parse_parameters",
    # Inputs
    "InputNormalizer",
    "InputCoordinator",
    "Transcriber",
    "MediaInspector",
    "WhisperTranscriber",
    "PillowImageInspector",
    "format_byte_count",
    # Validation
    "InputValidationError",
    "validate_config",
    "validate_input_event",
    # Exceptions
    "ConduitError",
    "ConfigurationError",
    "CredentialMissingError",
    "LLMError",
    "TransportError",
    "NoResponseBodyError",
    "MalformedResponseError",
    "ToolError",
    "ToolNotFoundError",
    "ToolParameterError",
    "ToolExecutionError",
    "InputError",
    "UnreadableSourceError",
    "UnsupportedInputError",
    "SourceTooLargeError",
    "ExtractionFailedError",
]
