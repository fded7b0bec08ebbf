"""
Conduit - Data models for conversations, inputs and tool calls.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Role(str, Enum):
    """Author of a message in the prompt history."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MessageKind(str, Enum):
    """What an assistant message carries.

    Tool output and in-band errors are sent to the model as ordinary
    ``assistant`` turns, so the kind is what keeps them distinguishable
    when a conversation is replayed.
    """

    TEXT = "text"
    TOOL_RESULT = "tool_result"
    ERROR = "error"


class InputType(str, Enum):
    """Media category of a normalized input."""

    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"
    FILE = "file"
    IMAGE = "image"


class TurnState(str, Enum):
    """Lifecycle of a single conversation turn."""

    IDLE = "idle"
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    PROCESSING_TOOL_CALLS = "processing_tool_calls"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Message:
    """A single role-tagged turn of the conversation."""

    role: Role
    content: str
    kind: MessageKind = MessageKind.TEXT
    tool_name: Optional[str] = None
    created_at: datetime = field(default_factory=_now, compare=False)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: str,
        kind: MessageKind = MessageKind.TEXT,
        tool_name: Optional[str] = None,
    ) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, kind=kind, tool_name=tool_name)

    @property
    def is_tool_result(self) -> bool:
        return self.kind == MessageKind.TOOL_RESULT

    def to_wire(self) -> dict[str, str]:
        """Return the ``{role, content}`` pair sent to the endpoint."""
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> dict[str, Any]:
        result = {
            "role": self.role.value,
            "content": self.content,
            "kind": self.kind.value,
            "created_at": self.created_at.isoformat(),
        }
        if self.tool_name:
            result["tool_name"] = self.tool_name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=Role(data["role"]),
            content=data.get("content", ""),
            kind=MessageKind(data.get("kind", "text")),
            tool_name=data.get("tool_name"),
            created_at=(
                datetime.fromisoformat(data["created_at"])
                if data.get("created_at")
                else _now()
            ),
        )


class Conversation:
    """
    Ordered, append-only log of messages.

    ``append`` is the only mutation and is serialized with a lock, so
    concurrent turns (tasks or threads) may append safely. Readers get a
    tuple snapshot from ``messages``.
    """

    def __init__(self, conversation_id: Optional[str] = None) -> None:
        self.id = conversation_id or _new_id()
        self._messages: list[Message] = []
        self._lock = threading.Lock()

    def append(self, message: Message) -> int:
        """Append a message and return its index."""
        with self._lock:
            self._messages.append(message)
            return len(self._messages) - 1

    def add_system_message(self, content: str) -> Message:
        message = Message.system(content)
        self.append(message)
        return message

    def add_user_message(self, content: str) -> Message:
        message = Message.user(content)
        self.append(message)
        return message

    def add_assistant_message(
        self,
        content: str,
        kind: MessageKind = MessageKind.TEXT,
        tool_name: Optional[str] = None,
    ) -> Message:
        message = Message.assistant(content, kind=kind, tool_name=tool_name)
        self.append(message)
        return message

    @property
    def messages(self) -> tuple[Message, ...]:
        with self._lock:
            return tuple(self._messages)

    @property
    def system_message(self) -> Optional[Message]:
        with self._lock:
            if self._messages and self._messages[0].role == Role.SYSTEM:
                return self._messages[0]
        return None

    def wire_messages(self) -> list[dict[str, str]]:
        return [m.to_wire() for m in self.messages]

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        conversation = cls(conversation_id=data.get("id"))
        for item in data.get("messages", []):
            conversation.append(Message.from_dict(item))
        return conversation


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InputEvent:
    """
    Normalized representation of a piece of user-supplied media.

    ``metadata`` is an open bag whose keys depend on ``type`` (filename,
    fileSize, textContent, transcription, ...). Consumers must use
    ``.get()`` and tolerate missing keys.
    """

    type: InputType
    content: bytes = b""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def filename(self) -> Optional[str]:
        return self.metadata.get("filename")

    def to_dict(self) -> dict[str, Any]:
        # Content is omitted; it can be arbitrarily large binary data.
        return {
            "id": self.id,
            "type": self.type.value,
            "size": self.size,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool execution.

    Exactly one of ``output`` (when ``success``) or ``error`` carries
    meaning; both attributes always exist.
    """

    success: bool
    output: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output, error=None)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, output="", error=error)

    def to_message_content(self) -> str:
        if self.success:
            return f"Tool execution result: {self.output}"
        return f"Tool execution failed: {self.error or 'Unknown error'}"

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "output": self.output, "error": self.error}


@dataclass(frozen=True)
class ToolInvocation:
    """A parsed, not-yet-executed tool call found in model output."""

    tool_name: str
    raw_parameters: str
    parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------


@dataclass
class TurnResult:
    """What a caller gets back once a turn has completed."""

    request_id: str
    text: str = ""
    error: Optional[str] = None
    tool_results: list[tuple[ToolInvocation, ToolResult]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "text": self.text,
            "error": self.error,
            "tool_results": [
                {"tool_name": inv.tool_name, "parameters": dict(inv.parameters), **res.to_dict()}
                for inv, res in self.tool_results
            ],
        }


class TurnUpdateKind(str, Enum):
    """Kinds of items on a turn's progress stream."""

    PARTIAL = "partial"
    TOOL_RESULT = "tool_result"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TurnUpdate:
    """One progress item for a turn, tagged with its request id."""

    request_id: str
    kind: TurnUpdateKind
    text: str = ""
    invocation: Optional[ToolInvocation] = None
    tool_result: Optional[ToolResult] = None
    result: Optional[TurnResult] = None


@dataclass
class InputProcessingResult:
    """Outcome of processing one input event in a batch."""

    event: InputEvent
    result: Optional[TurnResult] = None
    error: Optional[str] = None
    processing_time: float = 0.0

    @classmethod
    def completed(
        cls,
        event: InputEvent,
        result: Optional[TurnResult] = None,
        error: Optional[str] = None,
        started: Optional[float] = None,
    ) -> "InputProcessingResult":
        elapsed = time.monotonic() - started if started is not None else 0.0
        return cls(event=event, result=result, error=error, processing_time=elapsed)

    @property
    def is_success(self) -> bool:
        return self.error is None and self.result is not None
