"""Base classes for tools the model can invoke.

A tool receives the decoded parameters of a call (a ``str -> str``
mapping) and returns a :class:`~conduit.models.ToolResult`. Tools either
subclass :class:`BaseTool` or wrap a plain function with
:func:`define_tool`.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..exceptions import ToolParameterError
from ..models import ToolResult

logger = logging.getLogger("conduit.tools")


class BaseTool:
    """Base class for local tools.

    Subclasses set ``name``, ``description`` and ``parameters`` (a JSON
    schema describing the accepted keys) and implement :meth:`execute`.
    """

    name: str = ""
    description: str = ""
    parameters: dict = {}

    async def execute(self, parameters: Mapping[str, str]) -> ToolResult:
        raise NotImplementedError

    def require(self, parameters: Mapping[str, str], key: str) -> str:
        """Return ``parameters[key]`` or raise ``ToolParameterError``."""
        if key not in parameters:
            raise ToolParameterError(key, tool_name=self.name)
        return parameters[key]

    def to_schema(self) -> dict:
        """Return the tool definition as a JSON-schema dict."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def describe(self) -> str:
        """One entry of the tool list shown to the model."""
        lines = [f"- {self.name}: {self.description}"]
        properties = self.parameters.get("properties", {}) if self.parameters else {}
        required = set(self.parameters.get("required", [])) if self.parameters else set()
        for key, spec in properties.items():
            marker = "" if key in required else " (optional)"
            text = spec.get("description", "") if isinstance(spec, dict) else ""
            if isinstance(spec, dict) and spec.get("enum"):
                text = f"{text} One of: {', '.join(spec['enum'])}.".strip()
            lines.append(f"    {key}{marker}: {text}".rstrip())
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


@dataclass(repr=False)
class ToolDef(BaseTool):
    """A tool backed by a plain function.

    The handler is called with the decoded parameters as keyword
    arguments. It may be sync or async; sync handlers run in a worker
    thread. A ``str`` return value becomes a successful result, a
    ``ToolResult`` passes through unchanged and anything else is
    converted with ``str()``. Exceptions become a failed result carrying
    the exception message.

    Example::

        @define_tool(description="Echo the given text.")
        def echo(text: str) -> str:
            return text
    """

    name: str = ""
    description: str = ""
    parameters: dict = field(
        default_factory=lambda: {
            "type": "object",
            "properties": {
                "input": {"type": "string", "description": "Input for the tool."},
            },
            "required": ["input"],
        }
    )
    handler: Optional[Callable[..., Any]] = None

    async def execute(self, parameters: Mapping[str, str]) -> ToolResult:
        if self.handler is None:
            return ToolResult.failure(f"Tool '{self.name}' has no handler")
        try:
            if asyncio.iscoroutinefunction(self.handler):
                raw = await self.handler(**parameters)
            else:
                raw = await asyncio.to_thread(self.handler, **parameters)
        except Exception as e:
            logger.debug("Tool %s raised: %s", self.name, e)
            return ToolResult.failure(str(e))
        if isinstance(raw, ToolResult):
            return raw
        return ToolResult.ok("" if raw is None else str(raw))


def define_tool(
    name: Optional[str] = None,
    description: str = "",
    parameters: Optional[dict] = None,
) -> Callable[[Callable[..., Any]], ToolDef]:
    """Decorator that turns a function into a :class:`ToolDef`.

    The function's ``__name__`` is the tool name unless *name* is given.

    Usage::

        @define_tool(description="Current time in ISO format.", parameters={
            "type": "object",
            "properties": {},
        })
        def now() -> str:
            return datetime.now().isoformat()
    """

    def decorator(func: Callable[..., Any]) -> ToolDef:
        tool_name = name or func.__name__
        kwargs: dict[str, Any] = {}
        if parameters is not None:
            kwargs["parameters"] = parameters
        return ToolDef(
            name=tool_name,
            description=description or (func.__doc__ or "").strip() or f"Tool: {tool_name}",
            handler=func,
            **kwargs,
        )

    return decorator
