"""Name to tool mapping, fixed once the agent is built."""

import re
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from .base import BaseTool

_TOOL_NAME = re.compile(r"\w+")


class ToolRegistry:
    """
    Read-only lookup table of tools by name.

    The mapping is frozen at construction, so lookups from concurrent
    turns never race with registration.
    """

    def __init__(self, tools: Iterable[BaseTool] = ()) -> None:
        table: dict[str, BaseTool] = {}
        for tool in tools:
            if not tool.name or not _TOOL_NAME.fullmatch(tool.name):
                raise ValueError(f"Invalid tool name: {tool.name!r}")
            if tool.name in table:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            table[tool.name] = tool
        self._tools = MappingProxyType(table)

    @classmethod
    def default(cls) -> "ToolRegistry":
        """Registry holding the built-in file operations tool."""
        from .file_operations import FileOperationsTool

        return cls([FileOperationsTool()])

    @property
    def tools(self) -> MappingProxyType:
        return self._tools

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        """Tool list text for the system prompt."""
        if not self._tools:
            return ""
        return "\n".join(tool.describe() for tool in self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())
