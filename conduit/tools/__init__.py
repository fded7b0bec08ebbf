"""Local tools the model can call from its replies."""

from .base import BaseTool, ToolDef, define_tool
from .file_operations import FileOperationsTool
from .registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolDef",
    "define_tool",
    "FileOperationsTool",
    "ToolRegistry",
]
