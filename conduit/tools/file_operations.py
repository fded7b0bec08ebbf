"""Built-in ``file_operations`` tool."""

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Mapping, Optional, Union

from ..exceptions import ToolError, ToolExecutionError
from ..models import ToolResult
from .base import BaseTool

logger = logging.getLogger("conduit.tools")


def _atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` so readers never see a partial file."""
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        delete=False,
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        if path.exists():
            shutil.copymode(path, tmp.name)
        else:
            os.chmod(tmp.name, 0o644)
        os.replace(tmp.name, path)
    except Exception:
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise


class FileOperationsTool(BaseTool):
    """Reads, writes and lists files on the local file system.

    Parameters are dispatched on ``operation``:

    - ``read`` (``path``): returns the file contents.
    - ``write`` (``path``, ``content``): overwrites the file.
    - ``create_directory`` (``path``): creates it with any missing parents.
    - ``list`` (``path``): newline-separated, sorted entry names.

    When ``root`` is given, every path must resolve inside it.
    """

    name = "file_operations"
    description = "Read, write and list files and create directories on the local file system."
    parameters = {
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "description": "Operation to perform.",
                "enum": ["read", "write", "create_directory", "list"],
            },
            "path": {"type": "string", "description": "Target file or directory path."},
            "content": {"type": "string", "description": "Text to write (write only)."},
        },
        "required": ["operation", "path"],
    }

    def __init__(self, root: Optional[Union[str, Path]] = None) -> None:
        self.root = Path(root).expanduser().resolve() if root is not None else None
        self._operations: dict[str, Callable[[Mapping[str, str]], Awaitable[str]]] = {
            "read": self._read,
            "write": self._write,
            "create_directory": self._create_directory,
            "list": self._list,
        }

    async def execute(self, parameters: Mapping[str, str]) -> ToolResult:
        try:
            operation = self.require(parameters, "operation")
            handler = self._operations.get(operation)
            if handler is None:
                return ToolResult.failure(f"Unknown operation: {operation}")
            output = await handler(parameters)
        except ToolError as e:
            return ToolResult.failure(e.message)
        except (OSError, UnicodeDecodeError) as e:
            logger.info("file_operations failed: %s", e)
            return ToolResult.failure(str(e))
        return ToolResult.ok(output)

    def _resolve(self, raw: str) -> Path:
        path = Path(raw).expanduser()
        if self.root is None:
            return path
        if not path.is_absolute():
            path = self.root / path
        resolved = path.resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise ToolExecutionError(
                f"Path is outside the allowed directory: {raw}", tool_name=self.name
            )
        return resolved

    async def _read(self, parameters: Mapping[str, str]) -> str:
        path = self._resolve(self.require(parameters, "path"))
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def _write(self, parameters: Mapping[str, str]) -> str:
        path = self._resolve(self.require(parameters, "path"))
        content = self.require(parameters, "content")
        await asyncio.to_thread(_atomic_write_text, path, content)
        logger.info("Wrote %d character(s) to %s", len(content), path)
        return "File written successfully"

    async def _create_directory(self, parameters: Mapping[str, str]) -> str:
        path = self._resolve(self.require(parameters, "path"))
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        return "Directory created successfully"

    async def _list(self, parameters: Mapping[str, str]) -> str:
        path = self._resolve(self.require(parameters, "path"))

        def listing() -> list[str]:
            return sorted(entry.name for entry in path.iterdir())

        return "\n".join(await asyncio.to_thread(listing))
