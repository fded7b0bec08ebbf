"""
Tests for tool definitions, the registry and the built-in file operations tool.
"""

import os
import stat

import pytest

from conduit.models import ToolResult
from conduit.tools import BaseTool, FileOperationsTool, ToolDef, ToolRegistry, define_tool

# ---------------------------------------------------------------------------
# ToolDef / define_tool
# ---------------------------------------------------------------------------


class TestDefineTool:
    def test_decorator_uses_function_name(self):
        @define_tool(description="Echo the input.")
        def echo(input: str) -> str:
            return input

        assert isinstance(echo, ToolDef)
        assert echo.name == "echo"
        assert echo.description == "Echo the input."
        assert echo.parameters["required"] == ["input"]

    def test_docstring_as_description(self):
        @define_tool(name="shout")
        def loud(input: str) -> str:
            """Upper-case the input."""
            return input.upper()

        assert loud.name == "shout"
        assert loud.description == "Upper-case the input."

    def test_to_schema(self):
        tool = ToolDef(name="t", description="d", parameters={"type": "object", "properties": {}})
        assert tool.to_schema() == {
            "name": "t",
            "description": "d",
            "parameters": {"type": "object", "properties": {}},
        }

    @pytest.mark.asyncio
    async def test_sync_handler(self):
        @define_tool(description="Echo.")
        def echo(input: str) -> str:
            return input

        result = await echo.execute({"input": "hi"})
        assert result == ToolResult.ok("hi")

    @pytest.mark.asyncio
    async def test_async_handler(self):
        @define_tool(description="Echo.")
        async def echo(input: str) -> str:
            return input * 2

        result = await echo.execute({"input": "ab"})
        assert result.success
        assert result.output == "abab"

    @pytest.mark.asyncio
    async def test_tool_result_passes_through(self):
        @define_tool(description="Always fails.")
        def nope(input: str) -> ToolResult:
            return ToolResult.failure("nope")

        assert await nope.execute({"input": "x"}) == ToolResult.failure("nope")

    @pytest.mark.asyncio
    async def test_exception_becomes_failure(self):
        @define_tool(description="Breaks.")
        def broken(input: str) -> str:
            raise RuntimeError("disk on fire")

        result = await broken.execute({"input": "x"})
        assert not result.success
        assert result.error == "disk on fire"

    @pytest.mark.asyncio
    async def test_unexpected_parameter_becomes_failure(self):
        @define_tool(description="Echo.")
        def echo(input: str) -> str:
            return input

        result = await echo.execute({"other": "x"})
        assert not result.success

    @pytest.mark.asyncio
    async def test_no_handler(self):
        result = await ToolDef(name="empty", description="").execute({})
        assert result.error == "Tool 'empty' has no handler"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestToolRegistry:
    def test_lookup(self):
        tool = FileOperationsTool()
        registry = ToolRegistry([tool])
        assert registry.get("file_operations") is tool
        assert registry.get("missing") is None
        assert "file_operations" in registry
        assert len(registry) == 1
        assert registry.names() == ["file_operations"]

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            ToolRegistry([FileOperationsTool(), FileOperationsTool()])

    def test_invalid_name_rejected(self):
        with pytest.raises(ValueError):
            ToolRegistry([ToolDef(name="has space", description="")])

    def test_mapping_is_read_only(self):
        registry = ToolRegistry([FileOperationsTool()])
        with pytest.raises(TypeError):
            registry.tools["x"] = FileOperationsTool()

    def test_default_registry(self):
        assert ToolRegistry.default().names() == ["file_operations"]

    def test_describe_lists_tools_and_parameters(self):
        text = ToolRegistry([FileOperationsTool()]).describe()
        assert text.startswith("- file_operations:")
        assert "operation:" in text
        assert "create_directory" in text
        assert "content (optional)" in text

    def test_empty_registry_describes_nothing(self):
        assert ToolRegistry().describe() == ""


# ---------------------------------------------------------------------------
# FileOperationsTool
# ---------------------------------------------------------------------------


class TestFileOperationsTool:
    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path):
        tool = FileOperationsTool()
        target = tmp_path / "t.txt"

        written = await tool.execute({"operation": "write", "path": str(target), "content": "X"})
        assert written == ToolResult.ok("File written successfully")
        assert target.read_text() == "X"

        read = await tool.execute({"operation": "read", "path": str(target)})
        assert read == ToolResult.ok("X")

    @pytest.mark.asyncio
    async def test_write_empty_content(self, tmp_path):
        target = tmp_path / "empty.txt"
        result = await FileOperationsTool().execute(
            {"operation": "write", "path": str(target), "content": ""}
        )
        assert result.success
        assert target.read_text() == ""

    @pytest.mark.asyncio
    async def test_overwrite_replaces_file_in_place(self, tmp_path):
        target = tmp_path / "t.txt"
        target.write_text("old contents")
        target.chmod(0o600)

        result = await FileOperationsTool().execute(
            {"operation": "write", "path": str(target), "content": "new"}
        )

        assert result.success
        assert target.read_text() == "new"
        assert stat.S_IMODE(target.stat().st_mode) == 0o600
        assert sorted(os.listdir(tmp_path)) == ["t.txt"]

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "sub"
        target.mkdir()

        result = await FileOperationsTool().execute(
            {"operation": "write", "path": str(target), "content": "X"}
        )

        assert not result.success
        assert target.is_dir()
        assert sorted(os.listdir(tmp_path)) == ["sub"]

    @pytest.mark.asyncio
    async def test_write_into_missing_directory_fails(self, tmp_path):
        target = tmp_path / "nope" / "t.txt"
        result = await FileOperationsTool().execute(
            {"operation": "write", "path": str(target), "content": "X"}
        )
        assert not result.success
        assert os.listdir(tmp_path) == []

    @pytest.mark.asyncio
    async def test_create_directory_with_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "c"
        result = await FileOperationsTool().execute(
            {"operation": "create_directory", "path": str(target)}
        )
        assert result == ToolResult.ok("Directory created successfully")
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_list_is_sorted(self, tmp_path):
        for name in ("b.txt", "a.txt", "c"):
            (tmp_path / name).write_text("")
        result = await FileOperationsTool().execute({"operation": "list", "path": str(tmp_path)})
        assert result.output == "a.txt\nb.txt\nc"

    @pytest.mark.asyncio
    async def test_home_is_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "note.txt").write_text("hello")
        result = await FileOperationsTool().execute({"operation": "read", "path": "~/note.txt"})
        assert result.output == "hello"

    @pytest.mark.asyncio
    async def test_missing_operation(self):
        result = await FileOperationsTool().execute({"path": "/tmp/x"})
        assert result == ToolResult.failure("Missing 'operation' parameter")

    @pytest.mark.asyncio
    async def test_missing_path(self):
        result = await FileOperationsTool().execute({"operation": "read"})
        assert result == ToolResult.failure("Missing 'path' parameter")

    @pytest.mark.asyncio
    async def test_missing_content(self, tmp_path):
        result = await FileOperationsTool().execute(
            {"operation": "write", "path": str(tmp_path / "x")}
        )
        assert result == ToolResult.failure("Missing 'content' parameter")

    @pytest.mark.asyncio
    async def test_unknown_operation(self):
        result = await FileOperationsTool().execute({"operation": "delete", "path": "/tmp/x"})
        assert result == ToolResult.failure("Unknown operation: delete")

    @pytest.mark.asyncio
    async def test_os_error_text_is_reported(self, tmp_path):
        missing = tmp_path / "missing.txt"
        result = await FileOperationsTool().execute({"operation": "read", "path": str(missing)})
        assert not result.success
        assert "No such file or directory" in result.error

    @pytest.mark.asyncio
    async def test_root_confines_relative_paths(self, tmp_path):
        tool = FileOperationsTool(root=tmp_path)
        result = await tool.execute({"operation": "write", "path": "inside.txt", "content": "ok"})
        assert result.success
        assert (tmp_path / "inside.txt").read_text() == "ok"

    @pytest.mark.asyncio
    async def test_root_rejects_escape(self, tmp_path):
        tool = FileOperationsTool(root=tmp_path / "jail")
        result = await tool.execute({"operation": "read", "path": "../secret.txt"})
        assert not result.success
        assert "outside the allowed directory" in result.error

    def test_is_a_base_tool(self):
        assert isinstance(FileOperationsTool(), BaseTool)
