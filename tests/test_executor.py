"""
Tests for routing tool invocations through the executor.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conduit.exceptions import ToolExecutionError
from conduit.executor import ToolExecutor
from conduit.models import ToolInvocation, ToolResult
from conduit.tool_calls import extract_tool_calls
from conduit.tools import BaseTool, FileOperationsTool, ToolRegistry, define_tool


@define_tool(description="Echo the input.")
def echo(input: str) -> str:
    return input


def invocation(name: str, **params: str) -> ToolInvocation:
    return ToolInvocation(tool_name=name, raw_parameters="", parameters=params)


class TestToolExecutor:
    @pytest.mark.asyncio
    async def test_executes_registered_tool(self):
        executor = ToolExecutor(ToolRegistry([echo]))
        result = await executor.execute(invocation("echo", input="hi"))
        assert result == ToolResult.ok("hi")

    @pytest.mark.asyncio
    async def test_unknown_tool_is_a_failed_result(self):
        executor = ToolExecutor(ToolRegistry([echo]))
        result = await executor.execute(invocation("teleport", where="mars"))
        assert not result.success
        assert "teleport" in result.error
        assert result.error == "Tool 'teleport' not found"

    @pytest.mark.asyncio
    async def test_tool_error_is_converted(self):
        tool = MagicMock(spec=BaseTool)
        tool.name = "strict"
        tool.execute = AsyncMock(side_effect=ToolExecutionError("bad input", tool_name="strict"))
        executor = ToolExecutor(ToolRegistry([tool]))

        result = await executor.execute(invocation("strict"))
        assert result == ToolResult.failure("bad input")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_converted(self):
        tool = MagicMock(spec=BaseTool)
        tool.name = "flaky"
        tool.execute = AsyncMock(side_effect=KeyError("k"))
        executor = ToolExecutor(ToolRegistry([tool]))

        result = await executor.execute(invocation("flaky"))
        assert not result.success
        assert "k" in result.error

    @pytest.mark.asyncio
    async def test_execute_all_runs_in_order(self):
        order = []

        @define_tool(description="Record.")
        def record(input: str) -> str:
            order.append(input)
            return input

        executor = ToolExecutor(ToolRegistry([record]))
        results = await executor.execute_all(
            [invocation("record", input="1"), invocation("missing"), invocation("record", input="2")]
        )

        assert order == ["1", "2"]
        assert [r.success for _, r in results] == [True, False, True]
        assert [inv.tool_name for inv, _ in results] == ["record", "missing", "record"]

    @pytest.mark.asyncio
    async def test_execute_all_reports_each_result_before_the_next_call(self):
        events = []

        @define_tool(description="Record.")
        def record(input: str) -> str:
            events.append(f"run {input}")
            return input

        executor = ToolExecutor(ToolRegistry([record]))
        await executor.execute_all(
            [invocation("record", input="1"), invocation("record", input="2")],
            on_result=lambda inv, res: events.append(f"done {res.output}"),
        )

        assert events == ["run 1", "done 1", "run 2", "done 2"]

    @pytest.mark.asyncio
    async def test_extracted_call_writes_file(self, tmp_path):
        target = tmp_path / "t.txt"
        text = f'@file_operations(operation: "write", path: "{target}", content: "X")'
        executor = ToolExecutor(ToolRegistry([FileOperationsTool()]))

        results = await executor.execute_all(extract_tool_calls(text))

        assert results[0][1] == ToolResult.ok("File written successfully")
        assert target.read_text() == "X"
