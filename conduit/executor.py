"""
Conduit - Tool execution.

Routes parsed invocations to registered tools. Failures of any kind come
back as a failed ``ToolResult``; the executor never raises on behalf of a
tool.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from .exceptions import ToolError, ToolNotFoundError
from .models import ToolInvocation, ToolResult
from .tools import ToolRegistry

logger = logging.getLogger("conduit.executor")


class ToolExecutor:
    """Executes tool invocations against a registry."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, invocation: ToolInvocation) -> ToolResult:
        """Run one invocation and return its result."""
        tool = self.registry.get(invocation.tool_name)
        if tool is None:
            error = ToolNotFoundError(invocation.tool_name)
            logger.info("Skipping call to unknown tool %r", invocation.tool_name)
            return ToolResult.failure(error.message)

        t0 = time.monotonic()
        try:
            result = await tool.execute(invocation.parameters)
        except ToolError as e:
            result = ToolResult.failure(e.message)
        except Exception as e:
            logger.exception("Tool %s raised unexpectedly", invocation.tool_name)
            result = ToolResult.failure(str(e) or type(e).__name__)

        duration_ms = (time.monotonic() - t0) * 1000
        logger.info(
            "Executed tool %s (success=%s, %.1f ms)",
            invocation.tool_name,
            result.success,
            duration_ms,
        )
        return result

    async def execute_all(
        self,
        invocations: Iterable[ToolInvocation],
        on_result: Optional[Callable[[ToolInvocation, ToolResult], None]] = None,
    ) -> list[tuple[ToolInvocation, ToolResult]]:
        """
        Run invocations one after another, in order.

        ``on_result`` is called with each invocation and its result before
        the next invocation starts.
        """
        results = []
        for invocation in invocations:
            result = await self.execute(invocation)
            results.append((invocation, result))
            if on_result is not None:
                on_result(invocation, result)
        return results
