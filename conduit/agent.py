"""
Conduit - Agent orchestrator.

The ``Agent`` owns the conversation and drives each turn: it sends the
history to the model, folds the reply (or the failure) back into the
conversation, and executes any tool calls found in the reply.

Usage:
    ```python
    from conduit import Agent, AgentConfig

    async with Agent(AgentConfig.from_env()) as agent:
        result = await agent.run_turn("List the files in /tmp", on_partial=print)
        print(result.text)

        async for update in agent.stream_turn("Now read notes.txt"):
            print(update.kind, update.text)
    ```
"""

import asyncio
import logging
import time
import uuid
from typing import Any, AsyncIterator, Callable, Iterable, Optional

import httpx

from .config import AgentConfig
from .exceptions import ConduitError
from .executor import ToolExecutor
from .inputs import InputCoordinator, InputNormalizer
from .llm import LLMClient, PartialCallback
from .models import (
    Conversation,
    InputEvent,
    InputProcessingResult,
    MessageKind,
    ToolInvocation,
    ToolResult,
    TurnResult,
    TurnState,
    TurnUpdate,
    TurnUpdateKind,
)
from .tool_calls import extract_tool_calls, format_tool_call
from .tools import BaseTool, ToolRegistry
from .validation import validate_config

logger = logging.getLogger("conduit.agent")

ToolResultCallback = Callable[[ToolInvocation, ToolResult], None]


def build_system_prompt(config: AgentConfig, registry: ToolRegistry) -> str:
    """Combine the configured prompt with the tool list and call syntax."""
    sections = [config.system_prompt.strip()]
    if len(registry):
        if "file_operations" in registry:
            example = format_tool_call(
                "file_operations",
                {"operation": "write", "path": "/path/to/file.txt", "content": "Hello"},
            )
        else:
            example = format_tool_call(registry.names()[0], {"input": "value"})
        sections.append("Available tools:\n" + registry.describe())
        sections.append(
            "To use a tool, write a call in your reply using this syntax:\n"
            '@tool_name(key: "value", other_key: "value")\n\n'
            f"For example:\n{example}\n\n"
            'Put values in double quotes; inside them write \\" for a quote '
            "and \\\\ for a backslash."
        )
    return "\n\n".join(s for s in sections if s)


class Agent:
    """
    Conversational agent bound to one conversation.

    Turns are not serialized against each other: several may be in flight
    at once, and only the conversation's append is atomic. Each turn is
    tracked by its request id in ``turn_states``.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        client: Optional[LLMClient] = None,
        tools: Optional[Iterable[BaseTool]] = None,
        registry: Optional[ToolRegistry] = None,
        normalizer: Optional[InputNormalizer] = None,
    ):
        if tools is not None and registry is not None:
            raise ValueError("Pass either tools or registry, not both")

        self.config = config or AgentConfig.from_env()
        validate_config(self.config)

        if registry is None:
            registry = ToolRegistry(tools) if tools is not None else ToolRegistry.default()
        self.registry = registry
        self.executor = ToolExecutor(registry)
        self.client = client or LLMClient(self.config)
        self.normalizer = normalizer or InputNormalizer(self.config)
        self.coordinator = InputCoordinator(self.normalizer)

        self.system_prompt = build_system_prompt(self.config, self.registry)
        self._conversation = self._new_conversation()
        self._turn_states: dict[str, TurnState] = {}

    # ==================== Conversation ====================

    def _new_conversation(self) -> Conversation:
        conversation = Conversation()
        conversation.add_system_message(self.system_prompt)
        return conversation

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    def clear_conversation(self) -> None:
        """Drop all history and start over with the system message."""
        self._conversation = self._new_conversation()
        logger.info("Conversation cleared (new id %s)", self._conversation.id)

    # ==================== Turn state ====================

    @property
    def turn_states(self) -> dict[str, TurnState]:
        """Snapshot of the state of every in-flight turn by request id."""
        return dict(self._turn_states)

    @property
    def state(self) -> TurnState:
        """State of the most recently started active turn, or idle."""
        if not self._turn_states:
            return TurnState.IDLE
        return next(reversed(self._turn_states.values()))

    def _set_state(self, request_id: str, state: TurnState) -> None:
        if state == TurnState.IDLE:
            self._turn_states.pop(request_id, None)
        else:
            self._turn_states[request_id] = state

    # ==================== Turns ====================

    async def run_turn(
        self,
        text: str,
        on_partial: Optional[PartialCallback] = None,
        *,
        request_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one turn for a user message.

        Model and transport failures do not raise: they are recorded in the
        conversation as an error message and in ``TurnResult.error``.

        Args:
            text: The user's message.
            on_partial: Called with the accumulated reply text as it streams.
            request_id: Identifier for this turn; generated when omitted.
        """
        return await self._run_turn(text, on_partial, request_id or str(uuid.uuid4()))

    async def _run_turn(
        self,
        text: str,
        on_partial: Optional[PartialCallback],
        request_id: str,
        on_tool_result: Optional[ToolResultCallback] = None,
    ) -> TurnResult:
        result = TurnResult(request_id=request_id)
        conversation = self._conversation
        logger.info("Turn %s started", request_id)

        try:
            conversation.add_user_message(text)
            self._set_state(request_id, TurnState.AWAITING_MODEL_RESPONSE)

            try:
                reply = await self.client.send(conversation.messages, on_partial)
            except (ConduitError, httpx.HTTPError) as e:
                message = e.message if isinstance(e, ConduitError) else str(e)
                logger.error("Turn %s failed: %s", request_id, message)
                conversation.add_assistant_message(f"Error: {message}", kind=MessageKind.ERROR)
                result.error = message
                return result

            conversation.add_assistant_message(reply)
            result.text = reply

            invocations = extract_tool_calls(reply)
            if invocations:
                self._set_state(request_id, TurnState.PROCESSING_TOOL_CALLS)
                logger.info("Turn %s requested %d tool call(s)", request_id, len(invocations))

            def record(invocation: ToolInvocation, tool_result: ToolResult) -> None:
                conversation.add_assistant_message(
                    tool_result.to_message_content(),
                    kind=MessageKind.TOOL_RESULT,
                    tool_name=invocation.tool_name,
                )
                if on_tool_result is not None:
                    on_tool_result(invocation, tool_result)

            result.tool_results = await self.executor.execute_all(invocations, on_result=record)
            return result
        finally:
            self._set_state(request_id, TurnState.IDLE)
            logger.info("Turn %s finished (success=%s)", request_id, result.success)

    async def stream_turn(
        self,
        text: str,
        *,
        request_id: Optional[str] = None,
    ) -> AsyncIterator[TurnUpdate]:
        """
        Run a turn and yield its progress.

        Yields ``partial`` updates as the reply streams, one ``tool_result``
        update per executed tool, then a single ``complete`` update carrying
        the ``TurnResult``. Every update carries the turn's request id.
        Closing the iterator early cancels the turn.
        """
        request_id = request_id or str(uuid.uuid4())
        queue: asyncio.Queue[Optional[TurnUpdate]] = asyncio.Queue()

        def on_partial(partial: str) -> None:
            queue.put_nowait(TurnUpdate(request_id, TurnUpdateKind.PARTIAL, text=partial))

        def on_tool_result(invocation: ToolInvocation, tool_result: ToolResult) -> None:
            queue.put_nowait(
                TurnUpdate(
                    request_id,
                    TurnUpdateKind.TOOL_RESULT,
                    text=tool_result.to_message_content(),
                    invocation=invocation,
                    tool_result=tool_result,
                )
            )

        async def runner() -> None:
            try:
                result = await self._run_turn(text, on_partial, request_id, on_tool_result)
                queue.put_nowait(
                    TurnUpdate(request_id, TurnUpdateKind.COMPLETE, text=result.text, result=result)
                )
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(runner())
        try:
            while True:
                update = await queue.get()
                if update is None:
                    break
                yield update
            await task
        finally:
            if not task.done():
                task.cancel()
                # The turn's own cleanup must finish before the iterator closes.
                await asyncio.wait([task])

    # ==================== Inputs ====================

    async def process_input(
        self, event: InputEvent, on_partial: Optional[PartialCallback] = None
    ) -> TurnResult:
        """
        Describe an input event and run a turn with the description.

        Raises:
            InputError: The event cannot be described. Nothing is added to
                the conversation in that case.
        """
        description = await self.coordinator.describe(event)
        return await self.run_turn(description, on_partial)

    async def process_inputs(self, events: Iterable[InputEvent]) -> list[InputProcessingResult]:
        """Process several events concurrently; failures are reported per event."""

        async def process_one(event: InputEvent) -> InputProcessingResult:
            started = time.monotonic()
            try:
                result = await self.process_input(event)
            except ConduitError as e:
                logger.warning("Input %s could not be processed: %s", event.id, e.message)
                return InputProcessingResult.completed(event, error=e.message, started=started)
            return InputProcessingResult.completed(
                event, result=result, error=result.error, started=started
            )

        return list(await asyncio.gather(*(process_one(e) for e in events)))

    # ==================== Lifecycle ====================

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "Agent":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
