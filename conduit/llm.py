"""
Conduit - Streaming protocol client for the LLM endpoint.

Sends the conversation history to a Messages-style endpoint and returns
the assembled reply, optionally streaming partial text to a callback as
frames arrive.

Usage:
    ```python
    from conduit import AgentConfig, LLMClient, Message

    async with LLMClient(AgentConfig.from_env()) as client:
        text = await client.send(
            [Message.system("Be brief."), Message.user("Hello")],
            on_partial=lambda text: print(text),
        )
    ```
"""

import json
import logging
from typing import Any, Callable, Optional, Sequence, Union

import httpx

from .config import AgentConfig
from .exceptions import (
    CredentialMissingError,
    MalformedResponseError,
    NoResponseBodyError,
    TransportError,
)
from .models import Message, Role
from .streaming import DeltaAccumulator

logger = logging.getLogger("conduit.llm")

PartialCallback = Callable[[str], None]
WireMessage = dict[str, str]


def _as_wire(message: Union[Message, WireMessage]) -> WireMessage:
    if isinstance(message, Message):
        return message.to_wire()
    return {"role": str(message["role"]), "content": str(message.get("content", ""))}


def split_system(
    messages: Sequence[Union[Message, WireMessage]],
) -> tuple[Optional[str], list[WireMessage]]:
    """
    Separate the leading system message from the conversational turns.

    The endpoint takes the system prompt as a top-level field rather than
    as a turn. Any later system messages are not sent, and neither are
    turns with blank content (such as an empty streamed reply), which the
    endpoint rejects.
    """
    wire = [_as_wire(m) for m in messages]
    system: Optional[str] = None
    if wire and wire[0]["role"] == Role.SYSTEM.value:
        system = wire[0]["content"]
        wire = wire[1:]
    turns = [
        m for m in wire if m["role"] != Role.SYSTEM.value and m["content"].strip()
    ]
    if len(turns) != len(wire):
        logger.debug("Dropped %d system or blank message(s)", len(wire) - len(turns))
    return system, turns


def _drain_for_diagnostics(response: httpx.Response) -> Any:
    try:
        return response.json() if response.content else None
    except (json.JSONDecodeError, ValueError):
        return response.text


class LLMClient:
    """
    Single-attempt client for the Messages endpoint.

    Every call to ``send`` is independent: the running text buffer is local
    to the call, so concurrent turns sharing one client never see each
    other's partial text. No retries are attempted.
    """

    def __init__(
        self,
        config: AgentConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=min(config.timeout, 10.0)),
            transport=transport,
        )

    # ==================== Request building ====================

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.api_version,
        }

    def build_payload(
        self,
        messages: Sequence[Union[Message, WireMessage]],
        stream: bool,
    ) -> dict[str, Any]:
        """Build the JSON body for a request."""
        system, turns = split_system(messages)
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": turns,
            "stream": stream,
            "max_tokens": self.config.max_tokens,
        }
        if system is not None:
            payload["system"] = system
        return payload

    # ==================== Sending ====================

    async def send(
        self,
        messages: Sequence[Union[Message, WireMessage]],
        on_partial: Optional[PartialCallback] = None,
        *,
        stream: Optional[bool] = None,
    ) -> str:
        """
        Send the message history and return the assembled reply.

        Args:
            messages: Ordered prompt history; a leading system message is
                sent as the top-level ``system`` field.
            on_partial: Called after every streamed delta with the full text
                accumulated so far.
            stream: Overrides ``config.stream`` for this call.

        Raises:
            CredentialMissingError: No API key is configured.
            TransportError: Network failure or non-2xx status.
            NoResponseBodyError: The endpoint returned an empty body.
            MalformedResponseError: The body does not match the schema.
        """
        if not self.config.api_key:
            raise CredentialMissingError()

        should_stream = self.config.stream if stream is None else stream
        payload = self.build_payload(messages, should_stream)
        logger.debug(
            "Sending %d message(s) to %s (model=%s, stream=%s)",
            len(payload["messages"]),
            self.config.endpoint,
            self.config.model,
            should_stream,
        )

        try:
            if should_stream:
                return await self._stream_response(payload, on_partial)
            return await self._regular_response(payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Network error: {e}") from e

    async def _regular_response(self, payload: dict[str, Any]) -> str:
        response = await self._client.post(
            self.config.endpoint,
            headers=self._headers(),
            json=payload,
        )
        self._raise_for_status(response)

        if not response.content:
            raise NoResponseBodyError(status_code=response.status_code)

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponseError(
                "Invalid response from AI service: body is not JSON",
                status_code=response.status_code,
                response=response.text,
            ) from e

        return self._extract_text(data, response.status_code)

    async def _stream_response(
        self,
        payload: dict[str, Any],
        on_partial: Optional[PartialCallback],
    ) -> str:
        accumulator = DeltaAccumulator(on_partial)
        headers = self._headers()
        headers["Accept"] = "text/event-stream"

        async with self._client.stream(
            "POST",
            self.config.endpoint,
            headers=headers,
            json=payload,
        ) as response:
            if not response.is_success:
                await response.aread()
                self._raise_for_status(response)

            async for line in response.aiter_lines():
                if not accumulator.feed_line(line):
                    break

        logger.debug(
            "Stream finished: %d frame(s), %d delta(s), %d skipped, %d chars",
            accumulator.frames,
            accumulator.deltas,
            accumulator.skipped,
            len(accumulator.text),
        )
        return accumulator.text

    # ==================== Response parsing ====================

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise TransportError for non-2xx responses after reading the body."""
        if response.is_success:
            return
        body = _drain_for_diagnostics(response)
        detail = ""
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                detail = str(error.get("message", ""))
        message = f"Request failed with status {response.status_code}"
        if detail:
            message += f": {detail}"
        raise TransportError(message, status_code=response.status_code, response=body)

    @staticmethod
    def _extract_text(data: Any, status_code: Optional[int] = None) -> str:
        """Return the first content block's text from a JSON envelope."""
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list) or not content:
            raise MalformedResponseError(
                "Invalid response from AI service: missing content",
                status_code=status_code,
                response=data,
            )
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise MalformedResponseError(
                "Invalid response from AI service: first content block has no text",
                status_code=status_code,
                response=data,
            )
        return text

    # ==================== Lifecycle ====================

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
