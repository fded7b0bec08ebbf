"""
Conduit - Input description.

Renders a normalized ``InputEvent`` as the prompt text the model sees.
"""

import logging
from typing import Any, Optional

from ..exceptions import ConduitError, ExtractionFailedError
from ..models import InputEvent, InputType
from ..validation import validate_input_event
from .detection import format_byte_count
from .normalizer import InputNormalizer

logger = logging.getLogger("conduit.inputs")


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _size_of(event: InputEvent, *keys: str) -> int:
    for key in keys:
        size = _as_int(event.metadata.get(key))
        if size is not None:
            return size
    return event.size


class InputCoordinator:
    """Turns input events into prompt text, one description per event."""

    def __init__(self, normalizer: Optional[InputNormalizer] = None) -> None:
        self.normalizer = normalizer

    def can_process(self, input_type: InputType) -> bool:
        try:
            InputType(input_type)
        except ValueError:
            return False
        return True

    def validate(self, event: InputEvent) -> bool:
        """True when the event has what its type needs to be described."""
        try:
            validate_input_event(event)
        except ConduitError as e:
            logger.debug("Input %s failed validation: %s", event.id, e.message)
            return False
        return True

    async def describe(self, event: InputEvent) -> str:
        """
        Render an event as prompt text.

        Raises:
            ExtractionFailedError: A text event has no usable text.
        """
        if event.type == InputType.TEXT:
            return self._describe_text(event)
        if event.type in (InputType.FILE, InputType.IMAGE):
            text_content = event.metadata.get("textContent")
            if isinstance(text_content, str):
                return text_content
            if event.type == InputType.IMAGE:
                return self.describe_image(event)
            return self.describe_file(event)
        if event.type == InputType.AUDIO:
            return await self._describe_audio(event)
        return self.describe_video(event)

    def _describe_text(self, event: InputEvent) -> str:
        text = event.metadata.get("text")
        if isinstance(text, str):
            return text
        try:
            return event.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtractionFailedError(
                "Unable to extract text from input", source=event.filename
            ) from e

    async def _describe_audio(self, event: InputEvent) -> str:
        transcription = event.metadata.get("transcription")
        if isinstance(transcription, str) and transcription.strip():
            return transcription
        # Events the normalizer already tried to transcribe carry either a
        # transcription or an extractionError; those are never transcribed again.
        attempted = "transcription" in event.metadata or "extractionError" in event.metadata
        if (
            not attempted
            and self.normalizer is not None
            and self.normalizer.transcriber is not None
            and event.content
        ):
            transcription = await self.normalizer.transcribe(
                event.content, event.filename or "audio"
            )
            if transcription and transcription.strip():
                return transcription
        return self.describe_audio(event)

    # ==================== Descriptions ====================

    @staticmethod
    def describe_file(event: InputEvent) -> str:
        description = "File: " + (event.filename or "")
        file_type = event.metadata.get("fileType")
        if file_type:
            description += f" Type: {file_type}"
        description += f" Size: {format_byte_count(_size_of(event, 'fileSize'))}"
        return description

    @staticmethod
    def describe_image(event: InputEvent) -> str:
        description = "Image file: " + (event.filename or "")
        width = _as_int(event.metadata.get("imageWidth"))
        height = _as_int(event.metadata.get("imageHeight"))
        if width is not None and height is not None:
            description += f" ({width}x{height})"
        image_format = event.metadata.get("imageFormat")
        if image_format:
            description += f" Format: {image_format}"
        description += f" Size: {format_byte_count(_size_of(event, 'fileSize'))}"
        return description

    @staticmethod
    def describe_audio(event: InputEvent) -> str:
        description = "Audio file: " + (event.filename or "")
        audio_format = event.metadata.get("audioFormat")
        if audio_format:
            description += f" Format: {audio_format}"
        size = _size_of(event, "audioFileSize", "fileSize")
        description += f" Size: {format_byte_count(size)}"
        return description

    @staticmethod
    def describe_video(event: InputEvent) -> str:
        metadata = event.metadata
        lines = ["Video file" + (f": {event.filename}" if event.filename else "")]

        duration = metadata.get("duration")
        if isinstance(duration, (int, float)) and not isinstance(duration, bool):
            minutes, seconds = divmod(int(duration), 60)
            lines.append(f"Duration: {minutes}:{seconds:02d}")

        width = _as_int(metadata.get("width"))
        height = _as_int(metadata.get("height"))
        if width is not None and height is not None:
            lines.append(f"Resolution: {width}x{height}")
            frame_rate = metadata.get("frameRate")
            if isinstance(frame_rate, (int, float)) and not isinstance(frame_rate, bool):
                lines.append(f"Frame Rate: {frame_rate:.1f} fps")

        has_audio = metadata.get("hasAudio")
        if has_audio is not None:
            lines.append("Has audio track" if has_audio else "No audio track")

        size = _size_of(event, "videoFileSize", "fileSize")
        lines.append(f"Size: {format_byte_count(size)}")
        return "\n".join(lines)
