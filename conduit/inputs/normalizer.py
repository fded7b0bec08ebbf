"""
Conduit - Input normalization.

Turns text, files and raw media buffers into ``InputEvent`` objects with
type-specific metadata. Blocking file reads and collaborator calls run in
worker threads.
"""

import asyncio
import codecs
import logging
import os
import stat as stat_module
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from ..config import AgentConfig
from ..exceptions import (
    ExtractionFailedError,
    InputError,
    SourceTooLargeError,
    UnreadableSourceError,
    UnsupportedInputError,
)
from ..models import InputEvent, InputType
from . import detection
from .collaborators import MediaInspector, Transcriber
from .text import clean_text, text_statistics, validate_text

logger = logging.getLogger("conduit.inputs")

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)

_CATEGORY_EVENT_TYPES = {
    detection.TEXT: InputType.FILE,
    detection.PDF: InputType.FILE,
    detection.GENERIC: InputType.FILE,
    detection.IMAGE: InputType.IMAGE,
    detection.AUDIO: InputType.AUDIO,
    detection.VIDEO: InputType.VIDEO,
}

_TYPE_CATEGORIES = {
    InputType.IMAGE: detection.IMAGE,
    InputType.AUDIO: detection.AUDIO,
    InputType.VIDEO: detection.VIDEO,
}


class InputNormalizer:
    """
    Builds ``InputEvent`` objects from user-supplied sources.

    Whole-source failures (missing file, too large, undecodable text)
    raise an ``InputError``. Failures of the optional transcriber or media
    inspector never do: they are logged and recorded in the event's
    ``extractionError`` metadata.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        transcriber: Optional[Transcriber] = None,
        inspector: Optional[MediaInspector] = None,
    ):
        self.config = config or AgentConfig()
        self.transcriber = transcriber
        self.inspector = inspector

    @property
    def max_input_bytes(self) -> int:
        return self.config.max_input_bytes

    def _check_size(self, size: int, source: Optional[str]) -> None:
        if size > self.max_input_bytes:
            raise SourceTooLargeError(size, self.max_input_bytes, source=source)

    # ==================== Text ====================

    def decode_text(self, data: bytes, source: Optional[str] = None) -> str:
        """
        Decode bytes with the configured encodings, first match wins.

        UTF-16 is only attempted when the data starts with a byte-order
        mark, since almost any even-length buffer decodes as UTF-16.

        Raises:
            ExtractionFailedError: No configured encoding fits.
        """
        for encoding in self.config.text_encodings:
            normalized = codecs.lookup(encoding).name
            if normalized == "utf-16" and not data.startswith(_UTF16_BOMS):
                continue
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise ExtractionFailedError("Unable to decode text file", source=source)

    def normalize_text(self, text: str) -> InputEvent:
        content = text.encode("utf-8")
        self._check_size(len(content), None)
        stats = text_statistics(text)
        metadata: dict[str, Any] = {
            "text": text,
            "size": len(content),
            "cleanedText": clean_text(text),
            "characterCount": stats.character_count,
            "wordCount": stats.word_count,
            "sentenceCount": stats.sentence_count,
        }
        issues = validate_text(text)
        if issues:
            metadata["validationIssues"] = [issue.value for issue in issues]
            logger.debug("Text input has issues: %s", ", ".join(metadata["validationIssues"]))
        return InputEvent(type=InputType.TEXT, content=content, metadata=metadata)

    # ==================== Files ====================

    async def normalize_file(self, path: Union[str, os.PathLike]) -> InputEvent:
        """
        Read a file and build an event typed by its detected category.

        Raises:
            UnreadableSourceError: Missing, unreadable or a directory.
            SourceTooLargeError: Larger than ``max_input_bytes``.
            ExtractionFailedError: A text file matched no encoding.
        """
        path = Path(path).expanduser()
        source = str(path)
        try:
            info = await asyncio.to_thread(path.stat)
        except OSError as e:
            raise UnreadableSourceError(f"Cannot read {source}: {e.strerror or e}", source=source) from e
        if stat_module.S_ISDIR(info.st_mode):
            raise UnreadableSourceError(f"Cannot read {source}: is a directory", source=source)
        self._check_size(info.st_size, source)

        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise UnreadableSourceError(f"Cannot read {source}: {e.strerror or e}", source=source) from e
        # The file may have grown between stat and read.
        self._check_size(len(data), source)

        category = detection.detect_category(path.name, data)
        logger.debug("Normalizing %s as %s (%d bytes)", source, category, len(data))
        return await self._build_event(data, category, filename=path.name, file_path=source)

    async def normalize_many(self, paths: Iterable[Union[str, os.PathLike]]) -> list[InputEvent]:
        """Normalize several files, skipping (and logging) those that fail."""
        events = []
        for path in paths:
            try:
                events.append(await self.normalize_file(path))
            except InputError as e:
                logger.error("Failed to process file %s: %s", path, e.message)
        return events

    # ==================== Buffers ====================

    async def normalize_bytes(
        self,
        data: bytes,
        input_type: InputType,
        *,
        filename: Optional[str] = None,
        declared_format: Optional[str] = None,
    ) -> InputEvent:
        """Build an event from an in-memory buffer such as a recording."""
        input_type = InputType(input_type)
        self._check_size(len(data), filename)

        if input_type == InputType.TEXT:
            return self.normalize_text(self.decode_text(data, source=filename))

        if input_type == InputType.FILE:
            category = detection.detect_category(filename, data)
            if category not in (detection.TEXT, detection.PDF):
                category = detection.GENERIC
        else:
            category = _TYPE_CATEGORIES[input_type]

        return await self._build_event(
            data, category, filename=filename, declared_format=declared_format
        )

    async def normalize(
        self,
        source: Union[str, bytes, os.PathLike],
        input_type: Optional[InputType] = None,
        **kwargs: Any,
    ) -> InputEvent:
        """Dispatch on the source: ``str`` is text, paths are files, bytes need a type."""
        if isinstance(source, str):
            return self.normalize_text(source)
        if isinstance(source, os.PathLike):
            return await self.normalize_file(source)
        if isinstance(source, (bytes, bytearray)):
            if input_type is None:
                raise UnsupportedInputError("Raw bytes require an input_type")
            return await self.normalize_bytes(bytes(source), input_type, **kwargs)
        raise UnsupportedInputError(f"Unsupported input source: {type(source).__name__}")

    # ==================== Event building ====================

    async def _build_event(
        self,
        data: bytes,
        category: str,
        *,
        filename: Optional[str] = None,
        file_path: Optional[str] = None,
        declared_format: Optional[str] = None,
    ) -> InputEvent:
        metadata: dict[str, Any] = {
            "fileSize": len(data),
            "fileType": detection.guess_mime_type(filename),
        }
        if filename is not None:
            metadata["filename"] = filename
        if file_path is not None:
            metadata["filePath"] = file_path
        display_name = filename or "input"

        if category == detection.PDF:
            metadata["textContent"] = f"[PDF Document - {len(data)} bytes]"
        elif category == detection.TEXT:
            metadata["textContent"] = self.decode_text(data, source=file_path or filename)
        elif category == detection.IMAGE:
            metadata["imageFormat"] = detection.detect_image_format(data)
            inspected = await self._call_collaborator(
                metadata, "Image inspection", self.inspector, "inspect", data, display_name
            )
            if inspected:
                metadata.update({k: v for k, v in inspected.items() if v is not None})
        elif category == detection.AUDIO:
            metadata["audioFormat"] = (declared_format or detection.extension_format(filename)).upper()
            metadata["audioFileSize"] = len(data)
            transcription = await self._call_collaborator(
                metadata, "Transcription", self.transcriber, "transcribe", data, display_name
            )
            if transcription is not None:
                metadata["transcription"] = transcription
        elif category == detection.VIDEO:
            metadata["videoFormat"] = (declared_format or detection.extension_format(filename)).upper()
            metadata["videoFileSize"] = len(data)
            inspected = await self._call_collaborator(
                metadata, "Video inspection", self.inspector, "inspect", data, display_name
            )
            if inspected:
                metadata.update({k: v for k, v in inspected.items() if v is not None})

        return InputEvent(type=_CATEGORY_EVENT_TYPES[category], content=data, metadata=metadata)

    async def _call_collaborator(
        self,
        metadata: dict[str, Any],
        label: str,
        collaborator: Optional[object],
        method: str,
        *args: Any,
    ) -> Any:
        """Run a collaborator call in a thread; failures become metadata."""
        if collaborator is None:
            metadata["extractionError"] = f"{label} unavailable"
            logger.debug("%s skipped: no collaborator configured", label)
            return None
        func: Callable[..., Any] = getattr(collaborator, method)
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.warning("%s failed: %s", label, e)
            metadata["extractionError"] = f"{label} failed: {e}"
            return None

    async def transcribe(self, data: bytes, filename: str) -> Optional[str]:
        """Transcribe a buffer with the configured transcriber, if any."""
        metadata: dict[str, Any] = {}
        return await self._call_collaborator(
            metadata, "Transcription", self.transcriber, "transcribe", data, filename
        )
