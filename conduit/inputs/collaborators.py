"""
Speech-to-text and media inspection collaborators.

The normalizer only depends on the two protocols below. The concrete
implementations are optional: ``WhisperTranscriber`` needs the ``openai``
package and ``PillowImageInspector`` needs ``Pillow``; both are imported
on first use.
"""

import io
import logging
import os
from typing import Any, Optional, Protocol, runtime_checkable

logger = logging.getLogger("conduit.inputs")

DEFAULT_STT_MODEL = "whisper-1"


@runtime_checkable
class Transcriber(Protocol):
    """Turns recorded speech into text."""

    def transcribe(self, data: bytes, filename: str) -> str: ...


@runtime_checkable
class MediaInspector(Protocol):
    """Reads technical properties (dimensions, duration, ...) of media."""

    def inspect(self, data: bytes, filename: str) -> dict[str, Any]: ...


def _check_openai_installed() -> None:
    try:
        import openai  # noqa: F401
    except ImportError:
        raise ImportError(
            "WhisperTranscriber requires the 'openai' package. "
            "Install it with: pip install conduit[whisper]"
        ) from None


def _check_pillow_installed() -> None:
    try:
        import PIL  # noqa: F401
    except ImportError:
        raise ImportError(
            "PillowImageInspector requires the 'Pillow' package. "
            "Install it with: pip install conduit[media]"
        ) from None


class WhisperTranscriber:
    """Transcriber backed by the OpenAI speech-to-text API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_STT_MODEL,
        base_url: Optional[str] = None,
    ):
        _check_openai_installed()
        from openai import OpenAI

        self.model = model
        self._client = OpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
        )

    def transcribe(self, data: bytes, filename: str) -> str:
        audio = io.BytesIO(data)
        audio.name = filename
        transcription = self._client.audio.transcriptions.create(
            model=self.model,
            file=audio,
            response_format="text",
        )
        text = str(transcription).strip()
        logger.info("Transcribed %s (%d chars)", filename, len(text))
        return text


class PillowImageInspector:
    """Image inspector backed by Pillow; reports pixel dimensions and mode."""

    def __init__(self) -> None:
        _check_pillow_installed()

    def inspect(self, data: bytes, filename: str) -> dict[str, Any]:
        from PIL import Image

        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            result: dict[str, Any] = {
                "imageWidth": width,
                "imageHeight": height,
                "colorMode": image.mode,
            }
            if image.format:
                result["imageFormat"] = image.format
        return result
