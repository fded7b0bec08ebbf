"""Multi-modal input normalization and description."""

from .collaborators import MediaInspector, PillowImageInspector, Transcriber, WhisperTranscriber
from .coordinator import InputCoordinator
from .detection import detect_category, detect_image_format, format_byte_count
from .normalizer import InputNormalizer
from .text import TextIssue, TextStatistics, clean_text, text_statistics, validate_text

__all__ = [
    "InputNormalizer",
    "InputCoordinator",
    "Transcriber",
    "MediaInspector",
    "WhisperTranscriber",
    "PillowImageInspector",
    "detect_category",
    "detect_image_format",
    "format_byte_count",
    "TextIssue",
    "TextStatistics",
    "clean_text",
    "text_statistics",
    "validate_text",
]
