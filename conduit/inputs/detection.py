"""File category detection and size formatting."""

import mimetypes
from pathlib import PurePath
from typing import Optional

TEXT = "text"
PDF = "pdf"
IMAGE = "image"
AUDIO = "audio"
VIDEO = "video"
GENERIC = "file"

TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".text", ".md", ".rst", ".log", ".csv", ".tsv",
        ".json", ".xml", ".html", ".htm", ".rtf", ".yaml", ".yml", ".toml",
        ".ini", ".cfg", ".conf", ".css", ".sql", ".sh",
        ".py", ".js", ".ts", ".java", ".c", ".h", ".cpp", ".hpp",
        ".go", ".rs", ".rb", ".swift", ".kt", ".m",
    }
)
PDF_EXTENSIONS = frozenset({".pdf"})
IMAGE_EXTENSIONS = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".heic", ".webp"}
)
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".aiff", ".aif", ".m4a"})
VIDEO_EXTENSIONS = frozenset({".mov", ".qt", ".avi", ".mp4"})

_EXTENSION_TABLES = (
    (TEXT_EXTENSIONS, TEXT),
    (PDF_EXTENSIONS, PDF),
    (IMAGE_EXTENSIONS, IMAGE),
    (AUDIO_EXTENSIONS, AUDIO),
    (VIDEO_EXTENSIONS, VIDEO),
)

_TEXTUAL_MIME_TYPES = frozenset(
    {"application/json", "application/xml", "application/javascript", "application/x-sh"}
)

# (signature, format name); checked against the first bytes of the data.
_IMAGE_SIGNATURES = (
    (b"\xff\xd8\xff", "JPEG"),
    (b"\x89PNG", "PNG"),
    (b"GIF8", "GIF"),
    (b"BM", "BMP"),
)

UNKNOWN_FORMAT = "Unknown"
DEFAULT_MIME_TYPE = "application/octet-stream"


def detect_image_format(data: bytes) -> str:
    """Name the image format from its magic bytes (JPEG, PNG, GIF, BMP)."""
    if len(data) < 4:
        return UNKNOWN_FORMAT
    for signature, name in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return name
    return UNKNOWN_FORMAT


def guess_mime_type(filename: Optional[str]) -> str:
    if not filename:
        return DEFAULT_MIME_TYPE
    mime_type, _ = mimetypes.guess_type(filename, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


def _category_from_mime(mime_type: str) -> Optional[str]:
    if mime_type == "application/pdf":
        return PDF
    if mime_type.startswith("text/") or mime_type in _TEXTUAL_MIME_TYPES:
        return TEXT
    major = mime_type.split("/", 1)[0]
    if major in (IMAGE, AUDIO, VIDEO):
        return major
    return None


def detect_category(filename: Optional[str], data: bytes = b"") -> str:
    """
    Classify a file as text, pdf, image, audio, video or generic file.

    The extension tables are consulted first, then the platform MIME type
    database, then image magic bytes.
    """
    if filename:
        suffix = PurePath(filename).suffix.lower()
        for extensions, category in _EXTENSION_TABLES:
            if suffix in extensions:
                return category
        category = _category_from_mime(guess_mime_type(filename))
        if category is not None:
            return category
    if detect_image_format(data) != UNKNOWN_FORMAT:
        return IMAGE
    return GENERIC


def extension_format(filename: Optional[str]) -> str:
    """Upper-case extension without the dot, e.g. ``MP3``."""
    if not filename:
        return UNKNOWN_FORMAT
    suffix = PurePath(filename).suffix
    return suffix[1:].upper() if suffix else UNKNOWN_FORMAT


_BYTE_UNITS = ("KB", "MB", "GB", "TB")


def format_byte_count(size: int) -> str:
    """Human-readable size in decimal units: ``512 bytes``, ``1.5 KB``, ``2.3 MB``."""
    if size < 1000:
        return "1 byte" if size == 1 else f"{size} bytes"
    value = float(size)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS:
        value /= 1000
        # Compare the value as displayed so 999_999 is "1 MB", not "1000 KB".
        if round(value, 1) < 1000:
            break
    text = f"{value:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text} {unit}"
