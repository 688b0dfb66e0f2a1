"""File validation — upload size checks and encoding detection.

Uses `charset-normalizer` for detecting the encoding of CSV files exported
from spreadsheets on different platforms (Excel on Windows writes cp1252,
Numbers writes UTF-8, etc.).
"""
import logging

from charset_normalizer import from_bytes

from ..config import settings
from ..errors import ValidationError

log = logging.getLogger("bidtracker.file_validation")

# File extensions the bid importer can parse
IMPORT_EXTENSIONS = {".csv", ".tsv", ".txt", ".xlsx"}


def validate_upload(content: bytes, filename: str | None) -> None:
    """Reject empty or oversized uploads. Raises ValidationError."""
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if not content:
        raise ValidationError("Empty file")
    if len(content) > max_bytes:
        raise ValidationError(f"File too large (max {settings.max_upload_size_mb} MB)")
    if not filename:
        raise ValidationError("File name is required")


def validate_import_file(content: bytes, filename: str | None) -> str:
    """Validate an import upload and return its lowercase extension."""
    validate_upload(content, filename)
    ext = get_extension(filename)
    if ext not in IMPORT_EXTENSIONS:
        raise ValidationError(f"Unsupported file type: {ext or filename}")
    return ext


def detect_encoding(content: bytes) -> str:
    """Detect text encoding using charset-normalizer, falling back to utf-8-sig."""
    if content.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    best = from_bytes(content).best()
    if best:
        log.debug(f"Detected encoding: {best.encoding}")
        return best.encoding

    for enc in ("utf-8", "cp1252", "latin-1"):
        try:
            content.decode(enc)
            return enc
        except (UnicodeDecodeError, LookupError):
            continue

    return "utf-8-sig"  # Last resort: bad bytes get replaced


def decode_text(content: bytes, encoding: str | None = None) -> str:
    """Decode bytes to string using detected or specified encoding."""
    enc = encoding or detect_encoding(content)
    return content.decode(enc, errors="replace")


def get_extension(filename: str | None) -> str:
    """Get lowercase file extension."""
    if not filename:
        return ""
    parts = filename.lower().rsplit(".", 1)
    return f".{parts[-1]}" if len(parts) > 1 else ""
