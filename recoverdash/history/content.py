"""Best-effort text decoding of snapshot artifacts."""
from __future__ import annotations

import codecs
import logging

from recoverdash.history.types import ContentReadResult, VersionRecord
from recoverdash.observability import record_content_read

logger = logging.getLogger("recoverdash.history")

DEFAULT_ENCODINGS: tuple[str, ...] = ("utf-8", "utf-16", "latin-1")
DEFAULT_PREVIEW_BYTES = 1000

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def _decode(data: bytes, encoding: str) -> str | None:
    # Without a BOM, utf-16 accepts nearly any even-length byte string.
    if codecs.lookup(encoding).name == "utf-16" and not data.startswith(_UTF16_BOMS):
        return None
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError:
        return None
    if "\x00" in text:
        return None
    return text


def binary_preview(data: bytes, preview_bytes: int = DEFAULT_PREVIEW_BYTES) -> str:
    return f"[Binary file - {len(data)} bytes]\n\n{data[:max(0, preview_bytes)].hex()}"


def read_version_content(
    version: VersionRecord,
    encodings: tuple[str, ...] = DEFAULT_ENCODINGS,
    preview_bytes: int = DEFAULT_PREVIEW_BYTES,
) -> ContentReadResult:
    """Decode a version's artifact with the first encoding that fits.

    Never raises: undecodable data becomes a hex preview and OS errors become a
    placeholder message.
    """
    try:
        data = version.source.read_bytes()
    except OSError as exc:
        logger.warning(f"Failed to read snapshot {version.source}: {exc}")
        record_content_read("error")
        return ContentReadResult(text=f"Error reading file: {exc}", kind="error")

    for encoding in encodings:
        try:
            text = _decode(data, encoding)
        except LookupError:
            logger.warning(f"Unknown content encoding configured: {encoding}")
            continue
        if text is not None:
            record_content_read("text")
            return ContentReadResult(text=text, kind="text", encoding=encoding, size_bytes=len(data))

    record_content_read("binary")
    return ContentReadResult(
        text=binary_preview(data, preview_bytes),
        kind="binary",
        size_bytes=len(data),
    )


def read_version(version: VersionRecord) -> str:
    return read_version_content(version).text
