"""Content based MIME detection.

Only the leading bytes are inspected; whatever name or header the caller
supplied is ignored.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Enough for every signature below, including the ISO-BMFF brand.
SNIFF_LENGTH = 64

OCTET_STREAM = "application/octet-stream"

# Longest signatures first so the generic prefixes never shadow specific ones.
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"%PDF-", "application/pdf"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"\x00\x00\x01\x00", "image/vnd.microsoft.icon"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"BM", "image/bmp"),
)

_HEIF_BRANDS = {b"heic", b"heix", b"heim", b"heis", b"hevc", b"hevx", b"mif1", b"msf1"}
_AVIF_BRANDS = {b"avif", b"avis"}


def sniff_mime_type(head: bytes) -> str:
    if not head:
        return "application/x-empty"

    for signature, mime_type in _SIGNATURES:
        if head.startswith(signature):
            return mime_type

    # RIFF container: RIFF<size:4>WEBP
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"

    # ISO-BMFF: <size:4>ftyp<brand:4>
    if len(head) >= 12 and head[4:8] == b"ftyp":
        brand = head[8:12]
        if brand in _AVIF_BRANDS:
            return "image/avif"
        if brand in _HEIF_BRANDS:
            return "image/heif"

    stripped = head.lstrip().lower()
    if stripped.startswith(b"<svg") or (stripped.startswith(b"<?xml") and b"<svg" in stripped):
        return "image/svg+xml"

    logger.debug("No known signature in %d leading bytes", len(head))
    return OCTET_STREAM
