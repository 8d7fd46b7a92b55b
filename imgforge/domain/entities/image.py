from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Union


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    BMP = "bmp"
    TIFF = "tiff"
    ICO = "ico"
    HEIF = "heif"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def supports_alpha(self) -> bool:
        return self in (ImageFormat.PNG, ImageFormat.WEBP)

    @property
    def supports_quality(self) -> bool:
        return self is not ImageFormat.GIF


# Order matters: the first MIME type of a format is its canonical one.
MIME_TYPES: MappingProxyType[str, ImageFormat] = MappingProxyType(
    {
        "image/png": ImageFormat.PNG,
        "image/gif": ImageFormat.GIF,
        "image/webp": ImageFormat.WEBP,
        "image/jpeg": ImageFormat.JPEG,
        "image/pjpeg": ImageFormat.JPEG,
        "image/bmp": ImageFormat.BMP,
        "image/x-ms-bmp": ImageFormat.BMP,
        "image/tiff": ImageFormat.TIFF,
        "image/x-icon": ImageFormat.ICO,
        "image/vnd.microsoft.icon": ImageFormat.ICO,
        "image/heif": ImageFormat.HEIF,
    }
)

_CANONICAL_MIME_TYPES: dict[ImageFormat, str] = {}
for _mime, _fmt in MIME_TYPES.items():
    _CANONICAL_MIME_TYPES.setdefault(_fmt, _mime)


def mime_type_for(image_format: ImageFormat) -> str:
    return _CANONICAL_MIME_TYPES[image_format]


@dataclass(frozen=True)
class FileSource:
    """Bytes living on durable storage; the record does not own the file."""

    path: Path


@dataclass(frozen=True)
class InlineSource:
    """Bytes owned by the record."""

    data: bytes


ImageSource = Union[FileSource, InlineSource]


@dataclass(frozen=True)
class ImageRecord:
    size: int  # bytes
    mime_type: str
    format: ImageFormat
    width: int
    height: int
    content_hash: bytes  # raw MD5 digest
    source: ImageSource

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"size must be >= 0, got {self.size}")
        if MIME_TYPES.get(self.mime_type) is not self.format:
            raise ValueError(f"MIME type {self.mime_type!r} does not match format {self.format.value!r}")
        if self.width < 1 or self.height < 1:
            raise ValueError(f"dimensions must be >= 1, got {self.width}x{self.height}")
        if len(self.content_hash) != 16:
            raise ValueError("content_hash must be a 16-byte MD5 digest")
        if not isinstance(self.source, (FileSource, InlineSource)):
            raise ValueError("source must be a FileSource or an InlineSource")

    @property
    def name(self) -> str:
        """Stable identifier: URL-safe base64 of the MD5 digest, without padding."""
        return base64.urlsafe_b64encode(self.content_hash).rstrip(b"=").decode("ascii")

    @property
    def full_name(self) -> str:
        return f"{self.name}.{self.format.extension}"

    @property
    def md5_hex(self) -> str:
        return self.content_hash.hex()

    @property
    def file_path(self) -> Path | None:
        return self.source.path if isinstance(self.source, FileSource) else None

    @property
    def inline_data(self) -> bytes | None:
        return self.source.data if isinstance(self.source, InlineSource) else None

    def read_bytes(self) -> bytes:
        if isinstance(self.source, FileSource):
            return self.source.path.read_bytes()
        return self.source.data

    def open_stream(self) -> BinaryIO:
        if isinstance(self.source, FileSource):
            return self.source.path.open("rb")
        return io.BytesIO(self.source.data)
