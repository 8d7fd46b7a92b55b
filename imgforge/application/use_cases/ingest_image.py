from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse

from PIL import Image

from imgforge.domain.entities.image import MIME_TYPES, FileSource, ImageRecord, InlineSource
from imgforge.domain.errors import (
    InvalidPathError,
    NotAnImageError,
    NotReadableError,
    PathNotFoundError,
    ReadFailedError,
    ResolutionTooLargeError,
    TooLargeError,
    UnsupportedMimeError,
    UnsupportedTypeError,
)
from imgforge.domain.services.mime_sniffer import SNIFF_LENGTH, sniff_mime_type
from imgforge.domain.settings import ImageSettings
from imgforge.infrastructure.http.httpx_fetcher import FetchError, HttpxFetcher
from imgforge.infrastructure.imaging.pillow_imaging import PillowImaging
from imgforge.infrastructure.storage.local_filesystem import LocalFileSystem

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(//)?[^,]*?(?P<base64>;base64)?,(?P<data>.+)$", re.IGNORECASE | re.DOTALL)

_URL_PREFIXES = ("data:", "http:", "https:", "//")
_MD5_CHUNK = 1024 * 1024


@dataclass
class IngestImageUseCase:
    """Validate raw image bytes and turn them into an ``ImageRecord``.

    Every entry point funnels into the same checks, in this order:

    1. raw size against ``max_size``
    2. MIME type sniffed from the content against the known MIME table
    3. format against the ``supported_types`` allow-list
    4. header decode of width and height
    5. resolution against ``max_width`` / ``max_height``

    The first failing check raises; no record escapes a failed validation.
    """

    settings: ImageSettings = field(default_factory=ImageSettings)
    imaging: PillowImaging = field(default_factory=PillowImaging)
    fetcher: HttpxFetcher = field(default_factory=HttpxFetcher)
    filesystem: LocalFileSystem = field(default_factory=LocalFileSystem)

    def ingest(self, source: bytes | str | Path) -> ImageRecord:
        if isinstance(source, (bytes, bytearray)):
            return self.from_bytes(bytes(source))
        if isinstance(source, Path):
            return self.from_file(source)
        if source[:6].lower().startswith(_URL_PREFIXES):
            return self.from_url(source)
        return self.from_file(source)

    def from_bytes(self, data: bytes) -> ImageRecord:
        return self._ingest(data=data)

    def from_file(self, path: Path | str) -> ImageRecord:
        if not self.filesystem.is_file(path):
            raise PathNotFoundError(path)
        if not self.filesystem.is_readable(path):
            raise NotReadableError(path)
        return self._ingest(path=Path(path).resolve())

    def from_data_url(self, url: str) -> ImageRecord:
        match = DATA_URL_PATTERN.match(url)
        if match is None:
            raise InvalidPathError(url, "Invalid Data URL.")
        payload = match.group("data")
        if match.group("base64"):
            try:
                data = base64.b64decode(payload.strip())
            except (binascii.Error, ValueError) as exc:
                raise InvalidPathError(url, "Invalid Data URL.") from exc
        else:
            data = unquote_to_bytes(payload)
        return self._ingest(data=data)

    def from_url(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> ImageRecord:
        if url[:5].lower() == "data:":
            return self.from_data_url(url)
        if url.startswith("//"):
            url = f"https:{url}"

        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except ValueError as exc:
            raise InvalidPathError(url) from exc
        if parsed.scheme.lower() not in ("http", "https") or not hostname:
            raise InvalidPathError(url)

        request_headers = dict(headers or {})
        request_headers["Referer"] = f"{parsed.scheme}://{hostname}/"
        try:
            result = self.fetcher.fetch(
                url,
                headers=request_headers,
                timeout=timeout if timeout is not None else self.settings.fetch_timeout,
                max_size=self.settings.max_size,
            )
        except FetchError as exc:
            raise ReadFailedError(url) from exc

        if result.declared_size > self.settings.max_size:
            raise TooLargeError(result.declared_size, self.settings.max_size)

        record = self._ingest(data=result.content)
        logger.info("Imported %s from %s", record.full_name, url)
        return record

    def _ingest(self, data: bytes | None = None, path: Path | None = None) -> ImageRecord:
        is_file = path is not None

        size = self.filesystem.file_size(path) if is_file else len(data)
        if size > self.settings.max_size:
            raise TooLargeError(size, self.settings.max_size)

        head = self.filesystem.read_head(path, SNIFF_LENGTH) if is_file else data[:SNIFF_LENGTH]
        mime_type = sniff_mime_type(head)
        image_format = MIME_TYPES.get(mime_type)
        if image_format is None:
            raise UnsupportedMimeError(mime_type)
        if not self.settings.is_type_supported(image_format):
            raise UnsupportedTypeError(image_format)

        try:
            width, height = self.imaging.decode_metadata(path if is_file else data)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise NotAnImageError(str(exc)) from exc
        if width > self.settings.max_width or height > self.settings.max_height:
            raise ResolutionTooLargeError(width, height, self.settings.max_width, self.settings.max_height)

        content_hash = self._md5_file(path) if is_file else hashlib.md5(data).digest()
        record = ImageRecord(
            size=size,
            mime_type=mime_type,
            format=image_format,
            width=width,
            height=height,
            content_hash=content_hash,
            source=FileSource(path) if is_file else InlineSource(data),
        )
        logger.debug("Ingested %s (%s, %dx%d, %d bytes)", record.full_name, mime_type, width, height, size)
        return record

    @staticmethod
    def _md5_file(path: Path) -> bytes:
        digest = hashlib.md5()
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_MD5_CHUNK), b""):
                digest.update(chunk)
        return digest.digest()
