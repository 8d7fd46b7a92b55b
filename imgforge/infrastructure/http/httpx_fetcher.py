from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "imgforge/0.1",
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
}


class FetchError(Exception):
    """Transport failure or non-success response."""


@dataclass(frozen=True)
class FetchResult:
    content: bytes
    # Content-Length when announced, otherwise the number of bytes read.
    declared_size: int


class HttpxFetcher:
    """Synchronous image download; one client per call, no retries.

    With ``max_size`` set the body is never buffered past the limit: an
    oversized Content-Length stops before reading, and a body that grows past
    it stops once exceeded. ``declared_size`` then reports a value above the
    limit and ``content`` is incomplete.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None, follow_redirects: bool = True) -> None:
        self.transport = transport
        self.follow_redirects = follow_redirects

    def fetch(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        max_size: int | None = None,
    ) -> FetchResult:
        request_headers = {**DEFAULT_HEADERS, **(headers or {})}
        try:
            with httpx.Client(
                timeout=timeout,
                follow_redirects=self.follow_redirects,
                headers=request_headers,
                transport=self.transport,
            ) as client:
                with client.stream("GET", url) as response:
                    response.raise_for_status()
                    declared = self._content_length(response)
                    if max_size is not None and declared is not None and declared > max_size:
                        logger.info("Not downloading %s: %d bytes announced", url, declared)
                        return FetchResult(content=b"", declared_size=declared)

                    chunks: list[bytes] = []
                    received = 0
                    for chunk in response.iter_bytes():
                        chunks.append(chunk)
                        received += len(chunk)
                        if max_size is not None and received > max_size:
                            logger.info("Stopped downloading %s after %d bytes", url, received)
                            return FetchResult(content=b"".join(chunks), declared_size=received)
        except httpx.HTTPError as exc:
            logger.warning("Failed to download image %s: %s", url, exc)
            raise FetchError(str(exc)) from exc

        content = b"".join(chunks)
        return FetchResult(content=content, declared_size=declared if declared is not None else len(content))

    @staticmethod
    def _content_length(response: httpx.Response) -> int | None:
        raw = response.headers.get("content-length")
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None
