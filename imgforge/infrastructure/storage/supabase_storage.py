from __future__ import annotations

import logging
import mimetypes
import os
from pathlib import Path, PurePosixPath

from supabase import Client, create_client

logger = logging.getLogger(__name__)

_CLIENT_SINGLETON: Client | None = None


def get_supabase_client() -> Client | None:
    global _CLIENT_SINGLETON
    disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if disabled or not url or not key:
        return None
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON


class SupabaseStorage:
    """Image store backed by a Supabase Storage bucket, with a local fake fallback.

    Paths are object keys inside the bucket (``<directory>/<name>``). It offers
    the same ``exists`` / ``make_dirs`` / ``write_bytes`` / ``copy`` surface as
    ``LocalFileSystem`` so it can be the target of ``SaveImageUseCase``.
    """

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "images")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        if self._is_local:
            self.local_dir.mkdir(parents=True, exist_ok=True)

    @property
    def _is_local(self) -> bool:
        return self.disabled or self.client is None

    @staticmethod
    def _key(path: Path | str) -> str:
        return str(PurePosixPath(str(path).replace("\\", "/"))).lstrip("/")

    def _local_path(self, path: Path | str) -> Path:
        return self.local_dir / self._key(path)

    def local_path(self, path: Path | str) -> Path | None:
        """File holding the object on this machine, or None for a remote bucket."""
        return self._local_path(path).resolve() if self._is_local else None

    def exists(self, path: Path | str) -> bool:
        if self._is_local:
            return self._local_path(path).exists()
        key = PurePosixPath(self._key(path))
        folder = "" if str(key.parent) == "." else str(key.parent)
        entries = self.client.storage.from_(self.bucket).list(folder, {"search": key.name})
        return any(entry.get("name") == key.name for entry in entries)

    def make_dirs(self, directory: Path | str) -> None:
        # buckets have no directories, only key prefixes
        if self._is_local:
            self._local_path(directory).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: Path | str, data: bytes) -> None:
        key = self._key(path)
        if self._is_local:
            full_path = self._local_path(key)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
            return
        content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        self.client.storage.from_(self.bucket).upload(
            path=key,
            file=data,
            file_options={"content-type": content_type},
        )
        logger.info("Uploaded %s to bucket %s (%d bytes)", key, self.bucket, len(data))

    def copy(self, source: Path | str, target: Path | str) -> None:
        # source is a local file, target a key in the store
        self.write_bytes(target, Path(source).read_bytes())

    def read_bytes(self, path: Path | str) -> bytes:
        if self._is_local:
            return self._local_path(path).read_bytes()
        return self.client.storage.from_(self.bucket).download(self._key(path))

    def delete(self, path: Path | str) -> None:
        if self._is_local:
            full_path = self._local_path(path)
            if full_path.exists():
                full_path.unlink()
            return
        self.client.storage.from_(self.bucket).remove([self._key(path)])

    def public_url(self, path: Path | str) -> str:
        if self._is_local:
            return self._local_path(path).resolve().as_uri()
        return self.client.storage.from_(self.bucket).get_public_url(self._key(path))
