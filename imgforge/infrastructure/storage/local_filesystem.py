from __future__ import annotations

import os
import shutil
from pathlib import Path


class LocalFileSystem:
    """Filesystem access used for file-backed images and for saving records."""

    def exists(self, path: Path | str) -> bool:
        return Path(path).exists()

    def is_file(self, path: Path | str) -> bool:
        return Path(path).is_file()

    def is_readable(self, path: Path | str) -> bool:
        return os.access(path, os.R_OK)

    def file_size(self, path: Path | str) -> int:
        return Path(path).stat().st_size

    def read_bytes(self, path: Path | str) -> bytes:
        return Path(path).read_bytes()

    def read_head(self, path: Path | str, length: int) -> bytes:
        with Path(path).open("rb") as handle:
            return handle.read(length)

    def local_path(self, path: Path | str) -> Path:
        return Path(path)

    def make_dirs(self, directory: Path | str) -> None:
        Path(directory).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: Path | str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def copy(self, source: Path | str, target: Path | str) -> None:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
