from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from imgforge.domain.entities.image import FileSource, ImageRecord, InlineSource
from imgforge.domain.errors import ImageError, TargetExistsError, WriteFailedError
from imgforge.infrastructure.storage.local_filesystem import LocalFileSystem
from imgforge.infrastructure.storage.supabase_storage import SupabaseStorage

logger = logging.getLogger(__name__)


@dataclass
class SaveImageUseCase:
    store: LocalFileSystem | SupabaseStorage

    @staticmethod
    def target_for(record: ImageRecord, directory: Path | str, name: str | None = None) -> Path:
        """Location of the saved image inside the store."""
        return Path(directory) / (name or record.full_name)

    def execute(self, record: ImageRecord, directory: Path | str, name: str | None = None) -> ImageRecord:
        """
        Persist a record under ``directory`` and return the stored record.

        The file name defaults to ``record.full_name``. Existing files are never
        overwritten. When the store keeps the bytes on local disk the returned
        record points at that file; a remote store gives back an inline record,
        and ``target_for`` names its key.
        """
        target = self.target_for(record, directory, name)
        try:
            if not self.store.exists(directory):
                self.store.make_dirs(directory)
            if self.store.exists(target):
                raise TargetExistsError(target)

            if isinstance(record.source, FileSource):
                if record.source.path != self.store.local_path(target):
                    self.store.copy(record.source.path, target)
            else:
                self.store.write_bytes(target, record.source.data)
        except ImageError:
            raise
        except Exception as exc:
            logger.warning("Failed to store image %s at %s: %s", record.name, target, exc)
            raise WriteFailedError(target, str(exc)) from exc

        logger.info("Saved %s to %s", record.name, target)
        local_path = self.store.local_path(target)
        source = FileSource(local_path) if local_path is not None else InlineSource(record.read_bytes())
        return ImageRecord(
            size=record.size,
            mime_type=record.mime_type,
            format=record.format,
            width=record.width,
            height=record.height,
            content_hash=record.content_hash,
            source=source,
        )
