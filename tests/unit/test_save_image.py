from pathlib import Path
from unittest.mock import Mock

import pytest

from conftest import make_image_bytes
from imgforge.application.use_cases.ingest_image import IngestImageUseCase
from imgforge.application.use_cases.save_image import SaveImageUseCase
from imgforge.domain.entities.image import FileSource
from imgforge.domain.errors import TargetExistsError, WriteFailedError
from imgforge.infrastructure.storage.local_filesystem import LocalFileSystem
from imgforge.infrastructure.storage.supabase_storage import SupabaseStorage


class BrokenFileSystem(LocalFileSystem):
    def write_bytes(self, path, data):
        raise PermissionError("read-only")


@pytest.fixture()
def record():
    return IngestImageUseCase().from_bytes(make_image_bytes(w=6, h=6))


def test_save_inline_record(tmp_path: Path, record):
    saved = SaveImageUseCase(store=LocalFileSystem()).execute(record, tmp_path / "out")
    target = tmp_path / "out" / record.full_name
    assert isinstance(saved.source, FileSource)
    assert saved.file_path == target
    assert target.read_bytes() == record.read_bytes()
    assert saved.content_hash == record.content_hash


def test_save_with_explicit_name(tmp_path: Path, record):
    saved = SaveImageUseCase(store=LocalFileSystem()).execute(record, tmp_path, name="custom.png")
    assert saved.file_path == tmp_path / "custom.png"


def test_save_copies_file_record(tmp_path: Path, record):
    source = tmp_path / "src.png"
    source.write_bytes(record.read_bytes())
    file_record = IngestImageUseCase().from_file(source)
    saved = SaveImageUseCase(store=LocalFileSystem()).execute(file_record, tmp_path / "copies")
    assert saved.file_path.read_bytes() == source.read_bytes()
    assert source.exists()


def test_save_never_overwrites(tmp_path: Path, record):
    use_case = SaveImageUseCase(store=LocalFileSystem())
    use_case.execute(record, tmp_path)
    with pytest.raises(TargetExistsError):
        use_case.execute(record, tmp_path)


def test_write_failure_wrapped(tmp_path: Path, record):
    with pytest.raises(WriteFailedError) as exc_info:
        SaveImageUseCase(store=BrokenFileSystem()).execute(record, tmp_path)
    assert not isinstance(exc_info.value, TargetExistsError)


def test_save_to_local_supabase_storage(tmp_path: Path, monkeypatch, record):
    monkeypatch.setenv("SUPABASE_DISABLED", "1")
    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path / "bucket"))
    storage = SupabaseStorage(client=None)
    use_case = SaveImageUseCase(store=storage)
    saved = use_case.execute(record, "images")
    key = use_case.target_for(record, "images")
    assert key == Path("images") / record.full_name
    assert saved.file_path == (tmp_path / "bucket" / key).resolve()
    assert saved.read_bytes() == record.read_bytes()
    assert storage.read_bytes(key) == record.read_bytes()
    assert (tmp_path / "bucket" / "images" / record.full_name).exists()
    assert storage.public_url(key).startswith("file://")
    with pytest.raises(TargetExistsError):
        SaveImageUseCase(store=storage).execute(record, "images")


def test_save_to_remote_bucket_keeps_record_inline(monkeypatch, record):
    monkeypatch.setenv("SUPABASE_DISABLED", "0")
    monkeypatch.setenv("SUPABASE_STORAGE_BUCKET", "pictures")
    client = Mock()
    bucket = client.storage.from_.return_value
    bucket.list.return_value = []
    storage = SupabaseStorage(client=client)

    saved = SaveImageUseCase(store=storage).execute(record, "images")

    assert saved.file_path is None
    assert saved.read_bytes() == record.read_bytes()
    client.storage.from_.assert_called_with("pictures")
    bucket.upload.assert_called_once_with(
        path=f"images/{record.full_name}",
        file=record.read_bytes(),
        file_options={"content-type": "image/png"},
    )
