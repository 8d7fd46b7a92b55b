from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from imgforge.application.use_cases.convert_image import ConvertImageUseCase
from imgforge.application.use_cases.ingest_image import IngestImageUseCase
from imgforge.application.use_cases.save_image import SaveImageUseCase
from imgforge.domain.services.animation_service import AnimationService
from imgforge.domain.services.hash_service import HashService
from imgforge.domain.services.transform_service import TransformService
from imgforge.domain.settings import ImageSettings
from imgforge.infrastructure.http.httpx_fetcher import HttpxFetcher
from imgforge.infrastructure.imaging.pillow_imaging import PillowImaging
from imgforge.infrastructure.storage.local_filesystem import LocalFileSystem
from imgforge.infrastructure.storage.supabase_storage import SupabaseStorage, get_supabase_client


@lru_cache
def get_settings() -> ImageSettings:
    return ImageSettings.from_env()


def get_imaging() -> PillowImaging:
    return PillowImaging()


def get_fetcher() -> HttpxFetcher:
    return HttpxFetcher()


def get_ingest_use_case(
    settings: Annotated[ImageSettings, Depends(get_settings)],
    imaging: Annotated[PillowImaging, Depends(get_imaging)],
    fetcher: Annotated[HttpxFetcher, Depends(get_fetcher)],
) -> IngestImageUseCase:
    return IngestImageUseCase(settings=settings, imaging=imaging, fetcher=fetcher, filesystem=LocalFileSystem())


def get_convert_use_case(
    settings: Annotated[ImageSettings, Depends(get_settings)],
    imaging: Annotated[PillowImaging, Depends(get_imaging)],
) -> ConvertImageUseCase:
    return ConvertImageUseCase(transform=TransformService(imaging, settings), settings=settings)


def get_hash_service(imaging: Annotated[PillowImaging, Depends(get_imaging)]) -> HashService:
    return HashService(imaging)


def get_animation_service() -> AnimationService:
    return AnimationService()


def get_storage() -> SupabaseStorage:
    return SupabaseStorage(get_supabase_client())


def get_save_use_case(storage: Annotated[SupabaseStorage, Depends(get_storage)]) -> SaveImageUseCase:
    return SaveImageUseCase(store=storage)
