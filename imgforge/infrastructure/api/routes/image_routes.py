from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from imgforge.application.dtos.common_dto import ErrorResponse
from imgforge.application.dtos.image_dto import (
    AlgorithmsResponse,
    FingerprintResponse,
    ImageInfoResponse,
    ImportImageRequest,
    StoreImageResponse,
)
from imgforge.application.use_cases.ingest_image import IngestImageUseCase
from imgforge.application.use_cases.save_image import SaveImageUseCase
from imgforge.domain.errors import ImageError
from imgforge.domain.services.animation_service import AnimationService
from imgforge.domain.services.hash_service import HASH_PHASH_DCT, HashService
from imgforge.infrastructure.api.dependencies import (
    get_animation_service,
    get_hash_service,
    get_ingest_use_case,
    get_save_use_case,
)
from imgforge.infrastructure.api.errors import to_http_exception

STORE_DIRECTORY = "images"

router = APIRouter(
    prefix="/images",
    tags=["Images"],
    responses={
        413: {"model": ErrorResponse, "description": "Payload Too Large - File size or resolution exceeds the configured limits"},
        415: {"model": ErrorResponse, "description": "Unsupported Media Type - Unknown MIME type or disallowed format"},
        422: {"model": ErrorResponse, "description": "Validation Error - Not an image or invalid request format"},
    },
)


@router.post(
    "/inspect",
    response_model=ImageInfoResponse,
    summary="Inspect Image",
    description="""
    Validate an uploaded image and return its metadata.

    The MIME type is sniffed from the content; the uploaded file name and
    content type are ignored. Size, format and resolution limits come from
    the server configuration.
    """,
    response_description="Metadata of the validated image",
)
async def inspect_image(
    file: UploadFile = File(..., description="Image file to inspect"),
    ingest: IngestImageUseCase = Depends(get_ingest_use_case),
    animation: AnimationService = Depends(get_animation_service),
):
    """Validate an uploaded image."""
    data = await file.read()
    try:
        record = ingest.from_bytes(data)
    except ImageError as exc:
        raise to_http_exception(exc) from exc
    return ImageInfoResponse.from_record(record, animated=animation.is_animated(record))


@router.post(
    "/import",
    response_model=ImageInfoResponse,
    summary="Import Image From URL",
    description="""
    Download an image (or decode a data-URL) and return its metadata.

    **Accepted URLs**: `http://`, `https://`, protocol-relative `//host/...`
    and `data:` URLs. A `Referer` header pointing at the image host is sent.
    """,
    response_description="Metadata of the imported image",
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Malformed URL or data-URL"},
        502: {"model": ErrorResponse, "description": "Bad Gateway - The remote image could not be loaded"},
    },
)
def import_image(
    body: ImportImageRequest,
    ingest: IngestImageUseCase = Depends(get_ingest_use_case),
    animation: AnimationService = Depends(get_animation_service),
):
    """Import an image from a URL."""
    try:
        record = ingest.from_url(body.url, timeout=body.timeout)
    except ImageError as exc:
        raise to_http_exception(exc) from exc
    return ImageInfoResponse.from_record(record, animated=animation.is_animated(record))


@router.get(
    "/algorithms",
    response_model=AlgorithmsResponse,
    summary="List Fingerprint Algorithms",
    description="List the algorithm names accepted by `/images/fingerprint`.",
)
def list_algorithms():
    return AlgorithmsResponse(algorithms=HashService.available_algorithms())


@router.post(
    "/fingerprint",
    response_model=FingerprintResponse,
    summary="Fingerprint Image",
    description="""
    Compute a fingerprint of an uploaded image.

    **Perceptual algorithms**: `phash_dct` (default), `phash_average`,
    `phash_median`, `ahash`, `dhash`, each 64 bits.
    **Content digests**: any `hashlib` algorithm name such as `md5` or `sha256`,
    computed over the raw bytes.
    """,
    response_description="Fingerprint in hex",
    responses={404: {"description": "Not Found - Unknown algorithm"}},
)
async def fingerprint_image(
    file: UploadFile = File(..., description="Image file to fingerprint"),
    algorithm: str = Query(HASH_PHASH_DCT, description="Fingerprint algorithm"),
    ingest: IngestImageUseCase = Depends(get_ingest_use_case),
    hashes: HashService = Depends(get_hash_service),
):
    """Fingerprint an uploaded image."""
    data = await file.read()
    try:
        record = ingest.from_bytes(data)
        value = hashes.hash(record, algorithm)
    except ImageError as exc:
        raise to_http_exception(exc) from exc
    if value is None:
        raise HTTPException(status_code=404, detail=f'Hash algorithm "{algorithm}" is not available')
    return FingerprintResponse(algorithm=algorithm.lower(), hex=value.hex())


@router.post(
    "/store",
    response_model=StoreImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store Image",
    description="""
    Validate an uploaded image and persist it in storage under its content
    based name (`<name>.<format>`), so identical uploads map to the same path.
    """,
    response_description="Metadata, storage path and public URL of the stored image",
    responses={409: {"description": "Conflict - An image with the same content is already stored"}},
)
async def store_image(
    file: UploadFile = File(..., description="Image file to store"),
    directory: str = Query(STORE_DIRECTORY, description="Target directory inside the storage", min_length=1),
    ingest: IngestImageUseCase = Depends(get_ingest_use_case),
    save: SaveImageUseCase = Depends(get_save_use_case),
    animation: AnimationService = Depends(get_animation_service),
):
    """Validate and persist an uploaded image."""
    data = await file.read()
    try:
        record = ingest.from_bytes(data)
        save.execute(record, directory)
    except ImageError as exc:
        raise to_http_exception(exc) from exc
    path = save.target_for(record, directory).as_posix()
    return StoreImageResponse(
        image=ImageInfoResponse.from_record(record, animated=animation.is_animated(record)),
        path=path,
        url=save.store.public_url(path),
    )
