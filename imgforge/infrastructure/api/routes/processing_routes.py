from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from imgforge.application.dtos.common_dto import ErrorResponse
from imgforge.application.use_cases.convert_image import ConvertImageUseCase
from imgforge.application.use_cases.ingest_image import IngestImageUseCase
from imgforge.domain.entities.edit_intent import EditIntent
from imgforge.domain.entities.image import ImageFormat
from imgforge.domain.errors import ImageError
from imgforge.infrastructure.api.dependencies import get_convert_use_case, get_ingest_use_case
from imgforge.infrastructure.api.errors import to_http_exception

router = APIRouter(
    prefix="/processing",
    tags=["Image Processing"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Invalid parameters"},
        413: {"model": ErrorResponse, "description": "Payload Too Large - File size or resolution exceeds the configured limits"},
        415: {"model": ErrorResponse, "description": "Unsupported Media Type - Unknown MIME type or disallowed format"},
        422: {"model": ErrorResponse, "description": "Validation Error - Target dimensions out of range or not an image"},
    },
)


@router.post(
    "/convert",
    summary="Convert Image",
    description="""
    Resize, crop and re-encode an uploaded image.

    **Parameters** (all optional, form fields):
    - `format` - target format, e.g. `webp`
    - `width` / `height` - exact target size; the source is cropped around its
      center to the target aspect ratio before scaling (cover fit)
    - `max_width` / `max_height` - shrink only when the source is larger,
      keeping the aspect ratio
    - `quality` - encoder quality hint (ignored for GIF)

    Without any parameter the uploaded bytes are returned unchanged.
    """,
    response_description="Encoded image bytes",
    responses={200: {"content": {"image/*": {}}, "description": "Converted image content"}},
)
async def convert_image(
    file: UploadFile = File(..., description="Image file to convert"),
    format: str | None = Form(None, description="Target format"),
    width: int | None = Form(None, description="Target width in pixels"),
    height: int | None = Form(None, description="Target height in pixels"),
    max_width: int | None = Form(None, description="Maximum width in pixels", ge=1),
    max_height: int | None = Form(None, description="Maximum height in pixels", ge=1),
    quality: int | None = Form(None, description="Encoder quality hint"),
    ingest: IngestImageUseCase = Depends(get_ingest_use_case),
    convert: ConvertImageUseCase = Depends(get_convert_use_case),
):
    """Convert an uploaded image."""
    target_format: ImageFormat | None = None
    if format:
        try:
            target_format = ImageFormat(format.lower())
        except ValueError as exc:
            raise HTTPException(status_code=415, detail=f'Type "{format}" is not supported.') from exc

    data = await file.read()
    try:
        record = ingest.from_bytes(data)
        intent = EditIntent(record).set_format(target_format).set_width(width).set_height(height)
        if max_width is not None:
            intent.constrain_to_max_width(max_width)
        if max_height is not None:
            intent.constrain_to_max_height(max_height)
        intent.set_quality(quality)
        result = convert.execute(intent)
    except ImageError as exc:
        raise to_http_exception(exc) from exc

    return Response(
        content=result.read_bytes(),
        media_type=result.mime_type,
        headers={
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
            "X-Image-Name": result.full_name,
        },
    )
