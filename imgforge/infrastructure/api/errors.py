from __future__ import annotations

from fastapi import HTTPException, status

from imgforge.domain.errors import (
    DimensionRangeError,
    ImageError,
    ImageErrorCode,
    NotAnImageError,
    NotReadableError,
    TargetExistsError,
)

_STATUS_BY_CODE = {
    ImageErrorCode.SIZE: 413,
    ImageErrorCode.RESOLUTION: 413,
    ImageErrorCode.TYPE: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ImageErrorCode.PATH: status.HTTP_400_BAD_REQUEST,
    ImageErrorCode.READ: status.HTTP_502_BAD_GATEWAY,
    ImageErrorCode.WRITE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ImageErrorCode.PROCESSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status_for(exc: ImageError) -> int:
    if isinstance(exc, TargetExistsError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (DimensionRangeError, NotAnImageError)):
        return 422
    if isinstance(exc, NotReadableError):
        return status.HTTP_400_BAD_REQUEST
    return _STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def to_http_exception(exc: ImageError) -> HTTPException:
    return HTTPException(status_code=http_status_for(exc), detail=str(exc))
