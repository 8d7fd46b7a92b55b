"""Error taxonomy for ingestion, conversion and persistence.

Every error keeps the offending values as attributes so callers can report
them without parsing messages.
"""
from __future__ import annotations

from enum import IntEnum
from pathlib import Path

from imgforge.domain.entities.image import ImageFormat


class ImageErrorCode(IntEnum):
    SIZE = 1
    TYPE = 2
    PATH = 3
    READ = 4
    WRITE = 5
    RESOLUTION = 6
    PROCESSING = 7


class ImageError(Exception):
    code: ImageErrorCode = ImageErrorCode.PROCESSING


class TooLargeError(ImageError):
    code = ImageErrorCode.SIZE

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(f"The file is too big: {size} bytes, max is {max_size}.")
        self.size = size
        self.max_size = max_size


class UnsupportedMimeError(ImageError):
    code = ImageErrorCode.TYPE

    def __init__(self, mime_type: str) -> None:
        super().__init__(f'Mime type "{mime_type}" is not supported.')
        self.mime_type = mime_type


class UnsupportedTypeError(ImageError):
    code = ImageErrorCode.TYPE

    def __init__(self, image_format: ImageFormat | str) -> None:
        value = image_format.value if isinstance(image_format, ImageFormat) else image_format
        super().__init__(f'Type "{value}" is not supported.')
        self.image_format = image_format


class NotAnImageError(ImageError):
    code = ImageErrorCode.TYPE

    def __init__(self, reason: str | None = None) -> None:
        message = "The file must be an image."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.reason = reason


class ResolutionTooLargeError(ImageError):
    code = ImageErrorCode.RESOLUTION

    def __init__(self, width: int, height: int, max_width: int, max_height: int) -> None:
        super().__init__(f"Max resolution is {max_width}x{max_height}, {width}x{height} given.")
        self.width = width
        self.height = height
        self.max_width = max_width
        self.max_height = max_height


class PathNotFoundError(ImageError):
    code = ImageErrorCode.PATH

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"The file does not exist: {path}")
        self.path = path


class NotReadableError(ImageError):
    code = ImageErrorCode.READ

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"The file must be readable: {path}")
        self.path = path


class InvalidPathError(ImageError):
    code = ImageErrorCode.PATH

    def __init__(self, value: str, reason: str = "Invalid URL.") -> None:
        # data-URLs can be huge, keep the message short
        shown = value if len(value) <= 80 else f"{value[:77]}..."
        super().__init__(f"{reason} {shown}")
        self.value = value


class ReadFailedError(ImageError):
    code = ImageErrorCode.READ

    def __init__(self, url: str) -> None:
        super().__init__(f"Can't load the image from URL: {url}")
        self.url = url


class WriteFailedError(ImageError):
    code = ImageErrorCode.WRITE

    def __init__(self, path: Path | str, reason: str | None = None) -> None:
        super().__init__(reason or f"Unable to write the image to {path}")
        self.path = path


class TargetExistsError(WriteFailedError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(path, f"File {path} already exists.")


class ResizeFailedError(ImageError):
    code = ImageErrorCode.PROCESSING

    def __init__(self, reason: str | None = None) -> None:
        super().__init__("Unable to resize image." + (f" ({reason})" if reason else ""))
        self.reason = reason


class EncodeFailedError(ImageError):
    code = ImageErrorCode.PROCESSING

    def __init__(self, image_format: ImageFormat, reason: str | None = None) -> None:
        message = f'Unable to encode image as "{image_format.value}".'
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.image_format = image_format


class DimensionRangeError(ImageError, ValueError):
    def __init__(self, dimension: str, value: int, maximum: int) -> None:
        if value < 1:
            message = f"{dimension.capitalize()} must be 1 px or more, {value} given."
        else:
            message = f"Max {dimension} is {maximum} px, {value} given."
        super().__init__(message)
        self.dimension = dimension
        self.value = value
        self.maximum = maximum
