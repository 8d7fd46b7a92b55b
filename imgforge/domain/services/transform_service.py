from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from PIL import Image

from imgforge.domain.entities.image import FileSource, ImageFormat, ImageRecord
from imgforge.domain.errors import EncodeFailedError, NotAnImageError, ResizeFailedError
from imgforge.domain.settings import ImageSettings
from imgforge.infrastructure.imaging.pillow_imaging import PillowImaging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropBox:
    left: int
    top: int
    width: int
    height: int

    def as_box(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.left + self.width, self.top + self.height)


def compute_cover_crop(source_width: int, source_height: int, target_width: int, target_height: int) -> CropBox:
    """Centered source region with exactly the target aspect ratio.

    One side of the region always spans the whole source, so the target
    canvas is filled without letterboxing.
    """
    ratio = target_width / target_height
    crop_width = source_width
    crop_height = math.floor(source_width / ratio)
    if crop_height > source_height:
        crop_height = source_height
        crop_width = math.floor(crop_height * ratio)
    # extreme ratios would floor to an empty region
    crop_width = max(1, crop_width)
    crop_height = max(1, crop_height)
    left = (source_width - crop_width) // 2
    top = (source_height - crop_height) // 2
    return CropBox(left=left, top=top, width=crop_width, height=crop_height)


class TransformService:
    """Cover-fit crop, resample and encode.

    Target dimension bounds are validated by the caller.
    """

    def __init__(self, imaging: PillowImaging, settings: ImageSettings | None = None) -> None:
        self.imaging = imaging
        self.settings = settings or ImageSettings()

    def transform(
        self,
        record: ImageRecord,
        image_format: ImageFormat,
        width: int,
        height: int,
        quality: int | None = None,
    ) -> bytes:
        source = record.source.path if isinstance(record.source, FileSource) else record.source.data
        try:
            pixels = self.imaging.decode_pixels(source)
        except (OSError, ValueError) as exc:
            raise NotAnImageError(str(exc)) from exc

        # Header metadata can disagree with the decoded frame (ICO keeps several sizes).
        crop = compute_cover_crop(pixels.width, pixels.height, width, height)

        try:
            resampled = self.imaging.resample(pixels, crop.as_box(), width, height)
        except (OSError, ValueError, MemoryError) as exc:
            raise ResizeFailedError(str(exc)) from exc
        finally:
            pixels.close()

        canvas = self._compose(resampled, image_format, width, height)
        resampled.close()

        progressive = image_format is ImageFormat.JPEG and self.settings.progressive_jpeg
        hint = quality if image_format.supports_quality else None
        try:
            data = self.imaging.encode(canvas, image_format, quality=hint, progressive=progressive)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeFailedError(image_format, str(exc)) from exc
        finally:
            canvas.close()

        logger.debug(
            "Transformed %s %dx%d -> %s %dx%d (crop %s, %d bytes)",
            record.format.value,
            record.width,
            record.height,
            image_format.value,
            width,
            height,
            crop.as_box(),
            len(data),
        )
        return data

    def _compose(self, resampled: Image.Image, image_format: ImageFormat, width: int, height: int) -> Image.Image:
        if image_format.supports_alpha:
            canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
            canvas.paste(resampled.convert("RGBA"), (0, 0))
            return canvas

        canvas = Image.new("RGB", (width, height), self.settings.background_color)
        if resampled.mode == "RGBA":
            canvas.paste(resampled, (0, 0), mask=resampled.split()[-1])
        else:
            canvas.paste(resampled.convert("RGB"), (0, 0))
        return canvas
