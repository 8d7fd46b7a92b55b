from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any

from PIL import Image

from imgforge.domain.entities.image import ImageFormat

PixelBox = tuple[float, float, float, float]

# ImageFormat -> (Pillow format name, keyword taking the quality hint)
_ENCODERS: dict[ImageFormat, tuple[str, str | None]] = {
    ImageFormat.JPEG: ("JPEG", "quality"),
    ImageFormat.PNG: ("PNG", "compress_level"),
    ImageFormat.GIF: ("GIF", None),
    ImageFormat.WEBP: ("WEBP", "quality"),
    ImageFormat.BMP: ("BMP", None),
    ImageFormat.TIFF: ("TIFF", None),
    ImageFormat.ICO: ("ICO", None),
    ImageFormat.HEIF: ("HEIF", "quality"),
}

# Formats whose encoders cannot store an alpha channel.
_OPAQUE_FORMATS = {ImageFormat.JPEG, ImageFormat.BMP}


class PillowImaging:
    """Decode, resample and encode through Pillow.

    Errors are Pillow's own (``OSError``, ``ValueError``, ``KeyError`` for an
    encoder that is not available); callers translate them.
    """

    resampling = Image.Resampling.LANCZOS

    @staticmethod
    def _open(source: bytes | Path) -> Image.Image:
        if isinstance(source, (bytes, bytearray)):
            return Image.open(BytesIO(source))
        return Image.open(source)

    def decode_metadata(self, source: bytes | Path) -> tuple[int, int]:
        with self._open(source) as img:
            width, height = img.size
            return int(width), int(height)

    def decode_pixels(self, source: bytes | Path) -> Image.Image:
        with self._open(source) as img:
            img.load()
            has_alpha = img.mode in ("RGBA", "LA", "PA") or (
                img.mode == "P" and "transparency" in img.info
            )
            return img.convert("RGBA" if has_alpha else "RGB")

    def resample(self, image: Image.Image, box: PixelBox, width: int, height: int) -> Image.Image:
        return image.resize((width, height), self.resampling, box=box)

    def encode(
        self,
        image: Image.Image,
        image_format: ImageFormat,
        quality: int | None = None,
        progressive: bool = False,
    ) -> bytes:
        pil_format, quality_keyword = _ENCODERS[image_format]
        options: dict[str, Any] = {}
        if quality is not None and quality_keyword is not None:
            if quality_keyword == "compress_level":
                quality = min(9, max(0, quality))
            options[quality_keyword] = quality
        if image_format is ImageFormat.JPEG and progressive:
            options["progressive"] = True
        if image_format in _OPAQUE_FORMATS and image.mode != "RGB":
            image = image.convert("RGB")

        buf = BytesIO()
        image.save(buf, format=pil_format, **options)
        return buf.getvalue()
