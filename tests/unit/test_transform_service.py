import hashlib
import io
from unittest.mock import Mock

import pytest
from PIL import Image

from conftest import make_image_bytes
from imgforge.domain.entities.image import ImageFormat, ImageRecord, InlineSource
from imgforge.domain.errors import NotAnImageError, ResizeFailedError
from imgforge.domain.services.transform_service import CropBox, TransformService, compute_cover_crop
from imgforge.domain.settings import ImageSettings
from imgforge.infrastructure.imaging.pillow_imaging import PillowImaging


def make_record(data: bytes, image_format=ImageFormat.PNG, width=None, height=None) -> ImageRecord:
    if width is None or height is None:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    mime = {ImageFormat.PNG: "image/png", ImageFormat.JPEG: "image/jpeg", ImageFormat.GIF: "image/gif"}[image_format]
    return ImageRecord(
        size=len(data),
        mime_type=mime,
        format=image_format,
        width=width,
        height=height,
        content_hash=hashlib.md5(data).digest(),
        source=InlineSource(data),
    )


def test_cover_crop_wide_source():
    # square out of 16:9 -> full height, centered horizontally
    assert compute_cover_crop(1600, 900, 300, 300) == CropBox(left=350, top=0, width=900, height=900)


def test_cover_crop_tall_source():
    assert compute_cover_crop(900, 1600, 300, 300) == CropBox(left=0, top=350, width=900, height=900)


def test_cover_crop_same_ratio_is_whole_image():
    assert compute_cover_crop(800, 600, 400, 300) == CropBox(left=0, top=0, width=800, height=600)


@pytest.mark.parametrize(
    "source, target",
    [((1000, 10), (3, 7)), ((7, 3), (1000, 1)), ((1, 1), (5, 9)), ((123, 457), (17, 31)), ((10, 1000), (1000, 1))],
)
def test_cover_crop_stays_inside_source(source, target):
    box = compute_cover_crop(*source, *target)
    assert box.width >= 1 and box.height >= 1
    assert box.left >= 0 and box.top >= 0
    assert box.left + box.width <= source[0]
    assert box.top + box.height <= source[1]
    # one side always spans the whole source
    assert box.width == source[0] or box.height == source[1]


def test_crop_box_as_box():
    assert CropBox(left=2, top=3, width=10, height=20).as_box() == (2, 3, 12, 23)


def test_transform_outputs_requested_size_and_format():
    service = TransformService(PillowImaging())
    record = make_record(make_image_bytes(w=40, h=20))
    data = service.transform(record, ImageFormat.JPEG, 10, 10, quality=80)
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "JPEG"
        assert img.size == (10, 10)


def test_transform_keeps_alpha_for_png():
    service = TransformService(PillowImaging())
    record = make_record(make_image_bytes(w=8, h=8, color=(255, 0, 0, 0), mode="RGBA"))
    data = service.transform(record, ImageFormat.PNG, 4, 4)
    with Image.open(io.BytesIO(data)) as img:
        assert img.mode == "RGBA"
        assert img.getpixel((1, 1))[3] == 0


def test_transform_fills_background_for_opaque_format():
    service = TransformService(PillowImaging(), ImageSettings(background_color=(0, 0, 255)))
    record = make_record(make_image_bytes(w=8, h=8, color=(255, 0, 0, 0), mode="RGBA"))
    data = service.transform(record, ImageFormat.BMP, 4, 4)
    with Image.open(io.BytesIO(data)) as img:
        assert img.mode == "RGB"
        assert img.getpixel((1, 1)) == (0, 0, 255)


def test_transform_rejects_undecodable_source():
    service = TransformService(PillowImaging())
    garbage = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
    record = make_record(garbage, width=1, height=1)
    with pytest.raises(NotAnImageError):
        service.transform(record, ImageFormat.PNG, 1, 1)


def test_jpeg_output_is_progressive_by_default():
    service = TransformService(PillowImaging())
    record = make_record(make_image_bytes(w=32, h=32))
    data = service.transform(record, ImageFormat.JPEG, 16, 16)
    with Image.open(io.BytesIO(data)) as img:
        assert img.info.get("progressive") == 1


def test_progressive_jpeg_can_be_disabled():
    service = TransformService(PillowImaging(), ImageSettings(progressive_jpeg=False))
    record = make_record(make_image_bytes(w=32, h=32))
    data = service.transform(record, ImageFormat.JPEG, 16, 16)
    with Image.open(io.BytesIO(data)) as img:
        assert "progressive" not in img.info


def test_resample_failure_is_wrapped():
    imaging = Mock()
    imaging.decode_pixels.return_value = Image.new("RGB", (8, 8))
    imaging.resample.side_effect = OSError("out of buffers")
    service = TransformService(imaging)
    record = make_record(make_image_bytes(w=8, h=8))
    with pytest.raises(ResizeFailedError) as exc_info:
        service.transform(record, ImageFormat.PNG, 4, 4)
    assert exc_info.value.reason == "out of buffers"
    imaging.encode.assert_not_called()
