from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from imgforge.domain.entities.edit_intent import EditIntent
from imgforge.domain.entities.image import ImageRecord, InlineSource, mime_type_for
from imgforge.domain.errors import DimensionRangeError, UnsupportedTypeError
from imgforge.domain.services.transform_service import TransformService
from imgforge.domain.settings import ImageSettings

logger = logging.getLogger(__name__)


@dataclass
class ConvertImageUseCase:
    transform: TransformService
    settings: ImageSettings

    def execute(self, intent: EditIntent) -> ImageRecord:
        """
        Resolve an edit intent into a new in-memory record.

        An intent without changes returns its source record itself; nothing
        is decoded or encoded. Otherwise the source is cover-fit cropped to
        the requested aspect ratio, resampled and encoded, and the result is
        always inline (no file path).
        """
        source = intent.source
        if not intent.is_changed():
            return source

        if intent.new_format is not None and not self.settings.is_type_supported(intent.new_format):
            raise UnsupportedTypeError(intent.new_format)
        if intent.new_height is not None:
            self._check_dimension("height", intent.new_height, self.settings.max_height)
        if intent.new_width is not None:
            self._check_dimension("width", intent.new_width, self.settings.max_width)

        image_format = intent.new_format or source.format
        width = intent.new_width or source.width
        height = intent.new_height or source.height

        data = self.transform.transform(source, image_format, width, height, intent.quality)
        record = ImageRecord(
            size=len(data),
            mime_type=mime_type_for(image_format),
            format=image_format,
            width=width,
            height=height,
            content_hash=hashlib.md5(data).digest(),
            source=InlineSource(data),
        )
        logger.info(
            "Converted %s (%s %dx%d) to %s (%s %dx%d)",
            source.name,
            source.format.value,
            source.width,
            source.height,
            record.name,
            image_format.value,
            width,
            height,
        )
        return record

    @staticmethod
    def _check_dimension(dimension: str, value: int, maximum: int) -> None:
        if value < 1 or value > maximum:
            raise DimensionRangeError(dimension, value, maximum)
