from __future__ import annotations

from imgforge.domain.entities.image import ImageFormat, ImageRecord


class EditIntent:
    """Requested transformation of one source record.

    Setters return the intent itself so calls can be chained:

        intent = EditIntent(record).set_format(ImageFormat.WEBP).constrain_to_max_width(800)

    Nothing is decoded or encoded here; ``ConvertImageUseCase`` resolves the
    intent into a new record.
    """

    def __init__(self, source: ImageRecord) -> None:
        self._source = source
        self._new_format: ImageFormat | None = None
        self._new_width: int | None = None
        self._new_height: int | None = None
        self._quality: int | None = None

    @property
    def source(self) -> ImageRecord:
        return self._source

    @property
    def new_format(self) -> ImageFormat | None:
        return self._new_format

    @property
    def new_width(self) -> int | None:
        return self._new_width

    @property
    def new_height(self) -> int | None:
        return self._new_height

    @property
    def quality(self) -> int | None:
        return self._quality

    def set_format(self, image_format: ImageFormat | str | None = None) -> EditIntent:
        if image_format is not None:
            image_format = ImageFormat(image_format.lower() if isinstance(image_format, str) else image_format)
        # Re-encoding into the current format is not a change.
        self._new_format = image_format if image_format is not self._source.format else None
        return self

    def set_width(self, width: int | None = None) -> EditIntent:
        self._new_width = width
        return self

    def set_height(self, height: int | None = None) -> EditIntent:
        self._new_height = height
        return self

    def constrain_to_max_width(self, width: int) -> EditIntent:
        if width < self._source.width:
            ratio = self._source.width / self._source.height
            self._new_height = int(width / ratio)
            self._new_width = width
        return self

    def constrain_to_max_height(self, height: int) -> EditIntent:
        if height < self._source.height:
            ratio = self._source.width / self._source.height
            self._new_width = int(height * ratio)
            self._new_height = height
        return self

    def set_quality(self, quality: int | None = None) -> EditIntent:
        self._quality = quality
        return self

    def is_changed(self) -> bool:
        return (
            self._new_format is not None
            or self._new_width is not None
            or self._new_height is not None
            or self._quality is not None
        )

    def __repr__(self) -> str:
        return (
            f"EditIntent(source={self._source.name!r}, format={self._new_format}, "
            f"width={self._new_width}, height={self._new_height}, quality={self._quality})"
        )
