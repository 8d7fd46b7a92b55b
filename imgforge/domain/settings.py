from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imgforge.domain.entities.image import ImageFormat

DEFAULT_SUPPORTED_TYPES: tuple[ImageFormat, ...] = (
    ImageFormat.JPEG,
    ImageFormat.PNG,
    ImageFormat.GIF,
    ImageFormat.WEBP,
)


class ImageSettings(BaseModel):
    """Limits and defaults shared by ingestion and conversion.

    Fixed once constructed; use ``with_options`` to derive a modified copy.
    """

    model_config = ConfigDict(frozen=True)

    max_size: int = Field(10_000_000, description="Maximum raw size in bytes", ge=1)
    max_width: int = Field(10_000, description="Maximum width in pixels", ge=1)
    max_height: int = Field(10_000, description="Maximum height in pixels", ge=1)
    supported_types: tuple[ImageFormat, ...] = Field(
        DEFAULT_SUPPORTED_TYPES, description="Formats accepted on ingestion and as conversion targets"
    )
    fetch_timeout: float = Field(10.0, description="Timeout for remote fetches in seconds", gt=0)
    background_color: tuple[int, int, int] = Field(
        (255, 255, 255), description="Canvas color for formats without alpha"
    )
    progressive_jpeg: bool = Field(True, description="Encode JPEG output as progressive")

    @field_validator("supported_types", mode="before")
    @classmethod
    def _dedupe_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set, frozenset)):
            seen: list[ImageFormat] = []
            for item in value:
                fmt = ImageFormat(item.strip().lower() if isinstance(item, str) else item)
                if fmt not in seen:
                    seen.append(fmt)
            return tuple(seen)
        return value

    @field_validator("background_color")
    @classmethod
    def _check_color(cls, value: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(channel < 0 or channel > 255 for channel in value):
            raise ValueError("background_color channels must be within 0..255")
        return value

    def is_type_supported(self, image_format: ImageFormat | str) -> bool:
        try:
            return ImageFormat(image_format) in self.supported_types
        except ValueError:
            return False

    def with_options(self, **options: Any) -> ImageSettings:
        return ImageSettings.model_validate({**self.model_dump(), **options})

    @classmethod
    def from_env(cls) -> ImageSettings:
        values: dict[str, Any] = {}
        env_map = {
            "max_size": "IMGFORGE_MAX_SIZE",
            "max_width": "IMGFORGE_MAX_WIDTH",
            "max_height": "IMGFORGE_MAX_HEIGHT",
            "supported_types": "IMGFORGE_SUPPORTED_TYPES",
            "fetch_timeout": "IMGFORGE_FETCH_TIMEOUT",
        }
        for field_name, env_name in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)
