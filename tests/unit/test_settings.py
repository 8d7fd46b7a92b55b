import pytest
from pydantic import ValidationError

from imgforge.domain.entities.image import ImageFormat
from imgforge.domain.settings import DEFAULT_SUPPORTED_TYPES, ImageSettings


def test_defaults():
    settings = ImageSettings()
    assert settings.max_size == 10_000_000
    assert settings.max_width == 10_000
    assert settings.max_height == 10_000
    assert settings.supported_types == DEFAULT_SUPPORTED_TYPES
    assert settings.is_type_supported("png")
    assert not settings.is_type_supported(ImageFormat.BMP)
    assert not settings.is_type_supported("svg")


def test_supported_types_deduplicated_and_parsed_from_string():
    settings = ImageSettings(supported_types="png, PNG,gif")
    assert settings.supported_types == (ImageFormat.PNG, ImageFormat.GIF)


def test_settings_are_frozen():
    settings = ImageSettings()
    with pytest.raises(ValidationError):
        settings.max_size = 5  # type: ignore[misc]


def test_with_options_returns_validated_copy():
    settings = ImageSettings()
    smaller = settings.with_options(max_size=100, supported_types=["jpeg", "jpeg"])
    assert smaller.max_size == 100
    assert smaller.supported_types == (ImageFormat.JPEG,)
    assert settings.max_size == 10_000_000
    with pytest.raises(ValidationError):
        settings.with_options(max_width=0)


def test_background_color_range():
    with pytest.raises(ValidationError):
        ImageSettings(background_color=(0, 0, 256))


def test_from_env(monkeypatch):
    monkeypatch.setenv("IMGFORGE_MAX_SIZE", "2048")
    monkeypatch.setenv("IMGFORGE_MAX_WIDTH", "640")
    monkeypatch.setenv("IMGFORGE_SUPPORTED_TYPES", "png,webp")
    monkeypatch.delenv("IMGFORGE_MAX_HEIGHT", raising=False)
    settings = ImageSettings.from_env()
    assert settings.max_size == 2048
    assert settings.max_width == 640
    assert settings.max_height == 10_000
    assert settings.supported_types == (ImageFormat.PNG, ImageFormat.WEBP)
