from __future__ import annotations

from pydantic import BaseModel, Field

from imgforge.domain.entities.image import ImageFormat, ImageRecord


class ImageInfoResponse(BaseModel):
    """Metadata of a validated image."""
    size: int = Field(..., description="Size of the raw image in bytes", examples=[2048576], ge=0)
    mime_type: str = Field(..., description="MIME type sniffed from the content", examples=["image/png"])
    format: ImageFormat = Field(..., description="Image format", examples=["png"])
    width: int = Field(..., description="Width of the image in pixels", examples=[1920], gt=0)
    height: int = Field(..., description="Height of the image in pixels", examples=[1080], gt=0)
    md5: str = Field(..., description="Hex MD5 digest of the raw bytes")
    name: str = Field(..., description="URL-safe base64 MD5 digest, used as a stable identifier", examples=["1B2M2Y8AsgTpgAmY7PhCfg"])
    full_name: str = Field(..., description="Identifier with the format extension", examples=["1B2M2Y8AsgTpgAmY7PhCfg.png"])
    animated: bool = Field(False, description="Whether the image has more than one frame (GIF / WEBP only)")

    @classmethod
    def from_record(cls, record: ImageRecord, animated: bool = False) -> ImageInfoResponse:
        return cls(
            size=record.size,
            mime_type=record.mime_type,
            format=record.format,
            width=record.width,
            height=record.height,
            md5=record.md5_hex,
            name=record.name,
            full_name=record.full_name,
            animated=animated,
        )


class ImportImageRequest(BaseModel):
    """Request model for importing an image from a remote or data URL."""
    url: str = Field(..., description="http(s) URL, protocol-relative URL or data-URL", examples=["https://example.com/cat.jpg"], min_length=1)
    timeout: float | None = Field(None, description="Fetch timeout in seconds", examples=[5.0], gt=0)


class FingerprintResponse(BaseModel):
    """Response model for a fingerprint computation."""
    algorithm: str = Field(..., description="Algorithm used", examples=["phash_dct"])
    hex: str = Field(..., description="Fingerprint as lowercase hex", examples=["c3e1f0f8783c1e0f"])


class StoreImageResponse(BaseModel):
    """Response model for an image persisted in storage."""
    image: ImageInfoResponse = Field(..., description="Metadata of the stored image")
    path: str = Field(..., description="Storage path of the image file", examples=["images/1B2M2Y8AsgTpgAmY7PhCfg.png"])
    url: str = Field(..., description="Public URL to access the image")


class AlgorithmsResponse(BaseModel):
    """Fingerprint algorithms accepted by the fingerprint endpoint."""
    algorithms: list[str] = Field(..., description="Algorithm names, sorted", examples=[["ahash", "md5", "phash_dct"]])
