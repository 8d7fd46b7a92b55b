from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from types import MappingProxyType

import imagehash
import numpy as np
from PIL import Image

from imgforge.domain.entities.image import FileSource, ImageRecord
from imgforge.domain.errors import NotAnImageError
from imgforge.infrastructure.imaging.pillow_imaging import PillowImaging

logger = logging.getLogger(__name__)

HASH_DHASH = "dhash"
HASH_AHASH = "ahash"
HASH_PHASH_AVERAGE = "phash_average"
HASH_PHASH_MEDIAN = "phash_median"
HASH_PHASH_DCT = "phash_dct"

# 8x8 bits computed from a 32x32 sample, like the hand-rolled DCT hash.
_HASH_SIZE = 8
_HIGHFREQ_FACTOR = 4

# Built once at import, read-only afterwards.
PERCEPTUAL_HASHERS: MappingProxyType[str, Callable[[Image.Image], imagehash.ImageHash]] = MappingProxyType(
    {
        HASH_DHASH: lambda img: imagehash.dhash(img, hash_size=_HASH_SIZE),
        HASH_AHASH: lambda img: imagehash.average_hash(img, hash_size=_HASH_SIZE),
        HASH_PHASH_AVERAGE: lambda img: imagehash.phash_simple(
            img, hash_size=_HASH_SIZE, highfreq_factor=_HIGHFREQ_FACTOR
        ),
        HASH_PHASH_MEDIAN: lambda img: imagehash.phash(img, hash_size=_HASH_SIZE, highfreq_factor=_HIGHFREQ_FACTOR),
    }
)

_FILE_CHUNK = 1024 * 1024


class HashService:
    """Fingerprints for image records.

    Perceptual hashes decode pixels; every other algorithm is a digest over the
    raw bytes.
    """

    def __init__(self, imaging: PillowImaging) -> None:
        self.imaging = imaging

    def hash(self, record: ImageRecord, algorithm: str) -> bytes | None:
        """Return the raw fingerprint bytes, or None when the algorithm is unknown."""
        name = algorithm.lower()
        if name == HASH_PHASH_DCT:
            return self.dct_hash(record)
        if name in PERCEPTUAL_HASHERS:
            with self._decode(record) as img:
                return self.image_hash_to_bytes(PERCEPTUAL_HASHERS[name](img))
        return self.content_hash(record, name)

    def dct_hash(self, record: ImageRecord, output_size: int = _HASH_SIZE) -> bytes:
        sample_size = output_size * 4
        with self._decode(record) as img:
            rgba = img.convert("RGBA")
        sample = self.imaging.resample(rgba, (0, 0, rgba.width, rgba.height), sample_size, sample_size)
        rgba.close()
        pixels = np.asarray(sample, dtype=np.float64)
        sample.close()

        luma = self.luminance(pixels)
        matrix = self.dct_2d(luma)

        coefficients = matrix[:output_size, :output_size].flatten()
        mean = coefficients[1:].mean()
        bits = coefficients > mean
        return np.packbits(bits).tobytes()

    # Y = floor(0.299*R + 0.587*G + 0.114*B)
    @staticmethod
    def luminance(pixels: np.ndarray) -> np.ndarray:
        rgb = pixels[..., :3].astype(np.float64)
        return np.floor(rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114)

    # Orthonormal DCT-II basis: X[i] = scale(i) * sqrt(2/N) * sum_j x[j] * cos(i*pi*(j+0.5)/N)
    @staticmethod
    def dct_basis(size: int) -> np.ndarray:
        i = np.arange(size, dtype=np.float64)[:, None]
        j = np.arange(size, dtype=np.float64)[None, :]
        basis = np.cos(i * np.pi * (j + 0.5) / size) * np.sqrt(2.0 / size)
        basis[0, :] *= 1.0 / np.sqrt(2.0)
        return basis

    # 1-D DCT over each row, then over each resulting column.
    # The result is indexed by column first: matrix[x][k] is frequency k of column x.
    @staticmethod
    def dct_2d(values: np.ndarray) -> np.ndarray:
        rows, cols = values.shape
        row_dct = values @ HashService.dct_basis(cols).T
        return row_dct.T @ HashService.dct_basis(rows).T

    @staticmethod
    def image_hash_to_bytes(value: imagehash.ImageHash) -> bytes:
        return np.packbits(np.asarray(value.hash, dtype=bool).flatten()).tobytes()

    @staticmethod
    def content_hash(record: ImageRecord, algorithm: str) -> bytes | None:
        if algorithm.startswith("shake_"):
            # variable-length digests need an explicit size
            return None
        try:
            digest = hashlib.new(algorithm)
        except (ValueError, TypeError):
            logger.debug("Hash algorithm %r is not available", algorithm)
            return None

        if isinstance(record.source, FileSource):
            with record.source.path.open("rb") as handle:
                for chunk in iter(lambda: handle.read(_FILE_CHUNK), b""):
                    digest.update(chunk)
        else:
            digest.update(record.source.data)
        return digest.digest()

    @staticmethod
    def available_algorithms() -> list[str]:
        names = {HASH_PHASH_DCT, *PERCEPTUAL_HASHERS}
        names.update(name for name in hashlib.algorithms_available if not name.startswith("shake_"))
        return sorted(names)

    @staticmethod
    def hamming_distance(left: bytes, right: bytes) -> int:
        if len(left) != len(right):
            raise ValueError(f"Cannot compare fingerprints of {len(left)} and {len(right)} bytes")
        return sum(bin(a ^ b).count("1") for a, b in zip(left, right))

    def _decode(self, record: ImageRecord) -> Image.Image:
        source = record.source.path if isinstance(record.source, FileSource) else record.source.data
        try:
            return self.imaging.decode_pixels(source)
        except (OSError, ValueError) as exc:
            raise NotAnImageError(str(exc)) from exc
