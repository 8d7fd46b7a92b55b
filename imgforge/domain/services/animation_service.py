from __future__ import annotations

import logging
import re

from imgforge.domain.entities.image import FileSource, ImageFormat, ImageRecord

logger = logging.getLogger(__name__)

# Graphic Control Extension (delay/disposal fields skipped) followed by an
# image descriptor or another extension block.
GIF_FRAME_PATTERN = re.compile(rb"\x00\x21\xF9\x04.{4}\x00[\x2C\x21]", re.DOTALL)
GIF_FRAME_PATTERN_LENGTH = 10
GIF_CHUNK_SIZE = 100 * 1024

WEBP_CHUNK_OFFSET = 12
WEBP_FLAGS_OFFSET = 20
WEBP_EXTENDED_CHUNK = b"VP8X"
WEBP_ANIMATION_BIT = 1


class AnimationService:
    """Detects animated GIF and WEBP images from their raw bytes, without decoding."""

    def is_animated(self, record: ImageRecord) -> bool:
        if record.format is ImageFormat.WEBP:
            return self._webp_is_animated(record)
        if record.format is ImageFormat.GIF:
            return self._count_gif_frames(record, stop_at=2) >= 2
        return False

    # --------- webp ---------
    @staticmethod
    def _webp_is_animated(record: ImageRecord) -> bool:
        if isinstance(record.source, FileSource):
            with record.source.path.open("rb") as handle:
                handle.seek(WEBP_CHUNK_OFFSET)
                if handle.read(4) != WEBP_EXTENDED_CHUNK:
                    return False
                handle.seek(WEBP_FLAGS_OFFSET)
                flags = handle.read(1)
        else:
            data = record.source.data
            if data[WEBP_CHUNK_OFFSET : WEBP_CHUNK_OFFSET + 4] != WEBP_EXTENDED_CHUNK:
                return False
            flags = data[WEBP_FLAGS_OFFSET : WEBP_FLAGS_OFFSET + 1]
        if not flags:
            return False
        return bool((flags[0] >> WEBP_ANIMATION_BIT) & 1)

    # --------- gif ---------
    @staticmethod
    def count_gif_frames_in(data: bytes) -> int:
        return len(GIF_FRAME_PATTERN.findall(data))

    def _count_gif_frames(self, record: ImageRecord, stop_at: int) -> int:
        if not isinstance(record.source, FileSource):
            return self.count_gif_frames_in(record.source.data)

        frames = 0
        carry = b""
        # A carry one byte shorter than the pattern can never hold a complete
        # match, so nothing is counted twice and nothing split is missed.
        keep = GIF_FRAME_PATTERN_LENGTH - 1
        with record.source.path.open("rb") as handle:
            while frames < stop_at:
                chunk = handle.read(GIF_CHUNK_SIZE)
                if not chunk:
                    break
                window = carry + chunk
                frames += self.count_gif_frames_in(window)
                carry = window[-keep:]
        logger.debug("Found %d GIF frame markers in %s", frames, record.source.path)
        return frames
