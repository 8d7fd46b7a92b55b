"""Logging setup for the imgforge loggers."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Attach one stream handler to the ``imgforge`` logger.

    Calling it again only updates the level.
    """
    logger = logging.getLogger("imgforge")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not any(getattr(handler, "_imgforge", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._imgforge = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
