"""Line sink shared by route listings and the startup banner.

A logger with handlers receives ``info`` records; otherwise the line is
printed so that listings are never silently dropped.
"""

from __future__ import annotations

import logging
from typing import Optional

__all__ = ["emit_line"]


def emit_line(message: str, logger: Optional[logging.Logger] = None) -> None:
    logger = logger or logging.getLogger("advance_api")
    if logger.hasHandlers():
        logger.info(message)
    else:
        print(message)
