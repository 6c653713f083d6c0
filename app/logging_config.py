"""
Logging setup for embedding applications and scripts.

Loggers in this project are named ``takeeateasy.<area>`` and never attach
handlers themselves; ``setup_logging`` configures the root logger once.
"""

import logging
from typing import Optional

from app.config import settings


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure root logger with the configured level and format.

    Does nothing if the root logger already has handlers, so calling it
    from tests or repeated service construction is safe.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format=fmt or settings.log_format,
    )
