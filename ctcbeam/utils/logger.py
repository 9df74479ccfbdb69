from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | int = "INFO", fmt: str = LOG_FORMAT) -> None:
    """Configure the root logger once for the command-line tools."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=fmt)
    logging.getLogger("ctcbeam").setLevel(level)
