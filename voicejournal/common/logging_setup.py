"""Logging setup shared by the scripts."""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
    """Attach handlers to the ``voicejournal`` logger and return it.

    Calling this twice does not duplicate handlers.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger("voicejournal")
    root.setLevel(level)
    if root.handlers:
        return root

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    return root
