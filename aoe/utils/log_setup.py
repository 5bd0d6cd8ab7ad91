"""Logging setup for processes that own the terminal."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(log_file: Optional[Path] = None, debug: bool = False) -> None:
    """Configure root logging.

    When a log file is given, records go only there so that nothing is
    written over the interactive display.

    Args:
        log_file: Optional file to append log records to
        debug: Enable DEBUG level output
    """
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(log_file)]
    else:
        handlers = [logging.StreamHandler(sys.stderr)]

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
