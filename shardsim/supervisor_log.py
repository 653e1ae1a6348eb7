"""Logger for the supervisor, writing to stdout and a log file."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

_FORMAT = "Supervisor: %(asctime)s %(filename)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def new_supervisor_logger(log_dir: str | os.PathLike[str]) -> logging.Logger:
    """Create a logger writing to stdout and to ``<log_dir>/Supervisor.log``."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / "Supervisor.log"

    logger = logging.getLogger(f"shardsim.supervisor.{directory.resolve()}")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_file, mode="w", encoding="utf-8")):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger