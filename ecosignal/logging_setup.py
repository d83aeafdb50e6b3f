"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``ecosignal.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup, before the simulation loops
start emitting records.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional, Union


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = "ecosignal.log") -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int or str
        Minimum severity level (e.g. ``logging.DEBUG`` or ``"INFO"``).
    log_file : str, optional
        Path of the rotating log file; ``None`` logs to the console only.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(ch)

    if log_file:
        fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=2)
        fh.setFormatter(fmt)
        root.addHandler(fh)
