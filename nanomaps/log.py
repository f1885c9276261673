"""Console (and optional file) logging setup."""

import logging
import os
from pathlib import Path

_CONFIGURED = False


def setup_logging(level: int | str = logging.INFO, log_dir: str | os.PathLike | None = None) -> None:
    """Install console and file handlers on the root logger, once.

    A file handler that cannot be created is skipped with a warning.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_dir:
        try:
            d = Path(log_dir)
            d.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(d / "nanomaps.log", encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            root.addHandler(fh)
        except OSError as e:
            logging.getLogger(__name__).warning("Could not open log file in %s: %s", log_dir, e)

    _CONFIGURED = True
