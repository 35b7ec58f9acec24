from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from .settings import settings

_loggers: Dict[str, logging.Logger] = {}
_FORMAT = "%(asctime)s — %(levelname)s — %(name)s — %(message)s"


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Create or get a named logger writing to stderr (and LOG_DIR/<name>.log if set)."""
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(settings.log_level.upper())
    formatter = logging.Formatter(_FORMAT)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    log_dir = log_dir or settings.log_dir
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(exist_ok=True, parents=True)
        handler = logging.FileHandler(log_dir / f"{name.split('.')[-1]}.log", encoding="utf-8")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _loggers[name] = logger
    return logger
