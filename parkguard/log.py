"""Logging setup for hosts embedding the engine."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from parkguard.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_dir: str | None = None, verbose: bool = False) -> None:
    """Configure logging to the console and, when ``log_dir`` is set, a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path / "parkguard.log"))

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def setup_logging_from_config(config: LoggingConfig) -> None:
    setup_logging(config.log_dir, config.verbose)
