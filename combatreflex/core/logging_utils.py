"""Logging setup for Combat Reflex.

Console plus a rotating file in the per-user log directory. Called once,
early in GUI startup and from scripts. `COMBATREFLEX_LOG_LEVEL` overrides
the level.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_FILENAME = "combatreflex.log"
LEVEL_ENV = "COMBATREFLEX_LOG_LEVEL"


def get_default_log_dir() -> Path:
    """Per-user log directory, `<app data>/logs`; cwd as a last resort."""
    try:
        from combatreflex.core.storage import app_data_dir
        p = app_data_dir() / "logs"
        p.mkdir(parents=True, exist_ok=True)
        return p
    except OSError:
        return Path.cwd()


def get_default_log_path() -> Path:
    return get_default_log_dir() / DEFAULT_LOG_FILENAME


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.strip().upper(), logging.INFO)
    return int(level)


def setup_logging(
    *,
    level: Union[str, int, None] = None,
    log_file: Optional[Union[str, Path]] = None,
    add_console: bool = True,
    add_file: bool = True,
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """Configure the root logger (or `logger_name`).

    - level: DEBUG/INFO/...; falls back to $COMBATREFLEX_LOG_LEVEL, then INFO
    - log_file: rotating file path (default: per-user log dir)
    - calling again only adjusts levels, it never stacks handlers
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO")
    resolved = _resolve_level(level)

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    logger.setLevel(resolved)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved)
        return logger

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if add_file:
        log_path = Path(log_file) if log_file else get_default_log_path()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
            )
            file_handler.setLevel(resolved)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError:
            # read-only home etc: console only
            pass

    if add_console:
        console = logging.StreamHandler()
        console.setLevel(resolved)
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger
