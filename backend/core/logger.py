"""
Logging setup
All modules obtain loggers through get_logger() so they share one hierarchy
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "focus_engine"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger nested under the engine's root logger"""
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure console and optional rotating file output

    Args:
        level: Log level name
        log_dir: Directory for focus_engine.log; file logging disabled when empty
        max_bytes: Rotation size per file
        backup_count: Number of rotated files to keep

    Returns:
        The root engine logger
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if _configured:
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        path = Path(log_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path / "focus_engine.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    _configured = True
    return root


def setup_logging_from_config(config) -> logging.Logger:
    """Configure logging from the [logging] section of a ConfigLoader"""
    return setup_logging(
        level=config.get("logging.level", "INFO") or "INFO",
        log_dir=config.get("logging.dir", "") or None,
        max_bytes=int(config.get("logging.max_bytes", 10 * 1024 * 1024)),
        backup_count=int(config.get("logging.backup_count", 5)),
    )
