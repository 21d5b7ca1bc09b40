"""
smartpick/utils/logger.py
Named loggers under one "smartpick" parent: Rich console output, plus a
rotating file when SMARTPICK_LOG_DIR is set. The engine writes no files
by default.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

from smartpick.utils.config import LOG_LEVEL, SMARTPICK_LOG_DIR

ROOT_NAME = "smartpick"

_loggers: dict[str, logging.Logger] = {}


def _configure_root(log_dir: str) -> logging.Logger:
    root = logging.getLogger(ROOT_NAME)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    if root.handlers:
        return root

    console = RichHandler(rich_tracebacks=True, show_path=False)
    console.setLevel(logging.DEBUG)
    root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{ROOT_NAME}.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root.addHandler(file_handler)
    return root


def get_logger(name: str = ROOT_NAME) -> logging.Logger:
    """get_logger("era") -> the "smartpick.era" logger, sharing the parent's handlers."""
    if name in _loggers:
        return _loggers[name]

    root = _configure_root(SMARTPICK_LOG_DIR)
    logger = root if name == ROOT_NAME else root.getChild(name)
    _loggers[name] = logger
    return logger


def set_level(level: str) -> None:
    """Change verbosity at runtime (e.g. "DEBUG" while investigating skipped values)."""
    logging.getLogger(ROOT_NAME).setLevel(getattr(logging, level.upper(), logging.INFO))
