"""Logging configuration shared by the CLI and library callers.

Path and level come from the ``logging`` section of the loaded configuration
(which already folds in ``AXON_LOG_PATH`` / ``AXON_LOG_LEVEL``).
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from Axon_Cognitive.core.config import DEFAULT_CONFIG

_CONFIGURED_PATH: Optional[Path] = None


def _resolve_level(level: Optional[str]) -> int:
    numeric = getattr(logging, str(level or DEFAULT_CONFIG["logging"]["level"]).upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def _build_handlers(target: Path, level: int) -> List[logging.Handler]:
    file_handler = RotatingFileHandler(target, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(levelname)s | %(message)s"))
    for handler in (file_handler, console_handler):
        handler.setLevel(level)
    return [file_handler, console_handler]


def _handle_exception(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logging.getLogger("Axon_Cognitive").error(
        "Unhandled exception: %s", exc_value, exc_info=(exc_type, exc_value, exc_traceback)
    )


def configure_logging(log_path: Optional[str] = None, level: Optional[str] = None) -> Path:
    """Install a rotating file handler plus a console handler on the root logger.

    Returns the active log file path. Only the first call configures handlers;
    later calls return the path chosen then.
    """

    global _CONFIGURED_PATH

    if _CONFIGURED_PATH is not None:
        return _CONFIGURED_PATH

    target = Path(log_path or DEFAULT_CONFIG["logging"]["path"])
    target.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG)
    for handler in _build_handlers(target, _resolve_level(level)):
        root_logger.addHandler(handler)

    logging.captureWarnings(True)
    sys.excepthook = _handle_exception

    _CONFIGURED_PATH = target
    return target


def reset_logging() -> None:
    """Forget the configured path so the next call installs fresh handlers."""
    global _CONFIGURED_PATH
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _CONFIGURED_PATH = None


__all__ = ["configure_logging", "reset_logging"]
