# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


def _file_handler(path: str) -> RotatingFileHandler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "3")),
        encoding="utf-8",
    )


def build_handlers() -> list[logging.Handler]:
    """
    Handlers requested by the LOG_* env vars. The console handler writes to
    stderr; stdout carries the price report.
    """
    handlers: list[logging.Handler] = []
    if _env_flag("LOG_TO_STDOUT", True):
        handlers.append(logging.StreamHandler(sys.stderr))
    if _env_flag("LOG_TO_FILE", False):
        log_file = os.getenv("LOG_FILE", "./wishlist_pricer.log")
        try:
            handlers.append(_file_handler(log_file))
        except OSError as e:
            logging.getLogger(__name__).warning(
                "Could not open log file %s: %s", log_file, e
            )
    return handlers


def setup_logging():
    global _configured
    if _configured:
        return

    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Leave handlers alone if the host (or pytest) already configured logging
    if not root.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in build_handlers():
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
