import logging
import sys
import threading

from config.settings import settings

ROOT_LOGGER_NAME = "file_analysis"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False
_configure_lock = threading.Lock()


def resolve_level(level_name: str) -> int:
    """Map a level name to its numeric value, falling back to INFO."""
    level = logging.getLevelName(str(level_name or "").strip().upper())
    if isinstance(level, int):
        return level
    return logging.INFO


def _configure_root() -> logging.Logger:
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)

    with _configure_lock:
        if _configured:
            return root

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(resolve_level(settings.LOG_LEVEL))
        root.propagate = False
        _configured = True

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a module logger nested under the service root logger."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
