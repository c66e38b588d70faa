import logging
import sys
from pathlib import Path

from .config import BASE_DIR, Settings, get_settings
from .observability import CorrelationIdFilter


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s"
# Chatty third-party loggers held at WARNING regardless of LOG_LEVEL.
QUIET_LOGGERS = ("sqlalchemy.engine", "passlib")


def _handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE_PATH:
        path = Path(settings.LOG_FILE_PATH)
        if not path.is_absolute():
            path = BASE_DIR / path
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def configure_logging() -> None:
    settings = get_settings()
    handlers = _handlers(settings)
    correlation_filter = CorrelationIdFilter()
    for handler in handlers:
        handler.addFilter(correlation_filter)

    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT, handlers=handlers, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
