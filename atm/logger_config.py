import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler

from .config import Settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] [%(request_id)s] %(message)s"


class RequestIDFilter(logging.Filter):
    """Stamp each record with the id of the request being served (or '-')."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(settings: Settings | None = None):
    """Configure application-wide logging with console + optional rotating file."""
    settings = settings or Settings()
    root = logging.getLogger()
    if any(isinstance(f, RequestIDFilter) for h in root.handlers for f in h.filters):
        # Avoid double configuration if the app factory runs again
        return

    root.setLevel(settings.log_level)

    fmt = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(TimedRotatingFileHandler(
            os.path.join(settings.log_dir, "atm.log"), when="midnight", backupCount=7, encoding="utf-8",
        ))

    for handler in handlers:
        handler.setFormatter(fmt)
        handler.addFilter(RequestIDFilter())
        root.addHandler(handler)
