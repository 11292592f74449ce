import logging
import sys
from logging.config import dictConfig

from propmarket.config import settings

CTX_FIELDS = ("rid", "user_id", "order_id")


def setup_logging(level: str | None = None, json_mode: bool | None = None) -> None:
    """Logging for the whole service: stdout, plain text or JSON lines."""
    level = (level or settings.log_level).upper()
    json_mode = settings.log_json if json_mode is None else json_mode

    if json_mode:
        formatter = {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(rid)s %(user_id)s %(order_id)s",
            "json_ensure_ascii": False,
        }
    else:
        formatter = {
            "format": (
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s "
                "| rid=%(rid)s user=%(user_id)s order=%(order_id)s"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"ctx": {"()": CtxFilter}},
        "formatters": {"default": formatter},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "filters": ["ctx"],
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            "sqlalchemy.engine": {"level": settings.log_sql.upper()},
            "apscheduler": {"level": "WARNING"},
            "uvicorn": {"level": level},
            "uvicorn.access": {"level": level},
            "propmarket": {"level": level},
        },
    })
    logging.getLogger(__name__).info("logging_ready", extra={"json": json_mode, "level": level})


class CtxFilter(logging.Filter):
    """Fills context fields with '-' so the formatter never fails without extra."""
    def filter(self, record: logging.LogRecord) -> bool:
        for k in CTX_FIELDS:
            if not hasattr(record, k):
                setattr(record, k, "-")
        return True
