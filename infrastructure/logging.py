"""
Logging configuration.

Plain text by default; JSON lines through python-json-logger when
``LOG_JSON`` is enabled.
"""
import logging
import logging.config
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from infrastructure.config import Settings


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that always carries level, logger and service name"""

    def __init__(self, *args, service: str = "hotel-reservations", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = self.service


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    formatter = "json" if settings.LOG_JSON else "plain"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
            "json": {
                "()": ServiceJsonFormatter,
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "root": {
            "level": settings.LOG_LEVEL.upper(),
            "handlers": ["console"],
        },
        "loggers": {
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DATABASE_ECHO else "WARNING",
            },
        },
    }


def configure_logging(settings: Settings) -> None:
    """Apply logging configuration for the process"""
    logging.config.dictConfig(build_logging_config(settings))
