"""Logging configuration using dictConfig.

Development logs are plain console lines. In production every record is a
JSON object; fields passed through ``extra`` (``region``, ``collaborator``,
``topic`` and the run statistics) become top-level keys.
"""
import logging
import logging.config
import sys
from typing import Dict, Any, Optional

from .settings import get_settings

# Third-party loggers and the level they are capped at
LIBRARY_LOG_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


def _formatters(service_name: Optional[str]) -> Dict[str, Any]:
    service = f" [{service_name}]" if service_name else ""
    return {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            "rename_fields": {"levelname": "level", "asctime": "time"},
            "static_fields": {"service": service_name or "trendscope"},
        },
        "console": {
            "format": f"%(asctime)s{service} [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    }


def get_logging_config(
    service_name: Optional[str] = None,
    level: Optional[str] = None,
    json_logs: Optional[bool] = None
) -> Dict[str, Any]:
    """
    Build the dictConfig for a service.

    Args:
        service_name: Tag added to every record, e.g. ``trender``
        level: Application log level (default: LOG_LEVEL)
        json_logs: Force JSON output (default: only in production)
    """
    config = get_settings()
    level = (level or config.log_level).upper()
    if json_logs is None:
        json_logs = config.environment == "production"

    loggers = {
        name: {"level": lib_level, "handlers": ["console"], "propagate": False}
        for name, lib_level in LIBRARY_LOG_LEVELS.items()
    }
    loggers["trendscope"] = {"level": level, "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": _formatters(service_name),
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "stream": sys.stdout,
            }
        },
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def setup_logging(service_name: Optional[str] = None, **kwargs) -> None:
    """Configure logging for a service entry point."""
    logging.config.dictConfig(get_logging_config(service_name, **kwargs))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
