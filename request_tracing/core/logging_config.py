"""
Structured JSON logging configuration for request tracing.
"""
import os
import sys
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog


class TimestampProcessor:
    """Processor to add ISO timestamp to log records."""

    def __call__(self, logger, method_name, event_dict):
        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        return event_dict


class ServiceInfoProcessor:
    """Processor to add service information to log records."""

    def __init__(self, service_name: str = "request-tracing", version: str = "1.0.0"):
        self.service_name = service_name
        self.version = version

    def __call__(self, logger, method_name, event_dict):
        event_dict['service'] = self.service_name
        event_dict['version'] = self.version
        event_dict['level'] = method_name.upper()
        return event_dict


def build_logging_config(
    log_level: str = "INFO",
    enable_json: bool = True,
    log_file: Optional[str] = None
) -> Dict[str, Any]:
    """Build the standard library ``dictConfig`` payload."""
    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "json" if enable_json else "standard",
                "stream": sys.stdout
            }
        },
        "loggers": {
            "": {  # Root logger
                "handlers": ["console"],
                "level": log_level,
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            },
            "httpx": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            }
        }
    }

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "json",
            "filename": log_file,
            "maxBytes": 100 * 1024 * 1024,  # 100MB
            "backupCount": 5
        }

        for logger_config in logging_config["loggers"].values():
            logger_config["handlers"].append("file")

    return logging_config


def configure_logging(
    log_level: str = "INFO",
    service_name: str = "request-tracing",
    version: str = "1.0.0",
    enable_json: bool = True,
    log_file: Optional[str] = None
) -> None:
    """Configure structured logging for the application."""
    log_level = log_level.upper()

    processors = [
        TimestampProcessor(),
        ServiceInfoProcessor(service_name, version),
        structlog.processors.StackInfoRenderer(),
    ]

    # Events are handed to stdlib logging so the dictConfig handlers (console and
    # LOG_FILE) format and write them. JSON mode passes fields as record extras.
    if enable_json:
        processors.append(structlog.stdlib.render_to_log_kwargs)
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(build_logging_config(log_level, enable_json, log_file))


def configure_logging_from_settings(settings) -> None:
    """Configure logging from a :class:`~request_tracing.config.Settings` instance."""
    configure_logging(
        log_level=settings.LOG_LEVEL,
        service_name=settings.APP_NAME,
        version=settings.VERSION,
        enable_json=settings.LOG_JSON,
        log_file=settings.LOG_FILE
    )
