import logging
import logging.config
import os
from datetime import datetime
from typing import Optional
from app.core.config import settings

LOG_CHANNELS = ("app", "access", "error", "mail", "celery")
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating(filename: str, level: str, formatter: str = "detailed") -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": filename,
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 10,
        "encoding": "utf-8",
    }


def setup_logging(level: Optional[str] = None):
    """
    Configure console and rotating-file logging.

    Files live under ``LOG_DIR/<channel>/<channel>-<date>.log``. Email delivery
    (queue, transport, notification dispatch) gets its own ``mail`` channel so
    bounced or failing sends can be traced without the rest of the app noise.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_dir = settings.LOG_DIR
    for channel in LOG_CHANNELS:
        os.makedirs(os.path.join(log_dir, channel), exist_ok=True)

    current_date = datetime.now().strftime("%Y-%m-%d")

    def log_file(channel: str) -> str:
        return os.path.join(log_dir, channel, f"{channel}-{current_date}.log")

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating(log_file("app"), level),
            "error_file": _rotating(log_file("error"), "ERROR"),
            "access_file": _rotating(log_file("access"), "INFO", formatter="access"),
            "mail_file": _rotating(log_file("mail"), "INFO"),
            "celery_file": _rotating(log_file("celery"), "INFO"),
        },
        "loggers": {
            "": {
                "level": level,
                "handlers": ["console", "app_file", "error_file"],
            },
            # Mail records also reach the root handlers through propagation
            "app.services.notification": {
                "level": level,
                "handlers": ["mail_file"],
            },
            "app.services.communication": {
                "level": level,
                "handlers": ["mail_file"],
            },
            "app.workers": {
                "level": "INFO",
                "handlers": ["celery_file", "console", "error_file"],
                "propagate": False,
            },
            "celery": {
                "level": "INFO",
                "handlers": ["celery_file", "console"],
                "propagate": False,
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(__name__)
    logger.info(f"🚀 {settings.APP_NAME} HRM - Logging configured")
    logger.info(f"📝 Log level: {level}, directory: {log_dir}/ ({', '.join(LOG_CHANNELS)})")
