import logging
import logging.config

from .config import settings


def setup_logging(level: str | None = None) -> None:
    """콘솔 로깅 설정 (LOG_LEVEL 환경 변수 기준)"""
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                },
            },
            "root": {
                "level": log_level,
                "handlers": ["console"],
            },
            "loggers": {
                "backend.quickmark": {"level": log_level},
                "httpx": {"level": "WARNING"},
            },
        }
    )
