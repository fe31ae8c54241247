# opendraw/services/common/logging_config.py
import logging.config
from opendraw.services.common.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    """opendraw.* 로거를 stdout 으로 출력 (uvicorn 로거는 건드리지 않음)"""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "opendraw": {"handlers": ["stdout"], "level": level, "propagate": False},
        },
    })
