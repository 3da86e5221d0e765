"""Application-wide logging initialization

Call `initialize_logging()` once at process start (the app factory does it)
before anything else logs. Modules log through `logging.getLogger(__name__)`.

Secrets are never passed to a logger; log the short code and the outcome only.
"""

import logging
import logging.config
from typing import Optional

from link_platform.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def initialize_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": LOG_FORMAT},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "stream": "ext://sys.stdout",
                }
            },
            "loggers": {
                "link_platform": {"level": log_level},
            },
            "root": {
                "level": log_level,
                "handlers": ["stdout"],
            },
        }
    )
