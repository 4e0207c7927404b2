"""
Logging for the TCC driver.

Everything goes to stdout; with logging.file set, the same records also go
to a rotating log file. The protocol modules log every transmitted
command and every unrecognized key at DEBUG.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from rcos_alpaca.config.models import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """
    Install console and rotating file handlers on the root logger.

    Existing handlers are dropped, so calling this again (from tests or a
    config reload) does not duplicate output. uvicorn access lines are
    only kept at DEBUG.

    Args:
        config: Level and optional log file path.
    """
    logger = logging.getLogger()
    logger.setLevel(config.level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s [%(name)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file:
        try:
            file_handler = RotatingFileHandler(
                config.file,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setLevel(config.level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {config.file}")
        except OSError as e:
            logger.error(f"Failed to create log file {config.file}: {e}")

    # HTTP access logs only when debugging
    if config.level != "DEBUG":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger.info(f"Logging initialized at level: {config.level}")
