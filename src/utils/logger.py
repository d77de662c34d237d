import logging
from logging.handlers import RotatingFileHandler
import os
from src.config import Config

# Module loggers are created with logging.getLogger(__name__), so every one of
# them is a child of the package logger configured here.
PACKAGE_LOGGER = "src"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> logging.Logger:
    """Attach handlers to the package logger once and return it."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(Config.LOG_LEVEL.upper())

    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    if Config.LOG_FILE:
        log_dir = os.path.dirname(Config.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(Config.LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
