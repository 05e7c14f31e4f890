import logging
from logging.handlers import TimedRotatingFileHandler
import os

from .config import get_settings

FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'

file_handler = None


def setup_logging(level=None, log_file=None):
    global file_handler
    cfg = get_settings()
    level = level or cfg.LOG_LEVEL
    log_file = log_file if log_file is not None else cfg.LOG_FILE
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    formatter = logging.Formatter(FORMAT)
    # Close previous file handler if it exists
    if file_handler:
        file_handler.close()
        file_handler = None
    handlers = []
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        # Daily rotation, keep 14 days
        file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=14)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)
    root_logger.handlers = handlers
    root_logger.info("[BOOT] Logging initialized (level=%s, file=%s)", level, log_file or "-")


def close_logging():
    global file_handler
    if file_handler:
        file_handler.close()
        file_handler = None
