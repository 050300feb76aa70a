"""
Logging setup for the CoachHub API.

Handlers hang off the ``coachhub`` logger, so every module logger created with
``logging.getLogger(__name__)`` inside the package writes through them.
"""
import os
import time
import logging
from logging.handlers import RotatingFileHandler

from flask import has_request_context, request

from coachhub.config.settings import LogConfig
from coachhub.utils.validation.input_validator import get_client_ip

ROOT_LOGGER = "coachhub"
LOG_FILE = os.path.join(LogConfig.LOG_DIR, "coachhub.log")

CONSOLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(method)s %(path)s from %(remote)s] %(message)s"

class RequestContextFilter(logging.Filter):
    """Stamps method, path and client address on records logged during a request."""

    def filter(self, record):
        if has_request_context():
            record.method = request.method
            record.path = request.path
            record.remote = get_client_ip()
        else:
            record.method = record.path = record.remote = "-"
        return True

class DuplicateFilter(logging.Filter):
    """Drops a record repeating the previous one within the window (login floods, retry loops)."""

    def __init__(self, window=0.1):
        super().__init__()
        self.window = window
        self._last = (None, 0.0)

    def filter(self, record):
        key = (record.name, record.msg, record.args)
        now = time.time()
        last_key, last_at = self._last
        self._last = (key, now)
        return not (key == last_key and now - last_at < self.window)

def _file_handler():
    os.makedirs(LogConfig.LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=LogConfig.MAX_LOG_SIZE,
        backupCount=LogConfig.BACKUP_COUNT,
        delay=True
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler

def setup_logging(module_name=None):
    """
    Configure the package logger once and return a child logger.

    Args:
        module_name: suffix for the returned logger, e.g. ``"app"`` gives ``coachhub.app``
    """
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(LogConfig.LEVEL)
        context = RequestContextFilter()

        console = logging.StreamHandler()
        console.setLevel(logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console.addFilter(DuplicateFilter())
        root.addHandler(console)

        if LogConfig.TO_FILE:
            try:
                file_handler = _file_handler()
                file_handler.addFilter(context)
                file_handler.addFilter(DuplicateFilter())
                root.addHandler(file_handler)
            except OSError as e:
                root.warning("File logging disabled, %s not writable: %s", LogConfig.LOG_DIR, e)

    return root.getChild(module_name) if module_name else root

