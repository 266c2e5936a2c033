"""
Logging setup shared by the API, the services and the scripts.

Console output always; a rotating file (logs/parking.log, 10 x 5MB) unless
LOG_TO_FILE is off. Messages use a bracketed tag per subsystem, e.g.
[TRAFFIC], [REPORTS], [OCCUPANCY], [ROUTE], [GEOFENCE].
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 10

# httpx logs every provider/geofence request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")

_root_ready = False


def _log_dir() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return settings.LOG_DIR or os.path.join(project_root, "logs")


def _setup_root():
    global _root_ready
    if _root_ready:
        return
    _root_ready = True

    level = settings.LOG_LEVEL.upper()
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]

    if settings.LOG_TO_FILE:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=os.path.join(log_dir, "parking.log"),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ))

    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; the first call configures the root logger."""
    _setup_root()
    return logging.getLogger(name)
