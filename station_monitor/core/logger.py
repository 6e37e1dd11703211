"""
Logging for the station monitor.

One "station_monitor" logger writes INFO and above to stdout and, unless
LOG_DIR is empty, everything to a rotating daily file.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from station_monitor.core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _log_file(log_dir: str) -> Optional[Path]:
    if not log_dir:
        return None
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"station_monitor_{datetime.now().strftime('%Y%m%d')}.log"


def setup_logger(name: str = "station_monitor", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the application logger once; later calls return it unchanged.

    Args:
        name: Logger name
        log_dir: Directory for the rotating file (defaults to settings.LOG_DIR)
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = _log_file(settings.LOG_DIR if log_dir is None else log_dir)
    if log_file is not None:
        # 10MB per file, 5 backups
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


logger = setup_logger()


# ============ Request Helpers ============

def log_request(endpoint: str, method: str, user: str = "anonymous"):
    logger.info(f"Request: {method} {endpoint} - Member: {user}")


def log_success(endpoint: str, message: str, user: str = "anonymous"):
    logger.info(f"Success: {endpoint} - {message} - Member: {user}")


def log_error(endpoint: str, error: Exception, user: str = "anonymous"):
    """Log error with full traceback"""
    logger.error(f"Error: {endpoint} - Member: {user} - {type(error).__name__}: {str(error)}", exc_info=True)


def log_warning(endpoint: str, message: str, user: str = "anonymous"):
    logger.warning(f"Warning: {endpoint} - {message} - Member: {user}")


def log_auth_attempt(member_id: str, success: bool, reason: str = ""):
    if success:
        logger.info(f"Auth Success: '{member_id}' signed in")
    else:
        logger.warning(f"Auth Failed: '{member_id}' - Reason: {reason}")


# ============ Lookup Helpers ============

def log_upstream_request(path: str, success: bool, error: str = ""):
    """Station backend calls: successes at DEBUG, failures at WARNING"""
    if success:
        logger.debug(f"Station backend: GET {path} - OK")
    else:
        logger.warning(f"Station backend: GET {path} - Failed: {error}")


def log_resolution(keyword: str, matched_name: str = "", source: str = ""):
    if matched_name:
        logger.debug(f"Resolved '{keyword}' -> '{matched_name}' via {source}")
    else:
        logger.debug(f"No match for '{keyword}'")
