"""Root logger setup for the lease API server and CLI tools.

Records go to stdout and to the file named by ``LeaseSettings.log_file``. The
level comes from ``LeaseSettings.log_level`` (``LOG_LEVEL`` in the environment
or .env). Lease services log committed transitions at INFO and rejected
operations at WARNING, so WARNING in production keeps only the rejections.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from src.services.config import LeaseSettings, get_settings

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level(name: str) -> int:
    """Translate a level name such as "warning" into its logging constant.

    Unknown names fall back to INFO.
    """
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_server_logging(settings: Optional[LeaseSettings] = None) -> Path:
    """Route every logger to stdout and the lease log file.

    Args:
        settings: Source of log_level, log_file and database_echo
            (default: get_settings())

    Returns:
        Path of the log file in use
    """
    settings = settings or get_settings()
    level = get_log_level(settings.log_level)

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # SQL statements are only wanted when database_echo is on
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    logging.getLogger(__name__).debug(
        "Logging to %s at %s", log_path, logging.getLevelName(level)
    )
    return log_path


__all__ = ["get_log_level", "setup_server_logging"]
