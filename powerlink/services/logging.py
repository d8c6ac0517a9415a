"""Root logger setup for the API server and the init-db command.

Records go to stdout and to POWERLINK_LOG_FILE at POWERLINK_LOG_LEVEL.
SQLAlchemy engine and uvicorn access chatter stay at WARNING unless the
level is DEBUG.
"""

import logging
import sys
from pathlib import Path

from powerlink.config import Settings, get_settings

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def get_log_level(settings: Settings | None = None) -> int:
    """Numeric level for the configured name; unknown names mean INFO."""
    name = (settings or get_settings()).log_level.upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_server_logging(log_file: str | None = None, settings: Settings | None = None) -> None:
    """Replace the root handlers with a stdout handler and a file handler.

    Args:
        log_file: Overrides settings.log_file; parent directories are created
        settings: Defaults to get_settings()
    """
    settings = settings or get_settings()
    log_path = Path(log_file or settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = get_log_level(settings)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    library_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
