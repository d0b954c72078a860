"""
Logging setup for AI Playground.

Modules log through logging.getLogger(__name__); this configures the
package logger once from LoggingConfig.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the 'aiplayground' logger.

    Args:
        config: Logging section of the configuration (defaults if None)

    Returns:
        The configured package logger
    """
    config = config or LoggingConfig()
    logger = logging.getLogger("aiplayground")
    logger.setLevel(LEVEL_MAP.get(config.level.lower(), logging.INFO))

    # Re-running setup replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    if config.path:
        log_path = Path(config.path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
