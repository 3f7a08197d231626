"""Centralized logging configuration for yin_tuner.

Every module gets its logger from ``get_logger(__name__)``; the CLI calls
``setup_logging`` once at startup. Log records go to stderr so they never mix
with the tuner readout on stdout.
"""

import logging
import sys
from typing import Dict, Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "yin_tuner": logging.INFO,
    "yin_tuner.session": logging.INFO,
    # Detection is called every frame; DEBUG here is very chatty
    "yin_tuner.detection": logging.INFO,
    "yin_tuner.services": logging.INFO,
    "yin_tuner.core": logging.INFO,
    "yin_tuner.ui": logging.WARNING,
    "yin_tuner.cli": logging.INFO,
    # Libraries/third-party
    "sounddevice": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Shared console handler
_console_handler: Optional[logging.StreamHandler] = None

# Cache for loggers handed out by get_logger
_logger_cache: Dict[str, logging.Logger] = {}


def _shared_handler() -> logging.StreamHandler:
    """Return the console handler, rebuilding it if stderr was swapped out."""
    global _console_handler

    if _console_handler is None or _console_handler.stream is not sys.stderr:
        _console_handler = logging.StreamHandler(sys.stderr)
        _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return _console_handler


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'yin_tuner' log levels with this level (e.g., "DEBUG").
    """
    handler = _shared_handler()

    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("yin_tuner"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Child loggers (e.g. yin_tuner.detection.yin) propagate up to the
    # nearest configured package logger
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)

        for old in logger.handlers[:]:
            logger.removeHandler(old)
        logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("yin_tuner").info("Logging configuration complete")


def get_logger(name: str) -> logging.Logger:
    """Get a cached logger for a module.

    Unlike the package loggers in MODULE_LOG_LEVELS, module loggers carry no
    handler or level of their own and defer to the closest configured parent.

    Args:
        name: The full module name (e.g., 'yin_tuner.detection.yin')

    Returns:
        The logger for ``name``
    """
    if name not in _logger_cache:
        _logger_cache[name] = logging.getLogger(name)
    return _logger_cache[name]
