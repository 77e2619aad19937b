"""
Logging utilities for the crawler.

Console output is only attached in verbose mode and is colourised by level:
info is blue, success is green, errors are red.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LoggingConfig


LOGGER_NAME = 'simplecrawl'

SUCCESS = 25
logging.addLevelName(SUCCESS, 'SUCCESS')

RESET = "\033[0m"

LEVEL_COLOURS = {
    logging.DEBUG: RESET,
    logging.INFO: "\033[34m",
    SUCCESS: "\033[32m",
    logging.WARNING: RESET,
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}


class ColorFormatter(logging.Formatter):
    """Wraps each formatted record in the ANSI colour of its level."""

    def __init__(self, fmt: Optional[str] = '%(message)s', use_colour: bool = True):
        super().__init__(fmt)
        self.use_colour = use_colour

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_colour:
            return message
        colour = LEVEL_COLOURS.get(record.levelno, RESET)
        return f"{colour}{message}{RESET}"


class CrawlerLogAdapter(logging.LoggerAdapter):
    """Logger adapter that adds crawler-specific context."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add extra context to log messages."""
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        kwargs['extra'].update(self.extra)

        return msg, kwargs

    def success(self, msg: str, *args, **kwargs):
        self.log(SUCCESS, msg, *args, **kwargs)

    def log_url_event(self, level: int, url: str, message: str, **kwargs):
        """Log URL-specific events."""
        extra = kwargs.get('extra', {})
        extra['url'] = url
        extra['event_type'] = 'url_event'
        kwargs['extra'] = extra
        self.log(level, f"{message}: {url}", **kwargs)


def setup_logging(config: Optional[LoggingConfig] = None,
                  verbose: bool = False) -> logging.Logger:
    """
    Configure the crawler logger.

    Args:
        config: Logging configuration, defaults are used when omitted
        verbose: Attach the colourised console handler

    Returns:
        The configured crawler logger
    """
    config = config or LoggingConfig()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper()))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if verbose:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColorFormatter())
        logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    third_party_loggers = {
        'aiohttp': logging.WARNING,
        'asyncio': logging.WARNING,
        'urllib3': logging.WARNING,
    }

    for logger_name, level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    logger.debug(f"Log level: {config.level}, verbose: {verbose}, file: {config.file}")

    return logger


def get_crawler_logger(name: str = LOGGER_NAME,
                       logger: Optional[logging.Logger] = None,
                       **extra_context) -> CrawlerLogAdapter:
    """
    Get a crawler-specific logger with additional context.

    Args:
        name: Logger name, ignored when ``logger`` is given
        logger: An existing logger to wrap
        **extra_context: Additional context fields to include in all log messages

    Returns:
        CrawlerLogAdapter instance
    """
    if isinstance(logger, CrawlerLogAdapter):
        return logger
    return CrawlerLogAdapter(logger or logging.getLogger(name), extra_context)


def log_system_info(logger: Optional[logging.Logger] = None):
    """Log system and environment information."""
    import platform
    import psutil

    logger = logger or logging.getLogger(LOGGER_NAME)

    logger.debug("=== SYSTEM INFORMATION ===")
    logger.debug(f"Platform: {platform.platform()}")
    logger.debug(f"Python version: {sys.version}")
    logger.debug(f"CPU cores: {psutil.cpu_count()}")
    logger.debug(f"Memory: {psutil.virtual_memory().total / 1024**3:.1f} GB")
