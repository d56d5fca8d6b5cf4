"""
Logging Configuration for the GenLayer CLI

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- File rotation (1 file per day)
- Separate error log
- Optional console handler (stderr, so command output stays clean)
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional


# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_dir() -> Path:
    """Log directory under the CLI home folder (GENLAYER_HOME or ~/.genlayer)."""
    home = os.getenv("GENLAYER_HOME") or str(Path.home() / ".genlayer")
    return Path(home) / "logs"


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = False,
    detailed: bool = False,
) -> logging.Logger:
    """
    Setup a logger with console and file handlers.

    Args:
        name: Logger name (the package logger, so module loggers propagate to it)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (defaults to name.log)
        console: Whether to log to stderr
        detailed: Whether to use detailed format (includes file/line)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("genlayer_cli", level=logging.DEBUG, console=True)
        >>> logger.info("Resolving account 'default'")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_dir = get_log_dir()
    try:
        log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError:
        # Read-only home: fall back to console-only logging
        if not console:
            logger.addHandler(logging.NullHandler())
        return logger

    if log_file is None:
        log_file = f"{name}.log"

    # File handler with daily rotation
    file_handler = TimedRotatingFileHandler(
        log_dir / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        log_dir / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def get_cli_logger(verbose: bool = False) -> logging.Logger:
    """Get the package logger used by every command."""
    env_level = os.getenv("GENLAYER_LOG_LEVEL")
    if verbose:
        level = logging.DEBUG
    elif env_level:
        level = logging.getLevelName(env_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    else:
        level = logging.INFO
    return setup_logger("genlayer_cli", level=level, console=verbose, detailed=verbose)
