"""Centralized logging configuration for the TVT scorer."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# HTTP client libraries under requests and supabase log every request at DEBUG/INFO
NOISY_LOGGERS = ('urllib3', 'httpx', 'httpcore', 'hpack')


def resolve_level(level: Optional[int] = None) -> int:
    """Explicit level, else TVT_LOG_LEVEL (name like 'DEBUG'), else INFO."""
    if level is not None:
        return level
    name = os.environ.get('TVT_LOG_LEVEL', '').upper()
    resolved = logging.getLevelName(name) if name else logging.INFO
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    log_dir: Optional[Path] = None,
    level: Optional[int] = None,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the 'tvt' logger.

    Library modules log through children of the 'tvt' logger, so this
    only needs to run once per process: in the CLI entry point, or when a
    serverless handler module is imported.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: TVT_LOG_LEVEL or INFO)
        log_to_file: Whether to write a timestamped log file (default: True)
        log_to_console: Whether to log to stderr (default: True)

    Returns:
        Configured logger instance
    """
    level = resolve_level(level)
    logger = logging.getLogger('tvt')
    logger.setLevel(level)
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s %(name)s: %(message)s')

    if log_to_file:
        if log_dir is None:
            log_dir = Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f'tvt_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        # stderr keeps --json output on stdout clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger
