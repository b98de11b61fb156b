"""Logging setup for the CLI and library callers"""

import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """Configure root logging with a timestamped stderr handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=numeric_level,
        handlers=[console_handler]
    )
