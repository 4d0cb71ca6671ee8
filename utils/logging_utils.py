"""
Loguru setup shared by the CLI and the TTS runner.
"""

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}"


def _stderr_sink(message) -> None:
    # resolved on every write so redirected stderr (tests, CLI runners) is honoured
    sys.stderr.write(message)


def configure_logging(level: str = "INFO", sink=None) -> None:
    """
    Replaces loguru's default stderr handler with a single concise one.
    """
    logger.remove()
    logger.add(sink or _stderr_sink, format=LOG_FORMAT, level=level.upper(), colorize=False)
