"""
Logging configuration for the resilient agent layer.

Logging is off by default. `configure_logging(verbose=True)` turns it on at the
level named by the RESILIENT_AGENT_LOG_LEVEL environment variable.
"""

import os
import sys

from loguru import logger

LOG_LEVEL_ENV_VAR = "RESILIENT_AGENT_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def _get_log_level_from_env() -> str:
    """
    Read the log level from RESILIENT_AGENT_LOG_LEVEL.

    Returns:
        str: The upper-cased level, or "INFO" if the variable is unset or not a valid loguru level.
    """
    level = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    if level not in VALID_LOG_LEVELS:
        return DEFAULT_LOG_LEVEL
    return level


def configure_logging(verbose: bool = False) -> None:
    """
    Configure loguru output for this package.

    Parameters:
        verbose (bool): When True, log to stderr at the level from RESILIENT_AGENT_LOG_LEVEL; when False, silence the package.
    """
    logger.remove()
    if verbose:
        logger.enable("resilient_agent")
        logger.add(sys.stderr, level=_get_log_level_from_env(), format=LOG_FORMAT)
    else:
        logger.disable("resilient_agent")
        logger.add(lambda _: None, level="CRITICAL")
