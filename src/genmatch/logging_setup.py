"""Logging sinks for GenMatch.

All modules log through ``loguru.logger``. This module only decides where
those records end up; it is called once by the CLI and the API app factory.
"""

import sys
from pathlib import Path

from loguru import logger

from genmatch.config import Config, get_config

LLM_LOGGER_NAME = "llm_interactions"

_configured = False


def configure_logging(config: Config | None = None, console: bool = True) -> None:
    """Install console, application and generative-provider log sinks.

    Args:
        config: Configuration to read log paths and level from (default: global config)
        console: Whether to keep a stderr sink at the configured level
    """
    global _configured
    if _configured:
        return

    config = config or get_config()

    logger.remove()
    if console:
        logger.add(sys.stderr, level=config.log_level)

    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Application log (rotation at 10 MB, keep 5 old files)
    logger.add(
        log_path,
        rotation="10 MB",
        retention=5,
        level=config.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        filter=lambda record: record["extra"].get("name") != LLM_LOGGER_NAME,
        backtrace=True,
        diagnose=False,
    )

    llm_log_path = Path(config.llm_log_file)
    llm_log_path.parent.mkdir(parents=True, exist_ok=True)

    # Prompts and responses go to their own file
    logger.add(
        llm_log_path,
        filter=lambda record: record["extra"].get("name") == LLM_LOGGER_NAME,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}",
        rotation="10 MB",
        retention="30 days",
        level="DEBUG",
    )

    _configured = True
    logger.info(f"Logging to file: {log_path}")
