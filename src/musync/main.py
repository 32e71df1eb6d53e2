#!/usr/bin/env python3
"""Console entry point: configure logging, check external tools, run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from musync.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from musync.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger("musync")


def setup_logging(log_level: str = "INFO") -> None:
    """Apply ``logging_config.json``, or a plain console setup if it is unusable.

    The root level always follows *log_level*, whatever the file says.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    loaded = False
    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            logging.config.dictConfig(json.load(f))
        loaded = True
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logging.getLogger().setLevel(level)
    if not loaded:
        logger.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, _LOGGING_CONFIG_PATH)


def check_external_tools(settings: Settings) -> list[str]:
    """Return the names of required executables missing from PATH, logging each."""
    missing = [
        tool
        for tool in (settings.resolver.executable, "ffmpeg")
        if shutil.which(tool) is None
    ]
    for tool in missing:
        logger.warning(LogTemplates.EXTERNAL_TOOL_MISSING, tool)
    return missing


def main() -> int:
    from musync.config.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    check_external_tools(settings)
    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from musync.config.container import create_container
    from musync.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)
    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1

    logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """``musync`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
