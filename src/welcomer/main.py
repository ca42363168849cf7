"""
Welcomer Discord Bot
====================

A Discord bot that loads its event handlers from a directory tree at
startup and greets every new member with a permanent join number.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. WELCOMER_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("WELCOMER_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from welcomer.configuration.app_configuration import app_config
from welcomer.database.join_ledger import join_ledger
from welcomer.dispatch.dispatcher import EventDispatcher
from welcomer.dispatch.event_source import DiscordEventSource
from welcomer.dispatch.loader import load_event_handlers
from welcomer.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the intents needed to receive guild and member join events."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    return intents


def create_bot() -> discord.Bot:
    """Instantiate the Discord bot."""
    return discord.Bot(intents=build_intents())


def setup_event_handlers(bot: discord.Bot) -> EventDispatcher:
    """Bind a dispatcher to ``bot`` and register every discovered event handler."""
    dispatcher = EventDispatcher(is_dev=app_config.is_dev)
    dispatcher.bind(DiscordEventSource(bot))

    logger.info(
        "Loading event handlers from %s (%s mode, *%s)",
        app_config.events_directory,
        app_config.environment,
        app_config.handler_extension,
    )
    load_event_handlers(dispatcher, app_config.events_directory, app_config.handler_extension)
    return dispatcher


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection lifecycle."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the Discord connection if it is still open."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the ledger, the bot and its handlers, returning an exit code."""
    token = load_environment()

    logger.info("Initializing join ledger...")
    if not await join_ledger.initialize(app_config.database_path, app_config.busy_timeout):
        logger.critical("Failed to initialize database at %s", app_config.database_path)
        return 1

    try:
        bot = create_bot()
        setup_event_handlers(bot)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting Welcomer…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 0
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
