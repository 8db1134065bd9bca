"""
AIreform entrypoint.

Loads ``.env`` and ``config/app_config.yml`` from the project home (the
``AIREFORM_HOME`` environment variable, or the repository root when running
from source), wires the shared services, registers the cogs and runs the bot
until it is stopped.
"""

import os
import sys
from pathlib import Path

HOME_DIR = Path(os.getenv("AIREFORM_HOME") or Path(__file__).resolve().parents[2]).resolve()
# Relative paths in app_config.yml (database_path, logs) are resolved from here
os.chdir(HOME_DIR)

import asyncio

import discord
from dotenv import load_dotenv

from aireform.bot.services import ReformServices, build_services
from aireform.reform.status_reporter import shutdown_pending_teardowns
from aireform.util.logger import get_logger, handle_exception

logger = get_logger("main")

TOKEN_VARIABLE = "DISCORD_BOT_TOKEN"


class AIreformBot(discord.Bot):
    """:class:`discord.Bot` carrying the shared :class:`ReformServices`."""

    def __init__(self, services: ReformServices, **kwargs):
        super().__init__(intents=build_intents(), **kwargs)
        self.services = services

    async def close(self) -> None:
        await shutdown_pending_teardowns()
        await super().close()


def load_environment() -> str:
    """Read ``.env`` and return the bot token, exiting when it is missing."""
    load_dotenv(dotenv_path=HOME_DIR / ".env")
    token = os.getenv(TOKEN_VARIABLE, "").strip()
    if not token:
        logger.critical("%s is not set; add it to %s", TOKEN_VARIABLE, HOME_DIR / ".env")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Gateway intents: members to find approving admins, message content for
    whitelisted history."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    intents.messages = True
    intents.message_content = True
    return intents


def load_cogs(bot: discord.Bot, services: ReformServices) -> None:
    from aireform.bot.cogs import config_cmds, events_listener, general_cmds, reform_cmds

    events_listener.setup(bot)
    general_cmds.setup(bot)
    config_cmds.setup(bot, services)
    reform_cmds.setup(bot, services)
    logger.info("Registered cogs: events, general, config, reform")


def create_bot(services: ReformServices) -> AIreformBot:
    bot = AIreformBot(services)
    load_cogs(bot, services)
    return bot


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the gateway connection (if still open) and drop pending status channel deletions."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)
    await shutdown_pending_teardowns()
    logger.info("AIreform stopped")


async def async_main() -> int:
    token = load_environment()

    from aireform.configuration.app_configuration import app_config

    try:
        bot = create_bot(build_services(app_config))
    except Exception as exc:
        logger.critical("Could not build the bot: %s", exc, exc_info=exc)
        return 1

    logger.info("Connecting to Discord…")
    try:
        await bot.start(token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        return 1
    except asyncio.CancelledError:
        logger.info("Bot task cancelled")
    except Exception as exc:
        logger.critical("Bot stopped with an error: %s", exc, exc_info=exc)
        return 1
    finally:
        await shutdown_runtime(bot)
    return 0


def main() -> int:
    """Console-script entrypoint; returns the process exit code."""
    sys.excepthook = handle_exception
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    except SystemExit as exit_exc:
        return exit_exc.code if isinstance(exit_exc.code, int) else 1


if __name__ == "__main__":
    sys.exit(main())
