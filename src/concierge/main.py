"""
Concierge Discord Bot
=====================

A Discord bot that logs direct messages, runs a couple of moderation
commands, answers configured custom commands and keywords, and falls back to
a generative model for questions nobody configured an answer for.
"""

import asyncio
import os
import sys

import discord
from dotenv import load_dotenv

from concierge.ai.answer_generator import AnswerGenerator
from concierge.bot.cogs import events_listener, message_listener
from concierge.configuration.app_configuration import BASE_DIR, AppConfig
from concierge.configuration.bot_settings import Settings, SettingsError, load_settings
from concierge.dispatch.message_dispatcher import MessageDispatcher
from concierge.dm_log.dm_log_store import DMLogStore
from concierge.membership.welcome_handler import WelcomeHandler
from concierge.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If neither ``DISCORD_BOT_TOKEN`` nor ``DISCORD_TOKEN`` is set.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN") or os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' (or 'DISCORD_TOKEN') environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the intents for guild messages, DMs, message content and member joins."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.dm_messages = True
    intents.message_content = True
    intents.members = True
    return intents


def create_bot(
    settings: Settings,
    dispatcher: MessageDispatcher,
    welcome_handler: WelcomeHandler,
) -> discord.Bot:
    """Instantiate the Discord bot and register the cogs."""
    bot = discord.Bot(intents=build_intents())
    events_listener.setup(bot, settings, welcome_handler)
    message_listener.setup(bot, dispatcher)
    logger.info("All cogs loaded successfully.")
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(
    bot: discord.Bot | None,
    dispatcher: MessageDispatcher | None,
    answer_generator: AnswerGenerator | None,
) -> None:
    """Close the Discord connection, flush pending DM log writes and close the AI client."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing Discord connection: %s", exc)

    if dispatcher is not None:
        try:
            await dispatcher.wait_for_background_tasks()
        except Exception as exc:
            logger.exception("Error while flushing DM log writes: %s", exc)

    if answer_generator is not None:
        try:
            await answer_generator.close()
        except Exception as exc:
            logger.exception("Error while closing AI client: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Load configuration, wire the components and run the bot, returning an exit code."""
    token = load_environment()
    app_config = AppConfig()

    settings_path = app_config.resolve_path(app_config.settings_file)
    try:
        settings = load_settings(settings_path)
    except SettingsError as exc:
        logger.critical("Error loading settings file: %s", exc)
        return 1

    dm_log_path = app_config.resolve_path(app_config.dm_log_file)

    ai_settings = app_config.ai_settings
    answer_generator = AnswerGenerator(ai_settings)
    dispatcher = MessageDispatcher(
        settings,
        DMLogStore(dm_log_path),
        answer_generator,
        command_prefix=app_config.command_prefix,
        footer_text=ai_settings.footer_text,
    )

    try:
        bot = create_bot(settings, dispatcher, WelcomeHandler(settings))
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await shutdown_runtime(None, dispatcher, answer_generator)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, dispatcher, answer_generator)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting Concierge…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1 if code is not None else 0


if __name__ == "__main__":
    sys.exit(main())
