"""Message listener Cog for Concierge.

This cog hands every ``on_message`` event to the dispatch pipeline. The
pipeline never raises for expected failures; this listener is the last
boundary for anything unexpected, so one bad event cannot stop the others.
"""

import discord
from discord.ext import commands

from concierge.dispatch.message_dispatcher import MessageDispatcher
from concierge.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for routing new messages through the dispatcher."""

    def __init__(self, discord_bot_instance, dispatcher: MessageDispatcher):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        dispatcher:
            Pipeline that decides how each message is answered.
        """
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        try:
            outcome = await self.dispatcher.dispatch(message)
        except Exception as exc:
            logger.exception("Unhandled error dispatching message %s: %s", getattr(message, "id", "?"), exc)
            return

        logger.debug("Message %s from %s handled as %s", message.id, message.author, outcome)


def setup(discord_bot_instance, dispatcher: MessageDispatcher):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, dispatcher))
