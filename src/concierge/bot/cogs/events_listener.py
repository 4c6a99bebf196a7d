"""Event listener Cog for Concierge.

This cog handles bot lifecycle events (presence and avatar on ``on_ready``)
and new members (``on_member_join``). Message events are handled by the
MessageListenerCog.
"""

import aiohttp
import discord
from discord.ext import commands

from concierge.configuration.bot_settings import Settings
from concierge.membership.welcome_handler import WelcomeHandler
from concierge.util.logger import get_logger

logger = get_logger("events_listener_cog")

AVATAR_DOWNLOAD_TIMEOUT = aiohttp.ClientTimeout(total=15)


class EventsListenerCog(commands.Cog):
    """Cog containing lifecycle and membership handlers."""

    def __init__(self, discord_bot_instance, settings: Settings, welcome_handler: WelcomeHandler):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        settings:
            Settings providing presence and avatar values.
        welcome_handler:
            Handler run for every member that joins a guild.
        """
        self.bot = discord_bot_instance
        self.settings = settings
        self.welcome_handler = welcome_handler
        # on_ready fires again after every reconnect; Discord rate-limits avatar edits
        self._avatar_applied = False
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Log the connection and apply presence and avatar from settings."""
        if not self.bot.user:
            logger.warning("Bot partially connected, but user information not yet available.")
            return

        logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        await self._update_presence()

        if self.settings.avatar_url and not self._avatar_applied:
            self._avatar_applied = await self._update_avatar(self.settings.avatar_url)

    @commands.Cog.listener(name="on_member_join")
    async def on_member_join(self, member: discord.Member):
        logger.info(f"Member {member} joined guild {member.guild.id}")
        try:
            await self.welcome_handler.handle_member_join(member)
        except Exception as exc:
            logger.exception("Unhandled error welcoming %s: %s", member, exc)

    async def _update_presence(self) -> None:
        activity = discord.Game(name=self.settings.activity) if self.settings.activity else None
        try:
            await self.bot.change_presence(
                status=discord.Status(self.settings.status),
                activity=activity,
            )
        except Exception as exc:
            logger.error("Failed to update presence: %s", exc)

    async def _update_avatar(self, avatar_url: str) -> bool:
        """Download ``avatar_url`` and set it as the bot avatar. Returns True on success."""
        try:
            async with aiohttp.ClientSession(timeout=AVATAR_DOWNLOAD_TIMEOUT) as session:
                async with session.get(avatar_url) as response:
                    response.raise_for_status()
                    image_bytes = await response.read()
            await self.bot.user.edit(avatar=image_bytes)
        except Exception as exc:
            logger.error("Failed to set avatar from %s: %s", avatar_url, exc)
            return False

        logger.info("Avatar updated from %s", avatar_url)
        return True


def setup(discord_bot_instance, settings: Settings, welcome_handler: WelcomeHandler):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, settings, welcome_handler))
