"""Welcome message and auto-role for members joining a guild."""

from __future__ import annotations

import discord

from concierge.configuration.bot_settings import Settings
from concierge.datatypes.result_datatypes import MembershipOutcome
from concierge.util import discord_utils
from concierge.util.logger import get_logger

logger = get_logger("welcome_handler")


class WelcomeHandler:
    """Greets new members and grants the configured auto-role.

    The two steps are independent: a failed welcome does not prevent the role
    grant and vice versa. Missing configuration silently skips a step.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def handle_member_join(self, member: discord.Member) -> MembershipOutcome:
        welcomed = await self.send_welcome(member)
        role_granted = await self.grant_auto_role(member)
        return MembershipOutcome(welcomed=welcomed, role_granted=role_granted)

    async def send_welcome(self, member: discord.Member) -> bool:
        template = self.settings.welcome_message
        channel = member.guild.system_channel
        if not template or channel is None:
            return False

        text = template.replace("{user}", member.mention, 1)
        return await discord_utils.safe_send(channel, text)

    async def grant_auto_role(self, member: discord.Member) -> bool:
        role_id = self.settings.auto_role_id
        if role_id is None:
            return False

        role = member.guild.get_role(role_id)
        if role is None:
            logger.warning("[WELCOME] Auto-role %s not found in guild %s", role_id, member.guild.id)
            return False

        try:
            await member.add_roles(role, reason="Auto-role on join")
        except Exception as exc:
            logger.error("[WELCOME] Failed to give role %s to %s: %s", role_id, member, exc)
            return False

        logger.info("[WELCOME] Gave role %s to %s", role.name, member)
        return True
