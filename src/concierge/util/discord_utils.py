"""
discord_utils.py
================

Low-level Discord helpers for Concierge.

Stateless wrappers around message replies, moderation endpoints and
permission checks. The ``safe_*`` and ``try_*`` helpers are the failure
boundaries of the bot: they catch gateway errors, log them and report the
outcome as a value.
"""

from __future__ import annotations

from typing import Any, Iterable

import discord

from concierge.datatypes.result_datatypes import ModerationResult
from concierge.util.logger import get_logger

logger = get_logger("discord_utils")


def is_ignored_author(author: discord.abc.User) -> bool:
    """
    Check if an author should never be answered (bots, including this one).

    Args:
        author (discord.User | discord.Member): The message author.

    Returns:
        bool: True if the author is a bot account.
    """
    return bool(getattr(author, "bot", False))


def is_direct_message(message: discord.Message) -> bool:
    """Return True when ``message`` was sent in a DM rather than a guild channel."""
    return message.guild is None


def has_permission(member: Any, permission_name: str) -> bool:
    """
    Check a single guild permission flag on a member.

    Args:
        member: The guild member to check.
        permission_name: Attribute name on ``discord.Permissions`` (e.g. ``"ban_members"``).

    Returns:
        bool: False for users without guild permissions (such as DM authors).
    """
    permissions = getattr(member, "guild_permissions", None)
    return bool(getattr(permissions, permission_name, False))


def first_mentioned_member(mentions: Iterable[Any]) -> Any | None:
    """Return the first mentioned user of a message, or None."""
    return next(iter(mentions or ()), None)


async def safe_reply(message: discord.Message, content: str | None = None, *, embed: discord.Embed | None = None) -> bool:
    """
    Reply to a message, suppressing gateway errors.

    Returns:
        bool: True if the reply was sent, False otherwise.
    """
    try:
        if embed is not None:
            await message.reply(content, embed=embed)
        else:
            await message.reply(content)
        return True
    except discord.Forbidden:
        logger.warning("No permission to reply in channel %s", getattr(message.channel, "id", "?"))
    except Exception as exc:
        logger.error("Error replying to message %s: %s", getattr(message, "id", "?"), exc)
    return False


async def safe_send(channel: discord.abc.Messageable, content: str) -> bool:
    """
    Send a message to a channel, suppressing gateway errors.

    Returns:
        bool: True if the message was sent, False otherwise.
    """
    try:
        await channel.send(content)
        return True
    except discord.Forbidden:
        logger.warning("No permission to send messages in channel %s", getattr(channel, "id", "?"))
    except Exception as exc:
        logger.error("Error sending message to channel %s: %s", getattr(channel, "id", "?"), exc)
    return False


async def try_ban(member: discord.Member, reason: str) -> ModerationResult:
    """Ban ``member`` from its guild, reporting failure as a value."""
    try:
        await member.ban(reason=reason)
        return ModerationResult(success=True)
    except Exception as exc:
        logger.error("Failed to ban user %s: %s", getattr(member, "id", "?"), exc)
        return ModerationResult(success=False, error=str(exc))


async def try_kick(member: discord.Member, reason: str) -> ModerationResult:
    """Kick ``member`` from its guild, reporting failure as a value."""
    try:
        await member.kick(reason=reason)
        return ModerationResult(success=True)
    except Exception as exc:
        logger.error("Failed to kick user %s: %s", getattr(member, "id", "?"), exc)
        return ModerationResult(success=False, error=str(exc))
