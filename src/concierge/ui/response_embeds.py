"""
Embed builders for the bot's question replies.

This module provides the two embeds the dispatch pipeline replies with:
the channel redirect shown when a question matches a configured keyword, and
the AI answer embed.
"""

import datetime

import discord

REDIRECT_COLOR = 0xFFD700
ANSWER_COLOR = 0x0099FF

# Discord rejects embed descriptions longer than this
MAX_DESCRIPTION_LENGTH = 4096


def truncate_description(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def build_redirect_embed(channel_id: str) -> discord.Embed:
    """
    Create the embed pointing a question at its dedicated channel.

    Args:
        channel_id: ID of the channel the matched keyword maps to.

    Returns:
        discord.Embed: Gold embed with a ``<#channel>`` mention.
    """
    return discord.Embed(
        title="Channel Redirect",
        description=(
            "I can't answer that here, but you can find more information in our "
            f"dedicated channel: <#{channel_id}>"
        ),
        color=REDIRECT_COLOR,
    )


def build_answer_embed(answer: str, footer_text: str) -> discord.Embed:
    """
    Create the embed that carries a generated answer.

    Args:
        answer: Text returned by the answer generator.
        footer_text: Attribution shown under the answer.

    Returns:
        discord.Embed: Blue, timestamped embed with the answer as its description.
    """
    embed = discord.Embed(
        title="Answering your question...",
        description=truncate_description(answer),
        color=ANSWER_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.set_footer(text=footer_text)
    return embed
