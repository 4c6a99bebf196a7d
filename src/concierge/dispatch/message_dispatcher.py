"""
Message dispatch pipeline.

Every message the bot can see goes through :meth:`MessageDispatcher.dispatch`,
which runs an ordered chain of stages and stops at the first one that claims
the message:

1. messages from bots are dropped
2. direct messages are logged to the DM log and acknowledged
3. ``!ban`` / ``!kick`` moderation commands
4. custom commands from ``settings.json``
5. the "discord link" keyword reply
6. questions (text ending in ``?``): a keyword redirect to a dedicated
   channel, otherwise an AI-generated answer

Cheap deterministic stages run first; the answer generator, the slowest and
least predictable step, is only consulted when nothing else matched.

Nothing raised by Discord, the DM log or the generator escapes ``dispatch``:
each external call reports failure as a value and the pipeline turns it into
a logged no-op or a canned reply.
"""

from __future__ import annotations

import discord

from concierge.ai.answer_generator import AnswerGenerator
from concierge.configuration.ai_settings import DEFAULT_FOOTER_TEXT
from concierge.configuration.bot_settings import Settings
from concierge.datatypes.dm_log_datatypes import DMLogEntry
from concierge.datatypes.result_datatypes import DispatchOutcome
from concierge.dispatch.command_parsing import ParsedCommand, parse_command
from concierge.dm_log.dm_log_store import DMLogStore
from concierge.ui.response_embeds import build_answer_embed, build_redirect_embed
from concierge.util import discord_utils
from concierge.util.logger import get_logger

logger = get_logger("message_dispatcher")


DM_ACKNOWLEDGEMENT = "Thanks for your message! Your DM has been logged."
PERMISSION_DENIED = "You do not have permission to use this command."
AI_APOLOGY = "I'm sorry, I encountered an error and cannot respond right now."
DISCORD_LINK_PHRASE = "discord link"

# command name -> (required permission, verb, past tense)
MODERATION_COMMANDS = {
    "ban": ("ban_members", "ban", "banned"),
    "kick": ("kick_members", "kick", "kicked"),
}


class MessageDispatcher:
    """Route one message event to exactly one response (or none).

    Parameters
    ----------
    settings:
        Immutable bot settings loaded at startup.
    dm_log_store:
        Store that direct messages are appended to.
    answer_generator:
        Gateway to the generative backend used for unmatched questions.
    command_prefix:
        Prefix marking a message as a command.
    footer_text:
        Attribution shown under AI answers.
    """

    def __init__(
        self,
        settings: Settings,
        dm_log_store: DMLogStore,
        answer_generator: AnswerGenerator,
        command_prefix: str = "!",
        footer_text: str = DEFAULT_FOOTER_TEXT,
    ) -> None:
        self.settings = settings
        self.dm_log_store = dm_log_store
        self.answer_generator = answer_generator
        self.command_prefix = command_prefix
        self.footer_text = footer_text

    async def dispatch(self, message: discord.Message) -> DispatchOutcome:
        """Run ``message`` through the pipeline and return the stage that handled it."""
        if discord_utils.is_ignored_author(message.author):
            return DispatchOutcome.IGNORED

        if discord_utils.is_direct_message(message):
            return await self.handle_direct_message(message)

        content = message.content or ""
        command = parse_command(content, self.command_prefix)

        if command is not None:
            if command.name in MODERATION_COMMANDS:
                await self.handle_moderation_command(message, command)
                return DispatchOutcome.MODERATION

            custom_command = self.settings.find_custom_command(command.name)
            if custom_command is not None:
                await discord_utils.safe_reply(message, custom_command.response)
                return DispatchOutcome.CUSTOM_COMMAND

        content_lower = content.lower()

        if DISCORD_LINK_PHRASE in content_lower:
            await discord_utils.safe_send(
                message.channel,
                f"Hey, {message.author.mention}, here is the link: {self.settings.discord_link}",
            )
            return DispatchOutcome.DISCORD_LINK

        if content.endswith("?"):
            return await self.handle_question(message, content, content_lower)

        return DispatchOutcome.NO_ACTION

    # --------------------------
    # Stages
    # --------------------------
    async def handle_direct_message(self, message: discord.Message) -> DispatchOutcome:
        """Log a DM in the background and acknowledge it without waiting for the write."""
        author = str(message.author)
        entry = DMLogEntry.create(author=author, content=message.content or "")
        self.dm_log_store.schedule_append(entry)

        logger.info("[DM] %s: %s", author, entry.content)
        await discord_utils.safe_reply(message, DM_ACKNOWLEDGEMENT)
        return DispatchOutcome.DM_LOGGED

    async def handle_moderation_command(self, message: discord.Message, command: ParsedCommand) -> None:
        permission, verb, past_tense = MODERATION_COMMANDS[command.name]

        if not discord_utils.has_permission(message.author, permission):
            await discord_utils.safe_reply(message, PERMISSION_DENIED)
            return

        target = discord_utils.first_mentioned_member(message.mentions)
        if target is None:
            await discord_utils.safe_reply(message, f"You need to mention a user to {verb}.")
            return

        reason = command.reason
        if command.name == "ban":
            result = await discord_utils.try_ban(target, reason)
        else:
            result = await discord_utils.try_kick(target, reason)

        if result.success:
            logger.info("[MODERATION] %s %s %s (reason: %s)", message.author, past_tense, target, reason)
            await discord_utils.safe_reply(message, f"Successfully {past_tense} {target}.")
        else:
            await discord_utils.safe_reply(message, f"Failed to {verb} {target}.")

    async def handle_question(self, message: discord.Message, content: str, content_lower: str) -> DispatchOutcome:
        channel_id = self.settings.match_channel_keyword(content_lower)
        if channel_id is not None:
            await discord_utils.safe_reply(message, embed=build_redirect_embed(channel_id))
            return DispatchOutcome.CHANNEL_REDIRECT

        result = await self.answer_generator.generate(content)
        if not result.success:
            logger.warning("[DISPATCH] No AI answer for %s: %s", message.author, result.error)
            await discord_utils.safe_reply(message, AI_APOLOGY)
            return DispatchOutcome.AI_APOLOGY

        await discord_utils.safe_reply(message, embed=build_answer_embed(result.text, self.footer_text))
        return DispatchOutcome.AI_ANSWER

    async def wait_for_background_tasks(self) -> None:
        """Wait for every fire-and-forget DM log write started by this dispatcher."""
        await self.dm_log_store.wait_for_pending()
