from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from concierge.configuration.bot_settings import Settings
from concierge.datatypes.result_datatypes import DispatchOutcome, GenerationResult
from concierge.dispatch.message_dispatcher import (
    AI_APOLOGY,
    DM_ACKNOWLEDGEMENT,
    PERMISSION_DENIED,
    MessageDispatcher,
)
from concierge.dm_log.dm_log_store import DMLogStore


SETTINGS = Settings.from_mapping(
    {
        "discordLink": "https://discord.gg/abc",
        "channelKeywords": {"billing": "123", "bill": "999", "bug": "456"},
        "customCommands": [
            {"command": "ping", "response": "pong"},
            {"command": "ping", "response": "shadowed"},
        ],
    }
)


class FakeGenerator:
    def __init__(self, result=None):
        self.generate = AsyncMock(return_value=result or GenerationResult.ok("It is sunny."))


@pytest.fixture()
def dm_log_path(tmp_path: Path) -> Path:
    return tmp_path / "dms.json"


@pytest.fixture()
def generator():
    return FakeGenerator()


@pytest.fixture()
def dispatcher(dm_log_path, generator):
    return MessageDispatcher(SETTINGS, DMLogStore(dm_log_path), generator, footer_text="test footer")


def reply_embed(message):
    return message.reply.await_args.kwargs["embed"]


# --------------------------
# Self-filter and DMs
# --------------------------
@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["hello", "!ping", "what is the weather?", "discord link"])
async def test_bot_messages_have_no_effect(dispatcher, generator, dm_log_path, make_message, make_user, content):
    for direct in (False, True):
        message = make_message(content, author=make_user("otherbot", bot=True), direct=direct)

        outcome = await dispatcher.dispatch(message)
        await dispatcher.wait_for_background_tasks()

        assert outcome is DispatchOutcome.IGNORED
        message.reply.assert_not_awaited()
        message.channel.send.assert_not_awaited()
    generator.generate.assert_not_awaited()
    assert not dm_log_path.exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["hi there", "!ban <@2>", "what is billing?", "discord link"])
async def test_direct_messages_are_logged_and_acknowledged(
    dispatcher, generator, dm_log_path, make_message, make_user, content
):
    message = make_message(content, author=make_user("carol"), direct=True)

    outcome = await dispatcher.dispatch(message)
    await dispatcher.wait_for_background_tasks()

    assert outcome is DispatchOutcome.DM_LOGGED
    message.reply.assert_awaited_once_with(DM_ACKNOWLEDGEMENT)
    generator.generate.assert_not_awaited()

    entries = await DMLogStore(dm_log_path).read_all()
    assert len(entries) == 1
    assert entries[0].author == "carol"
    assert entries[0].content == content
    assert entries[0].timestamp.endswith("Z")


@pytest.mark.asyncio
async def test_direct_message_is_acknowledged_even_if_logging_fails(tmp_path, generator, make_message):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    dispatcher = MessageDispatcher(SETTINGS, DMLogStore(blocker / "dms.json"), generator)
    message = make_message("please log me", direct=True)

    outcome = await dispatcher.dispatch(message)
    await dispatcher.wait_for_background_tasks()

    assert outcome is DispatchOutcome.DM_LOGGED
    message.reply.assert_awaited_once_with(DM_ACKNOWLEDGEMENT)


@pytest.mark.asyncio
async def test_burst_of_direct_messages_keeps_every_entry(dispatcher, dm_log_path, make_message, make_user):
    for n in range(10):
        await dispatcher.dispatch(make_message(f"dm {n}", author=make_user(f"user{n}"), direct=True))
    await dispatcher.wait_for_background_tasks()

    entries = await DMLogStore(dm_log_path).read_all()
    assert sorted(e.content for e in entries) == sorted(f"dm {n}" for n in range(10))


# --------------------------
# Moderation commands
# --------------------------
@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["ban", "kick"])
async def test_moderation_without_permission_is_denied(dispatcher, make_message, make_user, command):
    target = make_user("bob", 2)
    message = make_message(f"!{command} <@2> rude", mentions=[target])

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.MODERATION
    message.reply.assert_awaited_once_with(PERMISSION_DENIED)
    target.ban.assert_not_awaited()
    target.kick.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("command,permission", [("ban", "ban_members"), ("kick", "kick_members")])
async def test_moderation_without_mention_replies_usage(dispatcher, make_message, make_user, command, permission):
    moderator = make_user("mod", permissions={permission: True})
    message = make_message(f"!{command}", author=moderator)

    await dispatcher.dispatch(message)

    message.reply.assert_awaited_once_with(f"You need to mention a user to {command}.")


@pytest.mark.asyncio
async def test_ban_with_reason(dispatcher, generator, make_message, make_user):
    target = make_user("bob", 2)
    moderator = make_user("mod", permissions={"ban_members": True})
    message = make_message("!ban <@2> spamming links?", author=moderator, mentions=[target])

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.MODERATION
    target.ban.assert_awaited_once_with(reason="spamming links?")
    message.reply.assert_awaited_once_with("Successfully banned bob.")
    generator.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_kick_uses_default_reason(dispatcher, make_message, make_user):
    target = make_user("bob", 2)
    moderator = make_user("mod", permissions={"kick_members": True})
    message = make_message("!KICK <@2>", author=moderator, mentions=[target])

    await dispatcher.dispatch(message)

    target.kick.assert_awaited_once_with(reason="No reason provided")
    message.reply.assert_awaited_once_with("Successfully kicked bob.")


@pytest.mark.asyncio
async def test_ban_permission_does_not_grant_kick(dispatcher, make_message, make_user):
    target = make_user("bob", 2)
    moderator = make_user("mod", permissions={"ban_members": True})
    message = make_message("!kick <@2>", author=moderator, mentions=[target])

    await dispatcher.dispatch(message)

    message.reply.assert_awaited_once_with(PERMISSION_DENIED)
    target.kick.assert_not_awaited()


@pytest.mark.asyncio
async def test_gateway_failure_is_caught_and_reported(dispatcher, make_message, make_user):
    target = make_user("bob", 2)
    target.kick.side_effect = RuntimeError("Missing Permissions")
    moderator = make_user("mod", permissions={"kick_members": True})
    message = make_message("!kick <@2>", author=moderator, mentions=[target])

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.MODERATION
    message.reply.assert_awaited_once_with("Failed to kick bob.")


# --------------------------
# Custom commands and keyword replies
# --------------------------
@pytest.mark.asyncio
async def test_custom_command_replies_configured_response(dispatcher, generator, make_message):
    message = make_message("!ping")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.CUSTOM_COMMAND
    message.reply.assert_awaited_once_with("pong")
    message.channel.send.assert_not_awaited()
    generator.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_command_falls_through_to_later_stages(dispatcher, generator, make_message):
    message = make_message("!unknown what does this do?")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.AI_ANSWER
    generator.generate.assert_awaited_once_with("!unknown what does this do?")


@pytest.mark.asyncio
async def test_discord_link_keyword(dispatcher, generator, make_message, make_user):
    message = make_message("Can someone share the Discord Link?", author=make_user("dave", 7))

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.DISCORD_LINK
    message.channel.send.assert_awaited_once_with("Hey, <@7>, here is the link: https://discord.gg/abc")
    message.reply.assert_not_awaited()
    generator.generate.assert_not_awaited()


# --------------------------
# Question routing
# --------------------------
@pytest.mark.asyncio
async def test_keyword_question_redirects_without_calling_generator(dispatcher, generator, make_message):
    message = make_message("how do I fix billing?")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.CHANNEL_REDIRECT
    embed = reply_embed(message)
    assert embed.title == "Channel Redirect"
    assert "<#123>" in embed.description
    generator.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_keyword_match_is_case_insensitive(dispatcher, make_message):
    message = make_message("Found a BUG?")

    await dispatcher.dispatch(message)

    assert "<#456>" in reply_embed(message).description


@pytest.mark.asyncio
async def test_question_without_keyword_gets_ai_answer(dispatcher, generator, make_message):
    message = make_message("what is the weather?")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.AI_ANSWER
    generator.generate.assert_awaited_once_with("what is the weather?")
    embed = reply_embed(message)
    assert embed.description == "It is sunny."
    assert embed.footer.text == "test footer"


@pytest.mark.asyncio
async def test_generator_failure_replies_apology(dm_log_path, make_message):
    generator = FakeGenerator(GenerationResult.failed("quota exceeded"))
    dispatcher = MessageDispatcher(SETTINGS, DMLogStore(dm_log_path), generator)
    message = make_message("what is the weather?")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.AI_APOLOGY
    message.reply.assert_awaited_once_with(AI_APOLOGY)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["hello everyone", "billing is broken", "what is the weather? thanks", ""])
async def test_no_action_for_plain_messages(dispatcher, generator, make_message, content):
    message = make_message(content)

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.NO_ACTION
    message.reply.assert_not_awaited()
    message.channel.send.assert_not_awaited()
    generator.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_reply_failures_do_not_escape(dispatcher, make_message):
    message = make_message("!ping")
    message.reply.side_effect = RuntimeError("gateway down")

    outcome = await dispatcher.dispatch(message)

    assert outcome is DispatchOutcome.CUSTOM_COMMAND


@pytest.mark.asyncio
async def test_custom_prefix_is_respected(dm_log_path, generator, make_message):
    dispatcher = MessageDispatcher(SETTINGS, DMLogStore(dm_log_path), generator, command_prefix="$")

    assert await dispatcher.dispatch(make_message("$ping")) is DispatchOutcome.CUSTOM_COMMAND
    assert await dispatcher.dispatch(make_message("!ping")) is DispatchOutcome.NO_ACTION
