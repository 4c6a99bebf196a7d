from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from concierge.configuration.bot_settings import Settings
from concierge.membership.welcome_handler import WelcomeHandler


def make_member(*, system_channel=True, role=True):
    channel = SimpleNamespace(id=2, send=AsyncMock()) if system_channel else None
    role_obj = SimpleNamespace(id=555, name="Newcomer") if role else None
    guild = SimpleNamespace(id=1, system_channel=channel, get_role=MagicMock(return_value=role_obj))
    return SimpleNamespace(id=5, mention="<@5>", guild=guild, add_roles=AsyncMock())


FULL_SETTINGS = Settings.from_mapping({"welcomeMessage": "Welcome {user}! Enjoy, {user}.", "autoRoleId": "555"})


@pytest.mark.asyncio
async def test_member_join_welcomes_and_grants_role():
    member = make_member()

    outcome = await WelcomeHandler(FULL_SETTINGS).handle_member_join(member)

    assert outcome.welcomed and outcome.role_granted
    member.guild.system_channel.send.assert_awaited_once_with("Welcome <@5>! Enjoy, {user}.")
    member.guild.get_role.assert_called_once_with(555)
    role = member.guild.get_role.return_value
    member.add_roles.assert_awaited_once()
    assert member.add_roles.await_args.args == (role,)


@pytest.mark.asyncio
async def test_no_system_channel_skips_welcome_but_grants_role():
    member = make_member(system_channel=False)

    outcome = await WelcomeHandler(FULL_SETTINGS).handle_member_join(member)

    assert not outcome.welcomed
    assert outcome.role_granted


@pytest.mark.asyncio
async def test_nothing_configured_does_nothing():
    member = make_member()

    outcome = await WelcomeHandler(Settings.from_mapping({})).handle_member_join(member)

    assert not outcome.welcomed and not outcome.role_granted
    member.guild.system_channel.send.assert_not_awaited()
    member.guild.get_role.assert_not_called()
    member.add_roles.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_role_is_skipped():
    member = make_member(role=False)

    outcome = await WelcomeHandler(FULL_SETTINGS).handle_member_join(member)

    assert outcome.welcomed
    assert not outcome.role_granted
    member.add_roles.assert_not_awaited()


@pytest.mark.asyncio
async def test_role_failure_does_not_affect_welcome():
    member = make_member()
    member.add_roles.side_effect = RuntimeError("Missing Permissions")

    outcome = await WelcomeHandler(FULL_SETTINGS).handle_member_join(member)

    assert outcome.welcomed
    assert not outcome.role_granted


@pytest.mark.asyncio
async def test_welcome_failure_does_not_affect_role():
    member = make_member()
    member.guild.system_channel.send.side_effect = RuntimeError("Cannot send messages")

    outcome = await WelcomeHandler(FULL_SETTINGS).handle_member_join(member)

    assert not outcome.welcomed
    assert outcome.role_granted
