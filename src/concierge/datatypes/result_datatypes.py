"""
Result types returned across the bot's failure boundaries.

External calls (file writes, the AI backend, Discord moderation endpoints)
report failure through these values instead of raising, so the dispatch
pipeline can pick a user-facing reply without catching exceptions itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DispatchOutcome(Enum):
    """Which stage of the dispatch pipeline handled a message."""

    IGNORED = "ignored"
    DM_LOGGED = "dm_logged"
    MODERATION = "moderation"
    CUSTOM_COMMAND = "custom_command"
    DISCORD_LINK = "discord_link"
    CHANNEL_REDIRECT = "channel_redirect"
    AI_ANSWER = "ai_answer"
    AI_APOLOGY = "ai_apology"
    NO_ACTION = "no_action"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AppendResult:
    """Outcome of appending one entry to the DM log."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "AppendResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "AppendResult":
        return cls(success=False, error=error)


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of one answer-generator call.

    Attributes:
        success: True when ``text`` holds a usable answer.
        text: Generated answer (empty on failure).
        error: Short description of the failure, if any.
    """

    success: bool
    text: str = ""
    error: str | None = None

    @classmethod
    def ok(cls, text: str) -> "GenerationResult":
        return cls(success=True, text=text)

    @classmethod
    def failed(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True, slots=True)
class ModerationResult:
    """Outcome of a ban or kick request against the gateway."""

    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class MembershipOutcome:
    """What the member-join handler managed to do."""

    welcomed: bool = False
    role_granted: bool = False
