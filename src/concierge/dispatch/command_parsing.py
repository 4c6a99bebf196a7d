"""Parsing of prefixed text commands such as ``!ban @user spamming``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


DEFAULT_REASON = "No reason provided"


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    """A prefixed message split into a lowercased name and its arguments."""

    name: str
    args: List[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        """Text after the first argument (the target mention), or the default reason."""
        return " ".join(self.args[1:]) or DEFAULT_REASON


def parse_command(content: str, prefix: str = "!") -> ParsedCommand | None:
    """Split ``content`` into a command if it starts with ``prefix``.

    Returns ``None`` for messages without the prefix or with nothing after it.

    >>> parse_command("!Kick <@42> too   loud")
    ParsedCommand(name='kick', args=['<@42>', 'too', 'loud'])
    """
    if not prefix or not content.startswith(prefix):
        return None

    tokens = content[len(prefix):].split()
    if not tokens:
        return None

    return ParsedCommand(name=tokens[0].lower(), args=tokens[1:])
