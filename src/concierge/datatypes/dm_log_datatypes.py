"""
Records stored in the direct-message audit log.

Each direct message sent to the bot becomes one :class:`DMLogEntry`. The log
file is a JSON array of ``{"timestamp", "author", "content"}`` objects, the
same shape the dashboard serves from ``GET /api/dms``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Mapping


def utc_timestamp(moment: datetime.datetime | None = None) -> str:
    """Format ``moment`` (default: now) as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    moment = moment or datetime.datetime.now(datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class DMLogEntry:
    """One logged direct message.

    Attributes:
        timestamp: ISO-8601 UTC time the message was received.
        author: Display identifier of the sender (``str(discord.User)``).
        content: Original message text.
    """

    timestamp: str
    author: str
    content: str

    @classmethod
    def create(cls, author: str, content: str, moment: datetime.datetime | None = None) -> "DMLogEntry":
        return cls(timestamp=utc_timestamp(moment), author=author, content=content)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DMLogEntry":
        return cls(
            timestamp=str(data.get("timestamp", "")),
            author=str(data.get("author", "")),
            content=str(data.get("content", "")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"timestamp": self.timestamp, "author": self.author, "content": self.content}
