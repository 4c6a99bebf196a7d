"""
Behavioral settings for the bot, loaded once from ``settings.json``.

The file is owned by the dashboard, which writes it with camelCase keys.
The bot reads it a single time at startup into an immutable :class:`Settings`
object that is handed to every component that needs it. A file that cannot
be read or does not describe valid settings raises :class:`SettingsError`;
there is no partial or default fallback.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

from jsonschema import Draft7Validator, ValidationError

from concierge.util.logger import get_logger

logger = get_logger("bot_settings")


VALID_STATUSES = ("online", "idle", "dnd", "invisible")

_optional_string = {"type": ["string", "null"]}

settings_schema = {
    "type": "object",
    "properties": {
        "status": _optional_string,
        "activity": _optional_string,
        "avatarURL": _optional_string,
        "welcomeMessage": _optional_string,
        "autoRoleId": {
            "anyOf": [
                {"type": "integer"},
                {"type": "string", "pattern": r"^\s*\d*\s*$"},
                {"type": "null"},
            ]
        },
        "discordLink": _optional_string,
        "channelKeywords": {
            "type": ["object", "null"],
            "additionalProperties": {"type": ["string", "integer"]},
        },
        "customCommands": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "command": {"type": "string"},
                    "response": {"type": "string"},
                },
                "required": ["command", "response"],
            },
        },
    },
}
"""JSON schema of ``settings.json``; unknown keys are kept for the dashboard."""


_settings_validator = Draft7Validator(settings_schema)


class SettingsError(Exception):
    """Raised when the settings file is missing, unreadable or invalid."""


@dataclass(frozen=True, slots=True)
class CustomCommand:
    """A configured ``!command`` and the text it replies with."""

    command: str
    response: str


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable snapshot of ``settings.json``.

    Attributes:
        status: Presence status (online, idle, dnd, invisible).
        activity: Text shown as the bot's "Playing" activity.
        avatar_url: Optional URL of an image to use as the bot avatar.
        welcome_message: Template sent to new members; ``{user}`` is replaced by a mention.
        auto_role_id: Optional role granted to new members.
        discord_link: Invite link sent when someone asks for the "discord link".
        channel_keywords: Ordered ``(keyword, channel_id)`` pairs; first match wins.
        custom_commands: Ordered custom commands; first match wins.
    """

    status: str = "online"
    activity: str = ""
    avatar_url: str | None = None
    welcome_message: str = ""
    auto_role_id: int | None = None
    discord_link: str = ""
    channel_keywords: Tuple[Tuple[str, str], ...] = ()
    custom_commands: Tuple[CustomCommand, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> "Settings":
        """Validate a decoded settings document and build a :class:`Settings`.

        Raises:
            SettingsError: If the document does not match ``settings_schema``.
        """
        try:
            _settings_validator.validate(data)
        except ValidationError as exc:
            location = "/".join(str(part) for part in exc.absolute_path) or "settings"
            raise SettingsError(f"{location}: {exc.message}") from exc

        status = data.get("status") or "online"
        if status not in VALID_STATUSES:
            logger.warning("[SETTINGS] Unknown status %r; falling back to 'online'", status)
            status = "online"

        return cls(
            status=status,
            activity=data.get("activity") or "",
            avatar_url=data.get("avatarURL") or None,
            welcome_message=data.get("welcomeMessage") or "",
            auto_role_id=_parse_snowflake(data.get("autoRoleId")),
            discord_link=data.get("discordLink") or "",
            channel_keywords=_parse_channel_keywords(data.get("channelKeywords")),
            custom_commands=tuple(
                CustomCommand(command=item["command"], response=item["response"])
                for item in data.get("customCommands") or ()
            ),
        )

    def find_custom_command(self, name: str) -> CustomCommand | None:
        """Return the first custom command named exactly ``name``."""
        for custom_command in self.custom_commands:
            if custom_command.command == name:
                return custom_command
        return None

    def match_channel_keyword(self, content_lower: str) -> str | None:
        """Return the channel of the first keyword found in ``content_lower``."""
        for keyword, channel_id in self.channel_keywords:
            if keyword in content_lower:
                return channel_id
        return None


def load_settings(path: Path) -> Settings:
    """Read and validate the settings file at ``path``.

    Raises:
        SettingsError: If the file is missing, is not valid JSON or fails validation.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SettingsError(f"cannot read settings file {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"settings file {path} is not valid JSON: {exc}") from exc

    settings = Settings.from_mapping(data)
    logger.info(
        "[SETTINGS] Loaded %s (%d channel keywords, %d custom commands)",
        path,
        len(settings.channel_keywords),
        len(settings.custom_commands),
    )
    return settings


# --------------------------
# Normalisation
# --------------------------
def _parse_snowflake(value: Any) -> int | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return int(value)
    text = value.strip()
    return int(text) if text else None


def _parse_channel_keywords(value: Mapping[str, Any] | None) -> Tuple[Tuple[str, str], ...]:
    pairs = []
    for keyword, channel_id in (value or {}).items():
        keyword_lower = keyword.lower()
        if not keyword_lower:
            logger.warning("[SETTINGS] Ignoring empty channel keyword")
            continue
        pairs.append((keyword_lower, str(channel_id)))
    return tuple(pairs)
