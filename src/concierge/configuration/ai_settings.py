import os
from typing import Any, Dict

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL_NAME = "gemini-1.5-flash"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_FOOTER_TEXT = "Powered by Google's Gemini AI"


class AISettings:
    """Typed accessors for the ``ai_settings`` block of the app configuration.

    Every key is optional; each property falls back to a default.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def base_url(self) -> str:
        return str(self.data.get("base_url") or DEFAULT_BASE_URL)

    @property
    def model_name(self) -> str:
        return str(self.data.get("model_name") or DEFAULT_MODEL_NAME)

    @property
    def api_key_env(self) -> str:
        return str(self.data.get("api_key_env") or DEFAULT_API_KEY_ENV)

    @property
    def api_key(self) -> str | None:
        """Key from the config file, else from the environment variable named by ``api_key_env``."""
        value = self.data.get("api_key") or os.getenv(self.api_key_env)
        return str(value) if value else None

    @property
    def request_timeout_seconds(self) -> float:
        try:
            timeout = float(self.data.get("request_timeout_seconds", 30.0))
        except (TypeError, ValueError):
            return 30.0
        return timeout if timeout > 0 else 30.0

    @property
    def system_prompt(self) -> str:
        return str(self.data.get("system_prompt") or "")

    @property
    def footer_text(self) -> str:
        return str(self.data.get("footer_text") or DEFAULT_FOOTER_TEXT)
