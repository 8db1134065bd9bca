import os
from typing import Any, Dict


class AISettings:
    """Helper exposing typed accessors for the language-model endpoint.

    Provides a minimal, explicit API (`get`, `as_dict`, and convenience
    properties) over the raw ``ai_settings`` mapping.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping."""
        return self.data

    @property
    def base_url(self) -> str | None:
        val = self.data.get("base_url")
        return str(val) if val else None

    @property
    def api_key(self) -> str:
        # The environment wins so the key can stay out of the YAML file
        return os.getenv("OPENAI_API_KEY") or str(self.data.get("api_key") or "EMPTY")

    @property
    def model_name(self) -> str:
        return str(self.data.get("model_name") or "gpt-4o-mini")

    @property
    def request_timeout(self) -> float:
        return float(self.data.get("request_timeout", 120.0))


class ReformSettings:
    """Typed accessors for the ``reform`` and ``limits`` sections."""

    def __init__(self, reform: Dict[str, Any] | None = None, limits: Dict[str, Any] | None = None) -> None:
        self.reform: Dict[str, Any] = reform or {}
        self.limits: Dict[str, Any] = limits or {}

    @property
    def approval_timeout_seconds(self) -> float:
        return float(self.reform.get("approval_timeout_seconds", 60.0))

    @property
    def stagger_interval_seconds(self) -> float:
        return float(self.reform.get("stagger_interval_seconds", 180.0))

    @property
    def status_channel_name(self) -> str:
        return str(self.reform.get("status_channel_name") or "reform-status")

    @property
    def status_channel_delete_delay_seconds(self) -> float:
        return float(self.reform.get("status_channel_delete_delay_seconds", 5.0))

    @property
    def max_suggestions(self) -> int:
        return int(self.limits.get("max_suggestions", 20))

    @property
    def max_whitelisted_channels(self) -> int:
        return int(self.limits.get("max_whitelisted_channels", 10))

    @property
    def max_context_length(self) -> int:
        return int(self.limits.get("max_context_length", 200))

    @property
    def history_message_limit(self) -> int:
        return int(self.limits.get("history_message_limit", 50))
