from typing import Any, Dict


class SectionSettings:
    """Typed view over one mapping section of the application configuration.

    Only exposes ``get`` and ``as_dict``; the subclasses add properties for
    the fields their handler actually reads. Snowflake fields (channel and
    role IDs) are parsed leniently: anything that is not a positive integer
    reads as None, which the handlers treat as "not configured".

    Attributes:
        data (Dict[str, Any]): The raw section mapping, or an empty dict when
            the section is missing or not a mapping.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping."""
        return self.data

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", False))

    def _snowflake(self, key: str) -> int | None:
        value = self.data.get(key)
        try:
            snowflake = int(value)
        except (TypeError, ValueError):
            return None
        return snowflake if snowflake > 0 else None


class WelcomeSettings(SectionSettings):
    """Settings for the member welcome handler."""

    @property
    def channel_id(self) -> int | None:
        return self._snowflake("channel_id")

    @property
    def custom_message(self) -> str:
        return str(self.data.get("custom_message") or "")

    @property
    def send_embed(self) -> bool:
        return bool(self.data.get("send_embed", True))


class AutoRoleSettings(SectionSettings):
    """Settings for the join auto-role handler."""

    @property
    def role_id(self) -> int | None:
        return self._snowflake("role_id")
