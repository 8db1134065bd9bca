"""
Id wrappers for guilds, channels and users.

The configuration document keys everything by the decimal string of the
snowflake while py-cord hands out ints. A wrapper normalizes both to the
string form and compares equal to either. It hashes like the string, so a
map keyed by wrappers can be indexed with a wrapper or the decimal string;
a raw int must be wrapped first (``GuildID(guild.id)``), which is what the
approval gate, the scheduler and the configuration store do on every call.
"""

from __future__ import annotations

from typing import Union

SnowflakeLike = Union[str, int, "Snowflake"]


class Snowflake:
    """Normalized Discord id.

    >>> GuildID(42) == "42" == GuildID(" 42 ")
    True
    """

    __slots__ = ("_value",)

    def __init__(self, value: SnowflakeLike) -> None:
        # bool is an int subclass; True must not become guild "1"
        if isinstance(value, bool) or not isinstance(value, (str, int, Snowflake)):
            raise ValueError(f"{type(self).__name__} needs a str or int id, got {value!r}")
        if isinstance(value, Snowflake):
            normalized = value._value
        else:
            normalized = str(int(value.strip() if isinstance(value, str) else value))
        self._value = normalized

    def to_int(self) -> int:
        """Integer form for py-cord calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(other) is type(self) and other._value == self._value
        if isinstance(other, bool):
            return False
        if isinstance(other, (int, str)):
            return str(other) == self._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    __slots__ = ()


class ChannelID(Snowflake):
    __slots__ = ()


class UserID(Snowflake):
    __slots__ = ()
