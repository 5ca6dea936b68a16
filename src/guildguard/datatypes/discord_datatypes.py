"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but the tenant snapshot stores them as
strings (JSON object keys are always strings). These wrappers keep one
canonical form so ``GuildID(123)``, ``GuildID("123")`` and ``GuildID(" 123 ")``
compare and hash equal, and so a guild id can never be confused with a user id
in a signature.
"""

from __future__ import annotations

from typing import Union


class Snowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Attributes:
        _value (str): The snowflake ID stored as a string for JSON parity.

    Example:
        >>> uid = UserID.from_int(123456789012345678)
        >>> uid.to_int()
        123456789012345678
        >>> str(uid)
        '123456789012345678'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another snowflake wrapper.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            if value < 0:
                raise ValueError(f"Snowflake IDs are non-negative: {value}")
            self._value = str(value)
        elif isinstance(value, str):
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    @classmethod
    def from_model(cls, model):
        """Create an ID from any py-cord model exposing ``.id``."""
        return cls(model.id)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __int__(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    """Snowflake of a guild (tenant identity)."""

    __slots__ = ()


class UserID(Snowflake):
    """Snowflake of a user or member."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Snowflake of a text, voice or category channel."""

    __slots__ = ()


class RoleID(Snowflake):
    """Snowflake of a guild role."""

    __slots__ = ()
