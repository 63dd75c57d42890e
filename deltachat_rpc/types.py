"""Identifier, optional-value and timestamp types shared by the whole client.

Identifiers are plain integers issued by the core server; ``NewType`` keeps
them distinct for type checkers without any runtime cost. ``Option`` is an
explicit sum type so that a JSON ``null`` never collapses into the zero value
of the wrapped type.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Generic, NewType, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic_core import core_schema

from deltachat_rpc.utils.errors import OptionUnwrapError

AccountId = NewType("AccountId", int)
ChatId = NewType("ChatId", int)
MsgId = NewType("MsgId", int)
ContactId = NewType("ContactId", int)

T = TypeVar("T")
U = TypeVar("U")


class Option(Generic[T]):
    """A value that is either ``Some(value)`` or ``None``."""

    __slots__ = ("_value", "_is_some")

    def __init__(self, value: Any = None, is_some: bool = False):
        self._value = value
        self._is_some = is_some

    @classmethod
    def some(cls, value: T) -> "Option[T]":
        return cls(value, True)

    @classmethod
    def none(cls) -> "Option[T]":
        return cls(None, False)

    @classmethod
    def from_wire(
        cls, value: Any, parse: Optional[Callable[[Any], T]] = None
    ) -> "Option[T]":
        """Build an Option from a JSON value, ``null`` meaning None."""
        if value is None:
            return cls.none()
        return cls.some(parse(value) if parse else value)

    def is_some(self) -> bool:
        return self._is_some

    def is_none(self) -> bool:
        return not self._is_some

    def unwrap(self) -> T:
        if not self._is_some:
            raise OptionUnwrapError()
        return self._value

    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_some else default

    def map(self, func: Callable[[T], U]) -> "Option[U]":
        if self._is_some:
            return Option.some(func(self._value))
        return Option.none()

    def to_wire(self) -> Any:
        return to_wire(self._value) if self._is_some else None

    def __bool__(self) -> bool:
        return self._is_some

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Option):
            return NotImplemented
        return self._is_some == other._is_some and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_some, self._value))

    def __repr__(self) -> str:
        return f"Some({self._value!r})" if self._is_some else "None_"


def some(value: T) -> Option[T]:
    """Shorthand for ``Option.some(value)``."""
    return Option.some(value)


def none() -> Option[Any]:
    """Shorthand for ``Option.none()``."""
    return Option.none()


def as_option(value: Any) -> Option[Any]:
    """Wrap a plain value, passing Options through unchanged."""
    if isinstance(value, Option):
        return value
    return Option.from_wire(value)


# Parameters accepting an Option, a plain string or None.
OptionalStr = Union[Option[str], str, None]


class Timestamp(int):
    """Wall-clock instant carried on the wire as Unix seconds."""

    @classmethod
    def from_wire(cls, value: int) -> "Timestamp":
        return cls(int(value))

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        return cls(int(value.timestamp()))

    def to_wire(self) -> int:
        return int(self)

    @property
    def datetime(self) -> datetime:
        return datetime.fromtimestamp(int(self), tz=timezone.utc)

    def __repr__(self) -> str:
        return f"Timestamp({int(self)})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        return core_schema.no_info_after_validator_function(
            cls.from_wire,
            core_schema.int_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )


def to_wire(value: Any) -> Any:
    """Convert client-side values into JSON-serialisable data."""

    if isinstance(value, Option):
        return value.to_wire()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, Timestamp):
        return int(value)
    if isinstance(value, dict):
        return {str(to_wire(k)): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(v) for v in value]

    return value
