"""
Primitive constraints applied to individual field values.

Each constraint exposes ``check(field, value)`` returning ``None`` when the
value is acceptable, or a human-readable failure message otherwise.
"""

import re
from collections.abc import Callable, Iterable, Mapping, Sized
from dataclasses import dataclass, field
from typing import Any, Protocol

Message = str | Callable[[Any], str] | None


def is_interpolation(value: Any) -> bool:
    """Return True if value is (or contains) a Terraform interpolation."""
    return isinstance(value, str) and "${" in value


def _render(message: Message, value: Any, fallback: str) -> str:
    if message is None:
        return fallback
    if callable(message):
        return message(value)
    return message


class Constraint(Protocol):
    """Contract shared by every field constraint."""

    def check(self, field_name: str, value: Any) -> str | None:
        """
        Check a single value.

        Args:
            field_name: Dotted path of the field being validated
            value: The already type-checked value

        Returns:
            None when valid, otherwise the failure message
        """
        ...


@dataclass(frozen=True)
class Pattern:
    """Regular expression the whole string must match."""

    regex: str
    message: Message = None
    allow_interpolation: bool = False
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.regex))

    def check(self, field_name: str, value: Any) -> str | None:
        if value is None:
            return None
        if self.allow_interpolation and is_interpolation(value):
            return None
        if self._compiled.fullmatch(str(value)):
            return None
        return _render(
            self.message, value, f"Invalid {field_name} format: '{value}'"
        )


@dataclass(frozen=True)
class Length:
    """Bounds on len() of strings, lists and mappings."""

    min: int | None = None
    max: int | None = None
    message: Message = None

    def check(self, field_name: str, value: Any) -> str | None:
        if not isinstance(value, Sized):
            return None
        size = len(value)
        unit = "characters" if isinstance(value, str) else "items"
        if self.min is not None and size < self.min:
            if self.max is not None:
                fallback = (
                    f"{field_name} must be between {self.min} and "
                    f"{self.max} {unit}"
                )
            else:
                fallback = f"{field_name} must have at least {self.min} {unit}"
            return _render(self.message, value, fallback)
        if self.max is not None and size > self.max:
            if self.min is not None and self.min > 0:
                fallback = (
                    f"{field_name} must be between {self.min} and "
                    f"{self.max} {unit}"
                )
            else:
                fallback = f"{field_name} cannot exceed {self.max} {unit}"
            return _render(self.message, value, fallback)
        return None


@dataclass(frozen=True)
class Range:
    """Inclusive numeric bounds."""

    min: float | None = None
    max: float | None = None
    message: Message = None

    def check(self, field_name: str, value: Any) -> str | None:
        if value is None or isinstance(value, bool):
            return None
        too_low = self.min is not None and value < self.min
        too_high = self.max is not None and value > self.max
        if not (too_low or too_high):
            return None
        if self.min is not None and self.max is not None:
            fallback = f"{field_name} must be between {self.min} and {self.max}"
        elif too_low:
            fallback = f"{field_name} must be at least {self.min}"
        else:
            fallback = f"{field_name} cannot exceed {self.max}"
        return _render(self.message, value, fallback)


@dataclass(frozen=True)
class OneOf:
    """Set membership; lists are checked element by element."""

    choices: tuple[Any, ...]
    message: Message = None

    def check(self, field_name: str, value: Any) -> str | None:
        candidates = value if isinstance(value, list) else [value]
        for candidate in candidates:
            if candidate not in self.choices:
                allowed = ", ".join(str(c) for c in self.choices)
                return _render(
                    self.message,
                    candidate,
                    f"Invalid {field_name}: '{candidate}'. Must be one of: {allowed}",
                )
        return None


@dataclass(frozen=True)
class Predicate:
    """Arbitrary predicate over the value."""

    fn: Callable[[Any], bool]
    message: Message

    def check(self, field_name: str, value: Any) -> str | None:
        if value is None or self.fn(value):
            return None
        return _render(self.message, value, f"Invalid value for {field_name}")


@dataclass(frozen=True)
class Each:
    """Apply a constraint to every element of a list value."""

    constraint: Constraint

    def check(self, field_name: str, value: Any) -> str | None:
        if not isinstance(value, Iterable) or isinstance(value, (str, dict)):
            return None
        for index, item in enumerate(value):
            failure = self.constraint.check(f"{field_name}[{index}]", item)
            if failure:
                return failure
        return None


def not_blank(message: str) -> Predicate:
    """Reject strings that are empty once surrounding whitespace is removed."""
    return Predicate(lambda value: bool(str(value).strip()), message)


@dataclass(frozen=True)
class Keys:
    """Apply a constraint to every key of a mapping value."""

    constraint: Constraint

    def check(self, field_name: str, value: Any) -> str | None:
        if not isinstance(value, Mapping):
            return None
        for key in value:
            failure = self.constraint.check(f"{field_name} key", key)
            if failure:
                return failure
        return None


@dataclass(frozen=True)
class Values:
    """Apply a constraint to every value of a mapping value."""

    constraint: Constraint

    def check(self, field_name: str, value: Any) -> str | None:
        if not isinstance(value, Mapping):
            return None
        for key, item in value.items():
            failure = self.constraint.check(f"{field_name}[{key}]", item)
            if failure:
                return failure
        return None
