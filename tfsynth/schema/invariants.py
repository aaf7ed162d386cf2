"""
Cross-field invariants.

An invariant is a named check over the full mapping of validated values.
Invariants run in declaration order after every field has passed its own
checks; the first failing one stops validation.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

Values = Mapping[str, Any]
MessageFn = str | Callable[[Values], str]


def is_set(value: Any) -> bool:
    """A value counts as set when it is not None and not an empty container."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return False
    return True


def _message(message: MessageFn, values: Values) -> str:
    return message(values) if callable(message) else message


@dataclass(frozen=True)
class Invariant:
    """Named check returning None when satisfied or a failure message."""

    name: str
    check: Callable[[Values], str | None]
    fields: tuple[str, ...] = ()


def invariant(
    name: str,
    predicate: Callable[[Values], bool],
    message: MessageFn,
    fields: Iterable[str] = (),
) -> Invariant:
    """Build an invariant from a predicate and the message used on failure."""

    def check(values: Values) -> str | None:
        if predicate(values):
            return None
        return _message(message, values)

    return Invariant(name, check, tuple(fields))


def mutually_exclusive(*names: str, message: MessageFn | None = None) -> Invariant:
    """At most one of the named fields may be set."""
    text = message or f"Cannot specify more than one of: {', '.join(names)}"
    return invariant(
        f"mutually_exclusive({', '.join(names)})",
        lambda values: sum(is_set(values.get(n)) for n in names) <= 1,
        text,
        names,
    )


def at_least_one(*names: str, message: MessageFn | None = None) -> Invariant:
    """At least one of the named fields must be set."""
    text = message or f"Must specify at least one of: {', '.join(names)}"
    return invariant(
        f"at_least_one({', '.join(names)})",
        lambda values: any(is_set(values.get(n)) for n in names),
        text,
        names,
    )


def exactly_one(
    *names: str,
    missing_message: MessageFn | None = None,
    multiple_message: MessageFn | None = None,
) -> Invariant:
    """Exactly one of the named fields must be set."""
    joined = ", ".join(names)

    def check(values: Values) -> str | None:
        count = sum(is_set(values.get(n)) for n in names)
        if count == 0:
            return _message(missing_message or f"Must specify one of: {joined}", values)
        if count > 1:
            return _message(
                multiple_message or f"Can only specify one of: {joined}", values
            )
        return None

    return Invariant(f"exactly_one({joined})", check, names)


def required_if(
    name: str,
    when: str,
    equals: Any,
    message: MessageFn | None = None,
) -> Invariant:
    """Field ``name`` must be set whenever field ``when`` equals ``equals``."""
    accepted = equals if isinstance(equals, (set, frozenset, tuple)) else (equals,)
    text = message or (lambda v: f"{name} is required when {when} is {v.get(when)}")
    return invariant(
        f"required_if({name}, {when})",
        lambda values: values.get(when) not in accepted or is_set(values.get(name)),
        text,
        (name, when),
    )


def forbidden_unless(
    name: str,
    when: str,
    equals: Any,
    message: MessageFn | None = None,
) -> Invariant:
    """Field ``name`` may only be set when field ``when`` equals ``equals``."""
    accepted = equals if isinstance(equals, (set, frozenset, tuple)) else (equals,)
    text = message or f"{name} can only be specified when {when} is {equals}"
    return invariant(
        f"forbidden_unless({name}, {when})",
        lambda values: values.get(when) in accepted or not is_set(values.get(name)),
        text,
        (name, when),
    )


def ordered(
    lower: str,
    upper: str,
    message: MessageFn | None = None,
    strict: bool = False,
) -> Invariant:
    """``lower`` must not exceed ``upper`` (strictly below when ``strict``)."""

    def holds(values: Values) -> bool:
        low, high = values.get(lower), values.get(upper)
        if low is None or high is None:
            return True
        return low < high if strict else low <= high

    text = message or (
        lambda v: f"{lower} ({v.get(lower)}) cannot be greater than {upper} ({v.get(upper)})"
    )
    return invariant(f"ordered({lower}, {upper})", holds, text, (lower, upper))


def between(
    name: str,
    lower: str,
    upper: str,
    message: MessageFn | None = None,
) -> Invariant:
    """An optional field must lie within two sibling fields, inclusive."""

    def holds(values: Values) -> bool:
        value = values.get(name)
        if value is None:
            return True
        return values.get(lower) <= value <= values.get(upper)

    text = message or (
        lambda v: (
            f"{name} ({v.get(name)}) must be between {lower} ({v.get(lower)}) "
            f"and {upper} ({v.get(upper)})"
        )
    )
    return invariant(f"between({name})", holds, text, (name, lower, upper))


def unique_in(
    name: str,
    key: Callable[[Any], Any] | None = None,
    message: MessageFn | None = None,
) -> Invariant:
    """Elements of a list field (or a key extracted from them) are unique."""

    def holds(values: Values) -> bool:
        items = values.get(name) or []
        seen = [key(item) if key else item for item in items]
        return len(seen) == len(set(seen))

    text = message or f"{name} entries must be unique"
    return invariant(f"unique_in({name})", holds, text, (name,))


def referenced_in(
    name: str,
    references: Callable[[Values], Iterable[Any]],
    pool: Callable[[Values], Iterable[Any]],
    message: Callable[[Any], str],
) -> Invariant:
    """
    Every value extracted by ``references`` must appear in ``pool``.

    The message callable receives the first dangling value.
    """

    def check(values: Values) -> str | None:
        available = set(pool(values))
        for reference in references(values):
            if reference not in available:
                return message(reference)
        return None

    return Invariant(f"referenced_in({name})", check, (name,))
