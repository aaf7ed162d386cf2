"""Declarative attribute schemas and the generic validator."""

from .attributes import ValidatedAttributes, to_plain
from .constraints import (
    Constraint,
    Each,
    Keys,
    Length,
    OneOf,
    Pattern,
    Predicate,
    Range,
    Values,
    is_interpolation,
    not_blank,
)
from .fields import MISSING, FieldSpec, ListOf, SchemaDefinition
from .invariants import (
    Invariant,
    at_least_one,
    between,
    exactly_one,
    forbidden_unless,
    invariant,
    is_set,
    mutually_exclusive,
    ordered,
    referenced_in,
    required_if,
    unique_in,
)
from .validator import normalize_keys, validate

__all__ = [
    "MISSING",
    "Constraint",
    "Each",
    "Keys",
    "FieldSpec",
    "Invariant",
    "Length",
    "ListOf",
    "OneOf",
    "Pattern",
    "Predicate",
    "Range",
    "SchemaDefinition",
    "ValidatedAttributes",
    "Values",
    "at_least_one",
    "between",
    "exactly_one",
    "forbidden_unless",
    "invariant",
    "is_interpolation",
    "is_set",
    "mutually_exclusive",
    "normalize_keys",
    "not_blank",
    "ordered",
    "referenced_in",
    "required_if",
    "to_plain",
    "unique_in",
    "validate",
]
