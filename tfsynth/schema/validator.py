"""
Generic schema validator.

Turns a raw attribute mapping into a :class:`ValidatedAttributes` record by
walking a :class:`SchemaDefinition`: required-field check, strict type check,
nested validation, constraints, defaults, then cross-field invariants.
"""

import copy
import logging
from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tfsynth.core.exceptions import (
    ConstraintViolation,
    CrossFieldInvariantViolation,
    MissingRequiredField,
)

from .attributes import ValidatedAttributes
from .constraints import OneOf
from .fields import FieldSpec, ListOf, SchemaDefinition

logger = logging.getLogger(__name__)


def normalize_key(key: Any) -> str:
    """Map string-like keys (str or Enum members) onto plain strings."""
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def normalize_keys(value: Any) -> Any:
    """Recursively normalize mapping keys inside nested mappings and lists."""
    if isinstance(value, ValidatedAttributes):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {normalize_key(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_keys(v) for v in value]
    return value


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or str(annotation)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def validate(
    schema: SchemaDefinition, raw: Mapping[str, Any] | None, path: str = ""
) -> ValidatedAttributes:
    """
    Validate a raw attribute mapping against a schema.

    Args:
        schema: The schema describing the resource kind
        raw: Mapping with string or Enum keys, nested arbitrarily
        path: Dotted prefix used in error messages for nested records

    Returns:
        The immutable validated record, with defaults applied

    Raises:
        MissingRequiredField: A required attribute is absent
        ConstraintViolation: A present value is malformed
        CrossFieldInvariantViolation: Valid fields conflict with each other
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConstraintViolation(
            path or schema.name,
            f"Expected a mapping for {path or schema.name}, "
            f"got {type(raw).__name__}",
            schema=schema.name,
            actual_value=raw,
        )

    data = normalize_keys(raw)

    unknown = [key for key in data if key not in schema]
    if unknown:
        logger.warning(
            "Ignoring unknown attributes for %s: %s",
            path or schema.name,
            ", ".join(unknown),
        )

    for name in schema.required_fields:
        if data.get(name) is None:
            raise MissingRequiredField(_join(path, name), schema=schema.name)

    values: dict[str, Any] = {}
    for spec in schema:
        field_path = _join(path, spec.name)
        value = data.get(spec.name)
        if value is None:
            values[spec.name] = spec.default_value()
            continue
        values[spec.name] = _validate_field(schema, spec, value, field_path)

    for spec in schema:
        if spec.computed_default is not None and values[spec.name] is None:
            values[spec.name] = spec.computed_default(values)

    for rule in schema.invariants:
        failure = rule.check(values)
        if failure:
            logger.debug(
                "Invariant '%s' failed for %s: %s",
                rule.name,
                path or schema.name,
                failure,
            )
            raise CrossFieldInvariantViolation(
                failure,
                invariant=rule.name,
                schema=schema.name,
                field_name=path or None,
            )

    return schema.attributes_class(**copy.deepcopy(values))


def _validate_field(
    schema: SchemaDefinition, spec: FieldSpec, value: Any, field_path: str
) -> Any:
    if isinstance(spec.type, SchemaDefinition):
        return validate(spec.type, value, field_path)

    if isinstance(spec.type, ListOf):
        value = _validate_list(schema, spec.type, value, field_path)
    else:
        value = _check_type(schema, spec.type, value, field_path)

    if spec.strip and isinstance(value, str):
        value = value.strip()

    checks = list(spec.constraints)
    if spec.choices is not None:
        checks.insert(0, OneOf(tuple(spec.choices)))

    for constraint in checks:
        failure = constraint.check(field_path, value)
        if failure:
            raise ConstraintViolation(
                field_path, failure, schema=schema.name, actual_value=value
            )
    return value


def _validate_list(
    schema: SchemaDefinition, list_type: ListOf, value: Any, field_path: str
) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise ConstraintViolation(
            field_path,
            f"Invalid type for {field_path}: expected a list, "
            f"got {type(value).__name__}",
            schema=schema.name,
            actual_value=value,
        )
    items = []
    for index, item in enumerate(value):
        item_path = f"{field_path}[{index}]"
        if isinstance(list_type.item, SchemaDefinition):
            items.append(validate(list_type.item, item, item_path))
        else:
            items.append(_check_type(schema, list_type.item, item, item_path))
    return items


def _check_type(
    schema: SchemaDefinition, annotation: Any, value: Any, field_path: str
) -> Any:
    if annotation is Any:
        return value
    try:
        return _adapter(annotation).validate_python(value, strict=True)
    except PydanticValidationError as e:
        raise ConstraintViolation(
            field_path,
            f"Invalid type for {field_path}: expected {_type_name(annotation)}, "
            f"got {type(value).__name__}",
            schema=schema.name,
            actual_value=value,
        ) from e
