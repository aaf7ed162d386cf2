"""Unit tests for the generic schema validator and validated records."""

import logging
from enum import Enum

import pytest

from tfsynth.core.exceptions import (
    ConstraintViolation,
    CrossFieldInvariantViolation,
    MissingRequiredField,
)
from tfsynth.schema import (
    FieldSpec,
    Length,
    ListOf,
    Pattern,
    Range,
    SchemaDefinition,
    ValidatedAttributes,
    mutually_exclusive,
    ordered,
    validate,
)


class Key(Enum):
    NAME = "name"


class CounterAttributes(ValidatedAttributes):
    @property
    def span(self) -> int:
        return self.high - self.low


LIMITS = SchemaDefinition(
    "limits",
    fields=(
        FieldSpec("low", int, default=0),
        FieldSpec("high", int, default=10),
    ),
    invariants=(ordered("low", "high"),),
    attributes_class=CounterAttributes,
)

ITEM = SchemaDefinition(
    "item",
    fields=(FieldSpec("key", str, required=True), FieldSpec("value", str)),
)

SCHEMA = SchemaDefinition(
    "widget",
    fields=(
        FieldSpec(
            "name",
            str,
            required=True,
            strip=True,
            constraints=(Length(1, 8), Pattern(r"[a-z]+")),
        ),
        FieldSpec("mode", str, default="fast", choices=("fast", "slow")),
        FieldSpec("port", int, constraints=(Range(1, 65535),)),
        FieldSpec("labels", list[str], default_factory=list),
        FieldSpec("limits", LIMITS),
        FieldSpec("items", ListOf(ITEM), default_factory=list),
        FieldSpec("a", str),
        FieldSpec("b", str),
        FieldSpec("token", str, computed_default=lambda v: f"{v['name']}-token"),
    ),
    invariants=(mutually_exclusive("a", "b", message="a and b conflict"),),
)


class TestRequiredAndDefaults:
    def test_minimal_record_gets_defaults(self) -> None:
        attrs = validate(SCHEMA, {"name": "box"})
        assert attrs.name == "box"
        assert attrs.mode == "fast"
        assert attrs.labels == []
        assert attrs.port is None
        assert attrs.limits is None
        assert attrs["items"] == []
        assert attrs.token == "box-token"

    def test_missing_required(self) -> None:
        with pytest.raises(MissingRequiredField, match="Missing required field: 'name'"):
            validate(SCHEMA, {})

    def test_none_counts_as_missing(self) -> None:
        with pytest.raises(MissingRequiredField):
            validate(SCHEMA, {"name": None})

    def test_enum_keys_accepted(self) -> None:
        assert validate(SCHEMA, {Key.NAME: "box"}).name == "box"

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(ConstraintViolation, match="Expected a mapping"):
            validate(SCHEMA, ["name"])

    def test_default_containers_not_shared(self) -> None:
        first = validate(SCHEMA, {"name": "a"})
        second = validate(SCHEMA, {"name": "b"})
        assert first.labels is not second.labels


class TestFieldChecks:
    def test_strict_type_check(self) -> None:
        with pytest.raises(ConstraintViolation, match="expected int, got str"):
            validate(SCHEMA, {"name": "box", "port": "80"})

    def test_strip_before_constraints(self) -> None:
        assert validate(SCHEMA, {"name": "  box  "}).name == "box"

    def test_choices_checked_first(self) -> None:
        with pytest.raises(ConstraintViolation, match="Must be one of: fast, slow"):
            validate(SCHEMA, {"name": "box", "mode": "turbo"})

    def test_constraint_message_and_path(self) -> None:
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(SCHEMA, {"name": "box", "port": 0})
        assert exc_info.value.field_name == "port"
        assert exc_info.value.message == "port must be between 1 and 65535"

    def test_list_item_types(self) -> None:
        with pytest.raises(ConstraintViolation, match="Invalid type for labels"):
            validate(SCHEMA, {"name": "box", "labels": ["ok", 3]})

    def test_list_type_required(self) -> None:
        with pytest.raises(ConstraintViolation, match="expected a list"):
            validate(SCHEMA, {"name": "box", "items": {"key": "x"}})


class TestNestedRecords:
    def test_nested_record_defaults_and_properties(self) -> None:
        attrs = validate(SCHEMA, {"name": "box", "limits": {"high": 4}})
        assert isinstance(attrs.limits, CounterAttributes)
        assert attrs.limits.low == 0
        assert attrs.limits.span == 4

    def test_nested_invariant_reports_path(self) -> None:
        with pytest.raises(CrossFieldInvariantViolation) as exc_info:
            validate(SCHEMA, {"name": "box", "limits": {"low": 5, "high": 1}})
        assert exc_info.value.field_name == "limits"
        assert exc_info.value.invariant == "ordered(low, high)"

    def test_list_of_records_paths(self) -> None:
        with pytest.raises(MissingRequiredField, match=r"items\[1\]\.key"):
            validate(SCHEMA, {"name": "box", "items": [{"key": "a"}, {"value": "b"}]})


class TestInvariantsAndUnknownKeys:
    def test_invariant_violation(self) -> None:
        with pytest.raises(CrossFieldInvariantViolation, match="a and b conflict"):
            validate(SCHEMA, {"name": "box", "a": "1", "b": "2"})

    def test_unknown_keys_warned_and_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)
        attrs = validate(SCHEMA, {"name": "box", "colour": "red"})
        assert "colour" not in attrs
        assert any("Ignoring unknown attributes" in r.message for r in caplog.records)


class TestValidatedAttributes:
    def test_record_is_frozen(self) -> None:
        attrs = validate(SCHEMA, {"name": "box"})
        with pytest.raises(Exception):
            attrs.name = "other"

    def test_containers_read_from_record_are_copies(self) -> None:
        raw = {"name": "box", "labels": ["a"], "items": [{"key": "k"}]}
        attrs = validate(SCHEMA, raw)
        attrs.labels.append("b")
        attrs["items"].clear()
        attrs.get("labels").append("c")
        raw["labels"].append("d")
        assert attrs.labels == ["a"]
        assert attrs["items"][0].key == "k"

    def test_derived_properties_follow_validated_input(self) -> None:
        attrs = validate(SCHEMA, {"name": "box", "limits": {"low": 2, "high": 5}})
        limits = attrs.limits
        assert limits.span == 3
        with pytest.raises(Exception):
            limits.high = 50
        assert attrs.limits.span == 3

    def test_mapping_access(self) -> None:
        attrs = validate(SCHEMA, {"name": "box"})
        assert attrs["name"] == "box"
        assert attrs.get("missing", 1) == 1
        assert attrs.keys()[0] == "name"
        with pytest.raises(KeyError):
            attrs["missing"]

    def test_to_dict_converts_nested(self) -> None:
        attrs = validate(SCHEMA, {"name": "box", "items": [{"key": "k"}]})
        data = attrs.to_dict(exclude_none=True)
        assert data["items"] == [{"key": "k", "value": None}]
        assert "port" not in data

    def test_required_field_cannot_have_default(self) -> None:
        with pytest.raises(ValueError, match="cannot declare a default"):
            FieldSpec("x", str, required=True, default="y")

    def test_duplicate_field_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate field 'x'"):
            SchemaDefinition("s", fields=(FieldSpec("x"), FieldSpec("x")))
