"""Unit tests for BaseResource and record rendering."""

import logging

import pytest

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.core.exceptions import ConstraintViolation
from tfsynth.schema import FieldSpec, ListOf, SchemaDefinition, validate
from tfsynth.synthesis.document import SynthesisDocument

# -------------------- Fakes / helpers --------------------

SETTINGS = SchemaDefinition(
    "settings",
    fields=(
        FieldSpec("enabled", bool, default=False, emit="always"),
        FieldSpec("note", str),
    ),
)

RULE = SchemaDefinition("rule", fields=(FieldSpec("port", int, required=True),))

WIDGET = SchemaDefinition(
    "aws_widget",
    fields=(
        FieldSpec("name", str, required=True),
        FieldSpec("size", str, default="small", emit="non_default"),
        FieldSpec("flag", bool, default=False, emit="truthy"),
        FieldSpec("count", int, default=0, emit="always"),
        FieldSpec("labels", list[str], default_factory=list),
        FieldSpec("settings", SETTINGS),
        FieldSpec("rules", ListOf(RULE), default_factory=list),
    ),
)


class Widget(BaseResource):
    resource_type = "aws_widget"
    schema = WIDGET
    output_names = ("id", "endpoint")
    description = "Test widget"


class CheckedWidget(Widget):
    def check_attributes(self, name, attributes) -> None:
        if attributes.count == 0:
            self._logger.warning(f"Widget '{name}' has a zero count")


# --------------------------- Tests ---------------------------


class TestRenderRecord:
    def test_emit_policies(self) -> None:
        attrs = validate(WIDGET, {"name": "w"})
        assert render_record(WIDGET, attrs) == {"name": "w", "count": 0}

    def test_non_default_and_truthy_emitted_when_changed(self) -> None:
        attrs = validate(WIDGET, {"name": "w", "size": "large", "flag": True})
        rendered = render_record(WIDGET, attrs)
        assert rendered["size"] == "large"
        assert rendered["flag"] is True

    def test_nested_records_use_their_policies(self) -> None:
        attrs = validate(
            WIDGET, {"name": "w", "settings": {}, "rules": [{"port": 80}]}
        )
        rendered = render_record(WIDGET, attrs)
        assert rendered["settings"] == {"enabled": False}
        assert rendered["rules"] == [{"port": 80}]


class TestDeclare:
    def test_declare_renders_and_references(self) -> None:
        doc = SynthesisDocument()
        ref = Widget().declare(doc, "main", {"name": "w", "settings": {"note": "n"}})
        assert ref.address == "aws_widget.main"
        assert ref.endpoint == "${aws_widget.main.endpoint}"
        assert ref.name == "main"
        assert ref.attributes.name == "w"
        assert doc.get("resource", "aws_widget", "main") == {
            "name": "w",
            "count": 0,
            "settings": {"enabled": False, "note": "n"},
        }

    def test_single_list_item_stays_array(self) -> None:
        doc = SynthesisDocument()
        Widget().declare(doc, "main", {"name": "w", "rules": [{"port": 22}]})
        assert doc.get("resource", "aws_widget", "main")["rules"] == [{"port": 22}]

    def test_failed_declaration_logs_and_reraises(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.ERROR)
        doc = SynthesisDocument()
        with pytest.raises(ConstraintViolation):
            Widget().declare(doc, "main", {"name": 5})
        assert doc.is_empty()
        assert any("Declaration of aws_widget.main failed" in r.message for r in caplog.records)

    def test_validation_failure_logged_without_traceback(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.ERROR)
        with pytest.raises(ConstraintViolation):
            Widget().declare(SynthesisDocument(), "main", {"name": 5})
        (record,) = [r for r in caplog.records if "aws_widget.main" in r.message]
        assert record.exc_info is None

    def test_unexpected_failure_logged_with_traceback(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        class BrokenWidget(Widget):
            def check_attributes(self, name, attributes):
                raise RuntimeError("boom")

        caplog.set_level(logging.ERROR)
        doc = SynthesisDocument()
        with pytest.raises(RuntimeError, match="boom"):
            BrokenWidget().declare(doc, "main", {"name": "w"})
        (record,) = [r for r in caplog.records if "aws_widget.main" in r.message]
        assert record.exc_info is not None
        assert doc.is_empty()

    def test_check_attributes_hook(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)
        CheckedWidget().declare(SynthesisDocument(), "main", {"name": "w"})
        assert any("zero count" in r.message for r in caplog.records)


class TestResourceInfo:
    def test_info(self) -> None:
        info = Widget().get_resource_info()
        assert info["type"] == "aws_widget"
        assert info["required"] == ["name"]
        assert info["outputs"] == ["id", "endpoint"]
        assert "rules" in info["fields"]

    def test_block_fields(self) -> None:
        assert BaseResource.block_fields(WIDGET) == ["settings"]

    def test_missing_type_rejected(self) -> None:
        class Untyped(BaseResource):
            schema = WIDGET

        with pytest.raises(ValueError, match="must define resource_type"):
            Untyped()
