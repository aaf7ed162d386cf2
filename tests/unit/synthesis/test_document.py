"""Unit tests for SynthesisDocument."""

import logging

import pytest

from tfsynth.core.exceptions import DSLUsageError
from tfsynth.synthesis.document import SynthesisDocument


class TestRootEntryPoints:
    def test_resource_registered_by_type_and_name(self) -> None:
        doc = SynthesisDocument()
        doc.resource("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
        assert doc.get("resource", "aws_vpc", "main") == {"cidr_block": "10.0.0.0/16"}
        assert doc.has_resource("aws_vpc", "main")
        assert not doc.has_resource("aws_vpc", "other")

    def test_duplicate_resource_last_write_wins(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.WARNING)
        doc = SynthesisDocument()
        doc.resource("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
        doc.resource("aws_vpc", "main", {"cidr_block": "10.1.0.0/16"})
        assert doc.get("resource", "aws_vpc", "main") == {"cidr_block": "10.1.0.0/16"}
        assert any("Overwriting existing resource" in r.message for r in caplog.records)

    def test_failed_body_leaves_no_partial_state(self) -> None:
        doc = SynthesisDocument()

        def body(builder) -> None:
            builder.set("a", 1)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            doc.resource("aws_vpc", "main", body)
        assert doc.get("resource", "aws_vpc", "main") is None

    def test_data_source(self) -> None:
        doc = SynthesisDocument()
        doc.data("aws_ami", "ubuntu", {"most_recent": True})
        assert doc.has_data("aws_ami", "ubuntu")

    def test_variables_and_outputs(self) -> None:
        doc = SynthesisDocument()
        doc.variable("env", {"type": "string"})
        doc.output("vpc_id", {"value": "${aws_vpc.main.id}"})
        assert doc.get("variable", "env") == {"type": "string"}
        assert doc.get("output", "vpc_id") == {"value": "${aws_vpc.main.id}"}

    def test_provider_aliases_form_list(self) -> None:
        doc = SynthesisDocument()
        doc.provider("aws", {"region": "us-east-1"})
        doc.provider("aws", {"region": "eu-west-1", "alias": "eu"})
        assert doc.get("provider", "aws") == [
            {"region": "us-east-1"},
            {"region": "eu-west-1", "alias": "eu"},
        ]

    def test_locals_and_terraform_merge(self) -> None:
        doc = SynthesisDocument()
        doc.locals({"a": 1})
        doc.locals({"b": 2})
        doc.terraform({"required_version": ">= 1.5"})
        assert doc.get("locals") == {"a": 1, "b": 2}
        assert doc.get("terraform") == {"required_version": ">= 1.5"}

    def test_empty_names_rejected(self) -> None:
        doc = SynthesisDocument()
        with pytest.raises(DSLUsageError, match="Resource name cannot be empty"):
            doc.resource("aws_vpc", " ", {})
        with pytest.raises(DSLUsageError, match="Variable cannot be empty"):
            doc.variable("", {})


class TestQueries:
    def test_unknown_category(self) -> None:
        with pytest.raises(ValueError, match="Unknown category 'resources'"):
            SynthesisDocument().get("resources")

    def test_missing_path_returns_none(self) -> None:
        assert SynthesisDocument().get("resource", "aws_vpc", "main") is None

    def test_empty_and_categories(self) -> None:
        doc = SynthesisDocument()
        assert doc.is_empty()
        doc.variable("env", {"type": "string"})
        doc.resource("aws_vpc", "main", {})
        assert not doc.is_empty()
        assert doc.categories() == ["variable", "resource"]


class TestMerge:
    def test_merge_documents(self) -> None:
        left = SynthesisDocument()
        left.resource("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
        left.locals({"a": 1})
        left.provider("aws", {"region": "us-east-1"})
        right = SynthesisDocument()
        right.resource("aws_vpc", "main", {"cidr_block": "10.9.0.0/16"})
        right.resource("aws_subnet", "a", {"vpc_id": "x"})
        right.locals({"b": 2})
        right.provider("aws", {"region": "eu-west-1"})

        left.merge(right)

        assert left.get("resource", "aws_vpc", "main") == {"cidr_block": "10.9.0.0/16"}
        assert left.has_resource("aws_subnet", "a")
        assert left.get("locals") == {"a": 1, "b": 2}
        assert len(left.get("provider", "aws")) == 2

    def test_merge_copies_entries(self) -> None:
        left = SynthesisDocument()
        right = SynthesisDocument()
        right.variable("env", {"type": "string"})
        left.merge(right)
        right.variable("env", {"type": "number"})
        assert left.get("variable", "env") == {"type": "string"}
