"""Unit tests for ResourceReference."""

import pytest

from tfsynth.schema import FieldSpec, SchemaDefinition, ValidatedAttributes, validate
from tfsynth.synthesis.reference import ResourceReference, interpolation, make_reference


class BucketAttributes(ValidatedAttributes):
    @property
    def is_versioned(self) -> bool:
        return bool(self.versioning)


SCHEMA = SchemaDefinition(
    "aws_s3_bucket",
    fields=(FieldSpec("bucket", str), FieldSpec("versioning", bool, default=False)),
    attributes_class=BucketAttributes,
)


def _reference(**kwargs) -> ResourceReference:
    attrs = validate(SCHEMA, {"bucket": "logs", "versioning": True})
    return make_reference("aws_s3_bucket", "logs", attrs, ("id", "arn", "region"), **kwargs)


class TestInterpolation:
    def test_join(self) -> None:
        assert interpolation("aws_vpc", "main", "id") == "${aws_vpc.main.id}"


class TestResourceReference:
    def test_outputs_are_interpolations(self) -> None:
        ref = _reference()
        assert ref.id == "${aws_s3_bucket.logs.id}"
        assert ref.arn == "${aws_s3_bucket.logs.arn}"
        assert ref.region == "${aws_s3_bucket.logs.region}"
        assert ref.address == "aws_s3_bucket.logs"

    def test_ref_for_undeclared_output(self) -> None:
        assert _reference().ref("bucket_domain_name") == (
            "${aws_s3_bucket.logs.bucket_domain_name}"
        )

    def test_attribute_and_derived_fallback(self) -> None:
        ref = _reference()
        assert ref.bucket == "logs"
        assert ref.is_versioned is True

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="has no output or attribute 'nope'"):
            _reference().nope

    def test_data_source_prefix(self) -> None:
        ref = _reference(data_source=True)
        assert ref.address == "data.aws_s3_bucket.logs"
        assert ref.id == "${data.aws_s3_bucket.logs.id}"

    def test_reference_is_immutable(self) -> None:
        ref = _reference()
        with pytest.raises(Exception):
            ref.name = "other"
        with pytest.raises(TypeError):
            ref.outputs["id"] = "x"

    def test_id_without_declared_output(self) -> None:
        attrs = validate(SCHEMA, {})
        ref = make_reference("aws_s3_bucket", "b", attrs)
        assert ref.id == "${aws_s3_bucket.b.id}"

    def test_to_dict(self) -> None:
        data = _reference().to_dict()
        assert data["type"] == "aws_s3_bucket"
        assert data["attributes"] == {"bucket": "logs", "versioning": True}
        assert data["outputs"]["id"] == "${aws_s3_bucket.logs.id}"
