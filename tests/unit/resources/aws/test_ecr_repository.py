"""Unit tests for the aws_ecr_repository resource kind."""

import pytest

from tfsynth.core.exceptions import (
    ConstraintViolation,
    CrossFieldInvariantViolation,
    MissingRequiredField,
)
from tfsynth.resources.aws.ecr_repository import EcrRepository
from tfsynth.synthesis.document import SynthesisDocument


@pytest.fixture
def kind() -> EcrRepository:
    return EcrRepository()


class TestValidation:
    def test_defaults(self, kind: EcrRepository) -> None:
        attrs = kind.validate({"name": "app"})
        assert attrs.image_tag_mutability == "MUTABLE"
        assert attrs.force_delete is False
        assert attrs.image_scanning_configuration.scan_on_push is False
        assert attrs.encryption_configuration is None
        assert attrs.tags == {}

    def test_name_required(self, kind: EcrRepository) -> None:
        with pytest.raises(MissingRequiredField, match="'name'"):
            kind.validate({})

    @pytest.mark.parametrize(
        "name, message",
        [
            ("a", "between 2 and 256 characters"),
            ("My-App", "only lowercase letters"),
            ("-app", "cannot start or end with hyphens"),
            ("app-", "cannot start or end with hyphens"),
        ],
    )
    def test_invalid_names(self, kind: EcrRepository, name: str, message: str) -> None:
        with pytest.raises(ConstraintViolation, match=message):
            kind.validate({"name": name})

    def test_namespaced_name_allowed(self, kind: EcrRepository) -> None:
        assert kind.validate({"name": "team/app.v2_x"}).name == "team/app.v2_x"

    def test_invalid_mutability(self, kind: EcrRepository) -> None:
        with pytest.raises(ConstraintViolation, match="MUTABLE, IMMUTABLE"):
            kind.validate({"name": "app", "image_tag_mutability": "LOCKED"})

    def test_kms_requires_key(self, kind: EcrRepository) -> None:
        with pytest.raises(CrossFieldInvariantViolation, match="kms_key is required"):
            kind.validate(
                {"name": "app", "encryption_configuration": {"encryption_type": "KMS"}}
            )

    def test_key_only_with_kms(self, kind: EcrRepository) -> None:
        with pytest.raises(CrossFieldInvariantViolation, match="can only be specified"):
            kind.validate(
                {"name": "app", "encryption_configuration": {"kms_key": "arn:key"}}
            )


class TestDerived:
    def test_derived_properties(self, kind: EcrRepository) -> None:
        attrs = kind.validate(
            {
                "name": "app",
                "image_tag_mutability": "IMMUTABLE",
                "image_scanning_configuration": {"scan_on_push": True},
                "encryption_configuration": {"encryption_type": "KMS", "kms_key": "k"},
                "force_delete": True,
            }
        )
        assert attrs.is_immutable
        assert attrs.scan_on_push_enabled
        assert attrs.uses_kms_encryption
        assert not attrs.uses_aes256_encryption
        assert attrs.allows_force_delete

    def test_defaults_derived(self, kind: EcrRepository) -> None:
        attrs = kind.validate({"name": "app"})
        assert not attrs.is_immutable
        assert not attrs.scan_on_push_enabled
        assert not attrs.uses_kms_encryption


class TestRender:
    def test_minimal_block(self, kind: EcrRepository) -> None:
        doc = SynthesisDocument()
        ref = kind.declare(doc, "app", {"name": "app"})
        assert doc.get("resource", "aws_ecr_repository", "app") == {
            "name": "app",
            "image_tag_mutability": "MUTABLE",
            "image_scanning_configuration": {"scan_on_push": False},
            "force_delete": False,
        }
        assert ref.repository_url == "${aws_ecr_repository.app.repository_url}"
        assert ref.arn == "${aws_ecr_repository.app.arn}"

    def test_tags_and_encryption_rendered(self, kind: EcrRepository) -> None:
        doc = SynthesisDocument()
        kind.declare(
            doc,
            "app",
            {
                "name": "app",
                "encryption_configuration": {"encryption_type": "KMS", "kms_key": "k"},
                "tags": {"Team": "core"},
            },
        )
        block = doc.get("resource", "aws_ecr_repository", "app")
        assert block["encryption_configuration"] == {
            "encryption_type": "KMS",
            "kms_key": "k",
        }
        assert block["tags"] == {"Team": "core"}
