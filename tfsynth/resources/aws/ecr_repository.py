"""aws_ecr_repository: container image repository."""

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    Length,
    Pattern,
    Predicate,
    SchemaDefinition,
    ValidatedAttributes,
    forbidden_unless,
    required_if,
)

from .types import tags_field


class ImageScanningConfiguration(ValidatedAttributes):
    pass


IMAGE_SCANNING_SCHEMA = SchemaDefinition(
    "image_scanning_configuration",
    fields=(FieldSpec("scan_on_push", bool, default=False, emit="always"),),
    attributes_class=ImageScanningConfiguration,
)

ENCRYPTION_SCHEMA = SchemaDefinition(
    "encryption_configuration",
    fields=(
        FieldSpec(
            "encryption_type",
            str,
            default="AES256",
            choices=("AES256", "KMS"),
        ),
        FieldSpec("kms_key", str),
    ),
    invariants=(
        required_if(
            "kms_key",
            when="encryption_type",
            equals="KMS",
            message="kms_key is required when encryption_type is KMS",
        ),
        forbidden_unless(
            "kms_key",
            when="encryption_type",
            equals="KMS",
            message="kms_key can only be specified when encryption_type is KMS",
        ),
    ),
)


class EcrRepositoryAttributes(ValidatedAttributes):
    """Validated ECR repository attributes with derived queries."""

    @property
    def is_immutable(self) -> bool:
        return self.image_tag_mutability == "IMMUTABLE"

    @property
    def scan_on_push_enabled(self) -> bool:
        scanning = self.image_scanning_configuration
        return bool(scanning and scanning.scan_on_push)

    @property
    def uses_kms_encryption(self) -> bool:
        encryption = self.encryption_configuration
        return bool(encryption and encryption.encryption_type == "KMS")

    @property
    def uses_aes256_encryption(self) -> bool:
        encryption = self.encryption_configuration
        return bool(encryption and encryption.encryption_type == "AES256")

    @property
    def allows_force_delete(self) -> bool:
        return bool(self.force_delete)

    @property
    def repository_uri_template(self) -> str:
        return "${aws_ecr_repository.%{name}.repository_url}"

    @property
    def registry_id_template(self) -> str:
        return "${aws_ecr_repository.%{name}.registry_id}"


ECR_REPOSITORY_SCHEMA = SchemaDefinition(
    "aws_ecr_repository",
    fields=(
        FieldSpec(
            "name",
            str,
            required=True,
            constraints=(
                Length(
                    2,
                    256,
                    message="Repository name must be between 2 and 256 characters",
                ),
                Pattern(
                    r"[a-z0-9._/-]+",
                    message=(
                        "Repository name must contain only lowercase letters, "
                        "numbers, hyphens, underscores, periods, and forward slashes"
                    ),
                ),
                Predicate(
                    lambda value: not (value.startswith("-") or value.endswith("-")),
                    "Repository name cannot start or end with hyphens",
                ),
            ),
        ),
        FieldSpec(
            "image_tag_mutability",
            str,
            default="MUTABLE",
            choices=("MUTABLE", "IMMUTABLE"),
        ),
        FieldSpec(
            "image_scanning_configuration",
            IMAGE_SCANNING_SCHEMA,
            computed_default=lambda values: ImageScanningConfiguration(
                scan_on_push=False
            ),
        ),
        FieldSpec("encryption_configuration", ENCRYPTION_SCHEMA),
        FieldSpec("force_delete", bool, default=False, emit="always"),
        tags_field(),
    ),
    attributes_class=EcrRepositoryAttributes,
)


class EcrRepository(BaseResource):
    """ECR repository; scanning configuration and force_delete are always rendered."""

    resource_type = "aws_ecr_repository"
    schema = ECR_REPOSITORY_SCHEMA
    output_names = ("arn", "name", "registry_id", "repository_url", "tags_all")
    description = "Amazon ECR container image repository"
