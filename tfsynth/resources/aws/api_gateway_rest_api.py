"""aws_api_gateway_rest_api: REST API container."""

from typing import Any

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.schema import (
    Each,
    FieldSpec,
    Pattern,
    Range,
    SchemaDefinition,
    ValidatedAttributes,
    invariant,
)

from .types import tags_field

ENDPOINT_TYPES = ("EDGE", "REGIONAL", "PRIVATE")
MAX_COMPRESSION_SIZE = 10485760

# Validated for API-level bookkeeping but not arguments of the Terraform resource.
NON_TERRAFORM_FIELDS = ("version", "clone_from", "minimum_tls_version", "custom_domain_name")

ENDPOINT_CONFIGURATION_SCHEMA = SchemaDefinition(
    "endpoint_configuration",
    fields=(
        FieldSpec(
            "types",
            list[str],
            default_factory=lambda: ["REGIONAL"],
            choices=ENDPOINT_TYPES,
        ),
        FieldSpec("vpc_endpoint_ids", list[str], default_factory=list),
    ),
    invariants=(
        invariant(
            "private_requires_vpc_endpoints",
            lambda values: "PRIVATE" not in values["types"]
            or bool(values["vpc_endpoint_ids"]),
            "VPC endpoint IDs must be provided for PRIVATE API type",
            ("types", "vpc_endpoint_ids"),
        ),
    ),
)


class ApiGatewayRestApiAttributes(ValidatedAttributes):
    def _endpoint_types(self) -> list[str]:
        config = self.endpoint_configuration
        return list(config.types) if config else []

    @property
    def is_edge_optimized(self) -> bool:
        return "EDGE" in self._endpoint_types()

    @property
    def is_regional(self) -> bool:
        return "REGIONAL" in self._endpoint_types()

    @property
    def is_private(self) -> bool:
        return "PRIVATE" in self._endpoint_types()

    @property
    def supports_binary_content(self) -> bool:
        return bool(self.binary_media_types)

    @property
    def has_custom_domain(self) -> bool:
        return self.custom_domain_name is not None

    @property
    def estimated_monthly_cost(self) -> float:
        """Flat per-API estimate in USD; request charges are not modelled."""
        return 3.50


REST_API_SCHEMA = SchemaDefinition(
    "aws_api_gateway_rest_api",
    fields=(
        FieldSpec(
            "name",
            str,
            required=True,
            constraints=(
                Pattern(
                    r"[a-zA-Z0-9._-]+",
                    message=(
                        "API name must contain only alphanumeric characters, "
                        "hyphens, underscores, and periods"
                    ),
                ),
            ),
        ),
        FieldSpec("description", str),
        FieldSpec("endpoint_configuration", ENDPOINT_CONFIGURATION_SCHEMA),
        FieldSpec("version", str),
        FieldSpec("clone_from", str),
        FieldSpec(
            "binary_media_types",
            list[str],
            default_factory=list,
            constraints=(
                Each(
                    Pattern(
                        r"[\w\-+.]+/[\w\-+.]+",
                        message=lambda value: (
                            f"Invalid binary media type format: {value}. "
                            "Expected format: type/subtype"
                        ),
                    )
                ),
            ),
        ),
        FieldSpec(
            "minimum_tls_version",
            str,
            default="TLS_1_2",
            choices=("TLS_1_0", "TLS_1_2"),
        ),
        FieldSpec(
            "minimum_compression_size",
            int,
            constraints=(
                Range(
                    0,
                    MAX_COMPRESSION_SIZE,
                    message=(
                        "Minimum compression size must be between 0 and "
                        "10485760 bytes (10MB)"
                    ),
                ),
            ),
        ),
        FieldSpec(
            "api_key_source",
            str,
            default="HEADER",
            choices=("HEADER", "AUTHORIZER"),
        ),
        FieldSpec("policy", str),
        FieldSpec("body", str),
        FieldSpec("disable_execute_api_endpoint", bool, default=False, emit="truthy"),
        FieldSpec("custom_domain_name", str),
        tags_field(),
    ),
    attributes_class=ApiGatewayRestApiAttributes,
)


class ApiGatewayRestApi(BaseResource):
    resource_type = "aws_api_gateway_rest_api"
    schema = REST_API_SCHEMA
    output_names = (
        "id",
        "arn",
        "root_resource_id",
        "execution_arn",
        "created_date",
        "name",
        "tags_all",
    )
    description = "API Gateway REST API"

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        result = render_record(self.schema, attributes)
        for name in NON_TERRAFORM_FIELDS:
            result.pop(name, None)
        return result
