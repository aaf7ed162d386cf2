"""
aws_api_gateway_integration: backend wiring of an API Gateway method.

The module-level helpers return partial attribute mappings for the common
integration styles; merge them with ``rest_api_id``, ``resource_id`` and
``http_method`` before declaring.
"""

import json
import re
from typing import Any

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    Keys,
    OneOf,
    Pattern,
    Range,
    SchemaDefinition,
    ValidatedAttributes,
    Values,
    required_if,
)

from .api_gateway_method import HTTP_METHODS, PARAMETER_LOCATIONS

INTEGRATION_TYPES = ("MOCK", "HTTP", "HTTP_PROXY", "AWS", "AWS_PROXY")
URI_INTEGRATION_TYPES = ("HTTP", "HTTP_PROXY", "AWS", "AWS_PROXY")
PASSTHROUGH_BEHAVIORS = ("WHEN_NO_MATCH", "WHEN_NO_TEMPLATES", "NEVER")
LAMBDA_API_VERSION = "2015-03-31"

_LOCATIONS = "|".join(PARAMETER_LOCATIONS)
INTEGRATION_PARAMETER_REGEX = rf"integration\.request\.({_LOCATIONS})\..+"
METHOD_REFERENCE_REGEX = (
    rf"method\.request\.({_LOCATIONS})\..+|'.*'|context\..+|stageVariables\..+"
)


class ApiGatewayIntegrationAttributes(ValidatedAttributes):
    """Validated integration with queries over its type and URI."""

    @property
    def is_proxy_integration(self) -> bool:
        return self.type in ("HTTP_PROXY", "AWS_PROXY")

    @property
    def is_lambda_integration(self) -> bool:
        return bool(self.uri) and ":lambda:path/" in self.uri

    @property
    def is_http_integration(self) -> bool:
        return self.type in ("HTTP", "HTTP_PROXY")

    @property
    def is_aws_service_integration(self) -> bool:
        return self.type == "AWS" and not self.is_lambda_integration

    @property
    def is_mock_integration(self) -> bool:
        return self.type == "MOCK"

    @property
    def uses_vpc_link(self) -> bool:
        return self.connection_type == "VPC_LINK"

    @property
    def has_caching(self) -> bool:
        return bool(self.cache_key_parameters)

    @property
    def requires_iam_role(self) -> bool:
        return self.is_aws_service_integration

    @property
    def lambda_function_name(self) -> str | None:
        if not self.is_lambda_integration:
            return None
        match = re.search(r"function:([^/:]+)", self.uri)
        return match.group(1) if match else None

    @property
    def aws_service_name(self) -> str | None:
        if not self.uri:
            return None
        match = re.match(r"arn:aws[a-z-]*:apigateway:[^:]*:([^:]+):", self.uri)
        return match.group(1) if match else None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_milliseconds / 1000.0

    @property
    def cache_configuration(self) -> dict[str, Any]:
        return {
            "enabled": self.has_caching,
            "key_parameters": list(self.cache_key_parameters),
            "namespace": self.cache_namespace,
        }

    @property
    def request_configuration(self) -> dict[str, Any]:
        return {
            "templates": dict(self.request_templates),
            "parameters": dict(self.request_parameters),
            "passthrough": self.passthrough_behavior,
        }

    @property
    def connection_configuration(self) -> dict[str, Any]:
        return {
            "type": self.connection_type,
            "id": self.connection_id,
            "uses_vpc": self.uses_vpc_link,
        }


API_GATEWAY_INTEGRATION_SCHEMA = SchemaDefinition(
    "aws_api_gateway_integration",
    fields=(
        FieldSpec("rest_api_id", str, required=True),
        FieldSpec("resource_id", str, required=True),
        FieldSpec("http_method", str, required=True, choices=HTTP_METHODS),
        FieldSpec("type", str, required=True, choices=INTEGRATION_TYPES),
        FieldSpec("integration_http_method", str, choices=HTTP_METHODS),
        FieldSpec("uri", str),
        FieldSpec(
            "connection_type",
            str,
            default="INTERNET",
            choices=("INTERNET", "VPC_LINK"),
            emit="always",
        ),
        FieldSpec("connection_id", str),
        FieldSpec("credentials", str),
        FieldSpec("cache_key_parameters", list[str], default_factory=list),
        FieldSpec("cache_namespace", str),
        FieldSpec("request_templates", dict[str, str], default_factory=dict),
        FieldSpec(
            "request_parameters",
            dict[str, str],
            default_factory=dict,
            constraints=(
                Keys(
                    Pattern(
                        INTEGRATION_PARAMETER_REGEX,
                        message=lambda key: (
                            f"Invalid integration parameter format: {key}. "
                            "Expected format: integration.request.{location}.{name}"
                        ),
                    )
                ),
                Values(
                    Pattern(
                        METHOD_REFERENCE_REGEX,
                        message=lambda value: (
                            f"Invalid method parameter reference: {value}"
                        ),
                    )
                ),
            ),
        ),
        FieldSpec(
            "passthrough_behavior",
            str,
            default="WHEN_NO_MATCH",
            choices=PASSTHROUGH_BEHAVIORS,
            emit="always",
        ),
        FieldSpec(
            "content_handling",
            str,
            constraints=(
                OneOf(
                    ("CONVERT_TO_BINARY", "CONVERT_TO_TEXT"),
                    message="content_handling must be CONVERT_TO_BINARY or CONVERT_TO_TEXT",
                ),
            ),
        ),
        FieldSpec(
            "timeout_milliseconds",
            int,
            default=29000,
            constraints=(
                Range(
                    50,
                    29000,
                    message="timeout_milliseconds must be between 50 and 29000",
                ),
            ),
            emit="always",
        ),
    ),
    invariants=(
        required_if(
            "uri",
            when="type",
            equals=URI_INTEGRATION_TYPES,
            message=lambda values: f"uri is required for {values['type']} integrations",
        ),
        required_if(
            "integration_http_method",
            when="type",
            equals=("HTTP", "AWS"),
            message=lambda values: (
                f"integration_http_method is required for {values['type']} integrations"
            ),
        ),
        required_if(
            "connection_id",
            when="connection_type",
            equals="VPC_LINK",
            message="connection_id is required when connection_type is VPC_LINK",
        ),
    ),
    attributes_class=ApiGatewayIntegrationAttributes,
)


class ApiGatewayIntegration(BaseResource):
    resource_type = "aws_api_gateway_integration"
    schema = API_GATEWAY_INTEGRATION_SCHEMA
    output_names = (
        "id",
        "rest_api_id",
        "resource_id",
        "http_method",
        "type",
        "uri",
        "connection_type",
        "passthrough_behavior",
        "timeout_milliseconds",
    )
    description = "API Gateway method integration"


def _region_of(arn: str, default: str = "us-east-1") -> str:
    parts = arn.split(":")
    return parts[3] if len(parts) > 3 and parts[3] else default


def lambda_proxy_integration(
    function_arn: str, credentials: str | None = None, region: str | None = None
) -> dict[str, Any]:
    """Lambda proxy integration; the region defaults to the function's region."""
    region = region or _region_of(function_arn)
    config: dict[str, Any] = {
        "type": "AWS_PROXY",
        "integration_http_method": "POST",
        "uri": (
            f"arn:aws:apigateway:{region}:lambda:path/{LAMBDA_API_VERSION}"
            f"/functions/{function_arn}/invocations"
        ),
    }
    if credentials:
        config["credentials"] = credentials
    return config


def http_proxy_integration(
    url: str, http_method: str = "ANY", connection_id: str | None = None
) -> dict[str, Any]:
    config: dict[str, Any] = {
        "type": "HTTP_PROXY",
        "integration_http_method": http_method,
        "uri": url,
    }
    if connection_id:
        config["connection_type"] = "VPC_LINK"
        config["connection_id"] = connection_id
    return config


def mock_integration(status_code: int = 200) -> dict[str, Any]:
    return {
        "type": "MOCK",
        "request_templates": {
            "application/json": json.dumps({"statusCode": status_code})
        },
    }


def dynamodb_integration(
    table_name: str,
    action: str,
    credentials: str | None = None,
    region: str = "us-east-1",
) -> dict[str, Any]:
    """Direct DynamoDB action; the role in ``credentials`` must allow it."""
    config: dict[str, Any] = {
        "type": "AWS",
        "integration_http_method": "POST",
        "uri": f"arn:aws:apigateway:{region}:dynamodb:action/{action}",
        "request_templates": {
            "application/json": json.dumps({"TableName": table_name})
        },
    }
    if credentials:
        config["credentials"] = credentials
    return config
