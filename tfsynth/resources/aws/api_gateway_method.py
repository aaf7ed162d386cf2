"""aws_api_gateway_method: HTTP verb on an API Gateway resource."""

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    Keys,
    Pattern,
    SchemaDefinition,
    ValidatedAttributes,
    forbidden_unless,
    required_if,
)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD", "PATCH", "ANY")
AUTHORIZATION_TYPES = ("NONE", "AWS_IAM", "CUSTOM", "COGNITO_USER_POOLS")
PARAMETER_LOCATIONS = (
    "path",
    "querystring",
    "header",
    "multivalueheader",
    "multivaluequerystring",
)

REQUEST_PARAMETER_REGEX = rf"method\.request\.({'|'.join(PARAMETER_LOCATIONS)})\..+"


def build_request_parameter(
    location: str, name: str, required: bool = False
) -> tuple[str, bool]:
    """
    Build a ``request_parameters`` entry.

    Raises:
        ValueError: If the location is not a valid parameter location
    """
    if location not in PARAMETER_LOCATIONS:
        raise ValueError(
            f"Invalid location: {location}. "
            f"Must be one of: {', '.join(PARAMETER_LOCATIONS)}"
        )
    return f"method.request.{location}.{name}", required


class ApiGatewayMethodAttributes(ValidatedAttributes):
    @property
    def requires_authorization(self) -> bool:
        return self.authorization != "NONE"

    @property
    def is_cognito_authorized(self) -> bool:
        return self.authorization == "COGNITO_USER_POOLS"

    @property
    def is_iam_authorized(self) -> bool:
        return self.authorization == "AWS_IAM"

    @property
    def is_custom_authorized(self) -> bool:
        return self.authorization == "CUSTOM"

    @property
    def has_request_validation(self) -> bool:
        return bool(self.request_models) or self.request_validator_id is not None

    @property
    def cors_enabled(self) -> bool:
        return self.http_method == "OPTIONS"


API_GATEWAY_METHOD_SCHEMA = SchemaDefinition(
    "aws_api_gateway_method",
    fields=(
        FieldSpec("rest_api_id", str, required=True),
        FieldSpec("resource_id", str, required=True),
        FieldSpec("http_method", str, required=True, choices=HTTP_METHODS),
        FieldSpec(
            "authorization",
            str,
            default="NONE",
            choices=AUTHORIZATION_TYPES,
            emit="always",
        ),
        FieldSpec("authorizer_id", str),
        FieldSpec("authorization_scopes", list[str], default_factory=list),
        FieldSpec("api_key_required", bool, default=False),
        FieldSpec(
            "request_parameters",
            dict[str, bool],
            default_factory=dict,
            constraints=(
                Keys(
                    Pattern(
                        REQUEST_PARAMETER_REGEX,
                        message=lambda key: (
                            f"Invalid request parameter format: {key}. "
                            "Expected format: method.request.{location}.{name}"
                        ),
                    )
                ),
            ),
        ),
        FieldSpec(
            "request_models",
            dict[str, str],
            default_factory=dict,
            constraints=(
                Keys(
                    Pattern(
                        r"[\w\-+]+/[\w\-+.]+",
                        message=lambda key: f"Invalid content type format: {key}",
                    )
                ),
            ),
        ),
        FieldSpec("request_validator_id", str),
        FieldSpec("operation_name", str),
    ),
    invariants=(
        required_if(
            "authorizer_id",
            when="authorization",
            equals=("CUSTOM", "COGNITO_USER_POOLS"),
            message=lambda values: (
                f"authorizer_id is required when authorization is "
                f"{values['authorization']}"
            ),
        ),
        forbidden_unless(
            "authorization_scopes",
            when="authorization",
            equals="COGNITO_USER_POOLS",
            message=(
                "authorization_scopes can only be used with "
                "COGNITO_USER_POOLS authorization"
            ),
        ),
    ),
    attributes_class=ApiGatewayMethodAttributes,
)


class ApiGatewayMethod(BaseResource):
    resource_type = "aws_api_gateway_method"
    schema = API_GATEWAY_METHOD_SCHEMA
    output_names = (
        "id",
        "rest_api_id",
        "resource_id",
        "http_method",
        "authorization",
        "authorizer_id",
        "api_key_required",
        "request_models",
        "request_parameters",
    )
    description = "API Gateway method"
