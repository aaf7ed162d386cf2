"""aws_lambda_permission: resource policy statement on a Lambda function."""

import re
import time

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    Length,
    Pattern,
    Predicate,
    SchemaDefinition,
    ValidatedAttributes,
    forbidden_unless,
    mutually_exclusive,
)

from .types import ACCOUNT_ID_REGEX, arn_pattern

ALB_PRINCIPAL = "lambda.alb.amazonaws.com"
SERVICE_PRINCIPAL_SUFFIX = ".amazonaws.com"

SERVICE_PRINCIPALS = frozenset(
    {
        "apigateway.amazonaws.com",
        "events.amazonaws.com",
        "s3.amazonaws.com",
        "sns.amazonaws.com",
        "sqs.amazonaws.com",
        "logs.amazonaws.com",
        "cognito-idp.amazonaws.com",
        "elasticloadbalancing.amazonaws.com",
        "iot.amazonaws.com",
        "lex.amazonaws.com",
        "states.amazonaws.com",
        "kafka.amazonaws.com",
        "config.amazonaws.com",
        "backup.amazonaws.com",
        "datasync.amazonaws.com",
        "mediaconvert.amazonaws.com",
        "secretsmanager.amazonaws.com",
        "scheduler.amazonaws.com",
        ALB_PRINCIPAL,
    }
)

# Services that can invoke on behalf of any account unless pinned by source_arn.
SOURCE_ARN_SERVICES = frozenset({"s3", "sns", "sqs", "events", "config"})

LAMBDA_ACTIONS = (
    "lambda:*",
    "lambda:InvokeFunction",
    "lambda:InvokeAsync",
    "lambda:InvokeFunctionUrl",
    "lambda:GetFunction",
    "lambda:GetFunctionConfiguration",
    "lambda:UpdateFunctionConfiguration",
    "lambda:UpdateFunctionCode",
    "lambda:DeleteFunction",
    "lambda:PublishVersion",
    "lambda:CreateAlias",
    "lambda:UpdateAlias",
    "lambda:DeleteAlias",
    "lambda:GetAlias",
    "lambda:GetPolicy",
)

IAM_PRINCIPAL_REGEX = r"arn:aws[a-z-]*:iam::\d{12}:(root|(user|role)/.+)"


def principal_error(principal: str) -> str | None:
    """Failure message for a malformed principal, or None."""
    if principal.endswith(SERVICE_PRINCIPAL_SUFFIX):
        if principal not in SERVICE_PRINCIPALS:
            return f"Unknown AWS service principal: {principal}"
        return None
    if principal == "*" or "${" in principal:
        return None
    if re.fullmatch(ACCOUNT_ID_REGEX, principal):
        return None
    if re.fullmatch(IAM_PRINCIPAL_REGEX, principal):
        return None
    return (
        "Principal must be a service principal (*.amazonaws.com), "
        f"a 12-digit account ID, or an IAM ARN: '{principal}'"
    )


def default_statement_id(values) -> str | None:
    if values.get("statement_id_prefix"):
        return None
    return f"AllowExecutionFrom{int(time.time())}"


class LambdaPermissionAttributes(ValidatedAttributes):
    """Validated permission with principal classification queries."""

    @property
    def is_service_principal(self) -> bool:
        return self.principal.endswith(SERVICE_PRINCIPAL_SUFFIX)

    @property
    def service_name(self) -> str | None:
        if not self.is_service_principal:
            return None
        return self.principal.split(".")[0]

    @property
    def is_cross_account(self) -> bool:
        if self.principal_org_id:
            return True
        return bool(
            re.fullmatch(ACCOUNT_ID_REGEX, self.principal)
            or re.fullmatch(IAM_PRINCIPAL_REGEX, self.principal)
        )

    @property
    def allows_all_actions(self) -> bool:
        return self.action == "lambda:*"

    @property
    def requires_source_arn(self) -> bool:
        return self.service_name in SOURCE_ARN_SERVICES


LAMBDA_PERMISSION_SCHEMA = SchemaDefinition(
    "aws_lambda_permission",
    fields=(
        FieldSpec("action", str, required=True, choices=LAMBDA_ACTIONS),
        FieldSpec("function_name", str, required=True),
        FieldSpec(
            "principal",
            str,
            required=True,
            constraints=(
                Predicate(
                    lambda value: principal_error(value) is None,
                    principal_error,
                ),
            ),
        ),
        FieldSpec(
            "statement_id",
            str,
            computed_default=default_statement_id,
            constraints=(
                Length(max=100, message="Statement ID cannot exceed 100 characters"),
                Pattern(
                    r"[A-Za-z0-9_-]+",
                    message=(
                        "Statement ID must contain only alphanumeric characters, "
                        "hyphens, and underscores"
                    ),
                    allow_interpolation=True,
                ),
            ),
        ),
        FieldSpec("statement_id_prefix", str),
        FieldSpec("qualifier", str),
        FieldSpec(
            "source_arn",
            str,
            constraints=(
                arn_pattern(
                    lambda value: f"Source ARN must be a valid AWS ARN: '{value}'"
                ),
            ),
        ),
        FieldSpec(
            "source_account",
            str,
            constraints=(
                Pattern(
                    ACCOUNT_ID_REGEX,
                    message="Source account must be a 12-digit AWS account ID",
                    allow_interpolation=True,
                ),
            ),
        ),
        FieldSpec("event_source_token", str),
        FieldSpec("principal_org_id", str),
        FieldSpec(
            "function_url_auth_type",
            str,
            choices=("AWS_IAM", "NONE"),
        ),
    ),
    invariants=(
        mutually_exclusive("statement_id", "statement_id_prefix"),
        forbidden_unless(
            "function_url_auth_type",
            when="principal",
            equals=ALB_PRINCIPAL,
            message=(
                "function_url_auth_type can only be used with ALB principal "
                f"({ALB_PRINCIPAL})"
            ),
        ),
    ),
    attributes_class=LambdaPermissionAttributes,
)


class LambdaPermission(BaseResource):
    """
    Lambda resource policy statement.

    Without an explicit ``statement_id`` or ``statement_id_prefix`` one is
    generated from the current Unix time (``AllowExecutionFrom<seconds>``).
    """

    resource_type = "aws_lambda_permission"
    schema = LAMBDA_PERMISSION_SCHEMA
    output_names = (
        "id",
        "statement_id",
        "function_name",
        "action",
        "principal",
        "source_arn",
        "qualifier",
    )
    description = "Lambda function invoke permission"
