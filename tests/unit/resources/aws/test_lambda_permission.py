"""Unit tests for the aws_lambda_permission resource kind."""

import pytest

from tfsynth.core.exceptions import (
    ConstraintViolation,
    CrossFieldInvariantViolation,
    MissingRequiredField,
)
from tfsynth.resources.aws import lambda_permission
from tfsynth.resources.aws.lambda_permission import LambdaPermission
from tfsynth.synthesis.document import SynthesisDocument

BASE = {
    "action": "lambda:InvokeFunction",
    "function_name": "${aws_lambda_function.orders.function_name}",
    "principal": "apigateway.amazonaws.com",
    "statement_id": "AllowApiGateway",
}


@pytest.fixture
def kind() -> LambdaPermission:
    return LambdaPermission()


class TestValidation:
    def test_required(self, kind: LambdaPermission) -> None:
        with pytest.raises(MissingRequiredField, match="'principal'"):
            kind.validate({"action": "lambda:InvokeFunction", "function_name": "f"})

    def test_action_choices(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="'lambda:Run'"):
            kind.validate({**BASE, "action": "lambda:Run"})

    @pytest.mark.parametrize(
        "principal",
        [
            "s3.amazonaws.com",
            "*",
            "123456789012",
            "arn:aws:iam::123456789012:root",
            "arn:aws:iam::123456789012:role/deployer",
            "${var.principal}",
        ],
    )
    def test_valid_principals(self, kind: LambdaPermission, principal: str) -> None:
        assert kind.validate({**BASE, "principal": principal}).principal == principal

    def test_unknown_service_principal(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="Unknown AWS service principal"):
            kind.validate({**BASE, "principal": "madeup.amazonaws.com"})

    def test_malformed_principal(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="12-digit account ID"):
            kind.validate({**BASE, "principal": "someone"})

    def test_statement_id_characters(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="Statement ID must contain only"):
            kind.validate({**BASE, "statement_id": "allow api"})

    def test_statement_id_length(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="cannot exceed 100"):
            kind.validate({**BASE, "statement_id": "s" * 101})

    def test_statement_id_and_prefix_exclusive(self, kind: LambdaPermission) -> None:
        with pytest.raises(CrossFieldInvariantViolation, match="statement_id_prefix"):
            kind.validate({**BASE, "statement_id_prefix": "Allow"})

    def test_source_arn_format(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="Source ARN must be a valid AWS ARN"):
            kind.validate({**BASE, "source_arn": "bucket"})

    def test_source_account_format(self, kind: LambdaPermission) -> None:
        with pytest.raises(ConstraintViolation, match="12-digit AWS account ID"):
            kind.validate({**BASE, "source_account": "1234"})

    def test_function_url_auth_needs_alb(self, kind: LambdaPermission) -> None:
        with pytest.raises(CrossFieldInvariantViolation, match="ALB principal"):
            kind.validate({**BASE, "function_url_auth_type": "NONE"})

    def test_function_url_auth_with_alb(self, kind: LambdaPermission) -> None:
        attrs = kind.validate(
            {
                **BASE,
                "principal": "lambda.alb.amazonaws.com",
                "function_url_auth_type": "NONE",
            }
        )
        assert attrs.service_name == "lambda"


class TestStatementIdDefault:
    def test_generated_from_time(
        self, kind: LambdaPermission, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(lambda_permission.time, "time", lambda: 1700000000.7)
        raw = {k: v for k, v in BASE.items() if k != "statement_id"}
        assert kind.validate(raw).statement_id == "AllowExecutionFrom1700000000"

    def test_not_generated_with_prefix(self, kind: LambdaPermission) -> None:
        raw = {k: v for k, v in BASE.items() if k != "statement_id"}
        attrs = kind.validate({**raw, "statement_id_prefix": "AllowApi"})
        assert attrs.statement_id is None
        assert attrs.statement_id_prefix == "AllowApi"


class TestDerived:
    def test_service_principal(self, kind: LambdaPermission) -> None:
        attrs = kind.validate({**BASE, "principal": "s3.amazonaws.com"})
        assert attrs.is_service_principal
        assert attrs.service_name == "s3"
        assert attrs.requires_source_arn
        assert not attrs.is_cross_account

    def test_api_gateway_does_not_need_source_arn(self, kind: LambdaPermission) -> None:
        assert not kind.validate(BASE).requires_source_arn

    def test_cross_account(self, kind: LambdaPermission) -> None:
        assert kind.validate({**BASE, "principal": "123456789012"}).is_cross_account
        assert kind.validate({**BASE, "principal_org_id": "o-abc"}).is_cross_account
        attrs = kind.validate({**BASE, "principal": "123456789012"})
        assert attrs.service_name is None

    def test_all_actions(self, kind: LambdaPermission) -> None:
        assert kind.validate({**BASE, "action": "lambda:*"}).allows_all_actions
        assert not kind.validate(BASE).allows_all_actions


class TestRender:
    def test_block(self, kind: LambdaPermission) -> None:
        doc = SynthesisDocument()
        source_arn = "${aws_api_gateway_rest_api.orders.execution_arn}/*/*"
        ref = kind.declare(doc, "api", {**BASE, "source_arn": source_arn})
        assert doc.get("resource", "aws_lambda_permission", "api") == {
            **BASE,
            "source_arn": source_arn,
        }
        assert ref.statement_id == "${aws_lambda_permission.api.statement_id}"
