"""aws_iam_policy: customer managed IAM policy."""

import json
from typing import Any

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.schema import (
    FieldSpec,
    Length,
    ListOf,
    Pattern,
    SchemaDefinition,
    ValidatedAttributes,
    invariant,
)

from .types import tags_field

MAX_POLICY_DOCUMENT_LENGTH = 6144
DANGEROUS_ACTIONS = ("iam:*", "iam:CreateRole", "iam:AttachRolePolicy", "iam:PutRolePolicy")

StringOrList = str | list[str]

STATEMENT_SCHEMA = SchemaDefinition(
    "Statement",
    fields=(
        FieldSpec("Sid", str),
        FieldSpec("Effect", str, required=True, choices=("Allow", "Deny")),
        FieldSpec("Action", StringOrList, required=True),
        FieldSpec("Resource", StringOrList, required=True),
        FieldSpec("Condition", dict[str, Any]),
        FieldSpec("Principal", dict[str, Any] | str),
        FieldSpec("NotAction", StringOrList),
        FieldSpec("NotResource", StringOrList),
        FieldSpec("NotPrincipal", dict[str, Any] | str),
    ),
)

POLICY_DOCUMENT_SCHEMA = SchemaDefinition(
    "policy",
    fields=(
        FieldSpec("Version", str, default="2012-10-17"),
        FieldSpec(
            "Statement",
            ListOf(STATEMENT_SCHEMA),
            required=True,
            constraints=(
                Length(
                    min=1, message="Policy document must have at least one statement"
                ),
            ),
        ),
    ),
)


def _as_list(value: StringOrList | None) -> list[str]:
    if value is None:
        return []
    return [value] if isinstance(value, str) else list(value)


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def policy_json(policy: ValidatedAttributes) -> str:
    """Compact JSON text of a validated policy document."""
    return json.dumps(
        render_record(POLICY_DOCUMENT_SCHEMA, policy), separators=(",", ":")
    )


class IamPolicyAttributes(ValidatedAttributes):
    """Validated IAM policy with security and complexity queries."""

    @property
    def statements(self) -> list[ValidatedAttributes]:
        return list(self.policy.Statement)

    @property
    def uses_reserved_name(self) -> bool:
        return self.name.startswith("AWS") or "Amazon" in self.name

    @property
    def all_actions(self) -> list[str]:
        return _unique([a for s in self.statements for a in _as_list(s.Action)])

    @property
    def all_resources(self) -> list[str]:
        return _unique([r for s in self.statements for r in _as_list(s.Resource)])

    def allows_action(self, action: str) -> bool:
        """True if an Allow statement grants the action, directly or by wildcard."""
        for statement in self.statements:
            if statement.Effect != "Allow":
                continue
            for granted in _as_list(statement.Action):
                if granted in ("*", action):
                    return True
                if granted.endswith("*") and action.startswith(granted[:-1]):
                    return True
        return False

    @property
    def has_wildcard_permissions(self) -> bool:
        return any(
            s.Effect == "Allow"
            and ("*" in _as_list(s.Action) or "*" in _as_list(s.Resource))
            for s in self.statements
        )

    @property
    def security_level(self) -> str:
        if self.has_wildcard_permissions:
            return "high_risk"
        if self.allows_action("iam:*") or self.allows_action("sts:AssumeRole"):
            return "medium_risk"
        return "low_risk"

    @property
    def complexity_score(self) -> int:
        conditions = sum(1 for s in self.statements if s.Condition)
        return (
            len(self.statements)
            + len(self.all_actions)
            + len(self.all_resources)
            + conditions * 2
        )

    @property
    def service_role_policy(self) -> bool:
        return any(a.startswith("sts:AssumeRole") for a in self.all_actions)

    def security_warnings(self) -> list[str]:
        warnings = []
        if self.has_wildcard_permissions:
            warnings.append(
                "Policy contains wildcard (*) permissions - "
                "consider principle of least privilege"
            )
        for action in DANGEROUS_ACTIONS:
            if self.allows_action(action):
                warnings.append(f"Policy allows potentially dangerous action: {action}")
        if any(r.endswith(":root") or r == "*" for r in self.all_resources):
            warnings.append("Policy grants access to root resources - review necessity")
        return warnings


IAM_POLICY_SCHEMA = SchemaDefinition(
    "aws_iam_policy",
    fields=(
        FieldSpec(
            "name",
            str,
            required=True,
            constraints=(
                Length(max=128, message="Policy name cannot exceed 128 characters"),
            ),
        ),
        FieldSpec(
            "path",
            str,
            default="/",
            constraints=(
                Pattern(
                    r"/[\w+=,.@-]*/?",
                    message=(
                        "Path must start and end with '/' and contain only "
                        "valid characters"
                    ),
                ),
                Length(max=512, message="Path cannot exceed 512 characters"),
            ),
        ),
        FieldSpec("description", str),
        FieldSpec("policy", POLICY_DOCUMENT_SCHEMA, required=True),
        tags_field(),
    ),
    invariants=(
        invariant(
            "policy_document_size",
            lambda values: len(policy_json(values["policy"]))
            <= MAX_POLICY_DOCUMENT_LENGTH,
            f"Policy document cannot exceed {MAX_POLICY_DOCUMENT_LENGTH} characters",
            ("policy",),
        ),
    ),
    attributes_class=IamPolicyAttributes,
)


class IamPolicy(BaseResource):
    """
    Managed IAM policy.

    The policy document is rendered as a JSON string. Risky grants do not
    fail validation; they are reported as warnings when declared.
    """

    resource_type = "aws_iam_policy"
    schema = IAM_POLICY_SCHEMA
    output_names = ("id", "arn", "name", "path", "policy_id", "tags_all")
    description = "Customer managed IAM policy"

    def check_attributes(self, name: str, attributes: ValidatedAttributes) -> None:
        warnings = attributes.security_warnings()
        if not warnings:
            return
        self._logger.warning(f"IAM Policy Security Warnings for '{attributes.name}':")
        for warning in warnings:
            self._logger.warning(f"  - {warning}")

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        result = render_record(self.schema, attributes)
        result["policy"] = policy_json(attributes.policy)
        return result
