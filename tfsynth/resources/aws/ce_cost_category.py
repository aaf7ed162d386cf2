"""
aws_ce_cost_category: Cost Explorer cost category.

Rules map billing line items onto category values through nested cost
expressions; split charge rules redistribute shared costs between values.
The derived scores are fixed contracts used by reporting tooling:

- ``complexity_score`` = rules*5 + inherited*3 + split rules*10 + the
  expression complexity of every rule, capped at 100
- ``allocation_coverage_estimate`` = 60 for any rules, +20 with a default
  value, + min(rules*2, 15), +5 with split charge rules, capped at 100
"""

from datetime import date, timedelta
from typing import Any

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.schema import (
    Each,
    FieldSpec,
    Length,
    ListOf,
    Pattern,
    Predicate,
    SchemaDefinition,
    ValidatedAttributes,
    at_least_one,
    forbidden_unless,
    invariant,
    not_blank,
    referenced_in,
    required_if,
    unique_in,
)

from .types import tags_field

RULE_TYPES = ("REGULAR", "INHERITED")
SPLIT_CHARGE_METHODS = ("FIXED", "PROPORTIONAL", "EVEN")
RESERVED_NAMES = (
    "BLENDED_COST",
    "UNBLENDED_COST",
    "AMORTIZED_COST",
    "NET_UNBLENDED_COST",
    "NET_AMORTIZED_COST",
)
DIMENSION_KEYS = (
    "AZ",
    "INSTANCE_TYPE",
    "LINKED_ACCOUNT",
    "LINKED_ACCOUNT_NAME",
    "OPERATION",
    "PURCHASE_TYPE",
    "REGION",
    "SERVICE",
    "SERVICE_CODE",
    "USAGE_TYPE",
    "USAGE_TYPE_GROUP",
    "RECORD_TYPE",
    "OPERATING_SYSTEM",
    "TENANCY",
    "SCOPE",
    "PLATFORM",
    "SUBSCRIPTION_ID",
    "LEGAL_ENTITY_NAME",
    "DEPLOYMENT_OPTION",
    "DATABASE_ENGINE",
    "CACHE_ENGINE",
    "INSTANCE_TYPE_FAMILY",
    "BILLING_ENTITY",
    "RESERVATION_ID",
    "RESOURCE_ID",
    "RIGHTSIZING_TYPE",
    "SAVINGS_PLANS_TYPE",
    "SAVINGS_PLAN_ARN",
    "PAYMENT_OPTION",
)
MATCH_OPTIONS = (
    "EQUALS",
    "ABSENT",
    "STARTS_WITH",
    "ENDS_WITH",
    "CONTAINS",
    "CASE_SENSITIVE",
    "CASE_INSENSITIVE",
)
EXPRESSION_TYPES = ("and", "or", "not", "dimension", "tags", "cost_category")
RULE_VERSION = "CostCategoryExpression.v1"

VALUE_CHARSET = r"[a-zA-Z0-9\s\-_.]+"
DATE_REGEX = r"\d{4}-\d{2}-\d{2}"


def _match_options_field() -> FieldSpec:
    return FieldSpec(
        "match_options",
        list[str],
        default_factory=list,
        choices=MATCH_OPTIONS,
        constraints=(Length(max=1),),
    )


DIMENSION_FILTER_SCHEMA = SchemaDefinition(
    "dimension",
    fields=(
        FieldSpec("key", str, required=True, choices=DIMENSION_KEYS),
        FieldSpec("values", list[str], required=True, constraints=(Length(1, 10000),)),
        _match_options_field(),
    ),
)

TAG_FILTER_SCHEMA = SchemaDefinition(
    "tags",
    fields=(
        FieldSpec("key", str, required=True, constraints=(Length(1, 128),)),
        FieldSpec("values", list[str], default_factory=list, constraints=(Length(max=1000),)),
        _match_options_field(),
    ),
)

COST_CATEGORY_FILTER_SCHEMA = SchemaDefinition(
    "cost_category",
    fields=(
        FieldSpec("key", str, required=True, constraints=(Length(1, 50),)),
        FieldSpec("values", list[str], required=True, constraints=(Length(1, 20),)),
        _match_options_field(),
    ),
)

EXPRESSION_SCHEMA = SchemaDefinition(
    "rule",
    fields=(
        FieldSpec(
            "and",
            list[dict[str, Any]],
            constraints=(
                Length(min=2, message="AND expression must have at least 2 conditions"),
            ),
        ),
        FieldSpec(
            "or",
            list[dict[str, Any]],
            constraints=(
                Length(min=2, message="OR expression must have at least 2 conditions"),
            ),
        ),
        FieldSpec("not", dict[str, Any]),
        FieldSpec("dimension", DIMENSION_FILTER_SCHEMA),
        FieldSpec("tags", TAG_FILTER_SCHEMA),
        FieldSpec("cost_category", COST_CATEGORY_FILTER_SCHEMA),
    ),
    invariants=(
        at_least_one(
            *EXPRESSION_TYPES,
            message="Cost category expression must specify at least one condition",
        ),
    ),
)

INHERITED_VALUE_SCHEMA = SchemaDefinition(
    "inherited_value",
    fields=(
        FieldSpec("dimension_key", str, choices=DIMENSION_KEYS),
        FieldSpec("dimension_name", str),
    ),
)

RULE_SCHEMA = SchemaDefinition(
    "rules",
    fields=(
        FieldSpec(
            "value",
            str,
            required=True,
            strip=True,
            constraints=(
                Length(1, 50),
                Pattern(
                    VALUE_CHARSET,
                    message=(
                        "Cost category value must contain only alphanumeric "
                        "characters, spaces, hyphens, underscores, and periods"
                    ),
                ),
            ),
        ),
        FieldSpec("rule", EXPRESSION_SCHEMA, required=True),
        FieldSpec("type", str, default="REGULAR", choices=RULE_TYPES),
        FieldSpec("inherited_value", INHERITED_VALUE_SCHEMA),
    ),
    invariants=(
        required_if(
            "inherited_value",
            when="type",
            equals="INHERITED",
            message="INHERITED rule type requires inherited_value configuration",
        ),
        forbidden_unless(
            "inherited_value",
            when="type",
            equals="INHERITED",
            message="REGULAR rule type cannot have inherited_value configuration",
        ),
    ),
)


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


SPLIT_CHARGE_PARAMETER_SCHEMA = SchemaDefinition(
    "parameters",
    fields=(
        FieldSpec("type", str, required=True, choices=("ALLOCATION_PERCENTAGES",)),
        FieldSpec(
            "values",
            list[str],
            required=True,
            constraints=(
                Length(min=1),
                Each(
                    Predicate(
                        _is_number,
                        lambda value: f"Split charge parameter value must be numeric: '{value}'",
                    )
                ),
            ),
        ),
    ),
)


def _percentages(values) -> list[float]:
    parameters = values.get("parameters") or []
    if not parameters:
        return []
    return [float(v) for v in parameters[0]["values"]]


SPLIT_CHARGE_RULE_SCHEMA = SchemaDefinition(
    "split_charge_rules",
    fields=(
        FieldSpec("source", str, required=True, constraints=(Length(1, 50),)),
        FieldSpec(
            "targets",
            list[str],
            required=True,
            constraints=(Length(1, 500), Each(Length(1, 50))),
        ),
        FieldSpec("method", str, required=True, choices=SPLIT_CHARGE_METHODS),
        FieldSpec(
            "parameters",
            ListOf(SPLIT_CHARGE_PARAMETER_SCHEMA),
            constraints=(Length(max=10),),
        ),
    ),
    invariants=(
        required_if(
            "parameters",
            when="method",
            equals=("FIXED", "PROPORTIONAL"),
            message=lambda values: (
                f"{values['method']} split charge method requires parameters"
            ),
        ),
        invariant(
            "fixed_percentages_total",
            lambda values: values["method"] != "FIXED"
            or abs(sum(_percentages(values)) - 100.0) < 0.01,
            "FIXED split charge percentages must sum to 100%",
        ),
        invariant(
            "fixed_percentage_per_target",
            lambda values: values["method"] != "FIXED"
            or len(_percentages(values)) == len(values["targets"]),
            "FIXED split charge must have one percentage per target",
        ),
        forbidden_unless(
            "parameters",
            when="method",
            equals=("FIXED", "PROPORTIONAL"),
            message="EVEN split charge method should not have parameters",
        ),
        invariant(
            "source_not_in_targets",
            lambda values: values["source"] not in values["targets"],
            "Split charge source cannot be in targets list",
            ("source", "targets"),
        ),
        unique_in("targets", message="Split charge targets must be unique"),
    ),
)


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _is_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _date_field(name: str) -> FieldSpec:
    return FieldSpec(
        name,
        str,
        constraints=(
            Pattern(DATE_REGEX, message="Effective dates must be in YYYY-MM-DD format"),
            Predicate(_is_date, "Effective dates must be in YYYY-MM-DD format"),
        ),
    )


def _dates_ordered(values) -> bool:
    start = _parse_date(values.get("effective_start"))
    end = _parse_date(values.get("effective_end"))
    return start is None or end is None or end > start


def _start_recent(values) -> bool:
    start = _parse_date(values.get("effective_start"))
    return start is None or start >= date.today() - timedelta(days=365)


def _category_values(values) -> list[str]:
    pool = [rule.value for rule in values["rules"]]
    if values.get("default_value"):
        pool.append(values["default_value"])
    return pool


def _split_sources(values) -> list[str]:
    return [rule.source for rule in values.get("split_charge_rules") or []]


def _split_targets(values) -> list[str]:
    return [t for rule in values.get("split_charge_rules") or [] for t in rule.targets]


def expression_complexity(expression: Any) -> int:
    """Weight of a cost expression: and/or cost 5, not costs 3, recursively."""
    if not expression:
        return 0
    complexity = 0
    for operator in ("and", "or"):
        branches = expression.get(operator)
        if branches:
            complexity += 5
            complexity += sum(expression_complexity(branch) for branch in branches)
    negated = expression.get("not")
    if negated:
        complexity += 3 + expression_complexity(negated)
    return complexity


class CostCategoryAttributes(ValidatedAttributes):
    """Validated cost category with allocation scoring."""

    @property
    def rule_count(self) -> int:
        return len(self.rules)

    @property
    def regular_rule_count(self) -> int:
        return sum(1 for rule in self.rules if rule.type != "INHERITED")

    @property
    def inherited_rule_count(self) -> int:
        return sum(1 for rule in self.rules if rule.type == "INHERITED")

    @property
    def has_default_value(self) -> bool:
        return self.default_value is not None

    @property
    def has_split_charge_rules(self) -> bool:
        return bool(self.split_charge_rules)

    @property
    def split_charge_rule_count(self) -> int:
        return len(self.split_charge_rules or [])

    @property
    def has_effective_dates(self) -> bool:
        return bool(self.effective_start or self.effective_end)

    @property
    def is_time_limited(self) -> bool:
        return self.effective_end is not None

    @property
    def complexity_score(self) -> int:
        score = (
            self.rule_count * 5
            + self.inherited_rule_count * 3
            + self.split_charge_rule_count * 10
        )
        score += sum(expression_complexity(rule.rule) for rule in self.rules)
        return min(score, 100)

    @property
    def complexity_level(self) -> str:
        score = self.complexity_score
        if score <= 20:
            return "SIMPLE"
        if score <= 40:
            return "MODERATE"
        if score <= 70:
            return "COMPLEX"
        return "VERY_COMPLEX"

    @property
    def allocation_coverage_estimate(self) -> int:
        coverage = 0
        if self.rule_count > 0:
            coverage += 60
        if self.has_default_value:
            coverage += 20
        coverage += min(self.rule_count * 2, 15)
        if self.has_split_charge_rules:
            coverage += 5
        return min(coverage, 100)

    @property
    def governance_maturity_level(self) -> str:
        coverage = self.allocation_coverage_estimate
        if coverage >= 90 and self.has_default_value and self.has_split_charge_rules:
            return "ADVANCED"
        if coverage >= 70 and self.has_default_value:
            return "INTERMEDIATE"
        if coverage >= 50:
            return "BASIC"
        return "MINIMAL"


COST_CATEGORY_SCHEMA = SchemaDefinition(
    "aws_ce_cost_category",
    fields=(
        FieldSpec(
            "name",
            str,
            required=True,
            strip=True,
            constraints=(
                not_blank("Cost category name cannot be empty"),
                Predicate(
                    lambda value: value.upper() not in RESERVED_NAMES,
                    "Cost category name cannot be a reserved AWS name: "
                    + ", ".join(RESERVED_NAMES),
                ),
                Pattern(
                    r"[a-zA-Z0-9\s\-_.]{1,50}",
                    message=(
                        "Cost category name must be 1-50 characters: letters, "
                        "numbers, spaces, hyphens, underscores, and periods"
                    ),
                ),
            ),
        ),
        FieldSpec("rule_version", str, default=RULE_VERSION, emit="always"),
        FieldSpec(
            "rules",
            ListOf(RULE_SCHEMA),
            required=True,
            constraints=(
                Length(1, 500, message="Cost category must have between 1 and 500 rules"),
            ),
        ),
        FieldSpec("default_value", str, constraints=(Length(1, 50),)),
        FieldSpec(
            "split_charge_rules",
            ListOf(SPLIT_CHARGE_RULE_SCHEMA),
            constraints=(Length(max=10),),
        ),
        _date_field("effective_start"),
        _date_field("effective_end"),
        tags_field(),
    ),
    invariants=(
        unique_in(
            "rules",
            key=lambda rule: rule.value,
            message="Cost category rule values must be unique within the category",
        ),
        invariant(
            "regular_rule_present",
            lambda values: any(rule.type != "INHERITED" for rule in values["rules"]),
            "Cost category must have at least one REGULAR rule",
            ("rules",),
        ),
        invariant(
            "effective_dates_ordered",
            _dates_ordered,
            "Effective end date must be after start date",
            ("effective_start", "effective_end"),
        ),
        invariant(
            "effective_start_recent",
            _start_recent,
            "Effective start date cannot be more than 1 year in the past",
            ("effective_start",),
        ),
        referenced_in(
            "split_charge_rules",
            _split_sources,
            _category_values,
            lambda source: (
                f"Split charge source '{source}' must be a valid cost category value"
            ),
        ),
        referenced_in(
            "split_charge_rules",
            _split_targets,
            _category_values,
            lambda target: (
                f"Split charge target '{target}' must be a valid cost category value"
            ),
        ),
    ),
    attributes_class=CostCategoryAttributes,
)


class CostCategory(BaseResource):
    """
    Cost Explorer cost category.

    Rules render as the provider's repeated ``rule`` blocks and split charge
    rules as ``split_charge_rule`` blocks with ``parameter`` entries.
    """

    resource_type = "aws_ce_cost_category"
    schema = COST_CATEGORY_SCHEMA
    output_names = (
        "arn",
        "id",
        "name",
        "default_value",
        "effective_start",
        "effective_end",
        "tags_all",
    )
    description = "Cost Explorer cost category"

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        result = render_record(self.schema, attributes)
        result["rule"] = result.pop("rules")
        split_rules = result.pop("split_charge_rules", None)
        if split_rules:
            for split_rule in split_rules:
                if "parameters" in split_rule:
                    split_rule["parameter"] = split_rule.pop("parameters")
            result["split_charge_rule"] = split_rules
        return result
