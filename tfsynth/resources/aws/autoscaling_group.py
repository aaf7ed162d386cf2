"""aws_autoscaling_group: EC2 Auto Scaling group."""

from typing import Any

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.schema import (
    FieldSpec,
    ListOf,
    Range,
    SchemaDefinition,
    ValidatedAttributes,
    at_least_one,
    between,
    exactly_one,
    ordered,
)

TERMINATION_POLICIES = (
    "OldestInstance",
    "NewestInstance",
    "OldestLaunchConfiguration",
    "OldestLaunchTemplate",
    "ClosestToNextInstanceHour",
    "Default",
    "AllocationStrategy",
)

LAUNCH_TEMPLATE_SPEC_SCHEMA = SchemaDefinition(
    "launch_template",
    fields=(
        FieldSpec("id", str),
        FieldSpec("name", str),
        FieldSpec("version", str, default="$Latest"),
    ),
    invariants=(
        exactly_one(
            "id",
            "name",
            missing_message="Launch template must specify either 'id' or 'name'",
            multiple_message="Launch template cannot specify both 'id' and 'name'",
        ),
    ),
)

TAG_SCHEMA = SchemaDefinition(
    "tag",
    fields=(
        FieldSpec("key", str, required=True),
        FieldSpec("value", str, required=True),
        FieldSpec("propagate_at_launch", bool, default=True, emit="always"),
    ),
)

INSTANCE_REFRESH_SCHEMA = SchemaDefinition(
    "instance_refresh",
    fields=(
        FieldSpec(
            "min_healthy_percentage",
            int,
            default=90,
            constraints=(Range(0, 100),),
        ),
        FieldSpec("instance_warmup", int),
        FieldSpec("checkpoint_percentages", list[int], default_factory=list),
        FieldSpec("checkpoint_delay", int),
    ),
)


class AutoScalingGroupAttributes(ValidatedAttributes):
    @property
    def uses_launch_template(self) -> bool:
        return self.launch_template is not None

    @property
    def uses_mixed_instances(self) -> bool:
        return self.mixed_instances_policy is not None

    @property
    def uses_target_groups(self) -> bool:
        return bool(self.target_group_arns)

    @property
    def uses_classic_load_balancers(self) -> bool:
        return bool(self.load_balancers)


LAUNCH_SOURCES = ("launch_configuration", "launch_template", "mixed_instances_policy")

AUTOSCALING_GROUP_SCHEMA = SchemaDefinition(
    "aws_autoscaling_group",
    fields=(
        FieldSpec("min_size", int, required=True, constraints=(Range(min=0),)),
        FieldSpec("max_size", int, required=True, constraints=(Range(min=0),)),
        FieldSpec("desired_capacity", int),
        FieldSpec("default_cooldown", int, default=300, emit="non_default"),
        FieldSpec("launch_configuration", str),
        FieldSpec("launch_template", LAUNCH_TEMPLATE_SPEC_SCHEMA),
        FieldSpec("mixed_instances_policy", dict[str, Any]),
        FieldSpec("vpc_zone_identifier", list[str], default_factory=list),
        FieldSpec("availability_zones", list[str], default_factory=list),
        FieldSpec("health_check_type", str, default="EC2", choices=("EC2", "ELB")),
        FieldSpec("health_check_grace_period", int, default=300, emit="always"),
        FieldSpec(
            "termination_policies",
            list[str],
            default_factory=list,
            choices=TERMINATION_POLICIES,
        ),
        FieldSpec("enabled_metrics", list[str], default_factory=list),
        FieldSpec(
            "metrics_granularity", str, default="1Minute", choices=("1Minute",)
        ),
        FieldSpec("wait_for_capacity_timeout", str, default="10m", emit="always"),
        FieldSpec("min_elb_capacity", int),
        FieldSpec("protect_from_scale_in", bool, default=False, emit="truthy"),
        FieldSpec("service_linked_role_arn", str),
        FieldSpec("max_instance_lifetime", int),
        FieldSpec("capacity_rebalance", bool, default=False, emit="truthy"),
        FieldSpec("target_group_arns", list[str], default_factory=list),
        FieldSpec("load_balancers", list[str], default_factory=list),
        FieldSpec("tags", ListOf(TAG_SCHEMA), default_factory=list),
        FieldSpec("instance_refresh", INSTANCE_REFRESH_SCHEMA),
    ),
    invariants=(
        ordered("min_size", "max_size"),
        between("desired_capacity", "min_size", "max_size"),
        exactly_one(
            *LAUNCH_SOURCES,
            missing_message=(
                "Auto Scaling Group must specify one of: launch_configuration, "
                "launch_template, or mixed_instances_policy"
            ),
            multiple_message=(
                "Auto Scaling Group can only specify one of: launch_configuration, "
                "launch_template, or mixed_instances_policy"
            ),
        ),
        at_least_one(
            "vpc_zone_identifier",
            "availability_zones",
            message=(
                "Auto Scaling Group must specify either vpc_zone_identifier "
                "or availability_zones"
            ),
        ),
    ),
    attributes_class=AutoScalingGroupAttributes,
)


class AutoScalingGroup(BaseResource):
    """
    Auto Scaling group.

    Tags are emitted under the provider's ``tag`` key and the instance
    refresh settings are wrapped in a ``preferences`` block.
    """

    resource_type = "aws_autoscaling_group"
    schema = AUTOSCALING_GROUP_SCHEMA
    output_names = (
        "id",
        "arn",
        "name",
        "min_size",
        "max_size",
        "desired_capacity",
        "default_cooldown",
        "availability_zones",
        "load_balancers",
        "target_group_arns",
        "health_check_type",
        "health_check_grace_period",
        "vpc_zone_identifier",
    )
    description = "EC2 Auto Scaling group"

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        result = render_record(self.schema, attributes)
        if not attributes.enabled_metrics:
            result.pop("metrics_granularity", None)
        tags = result.pop("tags", None)
        refresh = result.pop("instance_refresh", None)
        if tags:
            result["tag"] = tags
        if refresh is not None:
            result["instance_refresh"] = {"preferences": refresh}
        return result
