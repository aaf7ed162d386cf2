"""aws_launch_template: EC2 launch template."""

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    ListOf,
    SchemaDefinition,
    ValidatedAttributes,
    exactly_one,
    mutually_exclusive,
)

from .types import instance_type_field, tags_field

VOLUME_TYPES = ("standard", "gp2", "gp3", "io1", "io2", "sc1", "st1")
TAG_SPECIFICATION_RESOURCE_TYPES = (
    "instance",
    "volume",
    "elastic-gpu",
    "spot-instances-request",
    "network-interface",
)

EBS_SCHEMA = SchemaDefinition(
    "ebs",
    fields=(
        FieldSpec("delete_on_termination", bool, default=True, emit="always"),
        FieldSpec("encrypted", bool, default=False, emit="always"),
        FieldSpec("iops", int),
        FieldSpec("kms_key_id", str),
        FieldSpec("snapshot_id", str),
        FieldSpec("throughput", int),
        FieldSpec("volume_size", int),
        FieldSpec("volume_type", str, default="gp3", choices=VOLUME_TYPES),
    ),
)

BLOCK_DEVICE_MAPPING_SCHEMA = SchemaDefinition(
    "block_device_mappings",
    fields=(
        FieldSpec("device_name", str, required=True),
        FieldSpec("no_device", str),
        FieldSpec("virtual_name", str),
        FieldSpec("ebs", EBS_SCHEMA),
    ),
)

NETWORK_INTERFACE_SCHEMA = SchemaDefinition(
    "network_interfaces",
    fields=(
        FieldSpec("associate_public_ip_address", bool, emit="always"),
        FieldSpec("delete_on_termination", bool, default=True, emit="non_default"),
        FieldSpec("description", str),
        FieldSpec("device_index", int, default=0, emit="always"),
        FieldSpec("groups", list[str], default_factory=list),
        FieldSpec("network_interface_id", str),
        FieldSpec("private_ip_address", str),
        FieldSpec("subnet_id", str),
    ),
)

TAG_SPECIFICATION_SCHEMA = SchemaDefinition(
    "tag_specifications",
    fields=(
        FieldSpec(
            "resource_type",
            str,
            required=True,
            choices=TAG_SPECIFICATION_RESOURCE_TYPES,
        ),
        tags_field(),
    ),
)

IAM_INSTANCE_PROFILE_SCHEMA = SchemaDefinition(
    "iam_instance_profile",
    fields=(FieldSpec("arn", str), FieldSpec("name", str)),
    invariants=(
        exactly_one(
            "arn",
            "name",
            missing_message="IAM instance profile must specify either 'arn' or 'name'",
            multiple_message="IAM instance profile cannot specify both 'arn' and 'name'",
        ),
    ),
)

MONITORING_SCHEMA = SchemaDefinition(
    "monitoring",
    fields=(FieldSpec("enabled", bool, default=False, emit="always"),),
)

LAUNCH_TEMPLATE_DATA_SCHEMA = SchemaDefinition(
    "launch_template_data",
    fields=(
        FieldSpec("image_id", str),
        instance_type_field(),
        FieldSpec("key_name", str),
        FieldSpec("user_data", str),
        FieldSpec("security_group_ids", list[str], default_factory=list),
        FieldSpec("vpc_security_group_ids", list[str], default_factory=list),
        FieldSpec("iam_instance_profile", IAM_INSTANCE_PROFILE_SCHEMA),
        FieldSpec(
            "instance_initiated_shutdown_behavior",
            str,
            default="stop",
            choices=("stop", "terminate"),
            emit="non_default",
        ),
        FieldSpec("disable_api_termination", bool, emit="truthy"),
        FieldSpec("monitoring", MONITORING_SCHEMA),
        FieldSpec(
            "block_device_mappings",
            ListOf(BLOCK_DEVICE_MAPPING_SCHEMA),
            default_factory=list,
        ),
        FieldSpec(
            "network_interfaces",
            ListOf(NETWORK_INTERFACE_SCHEMA),
            default_factory=list,
        ),
        FieldSpec(
            "tag_specifications",
            ListOf(TAG_SPECIFICATION_SCHEMA),
            default_factory=list,
        ),
    ),
)


class LaunchTemplateAttributes(ValidatedAttributes):
    @property
    def uses_name_prefix(self) -> bool:
        return self.name_prefix is not None

    @property
    def block_device_count(self) -> int:
        data = self.launch_template_data
        return len(data.block_device_mappings) if data else 0


LAUNCH_TEMPLATE_SCHEMA = SchemaDefinition(
    "aws_launch_template",
    fields=(
        FieldSpec("name", str),
        FieldSpec("name_prefix", str),
        FieldSpec("description", str),
        FieldSpec("launch_template_data", LAUNCH_TEMPLATE_DATA_SCHEMA),
        tags_field(),
    ),
    invariants=(
        mutually_exclusive(
            "name",
            "name_prefix",
            message="Cannot specify both 'name' and 'name_prefix'",
        ),
    ),
    attributes_class=LaunchTemplateAttributes,
)


class LaunchTemplate(BaseResource):
    resource_type = "aws_launch_template"
    schema = LAUNCH_TEMPLATE_SCHEMA
    output_names = ("id", "arn", "latest_version", "default_version", "name")
    description = "EC2 launch template"
