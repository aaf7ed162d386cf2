"""aws_instance: single EC2 instance."""

from tfsynth.core.common.base_resource import BaseResource
from tfsynth.schema import (
    FieldSpec,
    ListOf,
    SchemaDefinition,
    ValidatedAttributes,
    invariant,
    is_interpolation,
    mutually_exclusive,
)

from .types import instance_type_field, tags_field

VOLUME_TYPES = ("standard", "gp2", "gp3", "io1", "io2")

# On-demand us-east-1 Linux prices, USD per hour.
HOURLY_COSTS = {
    "t3.micro": 0.0104,
    "t3.small": 0.0208,
    "t3.medium": 0.0416,
    "t3.large": 0.0832,
    "t3.xlarge": 0.1664,
    "m5.large": 0.096,
    "m5.xlarge": 0.192,
    "m5.2xlarge": 0.384,
    "c5.large": 0.085,
    "c5.xlarge": 0.17,
    "r5.large": 0.126,
    "r5.xlarge": 0.252,
}
DEFAULT_HOURLY_COST = 0.10


def _volume_fields() -> tuple[FieldSpec, ...]:
    return (
        FieldSpec("volume_type", str, choices=VOLUME_TYPES),
        FieldSpec("volume_size", int),
        FieldSpec("iops", int),
        FieldSpec("throughput", int),
        FieldSpec("delete_on_termination", bool),
        FieldSpec("encrypted", bool),
        FieldSpec("kms_key_id", str),
    )


ROOT_BLOCK_DEVICE_SCHEMA = SchemaDefinition(
    "root_block_device",
    fields=_volume_fields(),
    invariants=(
        invariant(
            "iops_volume_type",
            lambda values: values["iops"] is None
            or values["volume_type"] in ("io1", "io2"),
            "IOPS can only be specified for io1 or io2 volume types",
            ("iops", "volume_type"),
        ),
        invariant(
            "throughput_volume_type",
            lambda values: values["throughput"] is None
            or values["volume_type"] == "gp3",
            "Throughput can only be specified for gp3 volume type",
            ("throughput", "volume_type"),
        ),
    ),
)

EBS_BLOCK_DEVICE_SCHEMA = SchemaDefinition(
    "ebs_block_device",
    fields=(
        FieldSpec("device_name", str, required=True),
        *_volume_fields(),
        FieldSpec("snapshot_id", str),
    ),
)


class InstanceAttributes(ValidatedAttributes):
    @property
    def compute_family(self) -> str | None:
        if is_interpolation(self.instance_type):
            return None
        return self.instance_type.split(".")[0]

    @property
    def compute_size(self) -> str | None:
        if is_interpolation(self.instance_type):
            return None
        return self.instance_type.split(".")[-1]

    @property
    def supports_ebs_optimization(self) -> bool:
        return self.compute_family not in ("t2", "t3")

    @property
    def will_have_public_ip(self) -> bool:
        if self.associate_public_ip_address is not None:
            return self.associate_public_ip_address
        return "public" in (self.subnet_id or "")

    @property
    def estimated_hourly_cost(self) -> float:
        return HOURLY_COSTS.get(self.instance_type, DEFAULT_HOURLY_COST)


INSTANCE_SCHEMA = SchemaDefinition(
    "aws_instance",
    fields=(
        FieldSpec("ami", str, required=True),
        instance_type_field(required=True),
        FieldSpec("subnet_id", str),
        FieldSpec("vpc_security_group_ids", list[str], default_factory=list),
        FieldSpec("availability_zone", str),
        FieldSpec("associate_public_ip_address", bool, emit="always"),
        FieldSpec("key_name", str),
        FieldSpec("user_data", str),
        FieldSpec("user_data_base64", str),
        FieldSpec("iam_instance_profile", str),
        FieldSpec("root_block_device", ROOT_BLOCK_DEVICE_SCHEMA),
        FieldSpec("ebs_block_device", ListOf(EBS_BLOCK_DEVICE_SCHEMA), default_factory=list),
        FieldSpec(
            "instance_initiated_shutdown_behavior",
            str,
            choices=("stop", "terminate"),
        ),
        FieldSpec("monitoring", bool, default=False, emit="truthy"),
        FieldSpec("ebs_optimized", bool, default=False, emit="truthy"),
        FieldSpec("source_dest_check", bool, emit="always"),
        FieldSpec("disable_api_termination", bool, default=False, emit="truthy"),
        tags_field(),
    ),
    invariants=(
        mutually_exclusive(
            "user_data",
            "user_data_base64",
            message="Cannot specify both 'user_data' and 'user_data_base64'",
        ),
    ),
    attributes_class=InstanceAttributes,
)


class Instance(BaseResource):
    resource_type = "aws_instance"
    schema = INSTANCE_SCHEMA
    output_names = (
        "id",
        "arn",
        "private_ip",
        "public_ip",
        "private_dns",
        "public_dns",
        "primary_network_interface_id",
    )
    description = "EC2 instance"
