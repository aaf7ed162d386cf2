"""VPC networking resources used on their own and by compositions."""

import ipaddress
from typing import Any

from tfsynth.core.common.base_resource import BaseResource, render_record
from tfsynth.schema import (
    FieldSpec,
    ListOf,
    Predicate,
    SchemaDefinition,
    ValidatedAttributes,
    at_least_one,
    exactly_one,
    required_if,
)

from .types import cidr_field, cidr_prefix, is_cidr, tags_field

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)

ROUTE_TARGETS = (
    "gateway_id",
    "nat_gateway_id",
    "network_interface_id",
    "transit_gateway_id",
    "vpc_peering_connection_id",
    "vpc_endpoint_id",
    "egress_only_gateway_id",
)

# AWS reserves the network, router, DNS, future-use and broadcast addresses.
RESERVED_ADDRESSES_PER_SUBNET = 5


def _vpc_prefix_ok(cidr: str) -> bool:
    prefix = cidr_prefix(cidr)
    return prefix is None or 16 <= prefix <= 28


class VpcAttributes(ValidatedAttributes):
    @property
    def is_private_cidr(self) -> bool:
        """True if the block lies in RFC 1918 address space."""
        if not is_cidr(self.cidr_block):
            return False
        network = ipaddress.ip_network(self.cidr_block, strict=False)
        if network.version != 4:
            return False
        return any(network.subnet_of(private) for private in PRIVATE_NETWORKS)

    @property
    def estimated_subnet_capacity(self) -> int:
        """Number of /24 subnets that fit in the block (0 outside /16../24)."""
        prefix = cidr_prefix(self.cidr_block)
        if prefix is None or not 16 <= prefix <= 24:
            return 0
        return 2 ** (24 - prefix)


VPC_SCHEMA = SchemaDefinition(
    "aws_vpc",
    fields=(
        FieldSpec(
            "cidr_block",
            str,
            required=True,
            constraints=(
                cidr_field().constraints
                + (
                    Predicate(
                        _vpc_prefix_ok,
                        "VPC CIDR block prefix must be between /16 and /28",
                    ),
                )
            ),
        ),
        FieldSpec("enable_dns_hostnames", bool, default=True, emit="always"),
        FieldSpec("enable_dns_support", bool, default=True, emit="always"),
        FieldSpec(
            "instance_tenancy",
            str,
            default="default",
            choices=("default", "dedicated", "host"),
            emit="non_default",
        ),
        tags_field(),
    ),
    attributes_class=VpcAttributes,
)


class Vpc(BaseResource):
    resource_type = "aws_vpc"
    schema = VPC_SCHEMA
    output_names = (
        "id",
        "arn",
        "cidr_block",
        "default_security_group_id",
        "default_route_table_id",
        "main_route_table_id",
        "owner_id",
    )
    description = "Virtual private cloud"


class SubnetAttributes(ValidatedAttributes):
    @property
    def is_public(self) -> bool:
        if self.map_public_ip_on_launch:
            return True
        return str(self.tags.get("Type", "")).lower() == "public"

    @property
    def is_private(self) -> bool:
        return not self.is_public

    @property
    def subnet_type(self) -> str:
        return "public" if self.is_public else "private"

    @property
    def ip_capacity(self) -> int | None:
        """Usable addresses, or None when the block is an interpolation."""
        prefix = cidr_prefix(self.cidr_block)
        if prefix is None:
            return None
        return 2 ** (32 - prefix) - RESERVED_ADDRESSES_PER_SUBNET


SUBNET_SCHEMA = SchemaDefinition(
    "aws_subnet",
    fields=(
        FieldSpec("vpc_id", str, required=True),
        cidr_field(),
        FieldSpec("availability_zone", str),
        FieldSpec("map_public_ip_on_launch", bool, default=False, emit="always"),
        tags_field(),
    ),
    attributes_class=SubnetAttributes,
)


class Subnet(BaseResource):
    resource_type = "aws_subnet"
    schema = SUBNET_SCHEMA
    output_names = ("id", "arn", "availability_zone", "cidr_block", "vpc_id")
    description = "VPC subnet"


INTERNET_GATEWAY_SCHEMA = SchemaDefinition(
    "aws_internet_gateway",
    fields=(FieldSpec("vpc_id", str), tags_field()),
)


class InternetGateway(BaseResource):
    resource_type = "aws_internet_gateway"
    schema = INTERNET_GATEWAY_SCHEMA
    output_names = ("id", "arn", "owner_id")
    description = "Internet gateway"


EIP_SCHEMA = SchemaDefinition(
    "aws_eip",
    fields=(
        FieldSpec("domain", str, default="vpc", choices=("vpc", "standard")),
        FieldSpec("instance", str),
        FieldSpec("network_interface", str),
        tags_field(),
    ),
)


class Eip(BaseResource):
    resource_type = "aws_eip"
    schema = EIP_SCHEMA
    output_names = ("id", "allocation_id", "public_ip", "public_dns", "private_ip")
    description = "Elastic IP address"


NAT_GATEWAY_SCHEMA = SchemaDefinition(
    "aws_nat_gateway",
    fields=(
        FieldSpec("allocation_id", str),
        FieldSpec("subnet_id", str, required=True),
        FieldSpec(
            "connectivity_type",
            str,
            default="public",
            choices=("public", "private"),
            emit="non_default",
        ),
        tags_field(),
    ),
    invariants=(
        required_if(
            "allocation_id",
            when="connectivity_type",
            equals="public",
            message="allocation_id is required for public NAT gateways",
        ),
    ),
)


class NatGateway(BaseResource):
    resource_type = "aws_nat_gateway"
    schema = NAT_GATEWAY_SCHEMA
    output_names = (
        "id",
        "allocation_id",
        "subnet_id",
        "network_interface_id",
        "private_ip",
        "public_ip",
    )
    description = "NAT gateway"


ROUTE_SCHEMA = SchemaDefinition(
    "route",
    fields=(
        cidr_field(required=False),
        FieldSpec("ipv6_cidr_block", str),
        *(FieldSpec(target, str) for target in ROUTE_TARGETS),
    ),
    invariants=(
        at_least_one(
            "cidr_block",
            "ipv6_cidr_block",
            message="Route must specify a destination cidr_block or ipv6_cidr_block",
        ),
        exactly_one(
            *ROUTE_TARGETS,
            missing_message="Route must specify a target",
            multiple_message="Route can only specify one target",
        ),
    ),
)

ROUTE_TABLE_SCHEMA = SchemaDefinition(
    "aws_route_table",
    fields=(
        FieldSpec("vpc_id", str, required=True),
        FieldSpec("routes", ListOf(ROUTE_SCHEMA), default_factory=list),
        tags_field(),
    ),
)


class RouteTable(BaseResource):
    """Route table; ``routes`` are emitted under the provider's ``route`` key."""

    resource_type = "aws_route_table"
    schema = ROUTE_TABLE_SCHEMA
    output_names = ("id", "arn", "owner_id")
    description = "VPC route table"

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        result = render_record(self.schema, attributes)
        routes = result.pop("routes", None)
        if routes:
            result["route"] = routes
        return result


ROUTE_TABLE_ASSOCIATION_SCHEMA = SchemaDefinition(
    "aws_route_table_association",
    fields=(
        FieldSpec("route_table_id", str, required=True),
        FieldSpec("subnet_id", str),
        FieldSpec("gateway_id", str),
    ),
    invariants=(
        exactly_one(
            "subnet_id",
            "gateway_id",
            missing_message="Route table association must specify subnet_id or gateway_id",
            multiple_message=(
                "Route table association cannot specify both subnet_id and gateway_id"
            ),
        ),
    ),
)


class RouteTableAssociation(BaseResource):
    resource_type = "aws_route_table_association"
    schema = ROUTE_TABLE_ASSOCIATION_SCHEMA
    output_names = ("id",)
    description = "Route table association"
