"""
VPC with one public and one private subnet per availability zone.

Resource names are derived from the prefix::

    {prefix}_vpc, {prefix}_igw
    {prefix}_public_subnet_{i}, {prefix}_private_subnet_{i}
    {prefix}_nat_eip_{i}, {prefix}_nat_{i}
    {prefix}_public_rt, {prefix}_private_rt_{i}
    {prefix}_public_rta_{i}, {prefix}_private_rta_{i}
"""

import ipaddress
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tfsynth.core.exceptions import ConstraintViolation
from tfsynth.resources.aws.types import is_cidr
from tfsynth.synthesis.reference import ResourceReference

if TYPE_CHECKING:
    from tfsynth.synthesis.session import SynthesisSession

logger = logging.getLogger(__name__)

COMPOSITION_NAME = "vpc_with_subnets"
DEFAULT_ROUTE = "0.0.0.0/0"
MAX_SUBNET_PREFIX = 28


@dataclass
class CompositeVpcReference:
    """References of every resource declared by :func:`vpc_with_subnets`."""

    name_prefix: str
    vpc: ResourceReference | None = None
    internet_gateway: ResourceReference | None = None
    public_subnets: list[ResourceReference] = field(default_factory=list)
    private_subnets: list[ResourceReference] = field(default_factory=list)
    elastic_ips: list[ResourceReference] = field(default_factory=list)
    nat_gateways: list[ResourceReference] = field(default_factory=list)
    public_route_table: ResourceReference | None = None
    private_route_tables: list[ResourceReference] = field(default_factory=list)
    route_table_associations: list[ResourceReference] = field(default_factory=list)

    @property
    def vpc_id(self) -> str:
        return self.vpc.id

    @property
    def public_subnet_ids(self) -> list[str]:
        return [subnet.id for subnet in self.public_subnets]

    @property
    def private_subnet_ids(self) -> list[str]:
        return [subnet.id for subnet in self.private_subnets]

    @property
    def all_resources(self) -> list[ResourceReference]:
        """Every declared reference, in declaration order."""
        singles = [self.vpc, self.internet_gateway]
        resources = [ref for ref in singles if ref is not None]
        resources += self.public_subnets + self.private_subnets
        resources += self.elastic_ips + self.nat_gateways
        if self.public_route_table is not None:
            resources.append(self.public_route_table)
        resources += self.private_route_tables + self.route_table_associations
        return resources

    def to_dict(self) -> dict[str, Any]:
        return {
            "name_prefix": self.name_prefix,
            "vpc_id": self.vpc_id if self.vpc else None,
            "public_subnet_ids": self.public_subnet_ids,
            "private_subnet_ids": self.private_subnet_ids,
            "resources": [ref.address for ref in self.all_resources],
        }


def subnet_cidrs(vpc_cidr: str, count: int) -> list[str]:
    """
    Split a VPC block into ``count`` equal subnets, in address order.

    The subnets use ``ceil(log2(count))`` extra prefix bits, so some of the
    block stays free when ``count`` is not a power of two.

    Raises:
        ConstraintViolation: If the block is not a literal CIDR or is too small
    """
    if not is_cidr(vpc_cidr):
        raise ConstraintViolation(
            "vpc_cidr",
            f"Cannot derive subnet CIDRs from '{vpc_cidr}'; "
            "pass explicit subnet CIDRs instead",
            schema=COMPOSITION_NAME,
            actual_value=vpc_cidr,
        )
    network = ipaddress.ip_network(vpc_cidr, strict=False)
    extra_bits = math.ceil(math.log2(count)) if count > 1 else 0
    new_prefix = network.prefixlen + extra_bits
    if new_prefix > MAX_SUBNET_PREFIX:
        raise ConstraintViolation(
            "vpc_cidr",
            f"VPC CIDR {vpc_cidr} is too small for {count} subnets",
            schema=COMPOSITION_NAME,
            actual_value=vpc_cidr,
        )
    size = 2 ** (network.max_prefixlen - new_prefix)
    base = int(network.network_address)
    return [
        str(ipaddress.ip_network((base + index * size, new_prefix)))
        for index in range(count)
    ]


def _tags(defaults: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    return {**defaults, **(overrides or {})}


def vpc_with_subnets(
    session: "SynthesisSession",
    name_prefix: str,
    vpc_cidr: str,
    availability_zones: list[str],
    public_subnet_cidrs: list[str] | None = None,
    private_subnet_cidrs: list[str] | None = None,
    vpc_tags: Mapping[str, str] | None = None,
    igw_tags: Mapping[str, str] | None = None,
    public_subnet_tags: Mapping[str, str] | None = None,
    private_subnet_tags: Mapping[str, str] | None = None,
    nat_tags: Mapping[str, str] | None = None,
    route_table_tags: Mapping[str, str] | None = None,
) -> CompositeVpcReference:
    """
    Declare a two-tier VPC.

    Public subnets take the first ``n`` carved blocks and private subnets the
    next ``n``; explicit CIDR lists win index by index. Each public subnet
    hosts a NAT gateway that the matching private route table uses as its
    default route.

    Args:
        session: Session receiving the declarations
        name_prefix: Prefix of every resource name
        vpc_cidr: VPC block (e.g. ``10.0.0.0/16``)
        availability_zones: One public and one private subnet per zone
        public_subnet_cidrs: Optional explicit public subnet blocks
        private_subnet_cidrs: Optional explicit private subnet blocks

    Returns:
        A CompositeVpcReference grouping every declared resource

    Raises:
        ConstraintViolation: If no availability zone is given
    """
    if not availability_zones:
        raise ConstraintViolation(
            "availability_zones",
            "At least one availability zone must be specified",
            schema=COMPOSITION_NAME,
            actual_value=availability_zones,
        )

    prefix = str(name_prefix)
    zone_count = len(availability_zones)
    public_cidrs = list(public_subnet_cidrs or [])
    private_cidrs = list(private_subnet_cidrs or [])
    needs_carving = len(public_cidrs) < zone_count or len(private_cidrs) < zone_count
    carved = subnet_cidrs(vpc_cidr, zone_count * 2) if needs_carving else []

    logger.info(
        f"Composing VPC '{prefix}' ({vpc_cidr}) across {zone_count} availability zones"
    )
    result = CompositeVpcReference(prefix)

    result.vpc = session.declare(
        "aws_vpc",
        f"{prefix}_vpc",
        {
            "cidr_block": vpc_cidr,
            "enable_dns_hostnames": True,
            "enable_dns_support": True,
            "tags": _tags({"Name": f"{prefix}-vpc"}, vpc_tags),
        },
    )
    result.internet_gateway = session.declare(
        "aws_internet_gateway",
        f"{prefix}_igw",
        {
            "vpc_id": result.vpc.id,
            "tags": _tags({"Name": f"{prefix}-igw"}, igw_tags),
        },
    )

    for index, zone in enumerate(availability_zones):
        public_cidr = (
            public_cidrs[index] if index < len(public_cidrs) else carved[index]
        )
        private_cidr = (
            private_cidrs[index]
            if index < len(private_cidrs)
            else carved[index + zone_count]
        )
        result.public_subnets.append(
            session.declare(
                "aws_subnet",
                f"{prefix}_public_subnet_{index}",
                {
                    "vpc_id": result.vpc.id,
                    "cidr_block": public_cidr,
                    "availability_zone": zone,
                    "map_public_ip_on_launch": True,
                    "tags": _tags(
                        {"Name": f"{prefix}-public-{index}", "Type": "public"},
                        public_subnet_tags,
                    ),
                },
            )
        )
        result.private_subnets.append(
            session.declare(
                "aws_subnet",
                f"{prefix}_private_subnet_{index}",
                {
                    "vpc_id": result.vpc.id,
                    "cidr_block": private_cidr,
                    "availability_zone": zone,
                    "map_public_ip_on_launch": False,
                    "tags": _tags(
                        {"Name": f"{prefix}-private-{index}", "Type": "private"},
                        private_subnet_tags,
                    ),
                },
            )
        )

    for index, public_subnet in enumerate(result.public_subnets):
        eip = session.declare(
            "aws_eip",
            f"{prefix}_nat_eip_{index}",
            {"domain": "vpc", "tags": _tags({"Name": f"{prefix}-nat-eip-{index}"}, nat_tags)},
        )
        result.elastic_ips.append(eip)
        result.nat_gateways.append(
            session.declare(
                "aws_nat_gateway",
                f"{prefix}_nat_{index}",
                {
                    "allocation_id": eip.id,
                    "subnet_id": public_subnet.id,
                    "tags": _tags({"Name": f"{prefix}-nat-{index}"}, nat_tags),
                },
            )
        )

    result.public_route_table = session.declare(
        "aws_route_table",
        f"{prefix}_public_rt",
        {
            "vpc_id": result.vpc.id,
            "routes": [
                {"cidr_block": DEFAULT_ROUTE, "gateway_id": result.internet_gateway.id}
            ],
            "tags": _tags({"Name": f"{prefix}-public-rt"}, route_table_tags),
        },
    )
    for index, subnet in enumerate(result.public_subnets):
        result.route_table_associations.append(
            session.declare(
                "aws_route_table_association",
                f"{prefix}_public_rta_{index}",
                {"route_table_id": result.public_route_table.id, "subnet_id": subnet.id},
            )
        )

    for index, nat_gateway in enumerate(result.nat_gateways):
        route_table = session.declare(
            "aws_route_table",
            f"{prefix}_private_rt_{index}",
            {
                "vpc_id": result.vpc.id,
                "routes": [
                    {"cidr_block": DEFAULT_ROUTE, "nat_gateway_id": nat_gateway.id}
                ],
                "tags": _tags({"Name": f"{prefix}-private-rt-{index}"}, route_table_tags),
            },
        )
        result.private_route_tables.append(route_table)
        result.route_table_associations.append(
            session.declare(
                "aws_route_table_association",
                f"{prefix}_private_rta_{index}",
                {
                    "route_table_id": route_table.id,
                    "subnet_id": result.private_subnets[index].id,
                },
            )
        )

    logger.info(
        f"Composed VPC '{prefix}' with {len(result.all_resources)} resources"
    )
    return result
