"""Compositions: functions declaring a group of related resources."""

from tfsynth.core.registry import ResourceRegistry

from .vpc_with_subnets import (
    COMPOSITION_NAME as VPC_WITH_SUBNETS,
    CompositeVpcReference,
    subnet_cidrs,
    vpc_with_subnets,
)


def register_builtin_compositions(registry: ResourceRegistry) -> None:
    """Register every bundled composition."""
    registry.register_composition(VPC_WITH_SUBNETS, vpc_with_subnets)


__all__ = [
    "CompositeVpcReference",
    "register_builtin_compositions",
    "subnet_cidrs",
    "vpc_with_subnets",
]
