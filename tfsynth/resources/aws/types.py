"""Field helpers shared by AWS resource schemas."""

import ipaddress
from typing import Any

from tfsynth.schema import FieldSpec, Pattern, Predicate
from tfsynth.schema.constraints import Message

ARN_REGEX = r"arn:aws[a-zA-Z-]*:[a-z0-9-]+:[a-z0-9-]*:(\d{12})?:.+"
ACCOUNT_ID_REGEX = r"\d{12}"


def tags_field(name: str = "tags") -> FieldSpec:
    """Optional ``{key: value}`` tag map, empty by default."""
    return FieldSpec(
        name,
        dict[str, str],
        default_factory=dict,
        description="Resource tags",
    )


def is_cidr(value: Any) -> bool:
    try:
        ipaddress.ip_network(str(value), strict=False)
    except ValueError:
        return False
    return "/" in str(value)


def cidr_field(name: str = "cidr_block", required: bool = True) -> FieldSpec:
    return FieldSpec(
        name,
        str,
        required=required,
        constraints=(
            Predicate(
                lambda value: "${" in value or is_cidr(value),
                lambda value: f"Invalid CIDR block: '{value}'",
            ),
        ),
    )


def arn_pattern(message: Message = None) -> Pattern:
    """ARN format check that lets interpolation strings through."""
    return Pattern(ARN_REGEX, message=message, allow_interpolation=True)


def cidr_prefix(cidr: str | None) -> int | None:
    """Prefix length of a CIDR string, or None if it is not a literal CIDR."""
    if not cidr or not is_cidr(cidr):
        return None
    return ipaddress.ip_network(cidr, strict=False).prefixlen


INSTANCE_TYPE_REGEX = (
    r"[a-z][a-z0-9-]*\d[a-z0-9-]*\."
    r"(nano|micro|small|medium|large|\d*xlarge|metal(-\d+xl)?)"
)


def instance_type_field(name: str = "instance_type", required: bool = False) -> FieldSpec:
    return FieldSpec(
        name,
        str,
        required=required,
        constraints=(
            Pattern(
                INSTANCE_TYPE_REGEX,
                message=lambda value: f"Invalid instance type: '{value}'",
                allow_interpolation=True,
            ),
        ),
    )
