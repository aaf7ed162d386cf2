"""Resource references handed back after each declaration."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from tfsynth.schema.attributes import ValidatedAttributes


def interpolation(*parts: str) -> str:
    """Build a Terraform interpolation string, e.g. ``${aws_vpc.main.id}``."""
    return "${" + ".".join(str(part) for part in parts) + "}"


@dataclass(frozen=True)
class ResourceReference:
    """
    Value object bundling a declared resource with its interpolation strings.

    Attribute access falls back to the logical outputs first and then to the
    validated attributes, so derived properties such as ``is_immutable`` can
    be read directly from the reference.
    """

    resource_type: str
    name: str
    attributes: ValidatedAttributes
    outputs: Mapping[str, str] = field(default_factory=dict)
    data_source: bool = False

    @property
    def address(self) -> str:
        prefix = "data." if self.data_source else ""
        return f"{prefix}{self.resource_type}.{self.name}"

    def ref(self, attribute: str) -> str:
        """Interpolation string for any attribute, declared output or not."""
        return interpolation(self.address, attribute)

    @property
    def id(self) -> str:
        return self.outputs.get("id") or self.ref("id")

    @property
    def arn(self) -> str:
        return self.outputs.get("arn") or self.ref("arn")

    def __getattr__(self, item: str) -> Any:
        if item.startswith("_"):
            raise AttributeError(item)
        outputs = object.__getattribute__(self, "outputs")
        if item in outputs:
            return outputs[item]
        attributes = object.__getattribute__(self, "attributes")
        try:
            return getattr(attributes, item)
        except AttributeError:
            raise AttributeError(
                f"'{self.resource_type}.{self.name}' has no output or "
                f"attribute '{item}'"
            ) from None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.resource_type,
            "name": self.name,
            "attributes": self.attributes.to_dict(),
            "outputs": dict(self.outputs),
        }


def make_reference(
    resource_type: str,
    name: str,
    attributes: ValidatedAttributes,
    output_names: Iterable[str] = (),
    data_source: bool = False,
) -> ResourceReference:
    """
    Create the reference for a freshly registered resource.

    Args:
        resource_type: Terraform resource type (e.g. ``aws_vpc``)
        name: Resource name inside the document
        attributes: The validated attributes of the declaration
        output_names: Logical outputs exposed as interpolation strings
        data_source: True when the entry lives under ``data``

    Returns:
        An immutable ResourceReference
    """
    prefix = ("data",) if data_source else ()
    outputs = {
        output: interpolation(*prefix, resource_type, name, output)
        for output in output_names
    }
    return ResourceReference(
        resource_type=resource_type,
        name=str(name),
        attributes=attributes,
        outputs=MappingProxyType(outputs),
        data_source=data_source,
    )
