from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from tfsynth.schema.attributes import ValidatedAttributes
    from tfsynth.schema.fields import SchemaDefinition
    from tfsynth.synthesis.builder import BlockBuilder
    from tfsynth.synthesis.document import SynthesisDocument
    from tfsynth.synthesis.reference import ResourceReference
    from tfsynth.synthesis.session import SynthesisSession


class ResourceKind(Protocol):
    """Defines the contract for a validated, declarable resource type."""

    resource_type: str
    schema: "SchemaDefinition"
    output_names: tuple[str, ...]

    def validate(self, raw: Mapping[str, Any] | None) -> "ValidatedAttributes":
        """
        Validate a raw attribute mapping.

        Args:
            raw: Attributes with string or Enum keys.

        Returns:
            The immutable validated record.
        """
        ...

    def render(
        self, builder: "BlockBuilder", attributes: "ValidatedAttributes"
    ) -> None:
        """Write validated attributes onto the resource block."""
        ...

    def declare(
        self,
        document: "SynthesisDocument",
        name: str,
        raw: Mapping[str, Any] | None,
    ) -> "ResourceReference":
        """
        Validate, render and register a resource.

        Args:
            document: The document receiving the resource block
            name: The resource name
            raw: The raw attribute mapping

        Returns:
            A reference exposing interpolation strings for the outputs
        """
        ...

    def get_resource_info(self) -> dict[str, Any]:
        """Return a description of the resource kind."""
        ...


class Composition(Protocol):
    """Defines the contract for a function declaring a group of resources."""

    def __call__(self, session: "SynthesisSession", name: str, **kwargs: Any) -> Any:
        """
        Declare every resource of the composition into the session.

        Args:
            session: The session receiving the declarations
            name: Prefix used for every resource name

        Returns:
            A composite reference grouping the declared resources
        """
        ...
