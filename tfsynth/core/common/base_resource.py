import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from tfsynth.core.exceptions import ValidationError
from tfsynth.schema.attributes import ValidatedAttributes, to_plain
from tfsynth.schema.fields import FieldSpec, SchemaDefinition
from tfsynth.schema.validator import validate
from tfsynth.synthesis.builder import BlockBuilder
from tfsynth.synthesis.reference import ResourceReference, make_reference

if TYPE_CHECKING:
    from tfsynth.synthesis.document import SynthesisDocument

logger = logging.getLogger(__name__)


class BaseResource:
    """
    Base class for catalog resources.

    A resource kind is data: a Terraform type, a schema and the logical
    outputs it exposes. :meth:`declare` is the template method shared by all
    kinds (validate, check, render, reference); subclasses override the hooks
    only when their Terraform shape differs from the validated record.
    """

    resource_type: ClassVar[str] = ""
    schema: ClassVar[SchemaDefinition]
    output_names: ClassVar[tuple[str, ...]] = ("id", "arn")
    description: ClassVar[str] = ""

    def __init__(self):
        if not self.resource_type:
            raise ValueError(f"{self.__class__.__name__} must define resource_type")
        self._logger = logger.getChild(self.__class__.__name__)

    # --- Template method ---

    def declare(
        self, document: "SynthesisDocument", name: str, raw: Mapping[str, Any] | None
    ) -> ResourceReference:
        """
        Validate raw attributes and register the resource in the document.

        Args:
            document: Target synthesis document
            name: Resource name
            raw: Attribute mapping (string or Enum keys)

        Returns:
            The reference for the declared resource

        Raises:
            ValidationError: If the attributes do not satisfy the schema
        """
        self._logger.debug(f"Declaring {self.resource_type}.{name}")
        try:
            attributes = self.validate(raw)
            self.check_attributes(name, attributes)
            document.resource(
                self.resource_type,
                name,
                lambda builder: self.render(builder, attributes),
            )
        except ValidationError as e:
            self._logger.error(f"Declaration of {self.resource_type}.{name} failed: {e}")
            raise
        except Exception:
            self._logger.error(
                f"Declaration of {self.resource_type}.{name} failed", exc_info=True
            )
            raise

        reference = make_reference(
            self.resource_type, name, attributes, self.output_names
        )
        self._logger.info(f"Declared {reference.address}")
        return reference

    # --- Hooks ---

    def validate(self, raw: Mapping[str, Any] | None) -> ValidatedAttributes:
        """Validate raw attributes against this resource's schema."""
        return validate(self.schema, raw)

    def check_attributes(self, name: str, attributes: ValidatedAttributes) -> None:
        """Post-validation hook for non-fatal findings (logged, not raised)."""
        return None

    def render(self, builder: BlockBuilder, attributes: ValidatedAttributes) -> None:
        """Write the validated record onto the resource block."""
        builder.attributes(
            self.to_terraform(attributes), blocks=self.block_fields(self.schema)
        )

    def to_terraform(self, attributes: ValidatedAttributes) -> dict[str, Any]:
        """Terraform-shaped mapping honouring each field's emit policy."""
        return render_record(self.schema, attributes)

    # --- Helpers ---

    @staticmethod
    def block_fields(schema: SchemaDefinition) -> list[str]:
        """
        Names of fields rendered as nested blocks.

        Lists of nested records stay JSON arrays even with a single item.
        """
        return [
            spec.name for spec in schema if isinstance(spec.type, SchemaDefinition)
        ]

    def get_resource_info(self) -> dict[str, Any]:
        return {
            "type": self.resource_type,
            "description": self.description,
            "fields": self.schema.field_names,
            "required": self.schema.required_fields,
            "outputs": list(self.output_names),
        }


def _should_emit(spec: FieldSpec, value: Any) -> bool:
    if value is None:
        return False
    if spec.emit == "always":
        return True
    if spec.emit == "truthy":
        return bool(value)
    if isinstance(value, (list, dict)) and not value:
        return False
    if spec.emit == "non_default" and spec.has_default:
        return value != spec.default_value()
    return True


def render_record(
    schema: SchemaDefinition, attributes: ValidatedAttributes
) -> dict[str, Any]:
    """
    Convert a validated record to plain data, dropping values that should
    not appear in the Terraform configuration.

    Nested records are rendered with their own schema so emit policies apply
    at every depth.
    """
    result: dict[str, Any] = {}
    for spec in schema:
        value = attributes.get(spec.name)
        if not _should_emit(spec, value):
            continue
        nested = spec.nested_schema
        if nested is not None and isinstance(value, list):
            result[spec.name] = [render_record(nested, item) for item in value]
        elif nested is not None:
            result[spec.name] = render_record(nested, value)
        else:
            result[spec.name] = to_plain(value)
    return result
