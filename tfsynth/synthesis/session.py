"""
Synthesis session: a document plus the registry used to declare resources.
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any

from tfsynth.core.exceptions import DSLUsageError
from tfsynth.core.registry import ResourceRegistry, create_default_registry
from tfsynth.schema.attributes import ValidatedAttributes
from tfsynth.schema.validator import normalize_keys

from .builder import Body
from .document import SynthesisDocument
from .node import BranchNode
from .reference import ResourceReference, make_reference

logger = logging.getLogger(__name__)


class SynthesisSession:
    """
    One synthesis run.

    Validated declarations go through :meth:`declare`; the raw root entry
    points of the document are exposed unchanged for everything else.
    """

    def __init__(
        self,
        registry: ResourceRegistry | None = None,
        document: SynthesisDocument | None = None,
    ):
        if registry is None:
            registry = create_default_registry()
        self.registry = registry
        self.document = document if document is not None else SynthesisDocument()
        self._references: dict[tuple[str, str], ResourceReference] = {}
        self._logger = logger.getChild(self.__class__.__name__)

    # --- Validated declarations ---

    def declare(
        self, resource_type: str, name: str, attributes: Mapping[str, Any] | None = None
    ) -> ResourceReference:
        """
        Declare a catalog resource.

        Args:
            resource_type: Registered Terraform type (e.g. ``aws_ecr_repository``)
            name: Resource name
            attributes: Raw attribute mapping

        Returns:
            The reference of the declared resource

        Raises:
            ValueError: If the type is not registered
            ValidationError: If the attributes are invalid
        """
        kind = self.registry.get(resource_type)
        reference = kind.declare(self.document, str(name), attributes)
        self._references[(resource_type, str(name))] = reference
        return reference

    def compose(self, composition: str, name: str, /, **kwargs: Any) -> Any:
        """
        Run a registered composition with ``name`` as resource prefix.

        Raises:
            DSLUsageError: If an argument is unknown to the composition,
                a required one is missing, or ``name_prefix`` is passed
                as a keyword
        """
        function = self.registry.get_composition(composition)
        if "name_prefix" in kwargs:
            raise DSLUsageError(
                f"Composition '{composition}' takes its prefix from the "
                f"declaration name, not a 'name_prefix' argument",
                composition,
            )
        try:
            inspect.signature(function).bind(self, name, **kwargs)
        except TypeError as exc:
            raise DSLUsageError(
                f"Invalid arguments for composition '{composition}': {exc}",
                composition,
            ) from exc
        self._logger.info(f"Running composition '{composition}' as '{name}'")
        return function(self, name, **kwargs)

    # --- Raw root entry points ---

    def resource(
        self, resource_type: str, name: str, body: Body = None
    ) -> ResourceReference:
        """Declare an unvalidated resource block and return its reference."""
        self.document.resource(resource_type, name, body)
        raw = normalize_keys(body) if isinstance(body, Mapping) else {}
        reference = make_reference(resource_type, str(name), ValidatedAttributes(**raw))
        self._references[(resource_type, str(name))] = reference
        return reference

    def data(self, data_type: str, name: str, body: Body = None) -> ResourceReference:
        self.document.data(data_type, name, body)
        raw = normalize_keys(body) if isinstance(body, Mapping) else {}
        return make_reference(
            data_type, str(name), ValidatedAttributes(**raw), data_source=True
        )

    def provider(self, name: str, body: Body = None) -> BranchNode:
        return self.document.provider(name, body)

    def variable(self, name: str, body: Body = None) -> str:
        """Declare a variable and return its ``${var.name}`` expression."""
        self.document.variable(name, body)
        return "${var." + str(name) + "}"

    def output(self, name: str, body: Body = None) -> BranchNode:
        return self.document.output(name, body)

    def locals(self, body: Body = None) -> BranchNode:
        return self.document.locals(body)

    def terraform(self, body: Body = None) -> BranchNode:
        return self.document.terraform(body)

    # --- Results ---

    @property
    def references(self) -> list[ResourceReference]:
        """References of declared resources, in declaration order."""
        return list(self._references.values())

    def reference(self, resource_type: str, name: str) -> ResourceReference:
        try:
            return self._references[(resource_type, str(name))]
        except KeyError:
            raise KeyError(f"No resource declared as {resource_type}.{name}") from None

    def synthesize(self) -> dict[str, Any]:
        """Serialize the accumulated document."""
        return self.document.to_dict()

    def to_json(self, indent: int | None = 2) -> str:
        return self.document.to_json(indent=indent)
