"""Registry of declarable resource kinds and compositions."""

import logging
from collections.abc import Callable
from typing import Any

from .protocols import Composition, ResourceKind

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """
    Registry mapping Terraform resource types to their resource kinds.

    There is no module-level instance: the application entry point builds a
    registry (usually through :func:`create_default_registry`) and passes it
    to the session that needs it.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._resources: dict[str, ResourceKind] = {}
        self._compositions: dict[str, Composition] = {}
        self._logger = logger.getChild(self.__class__.__name__)

    def register(self, resource: ResourceKind) -> None:
        """
        Register a resource kind under its Terraform type.

        Args:
            resource: An instance exposing ``resource_type``

        Raises:
            ValueError: If the resource is None or has no type
        """
        if resource is None:
            raise ValueError("Resource cannot be None")

        resource_type = (getattr(resource, "resource_type", "") or "").strip()
        if not resource_type:
            raise ValueError("Resource type cannot be empty")

        if resource_type in self._resources:
            self._logger.warning(
                f"Overwriting existing registration for resource type '{resource_type}'"
            )

        self._resources[resource_type] = resource
        self._logger.debug(
            f"Registered '{resource.__class__.__name__}' for type '{resource_type}'"
        )

    def get(self, resource_type: str) -> ResourceKind:
        """
        Get the resource kind for a Terraform type.

        Raises:
            ValueError: If the type is not registered
        """
        if not resource_type:
            raise ValueError("Resource type cannot be empty")

        resource_type = resource_type.strip()

        if resource_type not in self._resources:
            available_str = ", ".join(self.get_available_types()) or "none"
            raise ValueError(
                f"Unknown resource type '{resource_type}'. "
                f"Available types: {available_str}"
            )

        return self._resources[resource_type]

    def get_available_types(self) -> list[str]:
        """Sorted list of registered resource types."""
        return sorted(self._resources.keys())

    def is_type_available(self, resource_type: str) -> bool:
        if not resource_type:
            return False
        return resource_type.strip() in self._resources

    def register_composition(self, name: str, composition: Composition) -> None:
        """Register a composition function under a name."""
        if not name or not name.strip():
            raise ValueError("Composition name cannot be empty")
        if not callable(composition):
            raise ValueError("Composition must be callable")

        name = name.strip()
        if name in self._compositions:
            self._logger.warning(f"Overwriting existing composition '{name}'")
        self._compositions[name] = composition

    def get_composition(self, name: str) -> Callable[..., Any]:
        """
        Get a composition function by name.

        Raises:
            ValueError: If the composition is not registered
        """
        if name not in self._compositions:
            available_str = ", ".join(sorted(self._compositions)) or "none"
            raise ValueError(
                f"Unknown composition '{name}'. Available compositions: {available_str}"
            )
        return self._compositions[name]

    def get_available_compositions(self) -> list[str]:
        return sorted(self._compositions.keys())

    def clear(self) -> None:
        """Clear all registrations."""
        self._resources.clear()
        self._compositions.clear()
        self._logger.info("Cleared all resource registrations")

    def __len__(self) -> int:
        """Return the number of registered resource types."""
        return len(self._resources)

    def __contains__(self, resource_type: str) -> bool:
        """Check if a resource type is registered (supports 'in' operator)."""
        return self.is_type_available(resource_type)


def create_default_registry() -> ResourceRegistry:
    """Create a registry holding every built-in resource kind and composition."""
    # Imported here so the catalog is only loaded when a registry is built
    from tfsynth.composition import register_builtin_compositions
    from tfsynth.resources import register_builtin_resources

    registry = ResourceRegistry()
    register_builtin_resources(registry)
    register_builtin_compositions(registry)
    return registry
