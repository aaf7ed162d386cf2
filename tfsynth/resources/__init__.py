"""Built-in resource catalog."""

from tfsynth.core.registry import ResourceRegistry

from .aws import register_aws_resources


def register_builtin_resources(registry: ResourceRegistry) -> None:
    """Register the resource kinds of every bundled provider."""
    register_aws_resources(registry)


__all__ = ["register_builtin_resources"]
