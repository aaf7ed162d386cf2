"""Common base classes and utilities for core functionality."""

from .base_resource import BaseResource, render_record

__all__ = ["BaseResource", "render_record"]
