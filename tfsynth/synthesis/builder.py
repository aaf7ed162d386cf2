"""
Fluent builder driving the accumulation tree.

Each call either sets a value on the current branch or opens a nested
block. Bodies are callables receiving the child builder, or plain mappings
that are mapped onto the tree.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Union

from tfsynth.core.exceptions import DSLUsageError
from tfsynth.schema.validator import normalize_keys

from .node import BranchNode

logger = logging.getLogger(__name__)

Body = Union[Callable[["BlockBuilder"], Any], Mapping[str, Any], None]


class BlockBuilder:
    """Fluent builder for one branch of the synthesis tree."""

    def __init__(self, node: BranchNode | None = None, parent: "BlockBuilder | None" = None):
        self._node = node if node is not None else BranchNode()
        self._parent = parent

    @property
    def node(self) -> BranchNode:
        return self._node

    def call(self, name: str, *values: Any, body: Body = None) -> "BlockBuilder":
        """
        Generic entry point: set a value or open a nested block.

        Args:
            name: Attribute or block name
            values: One value sets a scalar, several set a list
            body: Callable or mapping describing a nested block

        Returns:
            This builder, so calls can be chained

        Raises:
            DSLUsageError: If both values and a body are given, or neither
        """
        if values and body is not None:
            raise DSLUsageError(
                f"'{name}' was given both a value and a block body",
                block_name=name,
            )
        if not values and body is None:
            raise DSLUsageError(
                f"'{name}' needs either a value or a block body",
                block_name=name,
            )
        if body is not None:
            self.block(name, body)
        elif len(values) == 1:
            self.set(name, values[0])
        else:
            self.set(name, list(values))
        return self

    def set(self, name: str, value: Any) -> "BlockBuilder":
        """Set a scalar or array attribute on the current branch."""
        self._node.set_attribute(str(name), value)
        return self

    def attributes(
        self, mapping: Mapping[str, Any], blocks: Iterable[str] = ()
    ) -> "BlockBuilder":
        """
        Map a nested mapping onto the tree.

        Keys listed in ``blocks`` become nested blocks: a mapping opens one
        block, a list of mappings opens the block once per item. Every other
        key is set as a value.
        """
        block_names = set(blocks)
        for key, value in normalize_keys(mapping).items():
            if key in block_names and isinstance(value, Mapping):
                self.block(key, value)
            elif key in block_names and isinstance(value, list):
                for item in value:
                    self.block(key, item)
            else:
                self.set(key, value)
        return self

    def block(self, name: str, body: Body = None, **attributes: Any) -> "BlockBuilder":
        """
        Open a nested block.

        Without a body the child builder is returned so the caller can keep
        chaining on it and come back with :meth:`end`. With a body, the body
        is applied to the child and this builder is returned.
        """
        child = BlockBuilder(self._node.open_child(str(name)), parent=self)
        if attributes:
            child.attributes(attributes)
        if body is None:
            return child
        child.apply(body)
        return self

    def apply(self, body: Body) -> "BlockBuilder":
        """Evaluate a body (callable or mapping) against this builder."""
        if body is None:
            return self
        if isinstance(body, Mapping):
            return self.attributes(body)
        if not callable(body):
            raise DSLUsageError(
                f"Block body must be a callable or a mapping, got {type(body).__name__}"
            )
        body(self)
        return self

    def end(self) -> "BlockBuilder":
        """Return to the enclosing block."""
        if self._parent is None:
            raise DSLUsageError("end() called on the outermost block")
        return self._parent

    def to_dict(self) -> dict[str, Any]:
        return self._node.to_python()

    def __enter__(self) -> "BlockBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


def build_block(body: Body) -> BranchNode:
    """Evaluate a body into a fresh, detached branch."""
    builder = BlockBuilder()
    builder.apply(body)
    return builder.node
