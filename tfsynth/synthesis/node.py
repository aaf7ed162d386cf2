"""
Nodes of the accumulation tree.

A branch maps names to children in insertion order. Children are leaves
(scalars or arrays), nested branches, or block lists: the array of sibling
branches produced when the same block name is opened more than once at the
same level.
"""

import copy
import logging
from typing import Any

from tfsynth.core.exceptions import DSLUsageError
from tfsynth.schema.attributes import to_plain

logger = logging.getLogger(__name__)


class LeafNode:
    """A scalar or array value."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = to_plain(value)

    def to_python(self) -> Any:
        return copy.deepcopy(self.value)

    def __repr__(self) -> str:
        return f"LeafNode({self.value!r})"


class BlockList:
    """Ordered sibling branches sharing one block name."""

    __slots__ = ("items",)

    def __init__(self, items: list["BranchNode"] | None = None):
        self.items: list[BranchNode] = list(items or [])

    def append(self, branch: "BranchNode") -> None:
        self.items.append(branch)

    def to_python(self) -> list[dict[str, Any]]:
        return [item.to_python() for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"BlockList({len(self.items)} blocks)"


class BranchNode:
    """Ordered mapping from attribute or block name to child node."""

    def __init__(self):
        self._children: dict[str, LeafNode | BranchNode | BlockList] = {}

    def set_attribute(self, name: str, value: Any) -> LeafNode:
        """
        Assign a scalar or array value, replacing any previous leaf.

        Raises:
            DSLUsageError: If ``name`` is already an open block
        """
        existing = self._children.get(name)
        if isinstance(existing, (BranchNode, BlockList)):
            raise DSLUsageError(
                f"Cannot assign a value to '{name}': a block with that name "
                "is already open at this level",
                block_name=name,
            )
        leaf = LeafNode(value)
        self._children[name] = leaf
        return leaf

    def open_child(self, name: str) -> "BranchNode":
        """
        Open a nested block, coalescing repeated names into a block list.

        Raises:
            DSLUsageError: If ``name`` already holds a scalar value
        """
        return self.attach_child(name, BranchNode())

    def attach_child(self, name: str, branch: "BranchNode") -> "BranchNode":
        """Attach an already built branch with the same coalescing rules."""
        existing = self._children.get(name)
        if isinstance(existing, LeafNode):
            raise DSLUsageError(
                f"Cannot open block '{name}': a value with that name "
                "is already set at this level",
                block_name=name,
            )
        if existing is None:
            self._children[name] = branch
        elif isinstance(existing, BranchNode):
            logger.debug("Block '%s' repeated, collecting into a list", name)
            self._children[name] = BlockList([existing, branch])
        else:
            existing.append(branch)
        return branch

    def enter_child(self, name: str) -> "BranchNode":
        """Return the branch at ``name``, creating it if needed (no coalescing)."""
        existing = self._children.get(name)
        if isinstance(existing, BranchNode):
            return existing
        if existing is not None:
            raise DSLUsageError(
                f"Cannot enter '{name}': it is not a single block",
                block_name=name,
            )
        branch = BranchNode()
        self._children[name] = branch
        return branch

    def replace_child(self, name: str, branch: "BranchNode") -> bool:
        """Install ``branch`` at ``name``; return True if something was replaced."""
        replaced = name in self._children
        self._children[name] = branch
        return replaced

    def merge(self, other: "BranchNode") -> None:
        """
        Deep-merge another branch into this one.

        Nested branches merge recursively; every other collision is won by
        ``other``.
        """
        for name, child in other._children.items():
            mine = self._children.get(name)
            if isinstance(mine, BranchNode) and isinstance(child, BranchNode):
                mine.merge(child)
            else:
                self._children[name] = copy.deepcopy(child)

    def get(self, name: str) -> "LeafNode | BranchNode | BlockList | None":
        return self._children.get(name)

    def keys(self) -> list[str]:
        return list(self._children)

    def items(self):
        return self._children.items()

    def is_empty(self) -> bool:
        return not self._children

    def to_python(self) -> dict[str, Any]:
        """Convert the subtree to nested dicts and lists."""
        return {name: child.to_python() for name, child in self._children.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._children

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self) -> str:
        return f"BranchNode({', '.join(self._children)})"


DocumentNode = LeafNode | BranchNode | BlockList
