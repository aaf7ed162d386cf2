"""
Synthesis document: the root of the accumulation tree for one session.
"""

import logging
from typing import Any

from tfsynth.core.exceptions import DSLUsageError

from .builder import BlockBuilder, Body, build_block
from .node import BlockList, BranchNode, LeafNode
from .serializer import serialize, to_json

logger = logging.getLogger(__name__)

CATEGORIES = (
    "terraform",
    "provider",
    "variable",
    "locals",
    "data",
    "resource",
    "output",
)
TYPED_CATEGORIES = ("resource", "data")
NAMED_CATEGORIES = ("variable", "output")


class SynthesisDocument:
    """
    Accumulates declarations under the Terraform top-level categories.

    Every body is evaluated into a detached branch first and only installed
    once it completed, so a failing declaration never leaves partial state
    behind.
    """

    def __init__(self):
        self._root = BranchNode()
        self._logger = logger.getChild(self.__class__.__name__)

    @property
    def root(self) -> BranchNode:
        return self._root

    # --- Root entry points ---

    def resource(self, resource_type: str, name: str, body: Body = None) -> BranchNode:
        """Register (or overwrite) ``resource.<type>.<name>``."""
        return self._install_typed("resource", resource_type, name, body)

    def data(self, data_type: str, name: str, body: Body = None) -> BranchNode:
        """Register (or overwrite) ``data.<type>.<name>``."""
        return self._install_typed("data", data_type, name, body)

    def variable(self, name: str, body: Body = None) -> BranchNode:
        return self._install_named("variable", name, body)

    def output(self, name: str, body: Body = None) -> BranchNode:
        return self._install_named("output", name, body)

    def provider(self, name: str, body: Body = None) -> BranchNode:
        """Declare a provider; repeated declarations (aliases) form a list."""
        _check_name(name, "provider")
        branch = build_block(body)
        category = self._root.enter_child("provider")
        category.attach_child(str(name), branch)
        self._logger.debug(f"Declared provider '{name}'")
        return branch

    def locals(self, body: Body = None) -> BranchNode:
        """Merge local values into the single ``locals`` block."""
        return self._merge_into("locals", body)

    def terraform(self, body: Body = None) -> BranchNode:
        """Merge settings into the single ``terraform`` block."""
        return self._merge_into("terraform", body)

    # --- Queries ---

    def get(self, category: str, *path: str) -> Any:
        """
        Plain-data view of a subtree, e.g. ``get("resource", "aws_vpc", "main")``.

        Returns None when any segment is missing.

        Raises:
            ValueError: If category is not a Terraform top-level key
        """
        if category not in CATEGORIES:
            raise ValueError(
                f"Unknown category '{category}'. "
                f"Available categories: {', '.join(CATEGORIES)}"
            )
        node: Any = self._root.get(category)
        for segment in path:
            if not isinstance(node, BranchNode):
                return None
            node = node.get(str(segment))
        if node is None:
            return None
        return node.to_python()

    def has_resource(self, resource_type: str, name: str) -> bool:
        return self.get("resource", resource_type, name) is not None

    def has_data(self, data_type: str, name: str) -> bool:
        return self.get("data", data_type, name) is not None

    def is_empty(self) -> bool:
        return all(
            not isinstance(child, BranchNode) or child.is_empty()
            for _, child in self._root.items()
        )

    def categories(self) -> list[str]:
        """Top-level categories holding at least one entry, in first-use order."""
        return [
            name
            for name, child in self._root.items()
            if not (isinstance(child, BranchNode) and child.is_empty())
        ]

    def merge(self, other: "SynthesisDocument") -> "SynthesisDocument":
        """
        Merge another document into this one.

        Resource and data entries are merged by (type, name), variables and
        outputs by name; on collision the entry from ``other`` wins. Providers
        are appended, locals and terraform settings deep-merged.
        """
        for category, child in other.root.items():
            if not isinstance(child, BranchNode):
                continue
            target = self._root.enter_child(category)
            if category in TYPED_CATEGORIES:
                for entry_type, entries in child.items():
                    by_type = target.enter_child(entry_type)
                    for name, entry in entries.items():
                        by_type.replace_child(name, _copy_branch(entry))
            elif category in NAMED_CATEGORIES:
                for name, entry in child.items():
                    target.replace_child(name, _copy_branch(entry))
            elif category == "provider":
                for name, provider in child.items():
                    branches = (
                        provider.items if isinstance(provider, BlockList) else [provider]
                    )
                    for branch in branches:
                        target.attach_child(name, _copy_branch(branch))
            else:
                target.merge(child)
        return self

    def to_dict(self) -> dict[str, Any]:
        return serialize(self)

    def to_json(self, indent: int | None = 2) -> str:
        return to_json(self, indent=indent)

    # --- Internals ---

    def _install_typed(
        self, category: str, entry_type: str, name: str, body: Body
    ) -> BranchNode:
        _check_name(entry_type, f"{category} type")
        _check_name(name, f"{category} name")
        branch = build_block(body)
        by_type = self._root.enter_child(category).enter_child(str(entry_type))
        if by_type.replace_child(str(name), branch):
            self._logger.warning(
                f"Overwriting existing {category} '{entry_type}.{name}'"
            )
        else:
            self._logger.debug(f"Registered {category} '{entry_type}.{name}'")
        return branch

    def _install_named(self, category: str, name: str, body: Body) -> BranchNode:
        _check_name(name, category)
        branch = build_block(body)
        if self._root.enter_child(category).replace_child(str(name), branch):
            self._logger.warning(f"Overwriting existing {category} '{name}'")
        return branch

    def _merge_into(self, category: str, body: Body) -> BranchNode:
        branch = build_block(body)
        target = self._root.enter_child(category)
        target.merge(branch)
        return target


def _check_name(value: Any, what: str) -> None:
    if value is None or not str(value).strip():
        raise DSLUsageError(f"{what.capitalize()} cannot be empty")
    if isinstance(value, (BranchNode, LeafNode, BlockBuilder)):
        raise DSLUsageError(f"{what.capitalize()} must be a name, got a block")


def _copy_branch(branch: BranchNode) -> BranchNode:
    copy_branch = BranchNode()
    copy_branch.merge(branch)
    return copy_branch
