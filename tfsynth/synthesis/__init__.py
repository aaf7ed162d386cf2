"""Block accumulation, synthesis document, serialization and references."""

from .builder import BlockBuilder, build_block
from .document import SynthesisDocument
from .loader import StackLoader, load_stack
from .node import BlockList, BranchNode, LeafNode
from .reference import ResourceReference, interpolation, make_reference
from .serializer import serialize, to_json, to_yaml, write_json
from .session import SynthesisSession

__all__ = [
    "BlockBuilder",
    "BlockList",
    "BranchNode",
    "LeafNode",
    "ResourceReference",
    "StackLoader",
    "SynthesisDocument",
    "SynthesisSession",
    "build_block",
    "interpolation",
    "load_stack",
    "make_reference",
    "serialize",
    "to_json",
    "to_yaml",
    "write_json",
]
