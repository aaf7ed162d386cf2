"""
Serialization of a synthesis document to Terraform JSON configuration.

The YAML rendering is a human-readable preview of the same structure;
Terraform itself only consumes the JSON form.
"""

import json
import logging
import os
from io import StringIO
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML

from .node import BranchNode

if TYPE_CHECKING:
    from .document import SynthesisDocument

logger = logging.getLogger(__name__)


def serialize(document: "SynthesisDocument") -> dict[str, Any]:
    """
    Convert a document to nested dicts and lists ready for JSON encoding.

    Categories without entries are omitted; everything else keeps the order
    in which it was first declared.
    """
    result: dict[str, Any] = {}
    for category, child in document.root.items():
        if isinstance(child, BranchNode) and child.is_empty():
            continue
        result[category] = child.to_python()
    return result


def to_json(
    document: "SynthesisDocument", indent: int | None = 2, sort_keys: bool = False
) -> str:
    """Encode a document as Terraform JSON text."""
    return json.dumps(serialize(document), indent=indent, sort_keys=sort_keys)


def write_json(document: "SynthesisDocument", file_path: str) -> str:
    """
    Write the Terraform JSON for a document to a file.

    Args:
        document: The document to serialize
        file_path: Destination path; parent directories are created

    Returns:
        The JSON text that was written
    """
    content = to_json(document) + "\n"
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info(f"Terraform JSON written to: {file_path}")
    return content


def _yaml_dumper() -> YAML:
    yaml = YAML()
    yaml.indent(mapping=2, sequence=4, offset=2)
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    yaml.width = 4096
    return yaml


def to_yaml(document: "SynthesisDocument") -> str:
    """Render the serialized document as YAML."""
    stream = StringIO()
    _yaml_dumper().dump(serialize(document), stream)
    return stream.getvalue()
