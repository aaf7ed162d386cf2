"""
Stack files: a whole configuration described in YAML or JSON.

A stack file maps the Terraform top-level categories onto session calls::

    terraform: {required_providers: {aws: {source: hashicorp/aws}}}
    providers: [{name: aws, region: us-east-1}]
    variables: {environment: {type: string, default: dev}}
    locals: {common_tags: {Project: demo}}
    data: [{type: aws_ami, name: ubuntu, attributes: {most_recent: true}}]
    resources: [{type: aws_ecr_repository, name: app, attributes: {name: app}}]
    compositions: [{type: vpc_with_subnets, name: core, attributes: {...}}]
    outputs: {repo_url: {value: "${aws_ecr_repository.app.repository_url}"}}
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tfsynth.core.exceptions import StackFileError
from tfsynth.core.registry import ResourceRegistry

from .session import SynthesisSession

logger = logging.getLogger(__name__)

_YAML_EXTS: Final[set[str]] = {".yaml", ".yml"}
_JSON_EXTS: Final[set[str]] = {".json"}

STACK_KEYS: Final[tuple[str, ...]] = (
    "terraform",
    "providers",
    "variables",
    "locals",
    "data",
    "resources",
    "compositions",
    "outputs",
)

_yaml_parser = YAML(typ="safe")  # safe loader, YAML 1.2


class StackLoader:
    """Read a stack file and replay it onto a synthesis session."""

    supported_exts: set[str] = _YAML_EXTS | _JSON_EXTS

    def __init__(self, registry: ResourceRegistry | None = None):
        self.registry = registry
        self._logger = logger.getChild(self.__class__.__name__)

    @staticmethod
    def load(path: str | Path) -> dict[str, Any]:
        """
        Parse a stack file into a mapping.

        Raises:
            StackFileError: If the file is missing, has an unsupported
                extension, cannot be parsed or is not a mapping
        """
        file_path = Path(path)

        if not file_path.exists():
            logger.error(f"Stack file not found: {file_path}")
            raise StackFileError(f"Stack file not found: {file_path}", str(file_path))

        if file_path.suffix.lower() not in StackLoader.supported_exts:
            raise StackFileError(
                f"Unsupported extension '{file_path.suffix}'. "
                f"Supported: {', '.join(sorted(StackLoader.supported_exts))}",
                str(file_path),
            )

        try:
            raw_text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise StackFileError(
                f"Stack file is not valid UTF-8: {exc}", str(file_path)
            ) from exc

        try:
            if file_path.suffix.lower() in _YAML_EXTS:
                data = _yaml_parser.load(raw_text)
            else:
                data = json.loads(raw_text)
        except (YAMLError, json.JSONDecodeError) as exc:
            raise StackFileError(
                f"Cannot parse {file_path.name}: {exc}", str(file_path)
            ) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise StackFileError("Top-level object must be a mapping", str(file_path))

        logger.debug(f"Stack file loaded ({len(data)} root keys)")
        return data

    def apply(
        self,
        stack: Mapping[str, Any],
        session: SynthesisSession | None = None,
        path: str | None = None,
    ) -> SynthesisSession:
        """
        Replay a parsed stack onto a session.

        Categories are applied in Terraform order so that variables and
        locals exist before the resources that refer to them.

        Args:
            stack: Parsed stack mapping
            session: Session to fill; a new one is created when omitted
            path: Source path, only used in error messages

        Returns:
            The filled session

        Raises:
            StackFileError: If a section has the wrong shape
            ValidationError: If a catalog resource has invalid attributes
        """
        if session is None:
            session = SynthesisSession(registry=self.registry)

        for key in stack:
            if key not in STACK_KEYS:
                self._logger.warning(
                    f"Ignoring unknown stack key '{key}'. "
                    f"Known keys: {', '.join(STACK_KEYS)}"
                )

        if "terraform" in stack:
            session.terraform(_mapping(stack["terraform"], "terraform", path))

        for provider in _entries(stack.get("providers"), "providers", path):
            body = dict(provider)
            name = body.pop("name", None)
            if not name:
                raise StackFileError("Every provider entry needs a 'name'", path)
            session.provider(name, body)

        for name, body in _mapping(stack.get("variables"), "variables", path).items():
            session.variable(name, body)

        if stack.get("locals"):
            session.locals(_mapping(stack["locals"], "locals", path))

        for entry in _entries(stack.get("data"), "data", path):
            data_type, name, attributes = _typed_entry(entry, "data", path)
            session.data(data_type, name, attributes)

        for entry in _entries(stack.get("resources"), "resources", path):
            self._apply_resource(session, entry, path)

        for entry in _entries(stack.get("compositions"), "compositions", path):
            composition, name, attributes = _typed_entry(entry, "compositions", path)
            session.compose(composition, name, **attributes)

        for name, body in _mapping(stack.get("outputs"), "outputs", path).items():
            session.output(name, body)

        self._logger.info(
            f"Stack applied: {len(session.references)} resources declared"
        )
        return session

    def load_session(
        self, path: str | Path, session: SynthesisSession | None = None
    ) -> SynthesisSession:
        """Load a stack file and replay it onto a session."""
        stack = self.load(path)
        self._logger.info(f"Loading stack file: {path}")
        return self.apply(stack, session=session, path=str(path))

    def _apply_resource(
        self, session: SynthesisSession, entry: Mapping[str, Any], path: str | None
    ) -> None:
        resource_type, name, attributes = _typed_entry(entry, "resources", path)
        if session.registry.is_type_available(resource_type):
            session.declare(resource_type, name, attributes)
            return
        self._logger.warning(
            f"Resource type '{resource_type}' is not in the catalog; "
            f"emitting '{resource_type}.{name}' without validation"
        )
        session.resource(resource_type, name, attributes)


def _mapping(value: Any, section: str, path: str | None) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise StackFileError(
            f"Section '{section}' must be a mapping, got {type(value).__name__}", path
        )
    return value


def _entries(value: Any, section: str, path: str | None) -> list[Mapping[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise StackFileError(
            f"Section '{section}' must be a list, got {type(value).__name__}", path
        )
    for index, entry in enumerate(value):
        if not isinstance(entry, Mapping):
            raise StackFileError(
                f"Entry {index} of '{section}' must be a mapping", path
            )
    return value


def _typed_entry(
    entry: Mapping[str, Any], section: str, path: str | None
) -> tuple[str, str, dict[str, Any]]:
    entry_type = entry.get("type")
    name = entry.get("name")
    if not entry_type or not name:
        raise StackFileError(
            f"Every entry of '{section}' needs a 'type' and a 'name'", path
        )
    attributes = entry.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        raise StackFileError(
            f"Attributes of {section} entry '{entry_type}.{name}' must be a mapping",
            path,
        )
    return str(entry_type), str(name), dict(attributes)


def load_stack(
    path: str | Path, registry: ResourceRegistry | None = None
) -> SynthesisSession:
    """Build a session from a stack file using ``registry`` (default catalog if None)."""
    return StackLoader(registry).load_session(path)
