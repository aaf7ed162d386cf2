"""Declarative field and schema definitions."""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from .attributes import ValidatedAttributes
from .constraints import Constraint
from .invariants import Invariant

EmitPolicy = Literal["set", "always", "truthy", "non_default"]


class _Missing:
    """Sentinel type for 'no default declared'."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ListOf:
    """Array field whose items are a primitive type or a nested schema."""

    item: Any


@dataclass(frozen=True)
class FieldSpec:
    """
    Specification of a single attribute.

    ``type`` is one of: a primitive or typing annotation (checked strictly
    with pydantic), a nested :class:`SchemaDefinition`, or :class:`ListOf`.

    ``emit`` controls rendering into the synthesis tree:

    - ``set``: omit None and empty containers (default)
    - ``always``: omit only None
    - ``truthy``: omit any falsy value
    - ``non_default``: omit None, empty containers and the default value
    """

    name: str
    type: Any = str
    required: bool = False
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None
    computed_default: Callable[[Mapping[str, Any]], Any] | None = None
    constraints: tuple[Constraint, ...] = ()
    choices: tuple[Any, ...] | None = None
    strip: bool = False
    emit: EmitPolicy = "set"
    description: str = ""

    def __post_init__(self) -> None:
        if self.required and self.has_default:
            raise ValueError(f"Required field '{self.name}' cannot declare a default")

    @property
    def has_default(self) -> bool:
        return (
            self.default is not MISSING
            or self.default_factory is not None
        )

    @property
    def nested_schema(self) -> "SchemaDefinition | None":
        """The nested schema for block-valued fields, if any."""
        if isinstance(self.type, SchemaDefinition):
            return self.type
        if isinstance(self.type, ListOf) and isinstance(
            self.type.item, SchemaDefinition
        ):
            return self.type.item
        return None

    @property
    def is_block(self) -> bool:
        return self.nested_schema is not None

    def default_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is MISSING:
            return None
        # Mutable defaults are copied so records never share containers.
        if isinstance(self.default, (list, dict)):
            return type(self.default)(self.default)
        return self.default


@dataclass(frozen=True)
class SchemaDefinition:
    """Ordered field specs plus ordered cross-field invariants."""

    name: str
    fields: tuple[FieldSpec, ...]
    invariants: tuple[Invariant, ...] = ()
    attributes_class: type[ValidatedAttributes] = ValidatedAttributes
    _by_name: dict[str, FieldSpec] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        by_name: dict[str, FieldSpec] = {}
        for spec in self.fields:
            if spec.name in by_name:
                raise ValueError(
                    f"Duplicate field '{spec.name}' in schema '{self.name}'"
                )
            by_name[spec.name] = spec
        object.__setattr__(self, "_by_name", by_name)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def field(self, name: str) -> FieldSpec:
        """Return the spec of a field by name."""
        return self._by_name[name]

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    @property
    def required_fields(self) -> list[str]:
        return [spec.name for spec in self.fields if spec.required]
