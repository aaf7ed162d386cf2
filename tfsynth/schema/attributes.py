"""Immutable record produced by schema validation."""

import copy
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


def to_plain(value: Any) -> Any:
    """Recursively convert records, mappings and enums to plain Python data."""
    if isinstance(value, ValidatedAttributes):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


class ValidatedAttributes(BaseModel):
    """
    Normalized, defaulted attribute values of one declaration.

    Every field of the schema is present (absent optionals are None).
    Subclasses add derived read-only properties computed from the fields.
    Container values are handed out as copies, so the record never changes
    after validation.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    def __getattr__(self, item: str) -> Any:
        try:
            extra = object.__getattribute__(self, "__pydantic_extra__")
        except AttributeError:
            extra = None
        if extra and item in extra:
            return copy.deepcopy(extra[item])
        return super().__getattr__(item)

    def __getitem__(self, key: str) -> Any:
        try:
            return copy.deepcopy(self.__pydantic_extra__[key])
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return key in self.__pydantic_extra__

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value of a field, or default if the schema lacks it."""
        return copy.deepcopy(self.__pydantic_extra__.get(key, default))

    def keys(self) -> list[str]:
        """Field names in schema order."""
        return list(self.__pydantic_extra__)

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """
        Convert to a plain nested dictionary.

        Args:
            exclude_none: Drop fields whose value is None

        Returns:
            Dictionary of field values, nested records converted too
        """
        return {
            key: to_plain(value)
            for key, value in self.__pydantic_extra__.items()
            if not (exclude_none and value is None)
        }
