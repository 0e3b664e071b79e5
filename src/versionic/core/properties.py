"""
Field reflection for Record models.

Options ride along on the annotation, e.g.::

    id: Annotated[int | None, Serial()] = None
    kind: Annotated[str, Discriminator()] = ""
    title: Annotated[str | None, Property(length=200, index=True)] = None

* `properties_of(model)` returns the ordered field list the storage and
  versioning layers work from.
* Field kinds are told apart by marker class, never by name.
"""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic.fields import FieldInfo

_OPTIONS = ("key", "serial", "length", "index")


class Property:
    """Plain field marker holding storage options."""

    def __init__(self, **options: Any) -> None:
        unknown = set(options) - set(_OPTIONS)
        if unknown:
            raise TypeError(f"unknown property options: {sorted(unknown)}")
        self.options: Dict[str, Any] = dict(options)

    def __repr__(self) -> str:
        opts = ", ".join(f"{k}={v!r}" for k, v in self.options.items())
        return f"{type(self).__name__}({opts})"

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.options == self.options  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.options.items()))))


class Serial(Property):
    """Auto-incrementing integer identity."""

    def __init__(self, **options: Any) -> None:
        options.setdefault("key", True)
        options.setdefault("serial", True)
        super().__init__(**options)


class Discriminator(Property):
    """Holds the name of the concrete class that wrote the row."""


@dataclass(frozen=True)
class PropertySpec:
    name: str
    annotation: Any
    marker: Property
    info: FieldInfo = field(compare=False, repr=False)

    @property
    def options(self) -> Dict[str, Any]:
        return dict(self.marker.options)

    @property
    def key(self) -> bool:
        return bool(self.marker.options.get("key"))

    @property
    def serial(self) -> bool:
        return isinstance(self.marker, Serial) or bool(self.marker.options.get("serial"))

    @property
    def discriminator(self) -> bool:
        return isinstance(self.marker, Discriminator)

    @property
    def nullable(self) -> bool:
        return is_optional(self.annotation)

    @property
    def python_type(self) -> Any:
        return unwrap_optional(self.annotation)


# helpers
def is_optional(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return type(None) in typing.get_args(annotation)
    return annotation is type(None)


def unwrap_optional(annotation: Any) -> Any:
    """`int | None` ➜ `int`; anything else is returned unchanged."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
        return typing.Union[tuple(args)]  # type: ignore[return-value]
    return annotation


def _marker_of(info: FieldInfo) -> Property:
    for meta in info.metadata:
        if isinstance(meta, Property):
            return meta
    return Property()


def properties_of(model: Type[BaseModel]) -> List[PropertySpec]:
    """Ordered field list of `model`, in declaration order."""
    return [
        PropertySpec(name, info.annotation, _marker_of(info), info)
        for name, info in model.model_fields.items()
    ]


def key_of(model: Type[BaseModel]) -> Tuple[PropertySpec, ...]:
    return tuple(p for p in properties_of(model) if p.key)


def discriminator_of(model: Type[BaseModel]) -> Optional[PropertySpec]:
    for prop in properties_of(model):
        if prop.discriminator:
            return prop
    return None
