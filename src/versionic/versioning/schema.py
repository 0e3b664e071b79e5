"""
Companion model derivation.

`derive_version_model(Story, config)` builds `StoryVersion`, a Record whose
key is Story's key plus the version field. Field order follows the entity;
the bookkeeping fields are appended at the end.

Substitutions
-------------
* Discriminator field   ➜ plain `str` holding the writer's class name
* Serial identity       ➜ plain `int` key, no autoincrement
* version field         ➜ required key
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Annotated, Any, Dict, Type

import structlog
from pydantic import Field, create_model

from ..core.properties import Property, PropertySpec, properties_of
from ..core.record import Record
from ..exceptions import DerivationError
from ..persistence.models import now_utc

if TYPE_CHECKING:
    from . import VersioningConfig

log = structlog.get_logger(__name__)

EVENT_FIELD = "event"
SNAPSHOT_FIELD = "resource_attributes"
TIMESTAMP_FIELD = "version_created_at"


def _companion_field(prop: PropertySpec, version_on: str) -> tuple[Any, Any]:
    options = prop.options
    options.pop("serial", None)
    is_key = prop.name == version_on or prop.key
    options["key"] = is_key

    if prop.discriminator:
        annotation: Any = str
    elif prop.serial:
        annotation = int
    elif is_key:
        annotation = prop.python_type
    else:
        annotation = prop.annotation

    if is_key or prop.info.is_required():
        default: Any = ...
    elif prop.info.default_factory is not None:
        default = Field(default_factory=prop.info.default_factory)
    else:
        default = prop.info.default
    return Annotated[annotation, Property(**options)], default


def derive_version_model(entity: Type[Record], config: "VersioningConfig") -> Type[Record]:
    props = properties_of(entity)
    names = [p.name for p in props]

    if config.on not in names:
        raise DerivationError(entity, f"version field {config.on!r} is not a field")

    reserved = [EVENT_FIELD, SNAPSHOT_FIELD]
    if config.timestamps:
        reserved.append(TIMESTAMP_FIELD)
    clashes = sorted(set(reserved) & set(names))
    if clashes:
        raise DerivationError(entity, f"fields {clashes} are reserved for version rows")

    fields: Dict[str, Any] = {p.name: _companion_field(p, config.on) for p in props}
    fields[EVENT_FIELD] = (Annotated[str, Property(length=32)], ...)
    fields[SNAPSHOT_FIELD] = (Dict[str, Any], Field(default_factory=dict))
    if config.timestamps:
        fields[TIMESTAMP_FIELD] = (dt.datetime, Field(default_factory=now_utc))

    model = create_model(  # type: ignore[call-overload]
        f"{entity.__name__}Version",
        __base__=Record,
        __module__=entity.__module__,
        **fields,
    )
    log.info(
        "companion_derived",
        entity=entity.__name__,
        companion=model.__name__,
        table=model.__tablename__,
        key=[p.name for p in properties_of(model) if p.key],
    )
    return model
