"""
Table builder: one SQLAlchemy `Table` per Record class, derived from its
ordered property specs.
"""

from __future__ import annotations

import datetime as dt
import decimal
import typing
import uuid
from typing import Any, Iterable

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeEngine

from ..core.properties import PropertySpec

JSONType = JSON().with_variant(JSONB(), "postgresql")


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


def column_type(prop: PropertySpec) -> TypeEngine[Any]:
    """Map a property's python type onto a SQLAlchemy column type."""
    py = prop.python_type
    origin = typing.get_origin(py) or py

    if isinstance(origin, type):
        if issubclass(origin, bool):  # before int: bool is an int
            return Boolean()
        if issubclass(origin, int):
            return Integer()
        if issubclass(origin, float):
            return Float()
        if issubclass(origin, decimal.Decimal):
            return Numeric()
        if issubclass(origin, str):
            length = prop.options.get("length")
            return String(length) if length else Text()
        if issubclass(origin, dt.datetime):  # before date: datetime is a date
            return DateTime(timezone=True)
        if issubclass(origin, dt.date):
            return Date()
        if issubclass(origin, uuid.UUID):
            return Uuid()
        if issubclass(origin, bytes):
            return LargeBinary()
        if issubclass(origin, (dict, list, tuple)):
            return JSONType
    # unions, literals, nested models: stored as JSON
    if typing.get_origin(py) is typing.Literal:
        return Text()
    return JSONType


def build_table(name: str, props: Iterable[PropertySpec]) -> Table:
    """Build `name` from `props`; each table gets its own MetaData."""
    columns = []
    for prop in props:
        columns.append(
            Column(
                prop.name,
                column_type(prop),
                primary_key=prop.key,
                autoincrement=prop.serial if prop.key else "auto",
                nullable=prop.nullable and not prop.key,
                index=bool(prop.options.get("index")) and not prop.key,
            )
        )
    return Table(name, MetaData(), *columns)
