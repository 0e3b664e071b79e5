"""History lookup: version rows of one entity, newest first."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.collection import RecordCollection
from ..core.properties import key_of
from ..core.record import Record

if TYPE_CHECKING:
    from . import Versioning


def versions_of(versioning: "Versioning", entity: Record) -> RecordCollection:
    companion = versioning.companion
    order = tuple((p.name, True) for p in key_of(companion))
    return companion.all(order_by=order, **entity.key_attributes())
