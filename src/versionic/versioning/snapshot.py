"""
Snapshot capture and version recording.

`capture` runs as a before_save handler and stages the values the changed
fields held before this save. `record` runs after the store committed the
entity and writes one version row from that staging buffer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError

from ..core.record import Record
from ..exceptions import RecordingFailure
from .schema import EVENT_FIELD, SNAPSHOT_FIELD

if TYPE_CHECKING:
    from . import Versioning

log = structlog.get_logger(__name__)


def capture(entity: Record) -> None:
    """Stage `entity.original_attributes`, replacing any earlier buffer."""
    entity._previous_attributes = entity.original_attributes


def build_snapshot(entity: Record) -> Dict[str, Any]:
    """Full attribute state of `entity` as it was before the staged save."""
    return {**entity.attributes(), **entity._previous_attributes}


def record(versioning: "Versioning", entity: Record, event: str) -> Optional[Record]:
    """
    Write a version row for `entity`, or return None when there is no prior
    state to archive.

    Raises RecordingFailure when the row cannot be stored; the staging
    buffer is only cleared after a successful write.
    """
    on = versioning.config.on
    previous = entity._previous_attributes
    if not entity.is_clean or on not in previous or previous[on] is None:
        log.debug(
            "version_skipped",
            entity=type(entity).__name__,
            key=entity.key,
            event=event,
            clean=entity.is_clean,
            staged=sorted(previous),
        )
        return None

    companion = versioning.companion
    snapshot = build_snapshot(entity)

    attrs = {name: value for name, value in snapshot.items() if name in companion.model_fields}
    attrs.update(entity.new_version_attributes())
    attrs[EVENT_FIELD] = event
    attrs.update(entity.key_attributes())

    try:
        attrs[SNAPSHOT_FIELD] = to_jsonable_python(snapshot, bytes_mode="base64")
        version = companion(**attrs)
        version.save()
    except (PydanticSerializationError, ValidationError, SQLAlchemyError) as exc:
        log.error(
            "version_record_failed",
            entity=type(entity).__name__,
            key=entity.key,
            event=event,
            error=str(exc),
        )
        raise RecordingFailure(entity, event, snapshot) from exc

    entity._previous_attributes = {}
    log.info(
        "version_recorded",
        entity=type(entity).__name__,
        key=entity.key,
        event=event,
        version=attrs[on],
    )
    return version
