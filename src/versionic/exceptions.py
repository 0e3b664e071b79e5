"""
versionic.exceptions  ──  error hierarchy for record versioning
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VersionicError(Exception):
    """Base class for every error raised by versionic."""


class StoreNotInitialised(VersionicError, RuntimeError):
    """A Record was used before `init_versionic(engine)` attached a store."""


class ConfigurationError(VersionicError, ValueError):
    """`versioned(on=...)` was called with a missing or wrong-kind field."""


class DerivationError(VersionicError):
    """The companion version model could not be built from the entity."""

    def __init__(self, entity: type, reason: str) -> None:
        super().__init__(f"cannot derive {entity.__name__}.Version: {reason}")
        self.entity = entity
        self.reason = reason


class RecordingFailure(VersionicError):
    """
    Persisting a version row failed.

    The entity's own save has already been committed; the previous-attributes
    buffer is left in place so `Versioning.record()` can be retried.
    """

    def __init__(
        self,
        entity: Any,
        event: str,
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"failed to record {event!r} version of {type(entity).__name__}"
        )
        self.entity = entity
        self.event = event
        self.snapshot = snapshot or {}
