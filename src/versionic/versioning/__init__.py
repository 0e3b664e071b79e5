"""
versionic.versioning  ──  keep a history row for every change of a Record

    @versioned(on="updated_at")
    class Story(Record):
        id: Annotated[int | None, Serial()] = None
        title: str | None = None
        updated_at: datetime | None = None

    story.title = "New Title"
    story.updated_at = now
    story.save()            # saves Story and writes a StoryVersion row
    list(story.versions)    # newest prior state first

    Story.auto_migrate()    # migrates story_version too
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict

from .. import events
from ..core.collection import RecordCollection
from ..core.record import Record
from ..exceptions import ConfigurationError
from . import history, migration, snapshot
from .schema import derive_version_model

T_Record = TypeVar("T_Record", bound=Record)

log = structlog.get_logger(__name__)


class VersioningConfig(BaseModel):
    """Immutable per-class versioning options."""

    model_config = ConfigDict(frozen=True)

    on: str
    timestamps: bool = True


class Versioning:
    """Versioning behaviour attached to one Record class as `cls.versioning`."""

    def __init__(self, entity: Type[Record], config: VersioningConfig) -> None:
        self.entity = entity
        self._config = config
        self._companion: Optional[Type[Record]] = None

    @property
    def config(self) -> VersioningConfig:
        return self._config

    @property
    def companion(self) -> Type[Record]:
        """The `<Entity>Version` model, derived on first access."""
        if self._companion is None:
            self._companion = derive_version_model(self.entity, self._config)
        return self._companion

    # ---------- lifecycle ----------
    def capture(self, entity: Record) -> None:
        snapshot.capture(entity)

    def record(self, entity: Record, event: str = "update") -> Optional[Record]:
        return snapshot.record(self, entity, event)

    def versions_of(self, entity: Record) -> RecordCollection:
        return history.versions_of(self, entity)

    # handlers are inherited along the MRO; subclasses carry their own Versioning
    def _owns(self, entity: Record) -> bool:
        return type(entity) is self.entity

    def _capture(self, entity: Record) -> None:
        if self._owns(entity):
            self.capture(entity)

    def _record_create(self, entity: Record) -> None:
        if self._owns(entity):
            self.record(entity, "create")

    def _record_update(self, entity: Record) -> None:
        if self._owns(entity):
            self.record(entity, "update")

    def _migrate(self, entity_cls: Type[Record]) -> None:
        migration.propagate_migrate(self, entity_cls)

    def _upgrade(self, entity_cls: Type[Record]) -> None:
        migration.propagate_upgrade(self, entity_cls)

    def install(self) -> None:
        events.register("before_save", self.entity, self._capture)
        events.register("after_create", self.entity, self._record_create)
        events.register("after_update", self.entity, self._record_update)
        events.register("after_migrate", self.entity, self._migrate)
        events.register("after_upgrade", self.entity, self._upgrade)

    def __repr__(self) -> str:
        return f"<Versioning {self.entity.__name__} on={self._config.on!r}>"


class CompanionAccessor:
    """`Story.Version` ➜ the lazily derived companion model."""

    def __get__(self, instance: Any, owner: Type[Record]) -> Type[Record]:
        versioning = owner.versioning
        if versioning is None:
            raise AttributeError(f"{owner.__name__} is not versioned")
        return versioning.companion


def is_versioned(cls: Type[T_Record], on: Any = None, *, timestamps: bool = True) -> Versioning:
    """Enable versioning on `cls`, keyed by the field named `on`."""
    if not isinstance(on, str) or not on:
        raise ConfigurationError(f"versioned(on=...) needs a field name, got {on!r}")
    if not (isinstance(cls, type) and issubclass(cls, Record)):
        raise ConfigurationError(f"{cls!r} is not a Record class")
    if on not in cls.model_fields:
        raise ConfigurationError(f"{cls.__name__} has no field {on!r}")
    if "versioning" in cls.__dict__:
        raise ConfigurationError(f"{cls.__name__} is already versioned")

    versioning = Versioning(cls, VersioningConfig(on=on, timestamps=timestamps))
    cls.versioning = versioning
    cls.Version = CompanionAccessor()  # type: ignore[attr-defined]
    versioning.install()
    log.debug("versioning_enabled", entity=cls.__name__, on=on)
    return versioning


def versioned(on: Any = None, *, timestamps: bool = True) -> Callable[[Type[T_Record]], Type[T_Record]]:
    """Class decorator form of `is_versioned`."""

    def decorator(cls: Type[T_Record]) -> Type[T_Record]:
        is_versioned(cls, on=on, timestamps=timestamps)
        return cls

    return decorator


__all__ = [
    "CompanionAccessor",
    "Versioning",
    "VersioningConfig",
    "is_versioned",
    "versioned",
]
