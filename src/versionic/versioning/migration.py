"""Cascade schema operations from an entity table to its version table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Type

import structlog

from ..core.record import Record

if TYPE_CHECKING:
    from . import Versioning

log = structlog.get_logger(__name__)


def propagate_migrate(versioning: "Versioning", entity_cls: Type[Record]) -> None:
    if entity_cls is not versioning.entity:
        return
    versioning.companion.auto_migrate()
    log.info("companion_migrated", entity=entity_cls.__name__)


def propagate_upgrade(versioning: "Versioning", entity_cls: Type[Record]) -> None:
    if entity_cls is not versioning.entity:
        return
    versioning.companion.auto_upgrade()
    log.info("companion_upgraded", entity=entity_cls.__name__)
