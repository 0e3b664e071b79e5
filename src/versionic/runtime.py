"""
versionic.runtime  ──  a thin façade that owns the process-wide engine.

Usage pattern in user code
--------------------------
    from versionic import Versionic

    Versionic.init()                       # VERSIONIC_DATABASE_URL / .env
    Versionic.init(database_url="postgresql://...")

    Story.auto_upgrade()
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .bootstrap import init_versionic
from .config import VersionicSettings, load_settings
from .persistence.store import RecordStore

log = structlog.get_logger(__name__)


class Versionic:
    """Singleton holder for the engine and RecordStore."""

    _engine: ClassVar[Optional[Engine]] = None
    _store: ClassVar[Optional[RecordStore]] = None
    settings: ClassVar[Optional[VersionicSettings]] = None

    # ---------- one-shot initialiser ----------
    @classmethod
    def init(cls, *, database_url: Optional[str] = None, **engine_kw: Any) -> RecordStore:
        if cls._store is None:
            settings = load_settings()
            if database_url is not None:
                settings = settings.model_copy(update={"database_url": database_url})
            cls.settings = settings
            cls._engine = create_engine(
                settings.database_url,
                pool_pre_ping=True,
                echo=settings.echo_sql,
                **engine_kw,
            )
            cls._store = init_versionic(cls._engine)  # auto-wire RecordStore
            log.info("versionic_initialised", url=cls._engine.url.render_as_string())
        return cls._store

    # ---------- convenience helpers ----------
    @classmethod
    def engine(cls) -> Engine:
        if cls._engine is None:
            raise RuntimeError("Versionic.init() has not been called")
        return cls._engine

    @classmethod
    def dispose(cls) -> None:
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._store = None
        cls.settings = None
