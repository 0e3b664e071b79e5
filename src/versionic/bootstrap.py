"""
Single entry-point that wires a SQLAlchemy engine into versionic.
Call once, e.g. in application start-up or a test fixture.
"""

from sqlalchemy.engine import Engine

from .core.record import Record
from .persistence.store import RecordStore


def init_versionic(engine: Engine) -> RecordStore:
    """
    Build the global RecordStore and attach it to `Record`; every subclass,
    including companion version models derived later, inherits it.
    """
    global_store = RecordStore(engine)
    Record._store = global_store  # type: ignore[misc]
    return global_store
