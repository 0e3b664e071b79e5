"""
Public surface for versionic.
Importing this module does **not** touch the database; call
`versionic.init_versionic(engine)` (or `Versionic.init()`) during start-up.
"""

from .bootstrap import init_versionic
from .core.collection import RecordCollection
from .core.properties import Discriminator, Property, Serial
from .core.record import Record
from .events import on
from .exceptions import (
    ConfigurationError,
    DerivationError,
    RecordingFailure,
    StoreNotInitialised,
    VersionicError,
)
from .runtime import Versionic
from .versioning import Versioning, VersioningConfig, is_versioned, versioned

__all__ = [
    "ConfigurationError",
    "DerivationError",
    "Discriminator",
    "Property",
    "Record",
    "RecordCollection",
    "RecordingFailure",
    "Serial",
    "StoreNotInitialised",
    "Versionic",
    "VersionicError",
    "Versioning",
    "VersioningConfig",
    "init_versionic",
    "is_versioned",
    "on",
    "versioned",
]
