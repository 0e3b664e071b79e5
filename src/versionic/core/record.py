"""
Record kernel – pydantic models persisted through a shared RecordStore.

* Attribute writes on a persisted record are tracked in
  `original_attributes` until the next `save()`.
* `save()` drives the hook pipeline in `versionic.events`:
  before_save ➜ store write ➜ after_create / after_update.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple, Type, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, PrivateAttr
from sqlalchemy import Table

from .. import events
from ..exceptions import StoreNotInitialised
from ..persistence.models import build_table
from .collection import RecordCollection
from .properties import discriminator_of, key_of, properties_of

if TYPE_CHECKING:
    from ..persistence.store import RecordStore
    from ..versioning import Versioning

T_Record = TypeVar("T_Record", bound="Record")
ModelMeta = BaseModel.__class__

log = structlog.get_logger(__name__)

_TABLES: Dict[type, Table] = {}


# helpers
def _snake(name: str) -> str:
    """CamelCase ➜ snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


# metaclass that names tables
class RecordMeta(ModelMeta):
    """Attach `__tablename__` at class-creation time."""

    def __new__(mcls, name: str, bases, ns, **kw):
        cls = super().__new__(mcls, name, bases, ns, **kw)  # create class first
        if name == "Record" and ns.get("__module__") == __name__:  # skip abstract base
            return cls
        if "__tablename__" not in ns:
            cls.__tablename__ = _snake(name)

        # subclasses of a versioned record keep their own history table
        parent = cls.versioning
        if parent is not None and "versioning" not in cls.__dict__:
            # late import – avoids circular dep
            from ..versioning import is_versioned

            is_versioned(cls, on=parent.config.on, timestamps=parent.config.timestamps)
        return cls


# Record base
class Record(BaseModel, metaclass=RecordMeta):
    """Base class – a mutable row with dirty tracking and lifecycle hooks."""

    __tablename__: ClassVar[str] = ""
    _store: ClassVar[Optional["RecordStore"]] = None  # injected by init_versionic()
    versioning: ClassVar[Optional["Versioning"]] = None  # set by @versioned

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    _persisted: bool = PrivateAttr(default=False)
    _original: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _previous_attributes: Dict[str, Any] = PrivateAttr(default_factory=dict)

    # fill discriminator with the concrete class name
    def model_post_init(self, _ctx):
        disc = discriminator_of(type(self))
        if disc is not None and not getattr(self, disc.name):
            object.__setattr__(self, disc.name, type(self).__name__)

    # dirty tracking
    def __setattr__(self, name: str, value: Any):
        if name.startswith("_") or name not in type(self).model_fields:
            return super().__setattr__(name, value)

        before = getattr(self, name)
        super().__setattr__(name, value)
        if not self._persisted:
            return
        after = getattr(self, name)

        if name not in self._original:
            if before != after:
                self._original[name] = before
        elif self._original[name] == after:  # change reverted
            del self._original[name]

    # ---------- state ----------
    @property
    def is_new(self) -> bool:
        return not self._persisted

    @property
    def is_clean(self) -> bool:
        return self._persisted and not self._original

    @property
    def original_attributes(self) -> Dict[str, Any]:
        """Values the changed fields held at the last save."""
        return dict(self._original)

    @property
    def dirty_attributes(self) -> Dict[str, Any]:
        if not self._persisted:
            return self.attributes()
        return {name: getattr(self, name) for name in self._original}

    def attributes(self) -> Dict[str, Any]:
        return self.model_dump()

    @property
    def key(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, p.name) for p in key_of(type(self)))

    def key_attributes(self) -> Dict[str, Any]:
        return {p.name: getattr(self, p.name) for p in key_of(type(self))}

    @property
    def versions(self) -> RecordCollection:
        """History rows of this record, newest version first."""
        versioning = type(self).versioning
        if versioning is None:
            raise AttributeError(f"{type(self).__name__} is not versioned")
        return versioning.versions_of(self)

    def new_version_attributes(self) -> Dict[str, Any]:
        """Fixed attributes added to every version row this record creates."""
        return {}

    # ---------- persistence ----------
    def save(self) -> bool:
        """
        Persist pending changes. Returns False when a before_save handler
        halted the write. Errors raised by after_* handlers propagate after
        the row itself has been committed; handlers registered after the
        failing one (e.g. behind a RecordingFailure) do not run for this save.
        """
        store = self._ensure_store()
        if self.is_clean:
            return True
        if not events.emit("before_save", self):
            log.debug("save_halted", record=type(self).__name__, key=self.key)
            return False

        table = type(self).table()
        creating = not self._persisted
        if creating:
            values = {
                p.name: v
                for p, v in zip(properties_of(type(self)), self.attributes().values())
                if not (p.serial and v is None)
            }
            for name, value in store.insert(table, values).items():
                if getattr(self, name) is None:
                    BaseModel.__setattr__(self, name, value)
        else:
            where = {
                p.name: self._original.get(p.name, getattr(self, p.name))
                for p in key_of(type(self))
            }
            dumped = self.attributes()
            changes = {name: dumped[name] for name in self._original}
            if store.update(table, where, changes) == 0:
                log.warning("update_matched_nothing", record=type(self).__name__, key=where)

        self._original.clear()
        self._persisted = True
        events.emit("after_create" if creating else "after_update", self)
        return True

    @classmethod
    def create(cls: Type[T_Record], **attrs: Any) -> T_Record:
        obj = cls(**attrs)
        obj.save()
        return obj

    @classmethod
    def get(cls: Type[T_Record], *key: Any) -> Optional[T_Record]:
        names = [p.name for p in key_of(cls)]
        if len(key) != len(names):
            raise TypeError(f"{cls.__name__}.get() expects {len(names)} key values")
        return cls.all(**dict(zip(names, key))).first()

    @classmethod
    def all(
        cls: Type[T_Record],
        order_by: Tuple[Tuple[str, bool], ...] = (),
        **filters: Any,
    ) -> RecordCollection[T_Record]:
        return RecordCollection(cls, filters, order_by)

    @classmethod
    def _load(cls: Type[T_Record], row: Dict[str, Any]) -> T_Record:
        obj = cls.model_validate(row)
        obj._persisted = True
        return obj

    # ---------- schema ----------
    @classmethod
    def table(cls) -> Table:
        """SQLAlchemy table for this class, built on first use."""
        table = _TABLES.get(cls)
        if table is None:
            props = properties_of(cls)
            if not any(p.key for p in props):
                raise TypeError(f"{cls.__name__} declares no key field")
            table = _TABLES[cls] = build_table(cls.__tablename__, props)
        return table

    @classmethod
    def auto_migrate(cls) -> None:
        cls._ensure_store().auto_migrate(cls.table())
        events.emit("after_migrate", cls)

    @classmethod
    def auto_upgrade(cls) -> None:
        cls._ensure_store().auto_upgrade(cls.table())
        events.emit("after_upgrade", cls)

    # internal util
    @classmethod
    def _ensure_store(cls) -> "RecordStore":
        if cls._store is None:
            raise StoreNotInitialised("Call init_versionic(engine) before using Record")
        return cls._store
