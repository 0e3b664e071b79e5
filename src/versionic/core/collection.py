"""
Lazy, restartable query results. Every iteration hits the store again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Generic, Iterator, Optional, Tuple, Type, TypeVar

if TYPE_CHECKING:
    from .record import Record

T = TypeVar("T", bound="Record")


class RecordCollection(Generic[T]):
    def __init__(
        self,
        model: Type[T],
        filters: Optional[Dict[str, Any]] = None,
        order_by: Tuple[Tuple[str, bool], ...] = (),
    ) -> None:
        self.model = model
        self.filters = dict(filters or {})
        self.order_by = tuple(order_by)

    def _rows(self, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        store = self.model._ensure_store()
        return store.fetch(self.model.table(), self.filters, self.order_by, limit)

    def __iter__(self) -> Iterator[T]:
        for row in self._rows():
            yield self.model._load(row)

    def __len__(self) -> int:
        store = self.model._ensure_store()
        return store.count(self.model.table(), self.filters)

    def first(self) -> Optional[T]:
        for row in self._rows(limit=1):
            return self.model._load(row)
        return None

    def __repr__(self) -> str:
        return (
            f"<RecordCollection {self.model.__name__} "
            f"filters={self.filters!r} order_by={self.order_by!r}>"
        )
