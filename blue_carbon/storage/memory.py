"""
BlueCarbon Registry - In-Memory Entity Store
==============================================
Backend di default: dizionari in RAM protetti da RLock.

Last Updated: 2026-10-18
Version: 1.0.0

atomic() tiene un journal di undo: se il blocco solleva, le scritture
fatte al suo interno vengono annullate in ordine inverso.
"""

from __future__ import annotations
from contextlib import contextmanager
from copy import deepcopy
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional

from blue_carbon.chain.simulator import ChainSimulator
from blue_carbon.domain.models import Entity
from blue_carbon.logging_setup import get_logger
from blue_carbon.storage.base import CollectionSpec, EntityStore, Repository, E


logger = get_logger("storage")


class MemoryRepository(Repository[E]):
    """Collezione in memoria (ordine di inserimento preservato)"""

    def __init__(self, spec: CollectionSpec, builder, store: "MemoryEntityStore"):
        super().__init__(spec, builder, store)
        self._items: Dict[str, E] = {}
        self._unique: Dict[str, Dict[Any, str]] = {name: {} for name in spec.unique_fields}

    def _load(self, entity_id: str) -> Optional[E]:
        entity = self._items.get(entity_id)
        return deepcopy(entity) if entity is not None else None

    def _load_all(self, equals: Dict[str, Any], newest_first: bool) -> List[E]:
        items = [
            entity for entity in self._items.values()
            if all(getattr(entity, name) == value for name, value in equals.items())
        ]
        if newest_first:
            # a parità di timestamp vince l'ultimo inserito
            items = sorted(reversed(items), key=lambda e: e.sort_time, reverse=True)
        return [deepcopy(entity) for entity in items]

    def _find_by(self, field_name: str, value: Any) -> Optional[str]:
        return self._unique[field_name].get(value)

    def _insert(self, entity: E) -> None:
        self._items[entity.id] = deepcopy(entity)
        self._index(entity)
        self._store._journal(lambda: self._remove(entity.id))

    def _replace(self, entity: E) -> None:
        previous = self._items[entity.id]
        self._unindex(previous)
        self._items[entity.id] = deepcopy(entity)
        self._index(entity)
        self._store._journal(lambda: self._restore(previous))

    def _remove(self, entity_id: str) -> None:
        entity = self._items.pop(entity_id, None)
        if entity is not None:
            self._unindex(entity)

    def _restore(self, previous: E) -> None:
        self._unindex(self._items[previous.id])
        self._items[previous.id] = previous
        self._index(previous)

    def _index(self, entity: E) -> None:
        for name, index in self._unique.items():
            value = getattr(entity, name)
            if value is not None:
                index[value] = entity.id

    def _unindex(self, entity: E) -> None:
        for name, index in self._unique.items():
            index.pop(getattr(entity, name), None)


class MemoryEntityStore(EntityStore):
    """
    Entity store volatile.

    Examples:
        >>> store = MemoryEntityStore()
        >>> user = store.users.create({"username": "developer1"})
        >>> store.users.get(user.id).username
        'developer1'
    """

    def __init__(self, simulator: Optional[ChainSimulator] = None):
        self._lock = threading.RLock()
        self._undo: Optional[List[Callable[[], None]]] = None
        super().__init__(simulator)

        logger.debug("In-memory entity store initialized")

    def _make_repository(self, spec: CollectionSpec, builder: Callable[[Any], Entity]) -> Repository:
        return MemoryRepository(spec, builder, self)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            if self._undo is not None:
                yield
                return

            self._undo = []
            try:
                yield
            except BaseException:
                undo_steps = self._undo
                for step in reversed(undo_steps):
                    step()
                if undo_steps:
                    logger.debug(
                        "Atomic block rolled back",
                        extra_data={"undone_writes": len(undo_steps)}
                    )
                raise
            finally:
                self._undo = None

    def _journal(self, undo: Callable[[], None]) -> None:
        if self._undo is not None:
            self._undo.append(undo)


__all__ = [
    "MemoryRepository",
    "MemoryEntityStore",
]
