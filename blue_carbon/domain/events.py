"""
BlueCarbon Registry - Lifecycle Events
========================================
Porta di notifica esplicita per osservatori esterni (UI, webhook, audit).

Le operazioni lifecycle pubblicano un LifecycleEvent dopo il commit.
Un subscriber che fallisce viene loggato e non annulla l'operazione.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from blue_carbon.domain.models import Entity, Transaction, utcnow
from blue_carbon.logging_setup import get_logger


logger = get_logger("events")


class EventType(str, Enum):
    """Eventi pubblicati dalle regole lifecycle"""
    PROJECT_REGISTERED = "project.registered"
    PROJECT_VERIFIED = "project.verified"
    PROJECT_REJECTED = "project.rejected"
    CREDIT_MINTED = "credit.minted"
    CREDIT_PURCHASED = "credit.purchased"
    CREDIT_RETIRED = "credit.retired"
    SENSOR_RECORDED = "sensor.recorded"


@dataclass(frozen=True)
class LifecycleEvent:
    """
    Evento lifecycle.

    Attributes:
        type: Tipo evento
        entity: Snapshot entità dopo l'operazione
        transaction: Transazione generata (solo eventi credito)
        context: Dati extra (es. reason del ritiro)
    """
    type: EventType
    entity: Entity
    transaction: Optional[Transaction] = None
    context: Dict[str, object] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "entity": self.entity.to_dict(),
            "transaction": self.transaction.to_dict() if self.transaction else None,
            "context": dict(self.context),
            "occurredAt": self.occurred_at.isoformat(),
        }


EventHandler = Callable[[LifecycleEvent], None]


class EventPublisher:
    """
    Publisher sincrono thread-safe.

    Examples:
        >>> publisher = EventPublisher()
        >>> unsubscribe = publisher.subscribe(print, [EventType.CREDIT_RETIRED])
        >>> publisher.publish(event)
        >>> unsubscribe()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[Tuple[EventHandler, Optional[frozenset]]] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_types: Optional[Iterable[EventType]] = None
    ) -> Callable[[], None]:
        """
        Registra handler.

        Args:
            handler: Callable(event)
            event_types: Filtra per tipo (None = tutti)

        Returns:
            Callable che rimuove la sottoscrizione
        """
        entry = (handler, frozenset(event_types) if event_types is not None else None)

        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: LifecycleEvent) -> int:
        """
        Consegna evento ai subscriber interessati.

        Returns:
            int: Numero handler eseguiti con successo
        """
        with self._lock:
            targets = [
                handler for handler, types in self._subscribers
                if types is None or event.type in types
            ]

        delivered = 0
        for handler in targets:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    f"Event handler failed for {event.type.value}",
                    extra_data={"handler": getattr(handler, "__name__", repr(handler))}
                )

        return delivered

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


class EventRecorder:
    """Handler che accumula gli eventi ricevuti (debug, test, replay UI)"""

    def __init__(self):
        self.events: List[LifecycleEvent] = []

    def __call__(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> List[LifecycleEvent]:
        return [e for e in self.events if e.type == event_type]


__all__ = [
    "EventType",
    "LifecycleEvent",
    "EventHandler",
    "EventPublisher",
    "EventRecorder",
]
