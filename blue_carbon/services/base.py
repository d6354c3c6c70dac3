"""
BlueCarbon Registry - Service Base
====================================
Dipendenze comuni dei servizi lifecycle.
"""

from typing import Optional

from blue_carbon.config import RegistrySettings, get_settings
from blue_carbon.domain.events import EventPublisher, EventType, LifecycleEvent
from blue_carbon.domain.models import Entity, Transaction
from blue_carbon.errors import format_validation_error
from blue_carbon.logging_setup import AuditLogger
from blue_carbon.storage.base import EntityStore


class RegistryService:
    """
    Base dei servizi: store, config, publisher eventi, audit.

    Attributes:
        store: Entity store (passato esplicitamente, nessun singleton)
        config: Registry configuration
        publisher: Porta notifiche lifecycle
        audit: Audit trail
    """

    def __init__(
        self,
        store: EntityStore,
        config: Optional[RegistrySettings] = None,
        publisher: Optional[EventPublisher] = None,
        audit_logger: Optional[AuditLogger] = None
    ):
        self.store = store
        self.config = config or get_settings()
        self.publisher = publisher or EventPublisher()
        self.audit = audit_logger or AuditLogger()

    def _publish(
        self,
        event_type: EventType,
        entity: Entity,
        transaction: Optional[Transaction] = None,
        **context
    ) -> None:
        self.publisher.publish(
            LifecycleEvent(
                type=event_type,
                entity=entity,
                transaction=transaction,
                context=context,
            )
        )


def require_identifier(field: str, value) -> str:
    """Identificativo opaco non vuoto (indirizzo, user id)"""
    if not isinstance(value, str) or not value.strip():
        raise format_validation_error(field, value, "non-empty identifier")
    return value.strip()


__all__ = [
    "RegistryService",
    "require_identifier",
]
