"""
BlueCarbon Registry - Registry Facade
=======================================
Compone store, servizi, publisher e audit in un unico handle.

Nessun singleton: ogni Registry possiede il proprio store e va passato
esplicitamente (app FastAPI, CLI, test).
"""

from typing import Optional

from blue_carbon.chain.simulator import ChainSimulator
from blue_carbon.config import RegistrySettings, get_settings, validate_config
from blue_carbon.domain.events import EventPublisher
from blue_carbon.errors import ConfigError
from blue_carbon.logging_setup import AuditLogger, get_logger
from blue_carbon.services import (
    AnalyticsService,
    CreditService,
    ProjectService,
    SensorService,
    UserService,
)
from blue_carbon.storage import (
    EntityStore,
    MemoryEntityStore,
    RegistryDatabase,
    seed_sample_data,
)


logger = get_logger("registry")


def create_store(config: RegistrySettings) -> EntityStore:
    """Store secondo config.storage_backend (memory | sqlite)"""
    simulator = ChainSimulator.from_settings(config)
    if config.is_persistent():
        return RegistryDatabase.from_settings(config, simulator=simulator)
    return MemoryEntityStore(simulator=simulator)


class Registry:
    """
    Handle del registro.

    Attributes:
        config: Registry configuration
        store: Entity store
        publisher: Porta notifiche lifecycle
        projects, credits, sensors, users, analytics: Servizi

    Examples:
        >>> registry = Registry(get_test_config())
        >>> project = registry.projects.register_project({...})
        >>> registry.analytics.project_stats().total_projects
        1
    """

    def __init__(
        self,
        config: Optional[RegistrySettings] = None,
        store: Optional[EntityStore] = None,
        publisher: Optional[EventPublisher] = None,
        audit_logger: Optional[AuditLogger] = None
    ):
        self.config = config or get_settings()
        self.store = store if store is not None else create_store(self.config)
        self.publisher = publisher or EventPublisher()

        if audit_logger is None:
            audit_dir = self.config.log_dir if self.config.enable_audit_log else None
            audit_logger = AuditLogger(audit_dir)
        self.audit = audit_logger

        deps = (self.store, self.config, self.publisher, self.audit)
        self.projects = ProjectService(*deps)
        self.credits = CreditService(*deps)
        self.sensors = SensorService(*deps)
        self.users = UserService(*deps)
        self.analytics = AnalyticsService(self.store, self.config)

    def seed(self) -> dict:
        """Carica dataset dimostrativo"""
        return seed_sample_data(self.store)

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def prepare_environment(config: RegistrySettings) -> None:
    """
    Controlla la configurazione e crea le directory dati/log.

    Gli avvisi di validate_config (prefisso WARNING) sono solo loggati.

    Raises:
        ConfigError: Directory non scrivibili o non creabili
    """
    _, problems = validate_config(config)
    warnings = [p for p in problems if p.startswith("WARNING")]
    errors = [p for p in problems if not p.startswith("WARNING")]

    for warning in warnings:
        logger.warning(warning)
    if errors:
        raise ConfigError(
            f"Invalid configuration: {'; '.join(errors)}",
            code="INVALID_CONFIG",
            details={"errors": errors}
        )

    try:
        config.ensure_directories()
    except OSError as e:
        raise ConfigError(
            f"Cannot create registry directories: {e}",
            code="DIRECTORY_UNAVAILABLE",
            details={"data_dir": str(config.data_dir), "log_dir": str(config.log_dir)}
        ) from e


def build_registry(config: Optional[RegistrySettings] = None) -> Registry:
    """
    Registry da configurazione, con seed opzionale (config.seed_sample_data).

    Raises:
        ConfigError: Vedi prepare_environment
    """
    config = config or get_settings()
    prepare_environment(config)
    registry = Registry(config)

    if config.seed_sample_data:
        registry.seed()

    logger.info(
        "Registry ready",
        extra_data={
            "backend": config.storage_backend,
            "network": config.blockchain_network,
            "counts": registry.store.counts()
        }
    )
    return registry


__all__ = [
    "create_store",
    "prepare_environment",
    "Registry",
    "build_registry",
]
