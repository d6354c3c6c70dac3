"""
BlueCarbon Registry - Database Storage Layer
==============================================
Entity store persistente su SQLAlchemy (SQLite di default).

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Stesso contratto di MemoryEntityStore
- Una sessione per blocco atomic(): commit a fine blocco, rollback su errore
- Filtri di uguaglianza e ordinamento eseguiti in SQL
- Errori SQLAlchemy convertiti in errori del registro
"""

from __future__ import annotations
from contextlib import contextmanager
from copy import deepcopy
from pathlib import Path
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from sqlalchemy import create_engine, event, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blue_carbon.chain.simulator import ChainSimulator
from blue_carbon.config import RegistrySettings
from blue_carbon.domain.models import Entity
from blue_carbon.errors import (
    DatabaseError,
    DatabaseConnectionError,
    StorageError,
    ValidationError,
)
from blue_carbon.logging_setup import get_logger
from blue_carbon.storage.base import (
    CollectionSpec,
    EntityStore,
    Repository,
    E,
    USERS,
    PROJECTS,
    CREDITS,
    TRANSACTIONS,
    SENSOR_DATA,
)
from blue_carbon.storage.models_orm import (
    Base,
    UserORM,
    ProjectORM,
    CarbonCreditORM,
    TransactionORM,
    SensorDataORM,
    COLUMN_ATTRIBUTES,
)


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("storage")


ORM_CLASSES = {
    USERS.name: UserORM,
    PROJECTS.name: ProjectORM,
    CREDITS.name: CarbonCreditORM,
    TRANSACTIONS.name: TransactionORM,
    SENSOR_DATA.name: SensorDataORM,
}


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


# ============================================================================
# REPOSITORY
# ============================================================================

class SQLRepository(Repository[E]):
    """Collezione mappata su una tabella ORM"""

    def __init__(self, spec: CollectionSpec, builder, store: "RegistryDatabase", orm_cls):
        super().__init__(spec, builder, store)
        self.orm_cls = orm_cls
        renames = COLUMN_ATTRIBUTES.get(orm_cls, {})
        self._columns = {name: renames.get(name, name) for name in self._field_names}

    @property
    def _session(self) -> Session:
        return self._store.session

    def _column(self, field_name: str):
        return getattr(self.orm_cls, self._columns[field_name])

    def _row(self, entity_id: str):
        stmt = select(self.orm_cls).where(self.orm_cls.id == entity_id)
        return self._session.scalars(stmt).first()

    def _to_entity(self, row) -> E:
        values = {name: deepcopy(getattr(row, column)) for name, column in self._columns.items()}
        return self.spec.entity_cls(**values)

    def _load(self, entity_id: str) -> Optional[E]:
        row = self._row(entity_id)
        return self._to_entity(row) if row is not None else None

    def _load_all(self, equals: Dict[str, Any], newest_first: bool) -> List[E]:
        stmt = select(self.orm_cls)
        for name, value in equals.items():
            stmt = stmt.where(self._column(name) == value)

        if newest_first:
            time_column = self._column(self.spec.entity_cls.time_field)
            stmt = stmt.order_by(time_column.desc(), self.orm_cls.pk.desc())
        else:
            stmt = stmt.order_by(self.orm_cls.pk)

        return [self._to_entity(row) for row in self._session.scalars(stmt)]

    def _find_by(self, field_name: str, value: Any) -> Optional[str]:
        stmt = select(self.orm_cls.id).where(self._column(field_name) == value)
        return self._session.scalars(stmt).first()

    def _insert(self, entity: E) -> None:
        values = {column: deepcopy(getattr(entity, name)) for name, column in self._columns.items()}
        self._session.add(self.orm_cls(**values))
        self._session.flush()

    def _replace(self, entity: E) -> None:
        row = self._row(entity.id)
        if row is None:
            raise StorageError(
                f"{self.entity_name} '{entity.id}' vanished during update",
                code="ROW_MISSING"
            )
        for name, column in self._columns.items():
            setattr(row, column, deepcopy(getattr(entity, name)))
        self._session.flush()


# ============================================================================
# DATABASE STORE
# ============================================================================

class RegistryDatabase(EntityStore):
    """
    Entity store persistente.

    Thread-safe: le scritture sono serializzate da un RLock, la sessione
    del blocco atomic() corrente è thread-local.

    Attributes:
        database_url: URL SQLAlchemy
        engine: Engine SQLAlchemy

    Examples:
        >>> db = RegistryDatabase("sqlite:///data/bluecarbon.db")
        >>> project = db.projects.create({...})
        >>> db.close()
    """

    def __init__(
        self,
        database_url: str = "sqlite://",
        simulator: Optional[ChainSimulator] = None,
        echo: bool = False
    ):
        self.database_url = database_url
        self._lock = threading.RLock()
        self._local = threading.local()

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(database_url):
                engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_engine(database_url, **engine_kwargs)
            if database_url.startswith("sqlite") and not _is_memory_url(database_url):
                event.listen(self.engine, "connect", _enable_wal)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to initialize database: {e}",
                code="DB_CONNECTION_FAILED",
                details={"url": database_url}
            ) from e

        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        super().__init__(simulator)

        logger.info(
            "Database initialized",
            extra_data={"url": database_url}
        )

    @classmethod
    def from_settings(
        cls,
        config: RegistrySettings,
        simulator: Optional[ChainSimulator] = None
    ) -> "RegistryDatabase":
        """Database da configurazione (crea data_dir se serve)"""
        if config.db_path is not None:
            Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
        return cls(
            config.get_database_url(),
            simulator=simulator or ChainSimulator.from_settings(config),
            echo=config.db_echo,
        )

    @classmethod
    def from_path(cls, db_path: Union[str, Path], **kwargs) -> "RegistryDatabase":
        return cls(f"sqlite:///{db_path}", **kwargs)

    def _make_repository(self, spec: CollectionSpec, builder: Callable[[Any], Entity]) -> Repository:
        return SQLRepository(spec, builder, self, ORM_CLASSES[spec.name])

    # ========================================================================
    # SESSION / TRANSACTION
    # ========================================================================

    @property
    def session(self) -> Session:
        session = getattr(self._local, "session", None)
        if session is None:
            raise StorageError(
                "No active session: use store.atomic()",
                code="NO_ACTIVE_SESSION"
            )
        return session

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            if getattr(self._local, "session", None) is not None:
                yield
                return

            session = self._session_factory()
            self._local.session = session
            try:
                yield
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise ValidationError(
                    f"Constraint violation: {e.orig}",
                    code="DUPLICATE_VALUE",
                ) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise DatabaseError(
                    f"Database operation failed: {e}",
                    code="DB_OPERATION_FAILED"
                ) from e
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()
                self._local.session = None

    # ========================================================================
    # UTILITY
    # ========================================================================

    def close(self) -> None:
        """Chiudi connessioni"""
        self.engine.dispose()
        logger.info("Database closed")


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "SQLRepository",
    "RegistryDatabase",
]
