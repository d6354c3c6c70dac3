"""
BlueCarbon Registry - Entity Store Contract
=============================================
Contratto CRUD comune ai backend di storage.

Last Updated: 2026-10-18
Version: 1.0.0

Ogni collezione (users, projects, credits, transactions, sensor_data)
espone:
- create(partial): id nuovo, default per tipo, validazione schema
- get(id) / find(id): lookup (NotFoundError / None)
- list(predicate, newest_first, **equals): ordine di inserimento o
  cronologico discendente
- update(id, patch): mutazione parziale atomica

Le entità restituite sono copie: modificarle non tocca lo store.
store.atomic() raggruppa più operazioni in un'unica unità: se una fallisce
nessuna modifica resta visibile.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from decimal import InvalidOperation
from typing import (
    Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, Tuple, Type, TypeVar,
    get_type_hints,
)
import uuid

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from blue_carbon.chain.simulator import ChainSimulator
from blue_carbon.constants import ProjectStatus, CreditStatus
from blue_carbon.domain.models import (
    Entity,
    User,
    Project,
    CarbonCredit,
    Transaction,
    SensorData,
    utcnow,
)
from blue_carbon.domain.validation import (
    UserInput,
    ProjectInput,
    CreditInput,
    TransactionInput,
    SensorReadingInput,
    validate_input,
)
from blue_carbon.errors import (
    ValidationError,
    InvalidStateError,
    StorageError,
    format_not_found_error,
)


E = TypeVar("E", bound=Entity)


def new_id() -> str:
    """Id entità (UUID4)"""
    return str(uuid.uuid4())


# ============================================================================
# COLLECTION SPEC
# ============================================================================

@dataclass(frozen=True)
class CollectionSpec:
    """
    Regole per collezione.

    Attributes:
        name: Nome collezione
        entity_cls: Classe entità
        append_only: Se True, update() non ammesso
        unique_fields: Campi unici oltre a id
        immutable_fields: Campi non modificabili da update()
        frozen_when: Predicato: se vero l'entità non accetta più update
    """
    name: str
    entity_cls: Type[Entity]
    append_only: bool = False
    unique_fields: Tuple[str, ...] = ()
    immutable_fields: Tuple[str, ...] = ("id",)
    frozen_when: Optional[Callable[[Any], bool]] = None


USERS = CollectionSpec(
    name="users",
    entity_cls=User,
    unique_fields=("username",),
    immutable_fields=("id", "created_at"),
)

PROJECTS = CollectionSpec(
    name="projects",
    entity_cls=Project,
    immutable_fields=("id", "created_at"),
)

CREDITS = CollectionSpec(
    name="credits",
    entity_cls=CarbonCredit,
    unique_fields=("token_id",),
    immutable_fields=("id", "project_id", "token_id", "minted_at"),
    frozen_when=lambda credit: credit.status == CreditStatus.RETIRED.value,
)

TRANSACTIONS = CollectionSpec(
    name="transactions",
    entity_cls=Transaction,
    append_only=True,
)

SENSOR_DATA = CollectionSpec(
    name="sensor_data",
    entity_cls=SensorData,
    append_only=True,
)


# ============================================================================
# REPOSITORY
# ============================================================================

class Repository(ABC, Generic[E]):
    """
    Collezione keyed di un tipo di entità.

    Le sottoclassi implementano solo la persistenza (_load, _load_all,
    _find_by, _insert, _replace); regole e validazione stanno qui.
    """

    def __init__(
        self,
        spec: CollectionSpec,
        builder: Callable[[Any], E],
        store: "EntityStore"
    ):
        self.spec = spec
        self._builder = builder
        self._store = store
        self._field_names = tuple(f.name for f in fields(spec.entity_cls))
        hints = get_type_hints(spec.entity_cls)
        self._adapters: Dict[str, TypeAdapter] = {
            name: TypeAdapter(hints[name]) for name in self._field_names
        }

    @property
    def entity_name(self) -> str:
        return self.spec.entity_cls.entity_name

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    def create(self, data: Any) -> E:
        """
        Crea entità da payload parziale.

        Raises:
            ValidationError: Campi mancanti/malformati o duplicati
            NotFoundError: Riferimento a entità inesistente
        """
        with self._store.atomic():
            entity = self._builder(data)
            self._check_unique(entity, inserting=True)
            self._insert(entity)
        return entity

    def add(self, entity: E) -> E:
        """Inserisce entità già costruita (seed, import)"""
        if not isinstance(entity, self.spec.entity_cls):
            raise ValidationError(
                f"Expected {self.spec.entity_cls.__name__}, got {type(entity).__name__}",
                code="WRONG_ENTITY_TYPE"
            )
        with self._store.atomic():
            self._check_unique(entity, inserting=True)
            self._insert(entity)
        return entity

    def get(self, entity_id: str) -> E:
        """
        Lookup per id.

        Raises:
            NotFoundError: Se id assente
        """
        entity = self.find(entity_id)
        if entity is None:
            raise format_not_found_error(self.entity_name, entity_id)
        return entity

    def find(self, entity_id: str) -> Optional[E]:
        """Lookup per id, None se assente"""
        with self._store.atomic():
            return self._load(entity_id)

    def exists(self, entity_id: str) -> bool:
        return self.find(entity_id) is not None

    def list(
        self,
        predicate: Optional[Callable[[E], bool]] = None,
        newest_first: bool = False,
        **equals: Any
    ) -> List[E]:
        """
        Lista entità.

        Args:
            predicate: Filtro opzionale
            newest_first: Ordine cronologico discendente
            **equals: Filtri di uguaglianza su campi (es. owner_id="0x..")

        Returns:
            Lista in ordine di inserimento, o per tempo discendente
        """
        self._check_field_names(equals.keys())
        with self._store.atomic():
            items = self._load_all(equals, newest_first)
        if predicate is not None:
            items = [e for e in items if predicate(e)]
        return items

    def count(self, predicate: Optional[Callable[[E], bool]] = None, **equals: Any) -> int:
        return len(self.list(predicate, **equals))

    def update(self, entity_id: str, patch: Mapping[str, Any]) -> E:
        """
        Applica mutazione parziale.

        La nuova entità è costruita e validata prima di sostituire la
        precedente: un patch invalido lascia lo store invariato.

        Raises:
            NotFoundError: Se id assente
            ValidationError: Campo sconosciuto, immutabile o valore invalido
            InvalidStateError: Entità in stato terminale
            StorageError: Collezione append-only
        """
        if self.spec.append_only:
            raise StorageError(
                f"{self.spec.name} is append-only",
                code="APPEND_ONLY",
                details={"collection": self.spec.name, "id": entity_id}
            )

        patch = dict(patch)
        self._check_field_names(patch.keys())

        blocked = sorted(set(patch) & set(self.spec.immutable_fields))
        if blocked:
            raise ValidationError(
                f"Immutable fields cannot be updated: {', '.join(blocked)}",
                code="IMMUTABLE_FIELD",
                details={"fields": [{"field": name} for name in blocked]}
            )

        patch = self._coerce_patch(patch)

        with self._store.atomic():
            current = self.get(entity_id)

            if self.spec.frozen_when is not None and self.spec.frozen_when(current):
                raise InvalidStateError(
                    f"{self.entity_name} '{entity_id}' is in a terminal state",
                    code="ENTITY_FROZEN",
                    details={"id": entity_id, "status": getattr(current, "status", None)}
                )

            try:
                updated = replace(current, **patch)
            except (TypeError, InvalidOperation) as e:
                raise ValidationError(
                    f"Invalid {self.entity_name} update: {e}",
                    code="VALIDATION_FAILED",
                    details={"fields": [{"field": name} for name in sorted(patch)]}
                ) from e
            self._check_unique(updated, inserting=False)
            self._replace(updated)

        return updated

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _check_field_names(self, names) -> None:
        unknown = sorted(set(names) - set(self._field_names))
        if unknown:
            raise ValidationError(
                f"Unknown {self.entity_name} fields: {', '.join(unknown)}",
                code="UNKNOWN_FIELD",
                details={"fields": [{"field": name} for name in unknown]}
            )

    def _coerce_patch(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Porta i valori del patch al tipo del campo (float -> Decimal, "12" -> Decimal)"""
        coerced: Dict[str, Any] = {}
        field_errors = []
        for name, value in patch.items():
            try:
                coerced[name] = self._adapters[name].validate_python(value)
            except PydanticValidationError as e:
                for err in e.errors():
                    field_errors.append({
                        "field": ".".join([name, *(str(part) for part in err["loc"])]),
                        "message": err["msg"],
                        "type": err["type"],
                    })

        if field_errors:
            names = ", ".join(e["field"] for e in field_errors)
            raise ValidationError(
                f"Invalid {self.entity_name} update: {names}",
                code="VALIDATION_FAILED",
                details={"fields": field_errors}
            )
        return coerced

    def _check_unique(self, entity: E, inserting: bool) -> None:
        if inserting and self._load(entity.id) is not None:
            raise ValidationError(
                f"Duplicate {self.entity_name} id: {entity.id}",
                code="DUPLICATE_ID",
                details={"id": entity.id}
            )

        for name in self.spec.unique_fields:
            value = getattr(entity, name)
            if value is None:
                continue
            owner_id = self._find_by(name, value)
            if owner_id is not None and owner_id != entity.id:
                raise ValidationError(
                    f"Duplicate {self.entity_name} {name}: {value}",
                    code="DUPLICATE_VALUE",
                    details={"fields": [{"field": name, "value": value}]}
                )

    @abstractmethod
    def _load(self, entity_id: str) -> Optional[E]:
        ...

    @abstractmethod
    def _load_all(self, equals: Dict[str, Any], newest_first: bool) -> List[E]:
        ...

    @abstractmethod
    def _find_by(self, field_name: str, value: Any) -> Optional[str]:
        """Id dell'entità con field_name == value, o None"""

    @abstractmethod
    def _insert(self, entity: E) -> None:
        ...

    @abstractmethod
    def _replace(self, entity: E) -> None:
        ...


# ============================================================================
# ENTITY STORE
# ============================================================================

class EntityStore(ABC):
    """
    Store proprietario di tutte le entità del registro.

    Attributes:
        users, projects, credits, transactions, sensor_data: Repository
        simulator: Generatore tx hash / token ID

    Thread Safety:
        atomic() serializza le scritture; le operazioni lifecycle
        lo usano per leggere e scrivere come unità unica.
    """

    def __init__(self, simulator: Optional[ChainSimulator] = None):
        self.simulator = simulator or ChainSimulator()

        self.users: Repository[User] = self._make_repository(USERS, self.build_user)
        self.projects: Repository[Project] = self._make_repository(PROJECTS, self.build_project)
        self.credits: Repository[CarbonCredit] = self._make_repository(CREDITS, self.build_credit)
        self.transactions: Repository[Transaction] = self._make_repository(
            TRANSACTIONS, self.build_transaction
        )
        self.sensor_data: Repository[SensorData] = self._make_repository(
            SENSOR_DATA, self.build_sensor_reading
        )

    # ========================================================================
    # BACKEND HOOKS
    # ========================================================================

    @abstractmethod
    def _make_repository(self, spec: CollectionSpec, builder: Callable[[Any], Entity]) -> Repository:
        ...

    @abstractmethod
    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Unità atomica (re-entrant)"""

    def close(self) -> None:
        """Rilascia risorse backend"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def repositories(self) -> Dict[str, Repository]:
        return {
            "users": self.users,
            "projects": self.projects,
            "credits": self.credits,
            "transactions": self.transactions,
            "sensor_data": self.sensor_data,
        }

    def counts(self) -> Dict[str, int]:
        """Numero entità per collezione"""
        return {name: repo.count() for name, repo in self.repositories().items()}

    # ========================================================================
    # BUILDERS (default per tipo)
    # ========================================================================

    def build_user(self, data: Any) -> User:
        payload = validate_input(UserInput, data)
        return User(
            id=new_id(),
            username=payload.username,
            wallet_address=payload.wallet_address,
            role=payload.role,
        )

    def build_project(self, data: Any) -> Project:
        payload = validate_input(ProjectInput, data)
        imagery = payload.satellite_imagery
        return Project(
            id=new_id(),
            name=payload.name,
            description=payload.description,
            project_type=payload.project_type,
            area=payload.area,
            latitude=payload.latitude,
            longitude=payload.longitude,
            location=payload.location,
            developer_id=payload.developer_id,
            status=ProjectStatus.PENDING.value,
            estimated_credits=payload.estimated_credits,
            verification_documents=dict(payload.verification_documents),
            satellite_imagery=imagery.model_dump() if imagery is not None else None,
            created_at=utcnow(),
            verified_at=None,
        )

    def build_credit(self, data: Any) -> CarbonCredit:
        payload = validate_input(CreditInput, data)
        self.projects.get(payload.project_id)

        minted_at = utcnow()
        return CarbonCredit(
            id=new_id(),
            project_id=payload.project_id,
            token_id=payload.token_id or self.simulator.new_token_id(payload.project_id, minted_at),
            amount=payload.amount,
            price=payload.price,
            owner_id=payload.owner_id,
            co2_amount=payload.co2_amount,
            status=CreditStatus.AVAILABLE.value,
            minted_at=minted_at,
        )

    def build_transaction(self, data: Any) -> Transaction:
        payload = validate_input(TransactionInput, data)
        self.credits.get(payload.credit_id)

        return Transaction(
            id=new_id(),
            type=payload.type,
            credit_id=payload.credit_id,
            amount=payload.amount,
            tx_hash=payload.tx_hash or self.simulator.new_tx_hash(),
            from_user_id=payload.from_user_id,
            to_user_id=payload.to_user_id,
            price=payload.price,
            blockchain_network=payload.blockchain_network or self.simulator.network,
            created_at=utcnow(),
        )

    def build_sensor_reading(self, data: Any) -> SensorData:
        payload = validate_input(SensorReadingInput, data)
        self.projects.get(payload.project_id)

        return SensorData(
            id=new_id(),
            project_id=payload.project_id,
            sensor_type=payload.sensor_type,
            value=payload.value,
            unit=payload.unit,
            latitude=payload.latitude,
            longitude=payload.longitude,
            timestamp=utcnow(),
            metadata=dict(payload.metadata),
        )


__all__ = [
    "new_id",
    "CollectionSpec",
    "USERS",
    "PROJECTS",
    "CREDITS",
    "TRANSACTIONS",
    "SENSOR_DATA",
    "Repository",
    "EntityStore",
]
