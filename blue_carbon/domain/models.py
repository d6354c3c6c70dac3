"""
BlueCarbon Registry - Core Domain Models
==========================================
Strutture dati del registro crediti blue carbon.

Last Updated: 2026-10-18
Version: 1.0.0

Models:
- User: Utente (developer, buyer, verifier)
- Project: Progetto di restauro costiero
- CarbonCredit: Lotto crediti tokenizzati
- Transaction: Movimento append-only su un credito
- SensorData: Lettura telemetria di un progetto

Tutte le strutture sono immutabili (frozen): ogni modifica passa da
dataclasses.replace() e rivalida gli invarianti in __post_init__.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional

from blue_carbon.constants import (
    ProjectStatus,
    CreditStatus,
    TransactionType,
    DEFAULT_BLOCKCHAIN_NETWORK,
)
from blue_carbon.errors import ValidationError


# ============================================================================
# HELPERS
# ============================================================================

def utcnow() -> datetime:
    """Timestamp corrente timezone-aware (UTC)"""
    return datetime.now(timezone.utc)


def to_camel(name: str) -> str:
    """snake_case -> camelCase (chiavi API)"""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _serialize(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


def _invariant(condition: bool, message: str, code: str, **details) -> None:
    if not condition:
        raise ValidationError(message, code=code, details=details)


class Entity:
    """
    Mixin comune alle entità del registro.

    Fornisce serializzazione dict con chiavi snake_case (storage) o
    camelCase (API, stesso formato del frontend).
    """

    entity_name: ClassVar[str] = "entity"
    time_field: ClassVar[str] = "created_at"

    def to_dict(self, camel: bool = True) -> Dict[str, Any]:
        """
        Serializza entità in dict.

        Decimal -> str, datetime -> ISO 8601.

        Examples:
            >>> project.to_dict()["projectType"]
            'mangrove'
        """
        data = {}
        for f in fields(self):
            key = to_camel(f.name) if camel else f.name
            data[key] = _serialize(getattr(self, f.name))
        return data

    def field_names(self) -> tuple:
        return tuple(f.name for f in fields(self))

    @property
    def sort_time(self) -> datetime:
        return getattr(self, self.time_field)


# ============================================================================
# USER
# ============================================================================

@dataclass(frozen=True)
class User(Entity):
    """
    Utente del registro.

    wallet_address è un identificativo opaco (non validato).
    """

    entity_name: ClassVar[str] = "user"

    id: str
    username: str
    wallet_address: Optional[str] = None
    role: str = "user"
    created_at: datetime = field(default_factory=utcnow)


# ============================================================================
# PROJECT
# ============================================================================

@dataclass(frozen=True)
class Project(Entity):
    """
    Progetto di restauro ecosistema costiero.

    Attributes:
        area (Decimal): Ettari, sempre > 0
        status (str): pending | verified | rejected
        verified_at (datetime): valorizzato se e solo se status = verified

    Examples:
        >>> project.status
        'pending'
        >>> project.verified_at is None
        True
    """

    entity_name: ClassVar[str] = "project"

    id: str
    name: str
    description: str
    project_type: str
    area: Decimal
    location: str
    developer_id: str
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    status: str = ProjectStatus.PENDING.value
    estimated_credits: int = 0
    verification_documents: Dict[str, bool] = field(default_factory=dict)
    satellite_imagery: Optional[Dict[str, Optional[str]]] = None
    created_at: datetime = field(default_factory=utcnow)
    verified_at: Optional[datetime] = None

    def __post_init__(self):
        """Validazione invarianti"""
        _invariant(
            self.area > 0,
            f"Project area must be positive, got {self.area}",
            "INVALID_PROJECT_AREA", area=str(self.area)
        )
        _invariant(
            self.estimated_credits >= 0,
            "estimated_credits must be non-negative",
            "INVALID_ESTIMATED_CREDITS", estimated_credits=self.estimated_credits
        )
        _invariant(
            self.status in {s.value for s in ProjectStatus},
            f"Unknown project status: {self.status}",
            "INVALID_PROJECT_STATUS", status=self.status
        )
        is_verified = self.status == ProjectStatus.VERIFIED.value
        _invariant(
            (self.verified_at is not None) == is_verified,
            "verified_at must be set if and only if status is verified",
            "VERIFIED_AT_MISMATCH", status=self.status
        )

    def is_pending(self) -> bool:
        return self.status == ProjectStatus.PENDING.value

    def is_verified(self) -> bool:
        return self.status == ProjectStatus.VERIFIED.value


# ============================================================================
# CARBON CREDIT
# ============================================================================

@dataclass(frozen=True)
class CarbonCredit(Entity):
    """
    Lotto di crediti carbonio tokenizzato.

    Ciclo di vita:
        available --purchase--> available (cambia owner_id)
        available --retire----> retired (terminale)

    Attributes:
        token_id (str): Unico, assegnato al mint, immutabile
        amount (int): Numero crediti nel lotto (> 0)
        price (Decimal): Prezzo per credito (>= 0)
        co2_amount (Decimal): Tonnellate CO2 per credito (> 0)
        retired_at/retired_by: valorizzati insieme solo se retired
    """

    entity_name: ClassVar[str] = "credit"
    time_field: ClassVar[str] = "minted_at"

    id: str
    project_id: str
    token_id: str
    amount: int
    price: Decimal
    owner_id: str
    co2_amount: Decimal
    status: str = CreditStatus.AVAILABLE.value
    minted_at: datetime = field(default_factory=utcnow)
    retired_at: Optional[datetime] = None
    retired_by: Optional[str] = None

    def __post_init__(self):
        """Validazione invarianti"""
        _invariant(
            self.amount > 0,
            f"Credit amount must be positive, got {self.amount}",
            "INVALID_CREDIT_AMOUNT", amount=self.amount
        )
        _invariant(
            self.price >= 0,
            f"Credit price must be non-negative, got {self.price}",
            "INVALID_CREDIT_PRICE", price=str(self.price)
        )
        _invariant(
            self.co2_amount > 0,
            f"co2_amount must be positive, got {self.co2_amount}",
            "INVALID_CO2_AMOUNT", co2_amount=str(self.co2_amount)
        )
        _invariant(
            self.status in {s.value for s in CreditStatus},
            f"Unknown credit status: {self.status}",
            "INVALID_CREDIT_STATUS", status=self.status
        )
        is_retired = self.status == CreditStatus.RETIRED.value
        _invariant(
            (self.retired_at is not None) == is_retired
            and (self.retired_by is not None) == is_retired,
            "retired_at and retired_by must be set together, only when retired",
            "RETIREMENT_FIELDS_MISMATCH", status=self.status
        )

    def is_available(self) -> bool:
        return self.status == CreditStatus.AVAILABLE.value

    def is_retired(self) -> bool:
        return self.status == CreditStatus.RETIRED.value

    def total_co2(self) -> Decimal:
        """Tonnellate CO2 totali rappresentate dal lotto"""
        return self.co2_amount * self.amount

    def total_value(self) -> Decimal:
        """Valore di mercato del lotto (price * amount)"""
        return self.price * self.amount


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True)
class Transaction(Entity):
    """
    Transazione simulata su un credito. Append-only.

    Convenzioni:
    - minting: from_user_id = None
    - retirement: to_user_id = None, price = None
    """

    entity_name: ClassVar[str] = "transaction"

    id: str
    type: str
    credit_id: str
    amount: int
    tx_hash: str
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    price: Optional[Decimal] = None
    blockchain_network: str = DEFAULT_BLOCKCHAIN_NETWORK
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        """Validazione invarianti"""
        _invariant(
            self.type in {t.value for t in TransactionType},
            f"Unknown transaction type: {self.type}",
            "INVALID_TX_TYPE", type=self.type
        )
        _invariant(
            self.amount > 0,
            f"Transaction amount must be positive, got {self.amount}",
            "INVALID_TX_AMOUNT", amount=self.amount
        )
        _invariant(
            self.price is None or self.price >= 0,
            "Transaction price must be non-negative",
            "INVALID_TX_PRICE", price=str(self.price)
        )

    def involves(self, user_id: str) -> bool:
        """True se user_id è mittente o destinatario"""
        return user_id in (self.from_user_id, self.to_user_id)


# ============================================================================
# SENSOR DATA
# ============================================================================

@dataclass(frozen=True)
class SensorData(Entity):
    """Lettura sensore. Append-only, ordinata per timestamp."""

    entity_name: ClassVar[str] = "sensor_data"
    time_field: ClassVar[str] = "timestamp"

    id: str
    project_id: str
    sensor_type: str
    value: Decimal
    unit: str
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    timestamp: datetime = field(default_factory=utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "utcnow",
    "to_camel",
    "Entity",
    "User",
    "Project",
    "CarbonCredit",
    "Transaction",
    "SensorData",
]
