"""
BlueCarbon Registry - Input Validation
========================================
Schemi espliciti (Pydantic) per i payload in ingresso.

Last Updated: 2026-10-18
Version: 1.0.0

Ogni errore Pydantic viene convertito in ValidationError del registro
con dettaglio per campo:

    details = {"schema": "ProjectInput",
               "fields": [{"field": "area", "message": "...", "type": "..."}]}

Gli schemi accettano chiavi camelCase (formato API) e snake_case.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
)
from pydantic.alias_generators import to_camel

from blue_carbon.constants import (
    ProjectType,
    ProjectStatus,
    TransactionType,
    SensorType,
    UserRole,
    VerificationDecision,
)
from blue_carbon.errors import ValidationError, format_validation_error


SchemaT = TypeVar("SchemaT", bound=BaseModel)


# ============================================================================
# BASE SCHEMA
# ============================================================================

class InputSchema(BaseModel):
    """Base comune: alias camelCase, enum come stringhe"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        extra="ignore",
    )


# ============================================================================
# USER
# ============================================================================

class UserInput(InputSchema):
    """Payload creazione utente"""
    username: str = Field(..., min_length=1, max_length=64)
    wallet_address: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER, validate_default=True)


# ============================================================================
# PROJECT
# ============================================================================

class SatelliteImageryInput(InputSchema):
    """Riferimenti immagini satellitari prima/dopo"""
    before: Optional[str] = None
    after: Optional[str] = None


class ProjectInput(InputSchema):
    """
    Payload registrazione progetto.

    Required: name, project_type, location, area (> 0), developer_id.
    """
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    project_type: ProjectType
    area: Decimal = Field(..., gt=0)
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    location: str = Field(..., min_length=1)
    developer_id: str = Field(..., min_length=1)
    estimated_credits: int = Field(default=0, ge=0)
    verification_documents: Dict[str, bool] = Field(default_factory=dict)
    satellite_imagery: Optional[SatelliteImageryInput] = None


# ============================================================================
# CARBON CREDIT
# ============================================================================

class CreditInput(InputSchema):
    """Payload creazione credito (usato dal mint)"""
    project_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)
    owner_id: str = Field(..., min_length=1)
    co2_amount: Decimal = Field(default=Decimal("1.0"), gt=0)
    token_id: Optional[str] = Field(default=None, min_length=1)


# ============================================================================
# TRANSACTION
# ============================================================================

class TransactionInput(InputSchema):
    """Payload transazione (append-only)"""
    type: TransactionType
    credit_id: str = Field(..., min_length=1)
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    amount: int = Field(..., gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    tx_hash: Optional[str] = None
    blockchain_network: Optional[str] = None


# ============================================================================
# SENSOR DATA
# ============================================================================

class SensorReadingInput(InputSchema):
    """Payload lettura sensore"""
    project_id: str = Field(..., min_length=1)
    sensor_type: SensorType
    value: Decimal
    unit: str = Field(..., min_length=1)
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# CONVERSION
# ============================================================================

def pydantic_to_validation_error(
    exc: PydanticValidationError,
    schema_name: str
) -> ValidationError:
    """
    Converte errore Pydantic in ValidationError con dettaglio per campo.
    """
    field_errors = []
    for err in exc.errors():
        field_errors.append({
            "field": ".".join(str(part) for part in err["loc"]) or "__root__",
            "message": err["msg"],
            "type": err["type"],
        })

    names = ", ".join(e["field"] for e in field_errors)
    return ValidationError(
        message=f"Invalid {schema_name}: {names}",
        code="VALIDATION_FAILED",
        details={"schema": schema_name, "fields": field_errors},
    )


def validate_input(
    schema: Type[SchemaT],
    payload: Union[SchemaT, Dict[str, Any], Any]
) -> SchemaT:
    """
    Valida payload contro schema.

    Args:
        schema: Classe schema (es. ProjectInput)
        payload: dict o instance già validata

    Returns:
        Instance dello schema

    Raises:
        ValidationError: Campi mancanti o malformati

    Examples:
        >>> data = validate_input(ProjectInput, {"name": "Kerala", ...})
        >>> data.project_type
        'mangrove'
    """
    if isinstance(payload, schema):
        return payload

    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise pydantic_to_validation_error(e, schema.__name__)


def parse_decision(value: Union[str, VerificationDecision]) -> VerificationDecision:
    """
    Normalizza esito verifica.

    Accetta "approve"/"reject" e gli stati target "verified"/"rejected"
    (formato del vecchio endpoint PATCH /status).
    """
    raw = value.value if isinstance(value, VerificationDecision) else str(value).strip().lower()

    aliases = {
        VerificationDecision.APPROVE.value: VerificationDecision.APPROVE,
        ProjectStatus.VERIFIED.value: VerificationDecision.APPROVE,
        VerificationDecision.REJECT.value: VerificationDecision.REJECT,
        ProjectStatus.REJECTED.value: VerificationDecision.REJECT,
    }

    if raw not in aliases:
        raise format_validation_error(
            "decision", value, "one of approve, reject, verified, rejected",
            code="INVALID_DECISION"
        )
    return aliases[raw]


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "InputSchema",
    "UserInput",
    "SatelliteImageryInput",
    "ProjectInput",
    "CreditInput",
    "TransactionInput",
    "SensorReadingInput",
    "pydantic_to_validation_error",
    "validate_input",
    "parse_decision",
]
