"""
BlueCarbon Registry - API Schemas
===================================
Pydantic models for API request/response validation.

I body accettano chiavi camelCase (formato client web) e snake_case.
I payload di creazione progetto/utente/sensore riusano gli schemi di
blue_carbon.domain.validation.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ============================================================================
# BASE SCHEMAS
# ============================================================================

class APIModel(BaseModel):
    """Base: alias camelCase"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class HealthResponse(APIModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Registry version")
    registry: str = Field(..., description="Registry name")
    storage_backend: str = Field(..., description="memory | sqlite")
    timestamp: str = Field(..., description="Current UTC timestamp (ISO 8601)")


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Error details")


# ============================================================================
# PROJECT SCHEMAS
# ============================================================================

class VerifyProjectRequest(APIModel):
    """Esito verifica (approve | reject)"""
    decision: str = Field(..., min_length=1)


class ProjectStatusRequest(APIModel):
    """Stato target (verified | rejected)"""
    status: str = Field(..., min_length=1)


# ============================================================================
# CREDIT SCHEMAS
# ============================================================================

class MintCreditsRequest(APIModel):
    """Mint crediti da progetto verificato"""
    project_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    price_per_credit: Decimal = Field(
        ..., ge=0, validation_alias=AliasChoices("price", "pricePerCredit", "price_per_credit")
    )
    owner_id: str = Field(..., min_length=1)
    co2_amount: Optional[Decimal] = Field(default=None, gt=0)


class PurchaseCreditRequest(APIModel):
    """Acquisto credito (amount: 0 < amount <= credit.amount)"""
    buyer_id: str = Field(..., min_length=1)
    amount: Optional[int] = None


class TransferCreditRequest(APIModel):
    """Trasferimento intero lotto (route storica /transfer)"""
    new_owner_id: str = Field(..., min_length=1)


class RetireCreditRequest(APIModel):
    """Ritiro credito"""
    retired_by: str = Field(..., min_length=1)
    reason: Optional[str] = None


# ============================================================================
# WEB3 SIMULATION SCHEMAS
# ============================================================================

class WalletConnectRequest(APIModel):
    """Connessione wallet simulata"""
    wallet_address: str = Field(..., min_length=1)


class Web3MintRequest(APIModel):
    """Mint simulato con prezzo/co2 di default"""
    project_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    owner_id: str = Field(..., min_length=1)


class Web3MintResponse(APIModel):
    """Esito mint simulato"""
    success: bool
    token_id: str
    tx_hash: str
    credit_id: str


__all__ = [
    "APIModel",
    "HealthResponse",
    "ErrorResponse",
    "VerifyProjectRequest",
    "ProjectStatusRequest",
    "MintCreditsRequest",
    "PurchaseCreditRequest",
    "TransferCreditRequest",
    "RetireCreditRequest",
    "WalletConnectRequest",
    "Web3MintRequest",
    "Web3MintResponse",
]
