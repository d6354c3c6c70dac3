"""
BlueCarbon Registry - REST API
================================
API REST del registro.

Last Updated: 2026-10-18
Version: 1.0.0

Endpoints:
- /api/projects/*     - Registrazione e verifica progetti
- /api/credits/*      - Mint, acquisto, ritiro crediti
- /api/transactions/* - Storico transazioni
- /api/sensor-data/*  - Telemetria progetti
- /api/users/*        - Utenti (id, username, wallet)
- /api/analytics/*    - Statistiche progetti e mercato
- /api/web3/*         - Interazione wallet/contratto simulata
- /health             - Health check

Error mapping: NotFoundError -> 404, ValidationError / InvalidStateError /
InvalidTransitionError / InvalidAmountError -> 400.
Body errore: {"error": code, "message": ..., "details": {...}}
"""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from blue_carbon.api.deps import (
    get_analytics_service,
    get_config,
    get_credit_service,
    get_project_service,
    get_registry,
    get_sensor_service,
    get_user_service,
)
from blue_carbon.api.middleware import (
    CORSMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
    cors_options,
)
from blue_carbon.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MintCreditsRequest,
    ProjectStatusRequest,
    PurchaseCreditRequest,
    RetireCreditRequest,
    TransferCreditRequest,
    VerifyProjectRequest,
    WalletConnectRequest,
    Web3MintRequest,
    Web3MintResponse,
)
from blue_carbon.config import RegistrySettings, get_settings
from blue_carbon.domain.models import utcnow
from blue_carbon.domain.validation import ProjectInput, SensorReadingInput, UserInput
from blue_carbon.errors import BlueCarbonException, format_not_found_error
from blue_carbon.logging_setup import get_logger
from blue_carbon.registry import Registry, build_registry
from blue_carbon.services import (
    AnalyticsService,
    CreditService,
    ProjectService,
    SensorService,
    UserService,
)
from blue_carbon.version import get_version_string


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("api")

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Validation or lifecycle error"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Entity not found"},
}


# ============================================================================
# PROJECT ENDPOINTS
# ============================================================================

projects_router = APIRouter(prefix="/api/projects", tags=["projects"], responses=ERROR_RESPONSES)


@projects_router.get("")
def list_projects(
    project_type: Optional[str] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status"),
    developer: Optional[str] = None,
    service: ProjectService = Depends(get_project_service)
):
    """Lista progetti (filtri: type, status, developer)"""
    if developer:
        projects = service.projects_by_developer(developer)
        projects = [
            p for p in projects
            if (not project_type or p.project_type == project_type)
            and (not status_filter or p.status == status_filter)
        ]
    else:
        projects = service.list_projects(project_type=project_type, status=status_filter)
    return [p.to_dict() for p in projects]


@projects_router.post("", status_code=status.HTTP_201_CREATED)
def register_project(
    payload: ProjectInput,
    service: ProjectService = Depends(get_project_service)
):
    """Registra progetto (status pending)"""
    return service.register_project(payload).to_dict()


@projects_router.get("/{project_id}")
def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    return service.get_project(project_id).to_dict()


@projects_router.post("/{project_id}/verify")
def verify_project(
    project_id: str,
    payload: VerifyProjectRequest,
    service: ProjectService = Depends(get_project_service)
):
    """Esito verifica: approve | reject"""
    return service.verify_project(project_id, payload.decision).to_dict()


@projects_router.patch("/{project_id}/status")
def update_project_status(
    project_id: str,
    payload: ProjectStatusRequest,
    service: ProjectService = Depends(get_project_service)
):
    """Stato target verified | rejected (passa dalle stesse regole di verify)"""
    return service.verify_project(project_id, payload.status).to_dict()


# ============================================================================
# CREDIT ENDPOINTS
# ============================================================================

credits_router = APIRouter(prefix="/api/credits", tags=["credits"], responses=ERROR_RESPONSES)


@credits_router.get("")
def list_credits(
    status_filter: Optional[str] = Query(None, alias="status"),
    project: Optional[str] = None,
    service: CreditService = Depends(get_credit_service)
):
    if project:
        credits = [
            c for c in service.credits_by_project(project)
            if not status_filter or c.status == status_filter
        ]
    else:
        credits = service.list_credits(status=status_filter)
    return [c.to_dict() for c in credits]


@credits_router.get("/available")
def list_available_credits(service: CreditService = Depends(get_credit_service)):
    return [c.to_dict() for c in service.available_credits()]


@credits_router.get("/owner/{owner_id}")
def list_credits_by_owner(owner_id: str, service: CreditService = Depends(get_credit_service)):
    return [c.to_dict() for c in service.credits_by_owner(owner_id)]


@credits_router.post("/mint", status_code=status.HTTP_201_CREATED)
def mint_credits(
    payload: MintCreditsRequest,
    service: CreditService = Depends(get_credit_service)
):
    """Mint da progetto verificato: {credit, transaction}"""
    result = service.mint_credits(
        payload.project_id,
        payload.amount,
        payload.price_per_credit,
        payload.owner_id,
        co2_amount=payload.co2_amount,
    )
    return result.to_dict()


@credits_router.get("/{credit_id}")
def get_credit(credit_id: str, service: CreditService = Depends(get_credit_service)):
    return service.get_credit(credit_id).to_dict()


@credits_router.post("/{credit_id}/purchase")
def purchase_credit(
    credit_id: str,
    payload: PurchaseCreditRequest,
    service: CreditService = Depends(get_credit_service)
):
    """Acquisto: amount omesso = intero lotto"""
    amount = payload.amount
    if amount is None:
        amount = service.get_credit(credit_id).amount
    return service.purchase_credit(credit_id, payload.buyer_id, amount).to_dict()


@credits_router.patch("/{credit_id}/transfer")
def transfer_credit(
    credit_id: str,
    payload: TransferCreditRequest,
    service: CreditService = Depends(get_credit_service)
):
    """Cambio proprietario dell'intero lotto: stessa regola e stessa transazione di purchase"""
    credit = service.get_credit(credit_id)
    result = service.purchase_credit(credit_id, payload.new_owner_id, credit.amount)
    return result.credit.to_dict()


@credits_router.api_route("/{credit_id}/retire", methods=["POST", "PATCH"])
def retire_credit(
    credit_id: str,
    payload: RetireCreditRequest,
    service: CreditService = Depends(get_credit_service)
):
    return service.retire_credit(credit_id, payload.retired_by, reason=payload.reason).to_dict()


# ============================================================================
# TRANSACTION ENDPOINTS
# ============================================================================

transactions_router = APIRouter(
    prefix="/api/transactions", tags=["transactions"], responses=ERROR_RESPONSES
)


@transactions_router.get("")
def list_transactions(
    transaction_type: Optional[str] = Query(None, alias="type"),
    credit: Optional[str] = None,
    service: CreditService = Depends(get_credit_service)
):
    """Transazioni, più recenti prima"""
    if credit:
        transactions = [
            tx for tx in service.transactions_for_credit(credit)
            if not transaction_type or tx.type == transaction_type
        ]
    else:
        transactions = service.list_transactions(transaction_type=transaction_type)
    return [tx.to_dict() for tx in transactions]


@transactions_router.get("/user/{user_id}")
def list_user_transactions(user_id: str, service: CreditService = Depends(get_credit_service)):
    return [tx.to_dict() for tx in service.transactions_by_user(user_id)]


# ============================================================================
# SENSOR DATA ENDPOINTS
# ============================================================================

sensors_router = APIRouter(prefix="/api/sensor-data", tags=["sensor-data"], responses=ERROR_RESPONSES)


@sensors_router.post("", status_code=status.HTTP_201_CREATED)
def record_sensor_reading(
    payload: SensorReadingInput,
    service: SensorService = Depends(get_sensor_service)
):
    reading = service.record_sensor_reading(
        payload.project_id,
        payload.sensor_type,
        payload.value,
        payload.unit,
        metadata=payload.metadata,
        latitude=payload.latitude,
        longitude=payload.longitude,
    )
    return reading.to_dict()


@sensors_router.get("/{project_id}")
def list_sensor_readings(
    project_id: str,
    sensor_type: Optional[str] = None,
    service: SensorService = Depends(get_sensor_service)
):
    """Letture del progetto, più recenti prima"""
    return [r.to_dict() for r in service.readings_for_project(project_id, sensor_type)]


@sensors_router.get("/{project_id}/{sensor_type}/latest")
def latest_sensor_reading(
    project_id: str,
    sensor_type: str,
    service: SensorService = Depends(get_sensor_service)
):
    reading = service.latest_reading(project_id, sensor_type)
    if reading is None:
        raise format_not_found_error("sensor_data", f"{project_id}/{sensor_type}")
    return reading.to_dict()


# ============================================================================
# USER ENDPOINTS
# ============================================================================

users_router = APIRouter(prefix="/api/users", tags=["users"], responses=ERROR_RESPONSES)


@users_router.get("")
def list_users(service: UserService = Depends(get_user_service)):
    return [u.to_dict() for u in service.list_users()]


@users_router.post("", status_code=status.HTTP_201_CREATED)
def register_user(payload: UserInput, service: UserService = Depends(get_user_service)):
    return service.register_user(payload).to_dict()


@users_router.get("/username/{username}")
def get_user_by_username(username: str, service: UserService = Depends(get_user_service)):
    user = service.get_user_by_username(username)
    if user is None:
        raise format_not_found_error("user", username)
    return user.to_dict()


@users_router.get("/wallet/{wallet_address}")
def get_user_by_wallet(wallet_address: str, service: UserService = Depends(get_user_service)):
    user = service.get_user_by_wallet(wallet_address)
    if user is None:
        raise format_not_found_error("user", wallet_address)
    return user.to_dict()


@users_router.get("/{user_id}")
def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return service.get_user(user_id).to_dict()


# ============================================================================
# ANALYTICS ENDPOINTS
# ============================================================================

analytics_router = APIRouter(prefix="/api/analytics", tags=["analytics"], responses=ERROR_RESPONSES)


@analytics_router.get("/projects")
def project_analytics(service: AnalyticsService = Depends(get_analytics_service)):
    return service.project_stats().to_dict()


@analytics_router.get("/market")
def market_analytics(service: AnalyticsService = Depends(get_analytics_service)):
    return service.market_stats().to_dict()


# ============================================================================
# WEB3 SIMULATION ENDPOINTS
# ============================================================================

web3_router = APIRouter(prefix="/api/web3", tags=["web3"], responses=ERROR_RESPONSES)


@web3_router.post("/connect")
def connect_wallet(
    payload: WalletConnectRequest,
    service: UserService = Depends(get_user_service)
):
    """Sessione wallet simulata"""
    return service.connect_wallet(payload.wallet_address).to_dict()


@web3_router.post("/mint", response_model=Web3MintResponse, response_model_by_alias=True)
def web3_mint(
    payload: Web3MintRequest,
    service: CreditService = Depends(get_credit_service),
    config: RegistrySettings = Depends(get_config)
):
    """Mint simulato: prezzo e co2 di default da config, stesse regole di /credits/mint"""
    result = service.mint_credits(
        payload.project_id,
        payload.amount,
        config.default_credit_price,
        payload.owner_id,
        co2_amount=config.default_co2_per_credit,
    )
    return Web3MintResponse(
        success=True,
        token_id=result.credit.token_id,
        tx_hash=result.transaction.tx_hash,
        credit_id=result.credit.id,
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

async def registry_error_handler(request: Request, exc: BlueCarbonException) -> JSONResponse:
    """Errori del registro -> status da exc.http_status"""
    log = logger.error if exc.http_status >= 500 else logger.info
    log(
        f"{request.method} {request.url.path} failed: {exc.code}",
        extra_data={"code": exc.code, "status_code": exc.http_status}
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(exc.to_dict())
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query malformati -> 400 con dettaglio per campo"""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.append({
            "field": ".".join(loc) or "__root__",
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_FAILED",
            "message": "Invalid request: " + ", ".join(f["field"] for f in fields),
            "details": {"fields": jsonable_encoder(fields)},
        }
    )


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    config: Optional[RegistrySettings] = None,
    registry: Optional[Registry] = None
) -> FastAPI:
    """
    Crea applicazione FastAPI.

    Args:
        config: Registry configuration (default: get_settings())
        registry: Registry esistente (default: build_registry(config))

    Returns:
        FastAPI: App con registry su app.state

    Examples:
        >>> app = create_app(get_test_config())
        >>> # Run with: uvicorn blue_carbon.api.rest_api:create_app --factory
    """
    config = config or (registry.config if registry is not None else get_settings())
    owns_registry = registry is None
    registry = registry or build_registry(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_registry:
            registry.close()

    app = FastAPI(
        title=f"{config.registry_name} API",
        description="REST API for the blue carbon credit registry",
        version=get_version_string(),
        lifespan=lifespan
    )
    app.state.registry = registry

    app.add_exception_handler(BlueCarbonException, registry_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Primo aggiunto = più interno
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    if config.api_enable_cors:
        app.add_middleware(CORSMiddleware, **cors_options(config.api_cors_origins))

    routers: List[APIRouter] = [
        projects_router,
        credits_router,
        transactions_router,
        sensors_router,
        users_router,
        analytics_router,
        web3_router,
    ]
    for router in routers:
        app.include_router(router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health(registry: Registry = Depends(get_registry)):
        return HealthResponse(
            status="ok",
            version=get_version_string(),
            registry=registry.config.registry_name,
            storage_backend=registry.config.storage_backend,
            timestamp=utcnow().isoformat(),
        )

    logger.info(
        "API initialized and ready",
        extra_data={"backend": config.storage_backend, "cors": config.api_enable_cors}
    )

    return app


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "create_app",
    "registry_error_handler",
    "request_validation_handler",
]
