"""
BlueCarbon Registry - API Dependencies
========================================
FastAPI dependency injection utilities.

Il Registry vive su app.state (impostato da create_app), nessuna
istanza globale di modulo.
"""

from fastapi import Depends, HTTPException, Request, status

from blue_carbon.config import RegistrySettings
from blue_carbon.logging_setup import get_logger
from blue_carbon.registry import Registry
from blue_carbon.services import (
    AnalyticsService,
    CreditService,
    ProjectService,
    SensorService,
    UserService,
)

logger = get_logger("api.deps")


def get_registry(request: Request) -> Registry:
    """
    Get registry instance.

    Dependency for FastAPI routes.
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Registry not initialized"
        )
    return registry


def get_config(registry: Registry = Depends(get_registry)) -> RegistrySettings:
    return registry.config


def get_project_service(registry: Registry = Depends(get_registry)) -> ProjectService:
    return registry.projects


def get_credit_service(registry: Registry = Depends(get_registry)) -> CreditService:
    return registry.credits


def get_sensor_service(registry: Registry = Depends(get_registry)) -> SensorService:
    return registry.sensors


def get_user_service(registry: Registry = Depends(get_registry)) -> UserService:
    return registry.users


def get_analytics_service(registry: Registry = Depends(get_registry)) -> AnalyticsService:
    return registry.analytics


__all__ = [
    'get_registry',
    'get_config',
    'get_project_service',
    'get_credit_service',
    'get_sensor_service',
    'get_user_service',
    'get_analytics_service',
]
