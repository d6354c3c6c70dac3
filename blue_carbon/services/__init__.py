"""
BlueCarbon Registry - Services Package
========================================
Regole lifecycle e analytics sopra l'entity store.
"""

from blue_carbon.services.base import RegistryService
from blue_carbon.services.project_service import ProjectService
from blue_carbon.services.credit_service import CreditService, CreditOperation
from blue_carbon.services.sensor_service import SensorService
from blue_carbon.services.user_service import UserService
from blue_carbon.services.analytics_service import (
    AnalyticsService,
    ProjectStats,
    MarketStats,
)

__all__ = [
    "RegistryService",
    "ProjectService",
    "CreditService",
    "CreditOperation",
    "SensorService",
    "UserService",
    "AnalyticsService",
    "ProjectStats",
    "MarketStats",
]
