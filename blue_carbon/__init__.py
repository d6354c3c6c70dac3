"""
BlueCarbon Registry - Blue Carbon Credit Registry
===================================================
Registro di progetti di restauro costiero e crediti di carbonio tokenizzati.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core imports
from blue_carbon.config import RegistrySettings, get_settings
from blue_carbon.registry import Registry, build_registry, create_store
from blue_carbon.storage import MemoryEntityStore, RegistryDatabase

# Services
from blue_carbon.services import (
    ProjectService,
    CreditService,
    SensorService,
    UserService,
    AnalyticsService,
)

# Constants
from blue_carbon.constants import (
    ProjectType,
    ProjectStatus,
    CreditStatus,
    TransactionType,
    SensorType,
)

__all__ = [
    # Version
    "__version__",

    # Core
    "Registry",
    "build_registry",
    "create_store",
    "MemoryEntityStore",
    "RegistryDatabase",
    "RegistrySettings",
    "get_settings",

    # Services
    "ProjectService",
    "CreditService",
    "SensorService",
    "UserService",
    "AnalyticsService",

    # Constants
    "ProjectType",
    "ProjectStatus",
    "CreditStatus",
    "TransactionType",
    "SensorType",
]
