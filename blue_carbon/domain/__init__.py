"""
BlueCarbon Registry - Domain Package
======================================
Entità, validazione input ed eventi lifecycle.
"""

# Models
from blue_carbon.domain.models import (
    Entity,
    User,
    Project,
    CarbonCredit,
    Transaction,
    SensorData,
    utcnow,
)

# Validation
from blue_carbon.domain.validation import (
    UserInput,
    ProjectInput,
    CreditInput,
    TransactionInput,
    SensorReadingInput,
    validate_input,
    parse_decision,
)

# Events
from blue_carbon.domain.events import (
    EventType,
    LifecycleEvent,
    EventPublisher,
    EventRecorder,
)


__all__ = [
    # Models
    "Entity",
    "User",
    "Project",
    "CarbonCredit",
    "Transaction",
    "SensorData",
    "utcnow",

    # Validation
    "UserInput",
    "ProjectInput",
    "CreditInput",
    "TransactionInput",
    "SensorReadingInput",
    "validate_input",
    "parse_decision",

    # Events
    "EventType",
    "LifecycleEvent",
    "EventPublisher",
    "EventRecorder",
]
