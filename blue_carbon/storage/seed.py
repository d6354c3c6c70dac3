"""
BlueCarbon Registry - Sample Data
===================================
Dataset dimostrativo: 2 utenti, 3 progetti verificati, 3 lotti di
crediti disponibili, 3 letture sensore.

Idempotente: le entità già presenti (stesso id) non vengono toccate.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from blue_carbon.domain.models import (
    User,
    Project,
    CarbonCredit,
    SensorData,
    utcnow,
)
from blue_carbon.logging_setup import get_logger
from blue_carbon.storage.base import EntityStore


logger = get_logger("storage.seed")


def _date(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


ALL_DOCUMENTS = {"eia": True, "baseline": True, "community": True, "government": True}

DEVELOPER_ID = "user-1"
BUYER_ID = "user-2"


def sample_users() -> List[User]:
    return [
        User(
            id=DEVELOPER_ID,
            username="developer1",
            wallet_address="0x1234567890123456789012345678901234567890",
            role="developer",
            created_at=_date(2024, 1, 1),
        ),
        User(
            id=BUYER_ID,
            username="buyer1",
            wallet_address="0x0987654321098765432109876543210987654321",
            role="user",
            created_at=_date(2024, 1, 1),
        ),
    ]


def sample_projects() -> List[Project]:
    return [
        Project(
            id="project-1",
            name="Kerala Mangrove Conservation",
            description="Large-scale mangrove restoration project along the Kerala coastline",
            project_type="mangrove",
            area=Decimal("250"),
            latitude=Decimal("11.0168"),
            longitude=Decimal("76.9558"),
            location="Kochi, Kerala, India",
            developer_id=DEVELOPER_ID,
            status="verified",
            estimated_credits=125,
            verification_documents=dict(ALL_DOCUMENTS),
            satellite_imagery={"before": "mangrove_before.jpg", "after": "mangrove_after.jpg"},
            created_at=_date(2024, 1, 15),
            verified_at=_date(2024, 2, 1),
        ),
        Project(
            id="project-2",
            name="Goa Seagrass Protection",
            description="Seagrass bed conservation and restoration in Goa coastal waters",
            project_type="seagrass",
            area=Decimal("180"),
            latitude=Decimal("15.2993"),
            longitude=Decimal("74.1240"),
            location="Panaji, Goa, India",
            developer_id=DEVELOPER_ID,
            status="verified",
            estimated_credits=78,
            verification_documents=dict(ALL_DOCUMENTS),
            satellite_imagery={"before": "seagrass_before.jpg", "after": "seagrass_after.jpg"},
            created_at=_date(2024, 2, 10),
            verified_at=_date(2024, 2, 25),
        ),
        Project(
            id="project-3",
            name="Sundarbans Salt Marsh",
            description="Salt marsh restoration in the Sundarbans delta region",
            project_type="salt_marsh",
            area=Decimal("320"),
            latitude=Decimal("21.9497"),
            longitude=Decimal("89.1833"),
            location="West Bengal, India",
            developer_id=DEVELOPER_ID,
            status="verified",
            estimated_credits=203,
            verification_documents=dict(ALL_DOCUMENTS),
            satellite_imagery={"before": "saltmarsh_before.jpg", "after": "saltmarsh_after.jpg"},
            created_at=_date(2024, 1, 5),
            verified_at=_date(2024, 1, 20),
        ),
    ]


def sample_credits() -> List[CarbonCredit]:
    rows = [
        ("credit-1", "project-1", "BCR-001-125", 125, "17.50", _date(2024, 2, 1)),
        ("credit-2", "project-2", "BCR-002-078", 78, "19.25", _date(2024, 2, 25)),
        ("credit-3", "project-3", "BCR-003-203", 203, "16.75", _date(2024, 1, 20)),
    ]
    return [
        CarbonCredit(
            id=credit_id,
            project_id=project_id,
            token_id=token_id,
            amount=amount,
            price=Decimal(price),
            owner_id=DEVELOPER_ID,
            co2_amount=Decimal("1.0"),
            minted_at=minted_at,
        )
        for credit_id, project_id, token_id, amount, price, minted_at in rows
    ]


def sample_sensor_data(now: Optional[datetime] = None) -> List[SensorData]:
    now = now or utcnow()
    rows = [
        ("sensor-1", "co2", "2.3", "t/ha/yr", {"device_id": "CO2-001", "accuracy": "±0.1"}),
        ("sensor-2", "biomass", "145.6", "t/ha", {"device_id": "BIO-001", "accuracy": "±5%"}),
        ("sensor-3", "soil_carbon", "89.2", "%", {"device_id": "SOIL-001", "depth": "30cm"}),
    ]
    return [
        SensorData(
            id=reading_id,
            project_id="project-1",
            sensor_type=sensor_type,
            value=Decimal(value),
            unit=unit,
            latitude=Decimal("11.0168"),
            longitude=Decimal("76.9558"),
            timestamp=now,
            metadata=metadata,
        )
        for reading_id, sensor_type, value, unit, metadata in rows
    ]


def seed_sample_data(store: EntityStore) -> Dict[str, int]:
    """
    Popola lo store con il dataset dimostrativo.

    Returns:
        dict: Entità inserite per collezione (0 se già presenti)

    Examples:
        >>> seed_sample_data(store)
        {'users': 2, 'projects': 3, 'credits': 3, 'sensor_data': 3}
    """
    batches = [
        ("users", store.users, sample_users()),
        ("projects", store.projects, sample_projects()),
        ("credits", store.credits, sample_credits()),
        ("sensor_data", store.sensor_data, sample_sensor_data()),
    ]

    inserted: Dict[str, int] = {}
    with store.atomic():
        for name, repository, entities in batches:
            inserted[name] = 0
            for entity in entities:
                if repository.find(entity.id) is None:
                    repository.add(entity)
                    inserted[name] += 1

    logger.info("Sample data seeded", extra_data=inserted)
    return inserted


__all__ = [
    "DEVELOPER_ID",
    "BUYER_ID",
    "sample_users",
    "sample_projects",
    "sample_credits",
    "sample_sensor_data",
    "seed_sample_data",
]
