"""
BlueCarbon Registry - Pytest Configuration
============================================
Fixtures e configurazione per testing.

Last Updated: 2026-10-18
Version: 1.0.0
"""

import pytest

# Internal imports
from blue_carbon.config import get_test_config
from blue_carbon.domain.events import EventPublisher, EventRecorder
from blue_carbon.registry import Registry
from blue_carbon.storage import MemoryEntityStore, RegistryDatabase


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def test_config(tmp_path):
    """Test configuration (store in memoria, nessun file)"""
    return get_test_config(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest.fixture
def memory_store():
    """Store in memoria"""
    store = MemoryEntityStore()
    yield store
    store.close()


@pytest.fixture
def sql_store(tmp_path):
    """Store SQLite su file temporaneo"""
    db = RegistryDatabase.from_path(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Store parametrizzato su entrambi i backend"""
    if request.param == "memory":
        entity_store = MemoryEntityStore()
    else:
        entity_store = RegistryDatabase.from_path(tmp_path / "param.db")
    yield entity_store
    entity_store.close()


# ============================================================================
# REGISTRY FIXTURES
# ============================================================================

@pytest.fixture
def recorder():
    """Raccoglitore eventi lifecycle"""
    return EventRecorder()


@pytest.fixture
def registry(test_config, store, recorder):
    """Registry su store parametrizzato, con recorder sottoscritto"""
    publisher = EventPublisher()
    publisher.subscribe(recorder)
    reg = Registry(test_config, store=store, publisher=publisher)
    yield reg
    reg.close()


@pytest.fixture
def project_service(registry):
    return registry.projects


@pytest.fixture
def credit_service(registry):
    return registry.credits


@pytest.fixture
def sensor_service(registry):
    return registry.sensors


# ============================================================================
# HELPER FIXTURES
# ============================================================================

@pytest.fixture
def sample_project_data():
    """Sample project data per test (camelCase, formato API)"""
    return {
        "name": "Test Mangrove Restoration",
        "description": "Mangrove belt restoration for unit testing",
        "projectType": "mangrove",
        "area": "50",
        "latitude": "11.0168",
        "longitude": "76.9558",
        "location": "Test Coast",
        "developerId": "0xDEVELOPER",
        "estimatedCredits": 100,
    }


@pytest.fixture
def pending_project(project_service, sample_project_data):
    """Progetto registrato (pending)"""
    return project_service.register_project(sample_project_data)


@pytest.fixture
def verified_project(project_service, pending_project):
    """Progetto approvato"""
    return project_service.verify_project(pending_project.id, "approve")


@pytest.fixture
def minted_credit(credit_service, verified_project):
    """Lotto 100 crediti a 20.00, owner 0xOWNER_A"""
    return credit_service.mint_credits(verified_project.id, 100, "20.00", "0xOWNER_A").credit
