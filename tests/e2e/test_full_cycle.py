"""
BlueCarbon Registry - Full Cycle E2E Test
===========================================
Complete end-to-end test: register → verify → mint → purchase → retire
"""

from decimal import Decimal

import pytest

from blue_carbon.config import get_test_config
from blue_carbon.domain.events import EventRecorder, EventType
from blue_carbon.errors import InvalidStateError
from blue_carbon.registry import Registry


@pytest.fixture(params=["memory", "sqlite"])
def config(request, tmp_path):
    """Create test configuration for each backend"""
    return get_test_config(storage_backend=request.param, data_dir=tmp_path / "e2e")


@pytest.fixture
def registry(config):
    """Create registry on the configured backend"""
    with Registry(config) as reg:
        yield reg


class TestFullCycle:
    """
    Complete end-to-end test covering:
    1. Registering a project
    2. Verifying it
    3. Minting credits
    4. Purchasing the lot
    5. Retiring it
    """

    def test_complete_lifecycle(self, registry):
        """Test full lifecycle with ledger and analytics"""
        recorder = EventRecorder()
        registry.publisher.subscribe(recorder)

        # Step 1: register
        project = registry.projects.register_project({
            "name": "E2E Mangrove",
            "projectType": "mangrove",
            "area": "50",
            "location": "Estuary",
            "developerId": "0xDEV",
        })
        assert project.status == "pending"
        assert project.verified_at is None

        # Step 2: verify
        project = registry.projects.verify_project(project.id, "approve")
        assert project.status == "verified"
        assert project.verified_at is not None

        # Step 3: mint
        credit, mint_tx = registry.credits.mint_credits(project.id, 100, Decimal("20.00"), "ownerA")
        assert credit.amount == 100
        assert credit.price == Decimal("20.00")
        assert credit.status == "available"
        assert mint_tx.to_user_id == "ownerA"
        assert mint_tx.amount == 100

        # Step 4: purchase
        credit, purchase_tx = registry.credits.purchase_credit(credit.id, "ownerB", 100)
        assert credit.owner_id == "ownerB"
        assert purchase_tx.type == "purchase"
        assert purchase_tx.to_user_id == "ownerB"
        assert purchase_tx.price == Decimal("20.00")

        # Step 5: retire
        credit, retire_tx = registry.credits.retire_credit(credit.id, "ownerB")
        assert credit.status == "retired"
        assert credit.retired_by == "ownerB"
        assert retire_tx.from_user_id == "ownerB"
        assert retire_tx.amount == 100

        # Step 6: retire again fails, nothing recorded
        with pytest.raises(InvalidStateError):
            registry.credits.retire_credit(credit.id, "ownerB")

        ledger = registry.credits.transactions_for_credit(credit.id)
        assert [tx.type for tx in ledger] == ["retirement", "purchase", "minting"]

        # Analytics
        stats = registry.analytics.project_stats()
        assert stats.credits_issued == 100
        assert stats.verified_projects == 1

        market = registry.analytics.market_stats()
        assert market.total_credits == 0
        assert market.total_trades == 1
        assert market.to_dict()["avgPrice"] == "0.00"

        # Events in order
        assert [e.type for e in recorder.events] == [
            EventType.PROJECT_REGISTERED,
            EventType.PROJECT_VERIFIED,
            EventType.CREDIT_MINTED,
            EventType.CREDIT_PURCHASED,
            EventType.CREDIT_RETIRED,
        ]

    def test_failed_operation_leaves_no_trace(self, registry):
        """Test failed mint writes neither credit nor transaction"""
        project = registry.projects.register_project({
            "name": "Unverified",
            "projectType": "seagrass",
            "area": "5",
            "location": "Lagoon",
            "developerId": "0xDEV",
        })

        with pytest.raises(InvalidStateError):
            registry.credits.mint_credits(project.id, 10, "1.00", "ownerA")

        counts = registry.store.counts()
        assert counts["credits"] == 0
        assert counts["transactions"] == 0
