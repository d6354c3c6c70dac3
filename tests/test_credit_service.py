"""
BlueCarbon Registry - Credit Service Tests
============================================
Mint, acquisto e ritiro crediti.
"""

from decimal import Decimal
import threading

import pytest

from blue_carbon.domain.events import EventType
from blue_carbon.errors import (
    InvalidAmountError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


class TestMintCredits:
    """Test mint_credits"""

    def test_mint_from_verified_project(self, credit_service, verified_project):
        """Test minted credit and minting transaction"""
        credit, tx = credit_service.mint_credits(verified_project.id, 100, "20.00", "0xOWNER_A")

        assert credit.amount == 100
        assert credit.price == Decimal("20.00")
        assert credit.status == "available"
        assert credit.owner_id == "0xOWNER_A"
        assert credit.project_id == verified_project.id
        assert credit.co2_amount == Decimal("1.0")

        assert tx.type == "minting"
        assert tx.credit_id == credit.id
        assert tx.from_user_id is None
        assert tx.to_user_id == "0xOWNER_A"
        assert tx.amount == 100
        assert tx.tx_hash.startswith("0x") and len(tx.tx_hash) == 66

    def test_mint_from_pending_project_fails(self, credit_service, pending_project):
        """Test pending project cannot mint"""
        with pytest.raises(InvalidStateError) as exc_info:
            credit_service.mint_credits(pending_project.id, 10, "1", "0xA")

        assert exc_info.value.code == "PROJECT_NOT_VERIFIED"
        assert credit_service.list_credits() == []
        assert credit_service.list_transactions() == []

    def test_mint_from_missing_project(self, credit_service):
        """Test unknown project"""
        with pytest.raises(NotFoundError):
            credit_service.mint_credits("missing", 10, "1", "0xA")

    @pytest.mark.parametrize("amount", [0, -3])
    def test_mint_rejects_non_positive_amount(self, credit_service, verified_project, amount):
        """Test amount must be positive"""
        with pytest.raises(ValidationError):
            credit_service.mint_credits(verified_project.id, amount, "1", "0xA")

        assert credit_service.list_transactions() == []

    def test_mint_rejects_negative_price(self, credit_service, verified_project):
        """Test price must be >= 0"""
        with pytest.raises(ValidationError):
            credit_service.mint_credits(verified_project.id, 5, "-1", "0xA")

    def test_token_ids_are_unique(self, credit_service, verified_project):
        """Test two mints get distinct tokens"""
        first = credit_service.mint_credits(verified_project.id, 1, "1", "0xA").credit
        second = credit_service.mint_credits(verified_project.id, 1, "1", "0xA").credit
        assert first.token_id != second.token_id

    def test_custom_co2_amount(self, credit_service, verified_project):
        """Test explicit co2 per credit"""
        credit = credit_service.mint_credits(
            verified_project.id, 4, "10", "0xA", co2_amount="2.5"
        ).credit
        assert credit.total_co2() == Decimal("10.0")

    def test_mint_publishes_event(self, credit_service, minted_credit, recorder):
        """Test CREDIT_MINTED carries the transaction"""
        events = recorder.of_type(EventType.CREDIT_MINTED)
        assert len(events) == 1
        assert events[0].transaction.type == "minting"


class TestPurchaseCredit:
    """Test purchase_credit"""

    def test_purchase_transfers_ownership(self, credit_service, minted_credit):
        """Test owner change and purchase transaction"""
        credit, tx = credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 100)

        assert credit.owner_id == "0xOWNER_B"
        assert credit.status == "available"
        assert tx.type == "purchase"
        assert tx.to_user_id == "0xOWNER_B"
        assert tx.from_user_id is None
        assert tx.amount == 100
        assert tx.price == Decimal("20.00")

    def test_partial_amount_is_recorded(self, credit_service, minted_credit):
        """Test amount below lot size is accepted and recorded"""
        credit, tx = credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 40)

        assert tx.amount == 40
        assert credit.amount == 100

    @pytest.mark.parametrize("amount", [0, -1, 101])
    def test_amount_out_of_range(self, credit_service, minted_credit, amount):
        """Test 0 < amount <= credit.amount"""
        with pytest.raises(InvalidAmountError) as exc_info:
            credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", amount)

        assert exc_info.value.code == "AMOUNT_OUT_OF_RANGE"
        assert credit_service.get_credit(minted_credit.id).owner_id == "0xOWNER_A"

    def test_non_integer_amount(self, credit_service, minted_credit):
        """Test amount type"""
        with pytest.raises(InvalidAmountError) as exc_info:
            credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 1.5)
        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_purchase_retired_credit_fails(self, credit_service, minted_credit):
        """Test retired credit cannot be purchased"""
        retired, _ = credit_service.retire_credit(minted_credit.id, "0xOWNER_A")

        with pytest.raises(InvalidStateError) as exc_info:
            credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 100)

        assert exc_info.value.code == "CREDIT_ALREADY_RETIRED"
        assert len(credit_service.list_transactions(transaction_type="purchase")) == 0
        assert credit_service.get_credit(minted_credit.id) == retired

    def test_state_checked_before_amount(self, credit_service, minted_credit):
        """Test retired credit with bad amount reports state"""
        credit_service.retire_credit(minted_credit.id, "0xOWNER_A")

        with pytest.raises(InvalidStateError):
            credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 1000)

    def test_empty_buyer(self, credit_service, minted_credit):
        """Test buyer id required"""
        with pytest.raises(ValidationError):
            credit_service.purchase_credit(minted_credit.id, "  ", 10)

    def test_purchase_event_has_previous_owner(self, credit_service, minted_credit, recorder):
        """Test CREDIT_PURCHASED context"""
        credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 100)

        event = recorder.of_type(EventType.CREDIT_PURCHASED)[0]
        assert event.context["previous_owner"] == "0xOWNER_A"


class TestRetireCredit:
    """Test retire_credit"""

    def test_retire(self, credit_service, minted_credit):
        """Test retired state and retirement transaction"""
        credit, tx = credit_service.retire_credit(minted_credit.id, "0xOWNER_A", reason="offset 2026")

        assert credit.status == "retired"
        assert credit.retired_by == "0xOWNER_A"
        assert credit.retired_at is not None
        assert tx.type == "retirement"
        assert tx.from_user_id == "0xOWNER_A"
        assert tx.to_user_id is None
        assert tx.price is None
        assert tx.amount == 100

    def test_double_retire_fails(self, credit_service, minted_credit):
        """Test retired is terminal"""
        retired, _ = credit_service.retire_credit(minted_credit.id, "0xOWNER_A")

        with pytest.raises(InvalidStateError) as exc_info:
            credit_service.retire_credit(minted_credit.id, "0xOWNER_B")

        assert exc_info.value.code == "CREDIT_ALREADY_RETIRED"
        assert len(credit_service.list_transactions(transaction_type="retirement")) == 1

        after = credit_service.get_credit(minted_credit.id)
        assert after == retired
        assert (after.amount, after.co2_amount, after.token_id, after.owner_id) == (
            100, retired.co2_amount, retired.token_id, "0xOWNER_A"
        )
        assert after.retired_by == "0xOWNER_A"

    def test_concurrent_retire_single_winner(self, credit_service, minted_credit):
        """Test N threads retiring one credit: exactly one succeeds"""
        threads_count = 8
        barrier = threading.Barrier(threads_count)
        outcomes = []
        outcomes_lock = threading.Lock()

        def worker(index):
            barrier.wait()
            try:
                credit_service.retire_credit(minted_credit.id, f"0xRETIRER_{index}")
                result = "ok"
            except InvalidStateError:
                result = "retired"
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(outcomes) == ["ok"] + ["retired"] * (threads_count - 1)
        assert len(credit_service.list_transactions(transaction_type="retirement")) == 1
        assert credit_service.get_credit(minted_credit.id).status == "retired"

    def test_retire_missing_credit(self, credit_service):
        """Test unknown credit"""
        with pytest.raises(NotFoundError):
            credit_service.retire_credit("missing", "0xA")

    def test_retire_event_reason(self, credit_service, minted_credit, recorder):
        """Test CREDIT_RETIRED context"""
        credit_service.retire_credit(minted_credit.id, "0xOWNER_A", reason="offset")

        event = recorder.of_type(EventType.CREDIT_RETIRED)[0]
        assert event.context["reason"] == "offset"
        assert event.entity.status == "retired"


class TestCreditQueries:
    """Test credit and transaction queries"""

    def test_transactions_newest_first(self, credit_service, minted_credit):
        """Test ledger order"""
        credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 100)
        credit_service.retire_credit(minted_credit.id, "0xOWNER_B")

        types = [tx.type for tx in credit_service.transactions_for_credit(minted_credit.id)]
        assert types == ["retirement", "purchase", "minting"]

    def test_transactions_by_user(self, credit_service, minted_credit):
        """Test from/to filter"""
        credit_service.purchase_credit(minted_credit.id, "0xOWNER_B", 100)

        assert [tx.type for tx in credit_service.transactions_by_user("0xOWNER_A")] == ["minting"]
        assert [tx.type for tx in credit_service.transactions_by_user("0xOWNER_B")] == ["purchase"]

    def test_credits_by_owner_and_status(self, credit_service, minted_credit, verified_project):
        """Test owner and availability filters"""
        other = credit_service.mint_credits(verified_project.id, 5, "3", "0xOWNER_A").credit
        credit_service.retire_credit(other.id, "0xOWNER_A")

        assert len(credit_service.credits_by_owner("0xOWNER_A")) == 2
        assert [c.id for c in credit_service.available_credits()] == [minted_credit.id]
        assert [c.id for c in credit_service.list_credits(status="retired")] == [other.id]
        assert len(credit_service.credits_by_project(verified_project.id)) == 2
