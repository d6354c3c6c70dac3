"""
BlueCarbon Registry - Credit Service
======================================
Mint, acquisto e ritiro di crediti tokenizzati.

Last Updated: 2026-10-18
Version: 1.0.0

Ogni operazione riuscita produce esattamente una Transaction:
- mint:     minting     (from=None,       to=owner)
- purchase: purchase    (from=None,       to=buyer,  price=credit.price)
- retire:   retirement  (from=retired_by, to=None,   price=None)

State machine credito:
    available --purchase--> available (cambia owner)
    available --retire-->   retired   (terminale)
"""

from decimal import Decimal
from typing import List, NamedTuple, Optional, Union

from blue_carbon.constants import CreditStatus, TransactionType
from blue_carbon.domain.events import EventType
from blue_carbon.domain.models import CarbonCredit, Transaction, utcnow
from blue_carbon.errors import InvalidAmountError, InvalidStateError
from blue_carbon.logging_setup import get_logger
from blue_carbon.services.base import RegistryService, require_identifier


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("credit_service")


class CreditOperation(NamedTuple):
    """Esito operazione credito: stato aggiornato + transazione generata"""
    credit: CarbonCredit
    transaction: Transaction

    def to_dict(self) -> dict:
        return {
            "credit": self.credit.to_dict(),
            "transaction": self.transaction.to_dict(),
        }


# ============================================================================
# CREDIT SERVICE
# ============================================================================

class CreditService(RegistryService):
    """
    Servizio lifecycle crediti.

    Examples:
        >>> service = CreditService(store, config)
        >>> minted = service.mint_credits(project.id, 100, "20.00", "0xA")
        >>> bought = service.purchase_credit(minted.credit.id, "0xB", 100)
        >>> service.retire_credit(bought.credit.id, "0xB").credit.status
        'retired'
    """

    # ========================================================================
    # MINT
    # ========================================================================

    def mint_credits(
        self,
        project_id: str,
        amount: int,
        price_per_credit: Union[Decimal, str, float],
        owner_id: str,
        co2_amount: Union[Decimal, str, float, None] = None
    ) -> CreditOperation:
        """
        Emette un lotto di crediti da un progetto verificato.

        Args:
            project_id: Progetto sorgente
            amount: Numero crediti (> 0)
            price_per_credit: Prezzo unitario (>= 0)
            owner_id: Primo detentore
            co2_amount: Tonnellate CO2 per credito (default da config)

        Raises:
            NotFoundError: Progetto inesistente
            InvalidStateError: Progetto non verificato
            ValidationError: Importi malformati
        """
        owner_id = require_identifier("owner_id", owner_id)
        if co2_amount is None:
            co2_amount = self.config.default_co2_per_credit

        with self.store.atomic():
            project = self.store.projects.get(project_id)

            if not project.is_verified():
                raise InvalidStateError(
                    f"Project '{project_id}' is {project.status}, credits can only be minted from verified projects",
                    code="PROJECT_NOT_VERIFIED",
                    details={"id": project_id, "status": project.status}
                )

            credit = self.store.credits.create({
                "project_id": project.id,
                "amount": amount,
                "price": price_per_credit,
                "owner_id": owner_id,
                "co2_amount": co2_amount,
            })
            transaction = self.store.transactions.create({
                "type": TransactionType.MINTING.value,
                "credit_id": credit.id,
                "from_user_id": None,
                "to_user_id": owner_id,
                "amount": credit.amount,
                "price": None,
            })

        logger.info(
            "Credits minted",
            extra_data={
                "credit_id": credit.id,
                "token_id": credit.token_id,
                "project_id": project_id,
                "amount": credit.amount
            }
        )
        self.audit.log_credit_minted(
            credit.id, credit.token_id, credit.amount, owner_id, transaction.tx_hash
        )
        self._publish(EventType.CREDIT_MINTED, credit, transaction)

        return CreditOperation(credit, transaction)

    # ========================================================================
    # PURCHASE
    # ========================================================================

    def purchase_credit(self, credit_id: str, buyer_id: str, amount: int) -> CreditOperation:
        """
        Trasferisce il lotto al compratore.

        Il lotto passa intero: amount è verificato (0 < amount <= credit.amount)
        e registrato sulla transazione, il credito non viene frazionato.

        Raises:
            NotFoundError: Credito inesistente
            InvalidStateError: Credito non disponibile (es. ritirato)
            InvalidAmountError: amount fuori range
        """
        buyer_id = require_identifier("buyer_id", buyer_id)

        with self.store.atomic():
            credit = self.store.credits.get(credit_id)
            self._require_available(credit, "purchased")
            amount = self._check_amount(amount, credit)

            previous_owner = credit.owner_id
            credit = self.store.credits.update(credit_id, {"owner_id": buyer_id})
            transaction = self.store.transactions.create({
                "type": TransactionType.PURCHASE.value,
                "credit_id": credit.id,
                "from_user_id": None,
                "to_user_id": buyer_id,
                "amount": amount,
                "price": credit.price,
            })

        logger.info(
            "Credit purchased",
            extra_data={
                "credit_id": credit_id,
                "buyer_id": buyer_id,
                "previous_owner": previous_owner,
                "amount": amount
            }
        )
        self.audit.log_credit_purchased(credit.id, buyer_id, amount, transaction.tx_hash)
        self._publish(
            EventType.CREDIT_PURCHASED, credit, transaction,
            previous_owner=previous_owner
        )

        return CreditOperation(credit, transaction)

    # ========================================================================
    # RETIRE
    # ========================================================================

    def retire_credit(
        self,
        credit_id: str,
        retired_by: str,
        reason: Optional[str] = None
    ) -> CreditOperation:
        """
        Ritira il lotto (terminale).

        Raises:
            NotFoundError: Credito inesistente
            InvalidStateError: Già ritirato o non disponibile
        """
        retired_by = require_identifier("retired_by", retired_by)

        with self.store.atomic():
            credit = self.store.credits.get(credit_id)
            self._require_available(credit, "retired")

            credit = self.store.credits.update(credit_id, {
                "status": CreditStatus.RETIRED.value,
                "retired_at": utcnow(),
                "retired_by": retired_by,
            })
            transaction = self.store.transactions.create({
                "type": TransactionType.RETIREMENT.value,
                "credit_id": credit.id,
                "from_user_id": retired_by,
                "to_user_id": None,
                "amount": credit.amount,
                "price": None,
            })

        logger.info(
            "Credit retired",
            extra_data={"credit_id": credit_id, "retired_by": retired_by, "amount": credit.amount}
        )
        self.audit.log_credit_retired(
            credit.id, retired_by, credit.amount, transaction.tx_hash, reason=reason
        )
        self._publish(EventType.CREDIT_RETIRED, credit, transaction, reason=reason)

        return CreditOperation(credit, transaction)

    # ========================================================================
    # GUARDS
    # ========================================================================

    @staticmethod
    def _require_available(credit: CarbonCredit, action: str) -> None:
        if credit.is_available():
            return

        code = "CREDIT_ALREADY_RETIRED" if credit.is_retired() else "CREDIT_NOT_AVAILABLE"
        raise InvalidStateError(
            f"Credit '{credit.id}' is {credit.status} and cannot be {action}",
            code=code,
            details={"id": credit.id, "status": credit.status}
        )

    @staticmethod
    def _check_amount(amount, credit: CarbonCredit) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(
                f"Amount must be an integer, got {amount!r}",
                code="INVALID_AMOUNT",
                details={"amount": repr(amount)}
            )
        if not 0 < amount <= credit.amount:
            raise InvalidAmountError(
                f"Amount {amount} out of range (1..{credit.amount})",
                code="AMOUNT_OUT_OF_RANGE",
                details={"amount": amount, "available": credit.amount}
            )
        return amount

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_credit(self, credit_id: str) -> CarbonCredit:
        return self.store.credits.get(credit_id)

    def list_credits(self, status: Optional[str] = None) -> List[CarbonCredit]:
        if status:
            return self.store.credits.list(status=status)
        return self.store.credits.list()

    def available_credits(self) -> List[CarbonCredit]:
        return self.store.credits.list(status=CreditStatus.AVAILABLE.value)

    def credits_by_owner(self, owner_id: str) -> List[CarbonCredit]:
        return self.store.credits.list(owner_id=owner_id)

    def credits_by_project(self, project_id: str) -> List[CarbonCredit]:
        return self.store.credits.list(project_id=project_id)

    def list_transactions(self, transaction_type: Optional[str] = None) -> List[Transaction]:
        """Transazioni, più recenti prima"""
        if transaction_type:
            return self.store.transactions.list(newest_first=True, type=transaction_type)
        return self.store.transactions.list(newest_first=True)

    def transactions_by_user(self, user_id: str) -> List[Transaction]:
        """Transazioni in cui user_id è mittente o destinatario, più recenti prima"""
        return self.store.transactions.list(lambda tx: tx.involves(user_id), newest_first=True)

    def transactions_for_credit(self, credit_id: str) -> List[Transaction]:
        return self.store.transactions.list(newest_first=True, credit_id=credit_id)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "CreditOperation",
    "CreditService",
]
