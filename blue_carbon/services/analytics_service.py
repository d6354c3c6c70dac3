"""
BlueCarbon Registry - Analytics Service
=========================================
Statistiche derivate, calcolate leggendo lo store (mai scrive).

Last Updated: 2026-10-18
Version: 1.0.0

- project_stats(): totalProjects, verifiedProjects, creditsIssued, co2Sequestered
- market_stats():  totalCredits, avgPrice, totalTrades, marketValue

Store vuoto: strutture azzerate, avgPrice = "0.00".
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union

from blue_carbon.constants import CreditStatus, ProjectStatus, TransactionType
from blue_carbon.logging_setup import get_logger, PerformanceLogger
from blue_carbon.storage.base import EntityStore


logger = get_logger("analytics")

CENT = Decimal("0.01")


def _number(value: Decimal) -> Union[int, float]:
    """Decimal -> numero JSON (int se intero)"""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True)
class ProjectStats:
    total_projects: int = 0
    verified_projects: int = 0
    credits_issued: int = 0
    co2_sequestered: Decimal = Decimal("0")

    def to_dict(self) -> Dict:
        return {
            "totalProjects": self.total_projects,
            "verifiedProjects": self.verified_projects,
            "creditsIssued": self.credits_issued,
            "co2Sequestered": _number(self.co2_sequestered),
        }


@dataclass(frozen=True)
class MarketStats:
    """
    Statistiche mercato.

    avg_price è già arrotondato ai centesimi (ROUND_HALF_UP) e viene
    serializzato come stringa a due decimali.
    """
    total_credits: int = 0
    avg_price: Decimal = Decimal("0.00")
    total_trades: int = 0
    market_value: Decimal = Decimal("0")

    def to_dict(self) -> Dict:
        return {
            "totalCredits": self.total_credits,
            "avgPrice": str(self.avg_price),
            "totalTrades": self.total_trades,
            "marketValue": _number(self.market_value),
        }


# ============================================================================
# ANALYTICS SERVICE
# ============================================================================

class AnalyticsService:
    """
    Aggregatore read-only.

    Non usa publisher né audit: nessuna operazione lifecycle.

    Examples:
        >>> analytics = AnalyticsService(store)
        >>> analytics.market_stats().to_dict()
        {'totalCredits': 0, 'avgPrice': '0.00', 'totalTrades': 0, 'marketValue': 0}
    """

    def __init__(self, store: EntityStore, config=None):
        self.store = store
        self.config = config

    def project_stats(self) -> ProjectStats:
        """
        Statistiche progetti.

        creditsIssued e co2Sequestered contano tutti i crediti, anche ritirati.
        """
        with PerformanceLogger(logger, "project_stats"):
            with self.store.atomic():
                projects = self.store.projects.list()
                credits = self.store.credits.list()

            return ProjectStats(
                total_projects=len(projects),
                verified_projects=sum(
                    1 for p in projects if p.status == ProjectStatus.VERIFIED.value
                ),
                credits_issued=sum(c.amount for c in credits),
                co2_sequestered=sum((c.total_co2() for c in credits), Decimal("0")),
            )

    def market_stats(self) -> MarketStats:
        """Statistiche mercato sui crediti disponibili"""
        with PerformanceLogger(logger, "market_stats"):
            with self.store.atomic():
                available = self.store.credits.list(status=CreditStatus.AVAILABLE.value)
                trades = self.store.transactions.count(type=TransactionType.PURCHASE.value)

            if available:
                mean = sum((c.price for c in available), Decimal("0")) / len(available)
                avg_price = mean.quantize(CENT, rounding=ROUND_HALF_UP)
            else:
                avg_price = Decimal("0.00")

            return MarketStats(
                total_credits=sum(c.amount for c in available),
                avg_price=avg_price,
                total_trades=trades,
                market_value=sum((c.total_value() for c in available), Decimal("0")),
            )

    def summary(self) -> Dict:
        """Entrambe le statistiche (dashboard/CLI)"""
        return {
            "projects": self.project_stats().to_dict(),
            "market": self.market_stats().to_dict(),
        }


__all__ = [
    "ProjectStats",
    "MarketStats",
    "AnalyticsService",
]
