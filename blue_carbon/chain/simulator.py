"""
BlueCarbon Registry - Chain Simulator
=======================================
Simulazione dell'interazione blockchain.

Last Updated: 2026-10-18
Version: 1.0.0

Nessuna firma, nessun broadcast: tx hash, token ID e sessioni wallet
sono fabbricati localmente. Gli indirizzi wallet sono identificativi
opachi e non vengono validati.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
import re
import secrets
from typing import Optional

from blue_carbon.constants import (
    TOKEN_PREFIX,
    TX_HASH_HEX_LENGTH,
    DEFAULT_BLOCKCHAIN_NETWORK,
    SIMULATED_WALLET_BALANCE,
    SIMULATED_NETWORK_LABELS,
)
from blue_carbon.domain.models import utcnow


_TOKEN_SAFE = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True)
class WalletConnection:
    """Esito connessione wallet simulata"""
    success: bool
    wallet_address: str
    balance: str
    network: str

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "walletAddress": self.wallet_address,
            "balance": self.balance,
            "network": self.network,
        }


class ChainSimulator:
    """
    Generatore di identificativi on-chain simulati.

    Attributes:
        network: Tag rete registrato sulle transazioni
        token_prefix: Prefisso token ID

    Examples:
        >>> sim = ChainSimulator()
        >>> sim.new_tx_hash()[:2]
        '0x'
        >>> sim.new_token_id("project-1").startswith("BCR-project1-")
        True
    """

    def __init__(
        self,
        network: str = DEFAULT_BLOCKCHAIN_NETWORK,
        token_prefix: str = TOKEN_PREFIX
    ):
        self.network = network
        self.token_prefix = token_prefix

    @classmethod
    def from_settings(cls, config) -> "ChainSimulator":
        return cls(network=config.blockchain_network, token_prefix=config.token_prefix)

    def new_tx_hash(self) -> str:
        """Tx hash simulato: 0x + 64 hex"""
        return "0x" + secrets.token_hex(TX_HASH_HEX_LENGTH // 2)

    def new_token_id(self, project_id: str, at: Optional[datetime] = None) -> str:
        """
        Token ID derivato da progetto e timestamp.

        Il suffisso casuale distingue mint nello stesso millisecondo.
        """
        at = at or utcnow()
        millis = int(at.timestamp() * 1000)
        project_part = _TOKEN_SAFE.sub("", project_id)[:24] or "P"
        return f"{self.token_prefix}-{project_part}-{millis}-{secrets.token_hex(3)}"

    def connect_wallet(self, wallet_address: str) -> WalletConnection:
        """Connessione wallet simulata (sempre riuscita)"""
        return WalletConnection(
            success=True,
            wallet_address=wallet_address,
            balance=SIMULATED_WALLET_BALANCE,
            network=SIMULATED_NETWORK_LABELS.get(self.network, self.network),
        )


__all__ = [
    "WalletConnection",
    "ChainSimulator",
]
