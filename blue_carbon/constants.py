"""
BlueCarbon Registry - Core Constants
======================================
Costanti ed enumerazioni del registro crediti blue carbon.

Last Updated: 2026-10-18
Version: 1.0.0

Contiene:
- Identificazione registro e token
- Enum per tipi progetto, stati, transazioni, sensori
- Default per mint e rete simulata
"""

from enum import Enum
from typing import Final, Tuple

# ============================================================================
# IDENTIFICAZIONE REGISTRO
# ============================================================================

REGISTRY_NAME: Final[str] = "BlueCarbon Registry"
SOFTWARE_VERSION: Final[str] = "1.0.0"

# Prefisso token ID (es. BCR-<project>-<millis>-<suffix>)
TOKEN_PREFIX: Final[str] = "BCR"

# Tx hash simulato: "0x" + 64 caratteri hex
TX_HASH_HEX_LENGTH: Final[int] = 64


# ============================================================================
# PROGETTI
# ============================================================================

class ProjectType(str, Enum):
    """
    Ecosistemi costieri ammessi.

    Il valore è la stringa usata su API e storage.
    """
    MANGROVE = "mangrove"
    SEAGRASS = "seagrass"
    SALT_MARSH = "salt_marsh"


class ProjectStatus(str, Enum):
    """
    Stati progetto.

    Transizioni:
        PENDING --approve--> VERIFIED
        PENDING --reject---> REJECTED

    VERIFIED e REJECTED sono terminali.
    """
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class VerificationDecision(str, Enum):
    """Esito verifica progetto"""
    APPROVE = "approve"
    REJECT = "reject"


PROJECT_TYPES: Final[Tuple[str, ...]] = tuple(t.value for t in ProjectType)


# ============================================================================
# CREDITI
# ============================================================================

class CreditStatus(str, Enum):
    """
    Stati credito carbonio.

    Transizioni:
        AVAILABLE --purchase--> AVAILABLE (cambia solo owner)
        AVAILABLE --retire----> RETIRED (terminale)

    SOLD è riservato: nessuna operazione lo raggiunge.
    """
    AVAILABLE = "available"
    SOLD = "sold"
    RETIRED = "retired"


# ============================================================================
# TRANSAZIONI
# ============================================================================

class TransactionType(str, Enum):
    """Tipi transazione registrati nel ledger append-only"""
    PURCHASE = "purchase"
    SALE = "sale"
    RETIREMENT = "retirement"
    MINTING = "minting"


class BlockchainNetwork(str, Enum):
    """Reti simulate supportate"""
    ETHEREUM = "ethereum"
    STACKS = "stacks"
    POLYGON = "polygon"


DEFAULT_BLOCKCHAIN_NETWORK: Final[str] = BlockchainNetwork.ETHEREUM.value


# ============================================================================
# SENSORI
# ============================================================================

class SensorType(str, Enum):
    """Tipi sensore telemetria"""
    CO2 = "co2"
    BIOMASS = "biomass"
    SOIL_CARBON = "soil_carbon"
    WEATHER = "weather"


# ============================================================================
# UTENTI
# ============================================================================

class UserRole(str, Enum):
    """Ruoli utente"""
    USER = "user"
    DEVELOPER = "developer"
    VERIFIER = "verifier"


# ============================================================================
# DEFAULT MINT (simulazione web3)
# ============================================================================

# Prezzo per credito usato dal mint simulato (USD)
DEFAULT_CREDIT_PRICE: Final[str] = "18.50"

# Tonnellate CO2 rappresentate da un credito
DEFAULT_CO2_PER_CREDIT: Final[str] = "1.0"

# Saldo mostrato dalla connessione wallet simulata
SIMULATED_WALLET_BALANCE: Final[str] = "2.5 ETH"

SIMULATED_NETWORK_LABELS: Final[dict] = {
    BlockchainNetwork.ETHEREUM.value: "Ethereum Mainnet",
    BlockchainNetwork.STACKS.value: "Stacks Testnet",
    BlockchainNetwork.POLYGON.value: "Polygon PoS",
}


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "REGISTRY_NAME",
    "SOFTWARE_VERSION",
    "TOKEN_PREFIX",
    "TX_HASH_HEX_LENGTH",
    "ProjectType",
    "ProjectStatus",
    "VerificationDecision",
    "PROJECT_TYPES",
    "CreditStatus",
    "TransactionType",
    "BlockchainNetwork",
    "DEFAULT_BLOCKCHAIN_NETWORK",
    "SensorType",
    "UserRole",
    "DEFAULT_CREDIT_PRICE",
    "DEFAULT_CO2_PER_CREDIT",
    "SIMULATED_WALLET_BALANCE",
    "SIMULATED_NETWORK_LABELS",
]
