"""
BlueCarbon Registry - Configuration Management
================================================
Gestione centralizzata configurazione con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso BLUECARBON_
- File .env support
- Profile multipli (dev/test)
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Optional, List
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blue_carbon.constants import (
    REGISTRY_NAME,
    SOFTWARE_VERSION,
    TOKEN_PREFIX,
    DEFAULT_BLOCKCHAIN_NETWORK,
    DEFAULT_CREDIT_PRICE,
    DEFAULT_CO2_PER_CREDIT,
    BlockchainNetwork,
)


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class RegistrySettings(BaseSettings):
    """
    Configurazione principale del registro.

    Supporta:
    - Caricamento da environment variables (BLUECARBON_*)
    - Caricamento da file .env
    - Override programmatici
    - Validazione automatica

    Example:
        # Da environment
        export BLUECARBON_STORAGE_BACKEND="sqlite"
        export BLUECARBON_API_PORT=5000

        # Da codice
        config = RegistrySettings(storage_backend="memory")
    """

    model_config = SettingsConfigDict(
        env_prefix='BLUECARBON_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',  # Ignora variabili extra
    )

    # ========================================================================
    # REGISTRY IDENTIFICATION
    # ========================================================================

    registry_name: str = Field(
        default=REGISTRY_NAME,
        description="Nome identificativo registro"
    )

    software_version: str = Field(
        default=SOFTWARE_VERSION,
        description="Versione software"
    )

    # ========================================================================
    # SIMULATED CHAIN
    # ========================================================================

    blockchain_network: str = Field(
        default=DEFAULT_BLOCKCHAIN_NETWORK,
        description="Rete simulata registrata sulle transazioni"
    )

    token_prefix: str = Field(
        default=TOKEN_PREFIX,
        min_length=1,
        max_length=16,
        description="Prefisso token ID"
    )

    default_credit_price: Decimal = Field(
        default=Decimal(DEFAULT_CREDIT_PRICE),
        ge=0,
        description="Prezzo per credito del mint simulato (USD)"
    )

    default_co2_per_credit: Decimal = Field(
        default=Decimal(DEFAULT_CO2_PER_CREDIT),
        gt=0,
        description="Tonnellate CO2 per credito"
    )

    # ========================================================================
    # STORAGE
    # ========================================================================

    storage_backend: str = Field(
        default="memory",
        description="Backend entity store: memory, sqlite"
    )

    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory dati registro"
    )

    db_path: Optional[Path] = Field(
        default=None,
        description="Path database (auto: data_dir/bluecarbon.db)"
    )

    db_echo: bool = Field(
        default=False,
        description="Log SQL emesso da SQLAlchemy"
    )

    seed_sample_data: bool = Field(
        default=False,
        description="Carica dati demo all'avvio"
    )

    # ========================================================================
    # API
    # ========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host API"
    )

    api_port: int = Field(
        default=5000,
        ge=1024,
        le=65535,
        description="Porta API REST"
    )

    api_enable_cors: bool = Field(
        default=True,
        description="Abilita CORS per API"
    )

    api_cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="CORS allowed origins"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_to_file: bool = Field(
        default=False,
        description="Salva log su file"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_format: str = Field(
        default="json",
        description="Formato log: json, text"
    )

    log_rotation_mb: int = Field(
        default=100,
        ge=1,
        description="Dimensione max file log prima rotation (MB)"
    )

    log_retention_days: int = Field(
        default=30,
        ge=1,
        description="Giorni retention log files"
    )

    enable_audit_log: bool = Field(
        default=False,
        description="Scrive audit trail su log_dir/audit.log"
    )

    # ========================================================================
    # DEVELOPMENT
    # ========================================================================

    dev_mode: bool = Field(
        default=False,
        description="Modalità sviluppo"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError(f"Invalid log_format: {v}. Must be 'json' or 'text'")
        return v_lower

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Valida backend storage"""
        valid_backends = ['memory', 'sqlite']
        v_lower = v.lower()
        if v_lower not in valid_backends:
            raise ValueError(f"Invalid storage_backend: {v}. Must be one of {valid_backends}")
        return v_lower

    @field_validator('blockchain_network')
    @classmethod
    def validate_network(cls, v: str) -> str:
        """Valida rete simulata"""
        valid_networks = [n.value for n in BlockchainNetwork]
        v_lower = v.lower()
        if v_lower not in valid_networks:
            raise ValueError(f"Invalid blockchain_network: {v}. Must be one of {valid_networks}")
        return v_lower

    # ========================================================================
    # POST-INIT PROCESSING
    # ========================================================================

    def model_post_init(self, __context) -> None:
        """Post-initialization: setup paths"""
        if self.db_path is None:
            self.db_path = self.data_dir / "bluecarbon.db"

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def is_persistent(self) -> bool:
        """Check se lo store sopravvive al processo"""
        return self.storage_backend == "sqlite"

    def get_database_url(self) -> str:
        """URL SQLAlchemy per il database SQLite"""
        return f"sqlite:///{self.db_path}"

    def ensure_directories(self) -> None:
        """Crea le directory richieste dalla configurazione"""
        if self.is_persistent():
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        if self.log_to_file or self.enable_audit_log:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return (
            f"RegistrySettings("
            f"registry_name={self.registry_name}, "
            f"storage_backend={self.storage_backend}, "
            f"blockchain_network={self.blockchain_network}, "
            f"api_port={self.api_port})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> RegistrySettings:
    """
    Ottieni instance cached di RegistrySettings.

    Returns:
        RegistrySettings: Instance configurazione

    Example:
        >>> config = get_settings()
        >>> config.registry_name
        'BlueCarbon Registry'
    """
    return RegistrySettings()


def reload_settings() -> RegistrySettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables runtime.
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> RegistrySettings:
    """
    Override settings con valori custom.

    Utile per testing.

    Example:
        >>> test_config = override_settings(storage_backend="sqlite")
    """
    return RegistrySettings(**kwargs)


# ============================================================================
# PROFILE PRESETS
# ============================================================================

def get_development_config() -> RegistrySettings:
    """
    Config preset per development.

    Features:
    - Dev mode enabled
    - Dati demo caricati
    - Log DEBUG
    """
    return RegistrySettings(
        dev_mode=True,
        seed_sample_data=True,
        log_level="DEBUG",
        log_format="text",
    )


def get_test_config(**kwargs) -> RegistrySettings:
    """
    Config preset per test.

    Store in memoria, nessun file log, nessun seed.
    """
    params = dict(
        dev_mode=True,
        storage_backend="memory",
        seed_sample_data=False,
        log_to_file=False,
        enable_audit_log=False,
        log_level="DEBUG",
    )
    params.update(kwargs)
    return RegistrySettings(**params)


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(config: RegistrySettings) -> tuple[bool, list[str]]:
    """
    Valida configurazione completa.

    Returns:
        tuple: (is_valid, errors_list)
    """
    errors = []

    if config.is_persistent():
        parent = Path(config.db_path).parent
        if parent.exists() and not os.access(parent, os.W_OK):
            errors.append(f"Directory not writable: {parent}")

    if config.log_to_file and config.log_dir.exists() and not os.access(config.log_dir, os.W_OK):
        errors.append(f"Directory not writable: {config.log_dir}")

    if not config.dev_mode and "*" in config.api_cors_origins:
        errors.append("WARNING: CORS allows any origin outside dev_mode")

    return (len(errors) == 0, errors)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "RegistrySettings",
    "get_settings",
    "reload_settings",
    "override_settings",
    "get_development_config",
    "get_test_config",
    "validate_config",
]
