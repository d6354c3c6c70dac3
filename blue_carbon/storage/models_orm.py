"""
BlueCarbon Registry - ORM Models
==================================
Tabelle SQLAlchemy per il backend persistente.

Ogni tabella ha una primary key intera autoincrement (ordine di
inserimento) e una colonna `id` stringa unica (id di dominio).
Importi e coordinate sono salvati come stringhe decimali esatte.
"""

from datetime import timezone
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


# ============================================================================
# COLUMN TYPES
# ============================================================================

class DecimalString(TypeDecorator):
    """Decimal salvato come testo (nessuna perdita di precisione su SQLite)"""
    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UTCDateTime(TypeDecorator):
    """Datetime salvato naive in UTC, riletto timezone-aware"""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


# ============================================================================
# TABLES
# ============================================================================

class UserORM(Base):
    """User ORM model"""
    __tablename__ = 'users'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True)
    username = Column(String(64), unique=True, nullable=False)
    wallet_address = Column(String(256), nullable=True, index=True)
    role = Column(String(32), nullable=False)
    created_at = Column(UTCDateTime, nullable=False)


class ProjectORM(Base):
    """Project ORM model"""
    __tablename__ = 'projects'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    project_type = Column(String(32), nullable=False, index=True)
    area = Column(DecimalString, nullable=False)
    latitude = Column(DecimalString, nullable=True)
    longitude = Column(DecimalString, nullable=True)
    location = Column(String(256), nullable=False)
    developer_id = Column(String(256), nullable=False, index=True)
    status = Column(String(32), nullable=False, index=True)
    estimated_credits = Column(Integer, nullable=False, default=0)
    verification_documents = Column(JSON, nullable=False, default=dict)
    satellite_imagery = Column(JSON, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, index=True)
    verified_at = Column(UTCDateTime, nullable=True)


class CarbonCreditORM(Base):
    """CarbonCredit ORM model"""
    __tablename__ = 'carbon_credits'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True)
    project_id = Column(String(64), nullable=False, index=True)
    token_id = Column(String(128), unique=True, nullable=False)
    amount = Column(Integer, nullable=False)
    price = Column(DecimalString, nullable=False)
    owner_id = Column(String(256), nullable=False, index=True)
    co2_amount = Column(DecimalString, nullable=False)
    status = Column(String(32), nullable=False, index=True)
    minted_at = Column(UTCDateTime, nullable=False, index=True)
    retired_at = Column(UTCDateTime, nullable=True)
    retired_by = Column(String(256), nullable=True)


class TransactionORM(Base):
    """Transaction ORM model (append-only)"""
    __tablename__ = 'transactions'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    credit_id = Column(String(64), nullable=False, index=True)
    from_user_id = Column(String(256), nullable=True, index=True)
    to_user_id = Column(String(256), nullable=True, index=True)
    amount = Column(Integer, nullable=False)
    price = Column(DecimalString, nullable=True)
    tx_hash = Column(String(80), nullable=False)
    blockchain_network = Column(String(32), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, index=True)


class SensorDataORM(Base):
    """SensorData ORM model (append-only)"""
    __tablename__ = 'sensor_data'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True)
    project_id = Column(String(64), nullable=False, index=True)
    sensor_type = Column(String(32), nullable=False, index=True)
    value = Column(DecimalString, nullable=False)
    unit = Column(String(32), nullable=False)
    latitude = Column(DecimalString, nullable=True)
    longitude = Column(DecimalString, nullable=True)
    timestamp = Column(UTCDateTime, nullable=False, index=True)
    # "metadata" è riservato dalle classi dichiarative
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)


# Nome attributo ORM per i campi entità che differiscono
COLUMN_ATTRIBUTES = {
    SensorDataORM: {"metadata": "metadata_json"},
}


__all__ = [
    'Base',
    'DecimalString',
    'UTCDateTime',
    'UserORM',
    'ProjectORM',
    'CarbonCreditORM',
    'TransactionORM',
    'SensorDataORM',
    'COLUMN_ATTRIBUTES',
]
