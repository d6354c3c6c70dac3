"""
BlueCarbon Registry - Storage Package
=======================================
Entity store: backend in memoria e backend SQLAlchemy.
"""

from blue_carbon.storage.base import EntityStore, Repository, CollectionSpec
from blue_carbon.storage.memory import MemoryEntityStore
from blue_carbon.storage.db import RegistryDatabase
from blue_carbon.storage.seed import seed_sample_data

__all__ = [
    "EntityStore",
    "Repository",
    "CollectionSpec",
    "MemoryEntityStore",
    "RegistryDatabase",
    "seed_sample_data",
]
