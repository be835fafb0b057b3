"""Persistence layer - content store and database configuration."""

from contentforge.persistence.config import DatabaseConfig, create_store
from contentforge.persistence.store import ContentStore, SQLContentStore

__all__ = ["ContentStore", "DatabaseConfig", "SQLContentStore", "create_store"]
