"""Database location and store factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url

if TYPE_CHECKING:
    from contentforge.persistence.store import SQLContentStore

DEFAULT_DB_FILE = Path("data") / "contentforge.db"


@dataclass
class DatabaseConfig:
    """Where the content store lives, as a SQLAlchemy URL."""

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Pick the database from the environment.

        DATABASE_URL is used as is. Otherwise CONTENTFORGE_DB_PATH names a
        SQLite file, falling back to data/contentforge.db below base_path
        (or the working directory).
        """
        if os.environ.get("DATABASE_URL"):
            return cls(url=os.environ["DATABASE_URL"])

        db_file = os.environ.get("CONTENTFORGE_DB_PATH")
        if not db_file:
            db_file = str(base_path / DEFAULT_DB_FILE) if base_path else DEFAULT_DB_FILE.name
        return cls(url=f"sqlite:///{db_file}")

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def sqlite_path(self) -> str | None:
        """File behind a SQLite URL; None for in-memory or other databases."""
        if not self.is_sqlite:
            return None
        database = make_url(self.url).database
        if not database or database == ":memory:":
            return None
        return database


def create_store(config: DatabaseConfig) -> SQLContentStore:
    """Open the content store, creating the SQLite directory when needed."""
    from contentforge.persistence.store import SQLContentStore

    if config.sqlite_path:
        Path(config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    return SQLContentStore(config.url)
