"""
Database access layer (SQLAlchemy).

Centralizes engine creation and session handling. The same code runs against
PostgreSQL in production (``postgresql+psycopg://...``) and SQLite locally or
in tests.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from repairclip.config import DATABASE_URL


class Base(DeclarativeBase):
    """Declarative base for every ORM model of the worker."""
    pass


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    # In-memory databases must share one connection across worker threads
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


class Database:
    """Owns one engine and its session factory."""

    def __init__(self, url: str = DATABASE_URL, echo: bool = False):
        if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
            Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)

        self.url = url
        self.engine = create_engine(url, echo=echo, future=True, **_engine_kwargs(url))
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    def create_all(self) -> None:
        """Create missing tables. Production schemas are managed by migrations."""
        from . import models  # noqa: F401  (registers tables on Base.metadata)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope: commit on success, rollback on error, always close."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> None:
        """Round-trip a trivial query. Raises SQLAlchemyError when unreachable."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


_database_instance: Optional[Database] = None


def get_database() -> Database:
    """Get the shared Database instance (singleton pattern)."""
    global _database_instance
    if _database_instance is None:
        _database_instance = Database()
    return _database_instance
