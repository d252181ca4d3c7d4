# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Database engine, single source of truth for DB connectivity.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from binomes.core.config import settings
from binomes.models.tables import metadata


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite gets a shared in-process pool, servers a sized one."""
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def create_schema(bind: Engine) -> None:
    """Create missing tables and indexes (idempotent)."""
    metadata.create_all(bind)


engine = build_engine(settings.DATABASE_URL)
