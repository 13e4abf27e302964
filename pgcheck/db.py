from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from pgcheck.config import settings
from pgcheck.services.registry import CheckConstraintRegistry
from pgcheck.services.snapshot import render_snapshot

def get_engine(url: str | None = None) -> AsyncEngine:
    return create_async_engine(url or settings.database_url, future=True, echo=False)

async def load_registry(engine: AsyncEngine, tables: list[str] | None = None) -> CheckConstraintRegistry:
    """Reflect live check constraints into a registry."""
    async with engine.connect() as connection:
        return await connection.run_sync(CheckConstraintRegistry.from_connection, tables)

async def snapshot_database(engine: AsyncEngine, tables: list[str] | None = None) -> str:
    return render_snapshot(await load_registry(engine, tables))
