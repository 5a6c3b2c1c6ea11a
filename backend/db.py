"""
Database connection pool and tenant-scoped connection managers.

All database access goes through tenant_conn() or system_conn().
Never use pool.acquire() directly outside this module.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

import asyncpg

from backend.config import settings

logger = logging.getLogger(__name__)

pool: asyncpg.Pool | None = None


async def init_pool() -> None:
    """
    Initialize the connection pool.
    Called once at application startup when DATABASE_URL is set.
    """
    global pool
    pool = await asyncpg.create_pool(
        dsn=settings.DATABASE_URL,
        min_size=2,
        max_size=20,
        command_timeout=60,
        init=_init_connection,
    )
    logger.info("db: pool initialized")


async def close_pool() -> None:
    """
    Close the connection pool.
    Called at application shutdown.
    """
    global pool
    if pool is not None:
        await pool.close()
        pool = None
        logger.info("db: pool closed")


async def _init_connection(conn: asyncpg.Connection) -> None:
    """
    Initialize each new connection.
    Catalog queries return JSON columns as Python dicts/lists.
    """
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )
    await conn.set_type_codec(
        "json",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


@asynccontextmanager
async def tenant_conn(tenant_id: str):
    """
    Acquire a connection scoped to one tenant.

    Sets app.tenant_id for the transaction so RLS policies on product
    tables only expose that tenant's rows.

    Usage:
        async with tenant_conn(tenant_id) as conn:
            rows = await conn.fetch("SELECT * FROM campaigns WHERE tenant_id = $1", tenant_id)
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute("SELECT set_config('app.tenant_id', $1, true)", str(tenant_id))
            yield conn


@asynccontextmanager
async def system_conn():
    """
    Acquire a connection without tenant scoping.

    For system operations only: audit log appends and queries that do not
    carry a tenant parameter.
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute("SELECT set_config('app.tenant_id', '', true)")
            yield conn
