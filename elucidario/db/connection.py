"""PostgreSQL connection management for Apache AGE graph operations.

One asyncpg pool serves the whole process; asyncpg does the pooling. Every new
connection is prepared for AGE once, so callers can issue ``cypher()`` calls
directly.
"""

import logging

import asyncpg

from elucidario.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


async def setup_age_connection(conn: asyncpg.Connection) -> None:
    """Setup AGE extension, search path and agtype codec for a connection."""
    _ = await conn.execute("LOAD 'age';")
    _ = await conn.execute("SET search_path = ag_catalog, \"$user\", public;")
    await conn.set_type_codec(
        "agtype",
        schema="ag_catalog",
        encoder=str,
        decoder=str,
        format="text",
    )


async def create_graph_pool(settings: Settings | None = None) -> asyncpg.Pool:
    """Create the process-wide pool, or return it if it already exists."""
    global _pool
    if _pool is None:
        settings = settings or get_settings()
        _pool = await asyncpg.create_pool(
            user=settings.postgres_user,
            password=settings.postgres_password,
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.active_database,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            command_timeout=settings.command_timeout,
            init=setup_age_connection,
        )
        logger.info(
            "Graph connection pool created for %s:%s/%s",
            settings.postgres_host,
            settings.postgres_port,
            settings.active_database,
        )

    return _pool


async def close_graph_pool() -> None:
    """Close the database connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Graph connection pool closed")
