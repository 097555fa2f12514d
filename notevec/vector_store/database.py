"""Database access used by vector stores.

The store only needs parameterised queries, statement execution, readiness,
and an opaque ``save``. ``PostgresDatabase`` provides these over a single
asyncpg connection with the pgvector codec registered.

Connection management
- One connection, opened by ``initialize`` and reused serially
- ``relaxed_durability`` turns off ``synchronous_commit`` for faster writes
- ``save`` dumps public tables with binary ``COPY`` when a snapshot dir is set
"""

import asyncio
import os
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

import asyncpg
import structlog
from pgvector.asyncpg import register_vector

from ..exceptions import DatabaseConnectionError, NotReadyError

logger = structlog.get_logger("vector_store.database")


class Database(ABC):
    """Minimal async database interface."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open the connection and prepare extensions."""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether ``initialize`` completed and the connection is open."""
        pass

    @abstractmethod
    async def query(self, sql: str, *args: Any) -> List[Mapping[str, Any]]:
        """Run ``sql`` with positional parameters and return all rows."""
        pass

    @abstractmethod
    async def execute(self, sql: str, *args: Any) -> str:
        """Run ``sql`` and return the command status."""
        pass

    @abstractmethod
    async def save(self) -> None:
        """Persist the current state to durable storage."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Save and release the connection."""
        pass


class PostgresDatabase(Database):
    """PostgreSQL database with the pgvector extension."""

    def __init__(
        self,
        dsn: str,
        relaxed_durability: bool = True,
        snapshot_dir: Optional[str] = None,
        command_timeout: int = 60,
    ):
        """Configure the database.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - relaxed_durability: Disable synchronous commit on the connection
        - snapshot_dir: Directory receiving binary table dumps on ``save``
        - command_timeout: Seconds to allow per command
        """
        self.dsn = dsn
        self.relaxed_durability = relaxed_durability
        self.snapshot_dir = snapshot_dir
        self.command_timeout = command_timeout
        self._conn: Optional[asyncpg.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self.is_ready():
            return
        try:
            conn = await asyncpg.connect(self.dsn, command_timeout=self.command_timeout)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Failed to connect to database", error=str(e))
            raise DatabaseConnectionError(e) from e

        try:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            await register_vector(conn)
            if self.relaxed_durability:
                await conn.execute("SET synchronous_commit TO OFF")
        except asyncpg.PostgresError as e:
            await conn.close()
            logger.error("Failed to prepare database connection", error=str(e))
            raise DatabaseConnectionError(e) from e

        self._conn = conn
        logger.info(
            "Database initialized",
            relaxed_durability=self.relaxed_durability,
            snapshot_dir=self.snapshot_dir,
        )

    def is_ready(self) -> bool:
        return self._conn is not None and not self._conn.is_closed()

    def _connection(self, action: str) -> asyncpg.Connection:
        if not self.is_ready():
            raise NotReadyError(action)
        return self._conn

    async def query(self, sql: str, *args: Any) -> List[Mapping[str, Any]]:
        conn = self._connection("query")
        async with self._lock:
            return await conn.fetch(sql, *args)

    async def execute(self, sql: str, *args: Any) -> str:
        conn = self._connection("execute")
        async with self._lock:
            return await conn.execute(sql, *args)

    async def save(self) -> None:
        """Dump every public table to ``snapshot_dir`` in binary COPY format.

        Snapshots are export-only: nothing reads them back, since PostgreSQL
        itself is the durable copy. Restore one with ``COPY <table> FROM
        '<table>.bin' WITH (FORMAT binary)`` into a table of the same shape.
        Without a snapshot dir this is a no-op: each statement has already
        committed.
        """
        if not self.is_ready():
            logger.info("Cannot save: database not initialized")
            return
        if not self.snapshot_dir:
            logger.debug("No snapshot directory configured, nothing to save")
            return

        os.makedirs(self.snapshot_dir, exist_ok=True)
        rows = await self.query("SELECT tablename FROM pg_tables WHERE schemaname = 'public'")
        async with self._lock:
            for row in rows:
                table = row["tablename"]
                path = os.path.join(self.snapshot_dir, f"{table}.bin")
                await self._conn.copy_from_table(table, output=path, format="binary")
        logger.info("Database snapshot saved", snapshot_dir=self.snapshot_dir, tables=len(rows))

    async def close(self) -> None:
        if self._conn is None:
            return
        try:
            await self.save()
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("Database connection closed")
