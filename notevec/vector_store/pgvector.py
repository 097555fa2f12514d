"""PgVector implementation of the vector store.

Rows live in one table ``(id SERIAL PRIMARY KEY, content TEXT, embedding
VECTOR(N))``. Distances come from the pgvector operator matching the
configured metric (``<=>`` cosine, ``<->`` L2, ``<#>`` negative inner product)
and results are ordered ascending, ties broken by insertion order.

Query handling
- Every statement goes through ``_run`` so failures are logged once and
  re-raised as ``StoreError`` tagged with the action
- Vector widths are not pre-validated; the column type enforces them
"""

import re
from typing import Any, Awaitable, Callable, Dict, List, Sequence, TypeVar

import numpy as np
import structlog

from ..exceptions import NotReadyError, StoreError
from .base import SearchHit, TableInfo, VectorStore
from .database import Database

logger = structlog.get_logger("vector_store.pgvector")

T = TypeVar("T")

DISTANCE_OPERATORS: Dict[str, str] = {
    "cosine": "<=>",
    "l2": "<->",
    "inner_product": "<#>",
}

DEFAULT_TABLE_NAME = "note_vectors"

_TABLE_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")

TABLE_EXISTS_SQL = "SELECT to_regclass($1) IS NOT NULL AS exists"
TABLE_DIMENSIONS_SQL = (
    "SELECT atttypmod AS dimensions FROM pg_attribute "
    "WHERE attrelid = to_regclass($1) AND attname = 'embedding'"
)


class PgVectorStore(VectorStore):
    """PgVector-backed store for one table of note embeddings."""

    def __init__(
        self,
        database: Database,
        dimensions: int,
        table_name: str = DEFAULT_TABLE_NAME,
        distance_metric: str = "cosine",
    ):
        """Configure the store.

        Parameters
        - database: Initialized (or later initialized) ``Database``
        - dimensions: Width used when creating the table
        - table_name: Lowercase SQL identifier for the table
        - distance_metric: ``cosine``, ``l2``, or ``inner_product``
        """
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")
        if distance_metric not in DISTANCE_OPERATORS:
            raise ValueError(
                f"Unsupported distance metric: {distance_metric!r} "
                f"(expected one of {', '.join(DISTANCE_OPERATORS)})"
            )
        super().__init__(dimensions)
        self.database = database
        self._table_name = table_name
        self._distance_metric = distance_metric

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def distance_metric(self) -> str:
        return self._distance_metric

    def is_ready(self) -> bool:
        return self.database.is_ready()

    def _ensure_ready(self, action: str) -> None:
        if not self.is_ready():
            raise NotReadyError(action)

    async def _run(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation``, wrapping failures in ``StoreError``."""
        self._ensure_ready(action)
        try:
            return await operation()
        except StoreError:
            raise
        except Exception as e:
            logger.error(
                "Vector store operation failed",
                action=action,
                table=self._table_name,
                error=str(e),
            )
            raise StoreError(action, e) from e

    async def check_table_exists(self) -> TableInfo:
        self._ensure_ready("check")
        try:
            rows = await self.database.query(TABLE_EXISTS_SQL, self._table_name)
            if not rows or not rows[0]["exists"]:
                return TableInfo(exists=False)

            rows = await self.database.query(TABLE_DIMENSIONS_SQL, self._table_name)
        except Exception as e:
            logger.error("Error checking vector table", table=self._table_name, error=str(e))
            return TableInfo(exists=False)

        if rows:
            dimensions = int(rows[0]["dimensions"])
            # atttypmod is -1 for a vector column declared without a width
            return TableInfo(exists=True, dimensions=dimensions if dimensions > 0 else None)
        return TableInfo(exists=True)

    async def create_table(self, force: bool = False) -> None:
        dimensions = self.get_dimensions()

        async def _create() -> None:
            if force:
                await self.database.execute(f"DROP TABLE IF EXISTS {self._table_name}")
                logger.info("Dropped existing vector table", table=self._table_name)
            await self.database.execute(
                f"CREATE TABLE IF NOT EXISTS {self._table_name} ("
                f"id SERIAL PRIMARY KEY, "
                f"content TEXT, "
                f"embedding VECTOR({dimensions}))"
            )

        await self._run("create", _create)
        logger.info("Vector table ready", table=self._table_name, dimensions=dimensions, force=force)

    async def insert_vector(self, content: str, vector: Sequence[float]) -> int:
        array = _as_vector(vector)

        async def _insert() -> int:
            rows = await self.database.query(
                f"INSERT INTO {self._table_name} (content, embedding) VALUES ($1, $2) RETURNING id",
                content,
                array,
            )
            return int(rows[0]["id"])

        vector_id = await self._run("insert", _insert)
        logger.info("Inserted vector", table=self._table_name, id=vector_id, dimensions=len(array))
        return vector_id

    async def search_similar(self, vector: Sequence[float], limit: int = 5) -> List[SearchHit]:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        array = _as_vector(vector)
        operator = DISTANCE_OPERATORS[self._distance_metric]

        async def _search() -> List[Any]:
            return await self.database.query(
                f"SELECT id, content, embedding {operator} $1 AS distance "
                f"FROM {self._table_name} ORDER BY distance, id LIMIT $2",
                array,
                limit,
            )

        rows = await self._run("search", _search)
        hits = [
            SearchHit(id=int(row["id"]), content=row["content"], distance=float(row["distance"]))
            for row in rows
        ]
        logger.info(
            "Vector similarity search completed",
            table=self._table_name,
            metric=self._distance_metric,
            limit=limit,
            results_count=len(hits),
        )
        return hits

    async def count_vectors(self) -> int:
        async def _count() -> int:
            rows = await self.database.query(f"SELECT COUNT(*) AS count FROM {self._table_name}")
            return int(rows[0]["count"]) if rows else 0

        return await self._run("count", _count)

    async def save(self) -> None:
        if not self.is_ready():
            return
        await self._run("save", self.database.save)


def _as_vector(vector: Sequence[float]) -> np.ndarray:
    array = np.asarray(vector, dtype=np.float32)
    if array.ndim != 1:
        raise ValueError("Vector must be one-dimensional")
    return array
