"""Factory helpers for databases and vector stores.

Centralizes construction so callers pass a ``NotevecConfig`` (or plain
values) instead of wiring concrete classes themselves.
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..common.config import NotevecConfig
from .base import VectorStore
from .database import Database, PostgresDatabase
from .pgvector import PgVectorStore

logger = structlog.get_logger("vector_store.factory")


class VectorStoreType(Enum):
    """Supported vector store types."""
    PGVECTOR = "pgvector"


class VectorStoreFactory:
    """Factory for creating vector store instances."""

    @staticmethod
    def create(
        store_type: VectorStoreType,
        database: Database,
        dimensions: int,
        config: Optional[Dict[str, Any]] = None,
    ) -> VectorStore:
        """Create a vector store instance.

        Parameters
        - store_type: A ``VectorStoreType`` enum value
        - database: Database the store issues queries to
        - dimensions: Width for newly created tables
        - config: Optional ``table_name`` and ``distance_metric``
        """
        config = config or {}
        if store_type == VectorStoreType.PGVECTOR:
            return PgVectorStore(
                database,
                dimensions,
                table_name=config.get("table_name", "note_vectors"),
                distance_metric=config.get("distance_metric", "cosine"),
            )
        raise ValueError(f"Unsupported vector store type: {store_type}")


def create_database_from_config(config: NotevecConfig) -> PostgresDatabase:
    """Create the (uninitialized) database described by ``config``."""
    return PostgresDatabase(
        dsn=config.notevec_db_dsn,
        relaxed_durability=config.notevec_relaxed_durability,
        snapshot_dir=config.notevec_snapshot_dir,
        command_timeout=config.notevec_command_timeout,
    )


def create_vector_store_from_config(
    config: NotevecConfig,
    database: Database,
    dimensions: int,
) -> VectorStore:
    """Create the vector store described by ``config``."""
    store = VectorStoreFactory.create(
        VectorStoreType.PGVECTOR,
        database,
        dimensions,
        {
            "table_name": config.notevec_table_name,
            "distance_metric": config.notevec_distance_metric,
        },
    )
    logger.debug(
        "Created vector store",
        table=config.notevec_table_name,
        metric=config.notevec_distance_metric,
        dimensions=dimensions,
    )
    return store
