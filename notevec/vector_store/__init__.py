"""Vector store adapters and utilities.

Primary components:
- ``database``: ``Database`` interface and the asyncpg-backed implementation.
- ``base``: abstract ``VectorStore`` interface and result types.
- ``pgvector``: PostgreSQL/pgvector implementation of the interface.
- ``factory``: helpers to construct a database and store from config.

Guidance:
- Prefer ``factory.create_vector_store_from_config`` so callers stay
  independent of the concrete store.
"""
