"""Tests for notevec.

Store and service tests run against ``tests.fakes.FakeDatabase``, an in-memory
stand-in that understands the SQL issued by ``PgVectorStore``. Embedding
backends are exercised through ``httpx.MockTransport``.
"""
