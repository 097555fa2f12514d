"""Shared fixtures."""

import pytest

from notevec.vector_store.pgvector import PgVectorStore
from tests.fakes import FakeDatabase, StubEmbeddingModel


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def store(database):
    return PgVectorStore(database, dimensions=3, table_name="note_vectors")


@pytest.fixture
def model():
    return StubEmbeddingModel(dimensions=3)
