"""Tests for the pgvector store against the in-memory database."""

import pytest

from notevec.common.config import NotevecConfig
from notevec.exceptions import NotReadyError, StoreError
from notevec.vector_store.base import SearchHit, TableInfo
from notevec.vector_store.factory import (
    VectorStoreFactory,
    VectorStoreType,
    create_database_from_config,
    create_vector_store_from_config,
)
from notevec.vector_store.pgvector import PgVectorStore
from tests.fakes import FakeDatabase, FakeTable


def test_store_rejects_bad_configuration(database):
    """Table names must be plain identifiers and metrics known."""
    with pytest.raises(ValueError):
        PgVectorStore(database, 3, table_name="notes; DROP TABLE x")
    with pytest.raises(ValueError):
        PgVectorStore(database, 3, distance_metric="hamming")
    with pytest.raises(ValueError):
        PgVectorStore(database, 0)


def test_set_dimensions_does_not_touch_table(database, store):
    store.set_dimensions(768)
    assert store.get_dimensions() == 768
    assert database.statements == []
    with pytest.raises(ValueError):
        store.set_dimensions(-1)


@pytest.mark.asyncio
async def test_check_table_exists_when_absent(store):
    assert await store.check_table_exists() == TableInfo(exists=False)


@pytest.mark.asyncio
async def test_create_table_reports_configured_dimensions(store):
    """After create_table the reported width equals the configured one."""
    await store.create_table(force=True)
    assert await store.check_table_exists() == TableInfo(exists=True, dimensions=3)

    store.set_dimensions(5)
    await store.create_table(force=True)
    assert await store.check_table_exists() == TableInfo(exists=True, dimensions=5)


@pytest.mark.asyncio
async def test_create_table_without_force_keeps_existing(store):
    await store.create_table()
    await store.insert_vector("kept", [1.0, 0.0, 0.0])

    store.set_dimensions(4)
    await store.create_table()

    info = await store.check_table_exists()
    assert info.dimensions == 3
    assert await store.count_vectors() == 1


@pytest.mark.asyncio
async def test_forced_recreation_is_idempotent(store):
    """Two forced creations in a row both leave an empty table."""
    await store.create_table()
    await store.insert_vector("a", [1.0, 0.0, 0.0])
    await store.insert_vector("b", [0.0, 1.0, 0.0])

    await store.create_table(force=True)
    assert await store.count_vectors() == 0
    await store.create_table(force=True)
    assert await store.count_vectors() == 0
    assert (await store.check_table_exists()).dimensions == 3


@pytest.mark.asyncio
async def test_unsized_vector_column_reports_no_dimensions(database, store):
    database.add_unsized_table("note_vectors")
    assert await store.check_table_exists() == TableInfo(exists=True, dimensions=None)


@pytest.mark.asyncio
async def test_check_table_exists_swallows_query_failures(database, store):
    await store.create_table()
    database.fail_on = "IS NOT NULL AS exists"
    assert await store.check_table_exists() == TableInfo(exists=False)


@pytest.mark.asyncio
async def test_table_in_another_schema_is_not_ours(database, store):
    database.other_schema_tables["note_vectors"] = FakeTable(dimensions=None)
    assert await store.check_table_exists() == TableInfo(exists=False)

    await store.create_table()
    assert await store.check_table_exists() == TableInfo(exists=True, dimensions=3)
    assert "SELECT to_regclass($1) IS NOT NULL AS exists" in database.statements


@pytest.mark.asyncio
async def test_insert_returns_monotonic_ids(store):
    await store.create_table()
    first = await store.insert_vector("first", [1.0, 0.0, 0.0])
    second = await store.insert_vector("second", [0.0, 1.0, 0.0])
    assert second > first


@pytest.mark.asyncio
async def test_insert_width_mismatch_is_a_store_error(store):
    await store.create_table()
    with pytest.raises(StoreError) as exc_info:
        await store.insert_vector("too long", [1.0, 0.0, 0.0, 0.0])
    assert exc_info.value.action == "insert"
    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_insert_without_table_is_a_store_error(store):
    with pytest.raises(StoreError) as exc_info:
        await store.insert_vector("orphan", [1.0, 0.0, 0.0])
    assert exc_info.value.action == "insert"


@pytest.mark.asyncio
async def test_search_orders_by_ascending_distance(store):
    await store.create_table()
    await store.insert_vector("far", [0.0, 0.0, 1.0])
    await store.insert_vector("near", [1.0, 0.1, 0.0])
    await store.insert_vector("middle", [1.0, 1.0, 0.0])

    hits = await store.search_similar([1.0, 0.0, 0.0], limit=3)

    assert [hit.content for hit in hits] == ["near", "middle", "far"]
    distances = [hit.distance for hit in hits]
    assert distances == sorted(distances)
    assert distances[0] < distances[1] < distances[2]
    assert all(isinstance(hit, SearchHit) for hit in hits)


@pytest.mark.asyncio
async def test_search_limit_and_tie_break(store):
    await store.create_table()
    await store.insert_vector("one", [2.0, 0.0, 0.0])
    await store.insert_vector("two", [1.0, 0.0, 0.0])
    await store.insert_vector("three", [0.0, 1.0, 0.0])

    hits = await store.search_similar([1.0, 0.0, 0.0], limit=2)

    assert [hit.content for hit in hits] == ["one", "two"]
    assert hits[0].distance == pytest.approx(0.0, abs=1e-6)
    assert hits[1].distance == pytest.approx(0.0, abs=1e-6)


@pytest.mark.asyncio
async def test_search_default_limit_is_five(store):
    await store.create_table()
    for i in range(7):
        await store.insert_vector(f"note {i}", [1.0, float(i), 0.0])
    assert len(await store.search_similar([1.0, 0.0, 0.0])) == 5


@pytest.mark.asyncio
async def test_search_rejects_non_positive_limit(store):
    with pytest.raises(ValueError):
        await store.search_similar([1.0, 0.0, 0.0], limit=0)


@pytest.mark.asyncio
async def test_l2_metric_uses_euclidean_operator(database):
    store = PgVectorStore(database, 2, distance_metric="l2")
    await store.create_table()
    await store.insert_vector("origin", [0.0, 0.0])
    await store.insert_vector("three-four", [3.0, 4.0])

    hits = await store.search_similar([0.0, 0.0], limit=2)

    assert "<->" in database.statements[-1]
    assert [hit.distance for hit in hits] == [pytest.approx(0.0), pytest.approx(5.0)]


@pytest.mark.asyncio
async def test_operations_fail_closed_when_not_ready():
    store = PgVectorStore(FakeDatabase(ready=False), 3)
    assert not store.is_ready()
    with pytest.raises(NotReadyError):
        await store.check_table_exists()
    with pytest.raises(NotReadyError):
        await store.create_table()
    with pytest.raises(NotReadyError):
        await store.insert_vector("x", [1.0, 0.0, 0.0])
    with pytest.raises(NotReadyError):
        await store.search_similar([1.0, 0.0, 0.0])


@pytest.mark.asyncio
async def test_save_delegates_and_is_noop_when_not_ready(database, store):
    await store.save()
    assert database.save_count == 1

    idle = FakeDatabase(ready=False)
    await PgVectorStore(idle, 3).save()
    assert idle.save_count == 0


@pytest.mark.asyncio
async def test_create_failure_is_tagged(database, store):
    database.fail_on = "CREATE TABLE"
    with pytest.raises(StoreError) as exc_info:
        await store.create_table()
    assert exc_info.value.action == "create"


def test_factory_builds_store_from_config(database):
    config = NotevecConfig(notevec_table_name="my_vectors", notevec_distance_metric="l2")
    store = create_vector_store_from_config(config, database, 384)
    assert isinstance(store, PgVectorStore)
    assert store.table_name == "my_vectors"
    assert store.distance_metric == "l2"
    assert store.get_dimensions() == 384

    default = VectorStoreFactory.create(VectorStoreType.PGVECTOR, database, 3)
    assert default.table_name == "note_vectors"


def test_database_from_config():
    config = NotevecConfig(
        notevec_db_dsn="postgresql://u:p@db:5432/notes",
        notevec_relaxed_durability=False,
        notevec_snapshot_dir="/tmp/notevec",
    )
    database = create_database_from_config(config)
    assert database.dsn == "postgresql://u:p@db:5432/notes"
    assert database.relaxed_durability is False
    assert database.snapshot_dir == "/tmp/notevec"
    assert not database.is_ready()
