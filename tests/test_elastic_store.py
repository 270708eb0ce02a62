import pytest
from elasticsearch import AsyncElasticsearch

from flatdrive.config import get_settings
from flatdrive.store import ElasticRecordStore
from tests.tools import paths, record

UNITTEST_INDEX = "flatdrive_unittest_records"


@pytest.fixture()
async def elastic_store():
    elastic = AsyncElasticsearch(get_settings().elastic_host)
    try:
        if not await elastic.ping():
            pytest.skip("Elasticsearch not available, skipping record store tests")
        store = ElasticRecordStore(elastic, UNITTEST_INDEX)
        await store.delete_index()
        assert await store.create_index()
        yield store
        await store.delete_index()
    finally:
        await elastic.close()


@pytest.mark.anyio
async def test_put_get_delete(elastic_store: ElasticRecordStore):
    r = record("docs/report.pdf", owner="user-1", size=99)
    assert await elastic_store.get("user-1", "docs/report.pdf") is None
    await elastic_store.put(r)
    stored = await elastic_store.get("user-1", "docs/report.pdf")
    assert stored is not None
    assert (stored.name, stored.size, stored.is_folder) == ("report.pdf", 99, False)
    assert await elastic_store.get("user-2", "docs/report.pdf") is None

    # put overwrites
    await elastic_store.put(record("docs/report.pdf", owner="user-1", size=100))
    assert (await elastic_store.get("user-1", "docs/report.pdf")).size == 100

    assert await elastic_store.delete("user-1", "docs/report.pdf")
    assert not await elastic_store.delete("user-1", "docs/report.pdf")
    assert await elastic_store.get("user-1", "docs/report.pdf") is None


@pytest.mark.anyio
async def test_create_does_not_overwrite(elastic_store: ElasticRecordStore):
    assert await elastic_store.create(record("docs/", owner="user-1"))
    assert not await elastic_store.create(record("docs/", owner="user-1"))
    assert await elastic_store.create(record("docs/", owner="user-2"))


@pytest.mark.anyio
async def test_query_prefix(elastic_store: ElasticRecordStore):
    for path in ["a/", "a/b.txt", "a/c/", "a/c/d.txt", "ab.txt", "z.txt"]:
        await elastic_store.put(record(path, owner="user-1"))
    await elastic_store.put(record("a/other.txt", owner="user-2"))

    assert paths(await elastic_store.query_prefix("user-1")) == {"a/", "a/b.txt", "a/c/", "a/c/d.txt", "ab.txt", "z.txt"}
    assert paths(await elastic_store.query_prefix("user-1", "a/")) == {"a/", "a/b.txt", "a/c/", "a/c/d.txt"}
    assert paths(await elastic_store.query_prefix("user-1", "a/c/")) == {"a/c/", "a/c/d.txt"}
    assert paths(await elastic_store.query_prefix("user-2", "a/")) == {"a/other.txt"}
    assert await elastic_store.query_prefix("user-3") == []
