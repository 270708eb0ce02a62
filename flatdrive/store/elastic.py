"""
Record store backed by an elasticsearch index.

Each (owner, path) pair maps to one document id, so writing the same key twice overwrites.
Prefix queries use a keyword field for the path, which makes them exact (no analysis).
"""

import logging
import uuid

from elasticsearch import AsyncElasticsearch, ConflictError
from elasticsearch.helpers import async_scan

from flatdrive.models import Record
from flatdrive.store.base import RecordStore

RECORD_MAPPING = {
    "owner": {"type": "keyword"},
    "path": {"type": "keyword"},
    "name": {"type": "keyword"},
    "is_folder": {"type": "boolean"},
    "size": {"type": "long"},
    "created_at": {"type": "date"},
}


def record_id(owner: str, path: str) -> str:
    id = str(uuid.uuid5(uuid.NAMESPACE_URL, path))
    return f"{owner}:{id}"


class ElasticRecordStore(RecordStore):
    def __init__(self, elastic: AsyncElasticsearch, index: str, refresh: bool = True):
        self.elastic = elastic
        self.index = index
        self.refresh = refresh

    async def create_index(self) -> bool:
        """Create the record index if it does not exist yet. Returns True if it was created."""
        if await self.elastic.indices.exists(index=self.index):
            return False
        logging.info(f"Creating record index {self.index}")
        await self.elastic.indices.create(index=self.index, mappings={"properties": RECORD_MAPPING})
        return True

    async def delete_index(self) -> None:
        await self.elastic.options(ignore_status=[404]).indices.delete(index=self.index)

    async def put(self, record: Record) -> None:
        await self.elastic.index(
            index=self.index,
            id=record_id(record.owner, record.path),
            document=record.model_dump(mode="json"),
            refresh=self.refresh,
        )

    async def create(self, record: Record) -> bool:
        try:
            await self.elastic.create(
                index=self.index,
                id=record_id(record.owner, record.path),
                document=record.model_dump(mode="json"),
                refresh=self.refresh,
            )
        except ConflictError:
            return False
        return True

    async def get(self, owner: str, path: str) -> Record | None:
        doc = await self.elastic.options(ignore_status=[404]).get(index=self.index, id=record_id(owner, path))
        if not doc["found"]:
            return None
        return Record.model_validate(doc["_source"])

    async def delete(self, owner: str, path: str) -> bool:
        res = await self.elastic.options(ignore_status=[404]).delete(
            index=self.index, id=record_id(owner, path), refresh=self.refresh
        )
        return res.get("result") == "deleted"

    async def query_prefix(self, owner: str, prefix: str = "") -> list[Record]:
        query: dict = {
            "bool": {
                "filter": [
                    {"term": {"owner": owner}},
                ]
            }
        }
        if prefix:
            query["bool"]["filter"].append({"prefix": {"path": prefix}})

        return [
            Record.model_validate(hit["_source"])
            async for hit in async_scan(self.elastic, index=self.index, query={"query": query})
        ]
