from flatdrive.models import Record
from flatdrive.store.base import RecordStore


class MemoryRecordStore(RecordStore):
    def __init__(self):
        self.records: dict[tuple[str, str], Record] = {}

    async def put(self, record: Record) -> None:
        self.records[record.owner, record.path] = record

    async def create(self, record: Record) -> bool:
        if (record.owner, record.path) in self.records:
            return False
        await self.put(record)
        return True

    async def get(self, owner: str, path: str) -> Record | None:
        return self.records.get((owner, path))

    async def delete(self, owner: str, path: str) -> bool:
        return self.records.pop((owner, path), None) is not None

    async def query_prefix(self, owner: str, prefix: str = "") -> list[Record]:
        return [r for (o, p), r in self.records.items() if o == owner and p.startswith(prefix)]
