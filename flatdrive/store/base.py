from abc import ABC, abstractmethod

from flatdrive.models import Record


class RecordStore(ABC):
    """
    Flat store of file and folder records, keyed by (owner, path).
    Writing a record with an existing key replaces it.
    """

    @abstractmethod
    async def put(self, record: Record) -> None: ...

    @abstractmethod
    async def create(self, record: Record) -> bool:
        """Write the record only if no record exists for its key. Returns False if one already existed."""

    @abstractmethod
    async def get(self, owner: str, path: str) -> Record | None: ...

    @abstractmethod
    async def delete(self, owner: str, path: str) -> bool:
        """Delete the record, returning False if it did not exist"""

    @abstractmethod
    async def query_prefix(self, owner: str, prefix: str = "") -> list[Record]:
        """All records of this owner whose path starts with prefix (all of the owner's records if prefix is empty)"""
