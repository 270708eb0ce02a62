from flatdrive.store.base import RecordStore
from flatdrive.store.elastic import ElasticRecordStore
from flatdrive.store.memory import MemoryRecordStore

__all__ = ["RecordStore", "ElasticRecordStore", "MemoryRecordStore"]
