"""
Create file records from object-created notifications of the bucket.

The payload is the S3 event notification format (also sent by MinIO webhooks): a "Records" list in which
each entry has an eventName, an eventTime and s3.bucket.name, s3.object.key and s3.object.size.
Records that cannot be processed are logged and skipped, so one bad entry does not block the others.
"""

import logging
from datetime import UTC, datetime
from urllib.parse import unquote_plus

from flatdrive.models import IngestResult, Record
from flatdrive.objectstorage import split_object_key
from flatdrive.paths import normalize_file_key, record_name
from flatdrive.store import RecordStore


def file_record_from_event(event: dict) -> Record | None:
    """
    Build the file record for one notification entry, or None if the entry should be ignored
    (other event types and folder placeholder objects).

    raises ValueError if the entry is incomplete or its key is not <owner>/<path>
    """
    event_name = event.get("eventName") or ""
    if not event_name.startswith("ObjectCreated") and not event_name.startswith("s3:ObjectCreated"):
        logging.info(f"Skipping non-ObjectCreated event: {event_name}")
        return None

    s3_info = event.get("s3") or {}
    bucket = (s3_info.get("bucket") or {}).get("name")
    obj = s3_info.get("object") or {}
    raw_key = obj.get("key")
    size = obj.get("size")
    if not bucket or not raw_key or size is None:
        raise ValueError(f"Missing S3 event data in record: {event}")

    key = unquote_plus(raw_key)
    if size == 0 and key.endswith("/"):
        logging.info(f"Skipping folder placeholder object: {key}")
        return None

    owner, path = split_object_key(key)
    path = normalize_file_key(path)
    created_at = event.get("eventTime") or datetime.now(UTC)
    return Record(owner=owner, path=path, name=record_name(path), is_folder=False, size=size, created_at=created_at)


async def ingest_object_events(store: RecordStore, payload: dict) -> IngestResult:
    created = skipped = 0
    for event in payload.get("Records") or []:
        try:
            record = file_record_from_event(event)
            if record is None:
                skipped += 1
                continue
            await store.put(record)
        except Exception:
            logging.exception(f"Could not create file record for event {event}")
            skipped += 1
            continue
        logging.info(f"Created file record {record.path} for {record.owner}")
        created += 1
    return IngestResult(created=created, skipped=skipped)
