"""
Operations on one owner's drive.

The owner is always the verified caller identity, so every operation is scoped to that owner's records
and objects. Paths are normalized (and rejected) here before anything is read from or written to a store.
"""

import logging

from flatdrive.config import get_settings
from flatdrive.connections import s3_enabled
from flatdrive.errors import RecordExists, RecordNotFound
from flatdrive.hierarchy import listing_order, listing_prefix, resolve_children
from flatdrive.models import DownloadUrlResponse, Record, UploadUrlResponse
from flatdrive.objectstorage import delete_object, get_bucket, object_key, presigned_get, presigned_put
from flatdrive.paths import join_file_path, listing_path, normalize_file_key, normalize_folder_path
from flatdrive.store import RecordStore


async def list_folder(store: RecordStore, owner: str, path: str | None = None) -> list[Record]:
    """
    List the direct children of the folder at path (the root if path is empty),
    folders first and then by name
    """
    folder = listing_path(path)
    candidates = await store.query_prefix(owner, listing_prefix(folder))
    logging.debug(f"Found {len(candidates)} records for owner {owner}, prefix {folder!r}")
    return listing_order(resolve_children(candidates, folder))


async def create_folder(store: RecordStore, owner: str, folder_path: str) -> Record:
    """
    Create a folder record. Raises ValidationError for invalid paths and RecordExists if there
    already is a record at the normalized path.
    """
    folder = normalize_folder_path(folder_path)
    record = Record(owner=owner, path=folder.path, name=folder.name, is_folder=True, size=0)
    if not await store.create(record):
        raise RecordExists(f"Folder or file already exists at path: {folder.path}")
    logging.info(f"Created folder {folder.path} for {owner}")
    return record


async def create_upload_url(
    owner: str, filename: str, content_type: str, path_prefix: str | None = None
) -> UploadUrlResponse:
    """Presigned URL to PUT a new file into the given folder. The file record is created on upload notification."""
    if not content_type:
        raise ValueError("Missing required parameter: content_type")
    key = join_file_path(path_prefix, filename)
    full_key = object_key(owner, key)
    url = await presigned_put(await get_bucket(), full_key, content_type, get_settings().upload_url_expiration)
    logging.info(f"Generated upload url for {full_key}")
    return UploadUrlResponse(upload_url=url, key=key, object_key=full_key)


async def create_download_url(store: RecordStore, owner: str, key: str) -> DownloadUrlResponse:
    """Presigned URL to GET a file owned by owner. Raises RecordNotFound if owner has no such file."""
    path = normalize_file_key(key)
    record = await store.get(owner, path)
    if record is None:
        raise RecordNotFound(f"File not found: {path}")
    url = await presigned_get(
        await get_bucket(), object_key(owner, path), get_settings().download_url_expiration, filename=record.name
    )
    return DownloadUrlResponse(download_url=url)


async def delete_file(store: RecordStore, owner: str, key: str) -> None:
    """
    Delete the file record, then the object. Folders cannot be deleted.
    Raises RecordNotFound if owner has no such file.
    """
    path = normalize_file_key(key)
    if not await store.delete(owner, path):
        raise RecordNotFound(f"File not found: {path}")
    logging.info(f"Deleted record {path} for {owner}")
    if s3_enabled():
        await delete_object(await get_bucket(), object_key(owner, path))
        logging.info(f"Deleted object {object_key(owner, path)}")
    else:
        logging.warning(f"Object storage not configured, not deleting object for {path}")
