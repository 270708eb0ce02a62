"""API Endpoints for listing and managing files and folders."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from flatdrive import drive
from flatdrive.api.auth import authenticated_owner, verified_events_source
from flatdrive.connections import record_store
from flatdrive.errors import RecordExists, RecordNotFound
from flatdrive.ingest import ingest_object_events
from flatdrive.models import (
    CreateFolderBody,
    DownloadUrlResponse,
    IngestResult,
    Record,
    UploadUrlBody,
    UploadUrlResponse,
)

app_files = APIRouter(prefix="", tags=["files"])


@app_files.get("/files")
async def list_files(
    path: str | None = Query(None, description="Folder to list, the root if empty"),
    owner: str = Depends(authenticated_owner),
) -> list[Record]:
    """
    List the files and folders directly inside a folder. Folders are listed first, then files, by name.
    """
    return await drive.list_folder(record_store(), owner, path)


@app_files.post("/folders", status_code=status.HTTP_201_CREATED)
async def create_folder(body: CreateFolderBody, owner: str = Depends(authenticated_owner)) -> Record:
    """
    Create a folder. The path is normalized, so /a//b/ and a/b create the same folder a/b/.
    """
    try:
        return await drive.create_folder(record_store(), owner, body.folder_path)
    except RecordExists as e:
        raise HTTPException(status_code=409, detail=str(e))


@app_files.post("/files/upload-url")
async def create_upload_url(body: UploadUrlBody, owner: str = Depends(authenticated_owner)) -> UploadUrlResponse:
    """
    Get a presigned URL to upload a file to. The file is listed as soon as the bucket notifies us of the upload.
    """
    return await drive.create_upload_url(owner, body.filename, body.content_type, body.path_prefix)


@app_files.get("/files/download/{key:path}")
async def create_download_url(key: str, owner: str = Depends(authenticated_owner)) -> DownloadUrlResponse:
    """
    Get a presigned URL to download a file from.
    """
    try:
        return await drive.create_download_url(record_store(), owner, key)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@app_files.delete("/files/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(key: str, owner: str = Depends(authenticated_owner)):
    """
    Delete a file (its record and its contents). Folders cannot be deleted.
    """
    try:
        await drive.delete_file(record_store(), owner, key)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app_files.post("/events/object-created", dependencies=[Depends(verified_events_source)])
async def object_created(payload: dict[str, Any] = Body(...)) -> IngestResult:
    """
    Receive object-created notifications from the bucket and register the uploaded files.
    """
    return await ingest_object_events(record_store(), payload)
