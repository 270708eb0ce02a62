from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Self

from flatdrive.paths import record_name


class Record(BaseModel):
    """One entry in the flat store, representing a file or a folder. Keyed by (owner, path)."""

    owner: str = Field(description="Identity of the user owning this record")
    path: str = Field(description="Path relative to the owner's root. Folder paths end with a slash")
    name: str = Field(description="Last non-empty path segment")
    is_folder: bool = False
    size: Annotated[int, Field(ge=0)] = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def validate_folder(self) -> Self:
        if self.is_folder != self.path.endswith("/"):
            kind = "Folder" if self.is_folder else "File"
            raise ValueError(f"{kind} record has an invalid path: {self.path!r}")
        if self.is_folder and self.size != 0:
            raise ValueError("Folder records have size 0")
        if self.name != record_name(self.path):
            raise ValueError(f"Record name {self.name!r} does not match path {self.path!r}")
        return self


####################### REQUEST AND RESPONSE BODIES #########################


class CreateFolderBody(BaseModel):
    folder_path: str = Field(description="Path of the new folder, e.g. documents/reports")


class UploadUrlBody(BaseModel):
    filename: str = Field(description="Name of the file to upload")
    content_type: str = Field(description="Content type the upload will be sent with")
    path_prefix: str | None = Field(default=None, description="Folder to upload the file in, root if empty")


class UploadUrlResponse(BaseModel):
    upload_url: str = Field(description="Presigned URL to PUT the file to")
    key: str = Field(description="Path of the file relative to the owner's root")
    object_key: str = Field(description="Full key of the object in the bucket")


class DownloadUrlResponse(BaseModel):
    download_url: str = Field(description="Presigned URL to GET the file from")


class IngestResult(BaseModel):
    created: int = Field(description="Number of file records written")
    skipped: int = Field(description="Number of notification records that were ignored or failed")
