"""
Interact with the S3-compatible bucket (e.g., AWS S3, MinIO) holding the file contents.

Objects are stored under <owner>/<path>, so the bucket mirrors the file records in the record store.
"""

import async_lru
from botocore.exceptions import ClientError

from flatdrive.config import get_settings
from flatdrive.connections import s3


def object_key(owner: str, path: str) -> str:
    return f"{owner}/{path}"


def split_object_key(key: str) -> tuple[str, str]:
    """Split an object key into owner and path. Raises ValueError if the key has no owner part."""
    owner, sep, path = key.partition("/")
    if not sep or not owner or not path:
        raise ValueError(f"Invalid object key {key!r}, expected <owner>/<path>")
    return owner, path


async def get_bucket() -> str:
    return await _create_or_get_bucket_name(get_settings().s3_bucket)


@async_lru.alru_cache(maxsize=100)
async def _create_or_get_bucket_name(bucket: str) -> str:
    try:
        await s3().head_bucket(Bucket=bucket)
    except ClientError as e:
        error = e.response.get("Error", {})
        if error.get("Code") in ("404", "NoSuchBucket"):
            await s3().create_bucket(Bucket=bucket)
        else:
            raise
    return bucket


async def presigned_put(bucket: str, key: str, content_type: str, seconds_valid: int) -> str:
    params = {"Bucket": bucket, "Key": key, "ContentType": content_type}
    return await s3().generate_presigned_url("put_object", Params=params, ExpiresIn=seconds_valid)


async def presigned_get(bucket: str, key: str, seconds_valid: int, filename: str | None = None) -> str:
    params = {"Bucket": bucket, "Key": key}
    if filename:
        params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
    return await s3().generate_presigned_url("get_object", Params=params, ExpiresIn=seconds_valid)


async def delete_object(bucket: str, key: str) -> None:
    await s3().delete_object(Bucket=bucket, Key=key)
