"""API Endpoints for server information and configuration."""

from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter
from pydantic import BaseModel, Field

from flatdrive.config import get_settings, validate_settings
from flatdrive.connections import s3_enabled

app_info = APIRouter(tags=["informational"])


class ConfigResponse(BaseModel):
    """Response for the server configuration."""

    jwks_url: str | None = Field(None, description="The endpoint publishing the keys tokens are signed with.")
    resource: str = Field(..., description="The host this instance is served at.")
    record_store: str = Field(..., description="Where file and folder records are stored.")
    warnings: list[str] = Field(..., description="A list of configuration warnings.")
    s3_enabled: bool = Field(..., description="Whether S3 storage is configured.")
    events_enabled: bool = Field(..., description="Whether bucket notifications are accepted.")
    api_version: str = Field(..., description="The version of the flatdrive API.")


def api_version() -> str:
    try:
        return version("flatdrive")
    except PackageNotFoundError:
        return "unknown"


@app_info.get("/config")
def get_config() -> ConfigResponse:
    """Get the configuration of this flatdrive instance."""
    settings = get_settings()
    return ConfigResponse(
        jwks_url=settings.jwks_source,
        resource=settings.host,
        record_store=settings.record_store.value,
        warnings=[w for w in [validate_settings()] if w],
        s3_enabled=s3_enabled(),
        events_enabled=bool(settings.events_token),
        api_version=api_version(),
    )
