"""
flatdrive Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the FLATDRIVE_ENV_FILE environment variable
"""

import functools
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "flatdrive_"


class StoreOptions(str, Enum):
    #: records are kept in an elasticsearch index
    elastic = "elastic"

    #: records are kept in process memory (development and tests only)
    memory = "memory"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")
    host: Annotated[
        str,
        Field(
            description="Host this instance is served at",
        ),
    ] = "http://localhost:5000"

    record_store: Annotated[StoreOptions, Field(description="Where are file and folder records stored?")] = (
        StoreOptions.elastic
    )

    elastic_password: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch password. This the password for the 'elastic' user when Elastic xpack security is enabled"
            )
        ),
    ] = None

    elastic_host: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch host. "
                "Default: https://localhost:9200 if elastic_password is set, http://localhost:9200 otherwise"
            )
        ),
    ] = None

    elastic_verify_ssl: Annotated[
        bool | None,
        Field(
            description=(
                "Elasticsearch verify SSL (only used if elastic_password is set). Default: True unless host is localhost)"
            ),
        ),
    ] = None

    record_index: Annotated[
        str,
        Field(
            description="Elasticsearch index to store file and folder records in",
        ),
    ] = "flatdrive_records"

    jwks_url: Annotated[
        str | None,
        Field(
            description="URL of the published signing keys (JWKS). Default: derived from the Cognito user pool",
        ),
    ] = None

    cognito_region: Annotated[str | None, Field(description="AWS region of the Cognito user pool")] = None
    cognito_user_pool_id: Annotated[str | None, Field(description="Cognito user pool that issues the tokens")] = None

    jwks_timeout: Annotated[
        float,
        Field(gt=0, description="Timeout in seconds for fetching the signing keys"),
    ] = 5.0

    token_leeway: Annotated[
        int,
        Field(ge=0, description="Clock skew in seconds allowed when checking token expiry"),
    ] = 0

    s3_host: Annotated[str | None, Field(description="S3 endpoint, leave empty for AWS")] = None
    s3_region: Annotated[str | None, Field()] = None
    s3_access_key: Annotated[str | None, Field()] = None
    s3_secret_key: Annotated[str | None, Field()] = None
    s3_bucket: Annotated[str, Field(description="Bucket holding the uploaded files")] = "flatdrive"

    upload_url_expiration: Annotated[
        int,
        Field(gt=0, description="Seconds a presigned upload url stays valid"),
    ] = 300
    download_url_expiration: Annotated[
        int,
        Field(gt=0, description="Seconds a presigned download url stays valid"),
    ] = 300

    events_token: Annotated[
        str | None,
        Field(
            description="Shared secret expected in the X-Events-Token header of bucket notifications",
        ),
    ] = None

    @model_validator(mode="after")
    def set_ssl(self: Any) -> "Settings":
        if not self.elastic_host:
            self.elastic_host = ("https" if self.elastic_password else "http") + "://localhost:9200"
        if not self.elastic_verify_ssl:
            self.elastic_verify_ssl = self.elastic_host not in {
                "http://localhost:9200",
                "https://localhost:9200",
            }
        return self

    @property
    def jwks_source(self) -> str | None:
        """The endpoint publishing the signing keys, or None if it cannot be determined"""
        if self.jwks_url:
            return self.jwks_url
        if self.cognito_region and self.cognito_user_pool_id:
            return (
                f"https://cognito-idp.{self.cognito_region}.amazonaws.com/"
                f"{self.cognito_user_pool_id}/.well-known/jwks.json"
            )
        return None

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Read once to find the env_file, then load it without overriding real environment variables
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings() -> str | None:
    settings = get_settings()
    if settings.jwks_source is None:
        return (
            "No signing keys configured: set jwks_url, or cognito_region and cognito_user_pool_id."
            " All authenticated requests will be rejected"
        )
    if settings.record_store == StoreOptions.memory:
        return "Records are stored in memory and will be lost when the server stops"


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
