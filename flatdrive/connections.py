import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from elasticsearch import AsyncElasticsearch
from types_aiobotocore_s3.client import S3Client

from flatdrive.config import StoreOptions, get_settings
from flatdrive.store import ElasticRecordStore, MemoryRecordStore, RecordStore


class DriveConnections:
    elastic: AsyncElasticsearch | None
    s3_client: S3Client | None
    s3_context_stack: AsyncExitStack | None
    store: RecordStore | None

    def __init__(
        self,
        elastic: AsyncElasticsearch | None = None,
        s3_client: S3Client | None = None,
        s3_context_stack: AsyncExitStack | None = None,
        store: RecordStore | None = None,
    ):
        self.elastic = elastic
        self.s3_client = s3_client
        self.s3_context_stack = s3_context_stack
        self.store = store


CONNECTIONS = DriveConnections()


@asynccontextmanager
async def drive_connections() -> AsyncGenerator[None, None]:
    """
    The main context manager to start and stop connections used by flatdrive.
    Always use this once (and only once):
        - For running the server: in the FastAPI lifespan
        - For tests: in the setup fixture in the tests
        - For CLI commands: within the CLI command
    """
    try:
        await _start_s3()
        await _start_store()
        yield
    finally:
        await _close_s3()
        await _close_store()


def es() -> AsyncElasticsearch:
    """
    Use this function to access the elasticsearch connection.
    """
    if CONNECTIONS.elastic is None:
        raise ConnectionError("Elasticsearch connection not initialized")
    return CONNECTIONS.elastic


def s3() -> S3Client:
    """
    Use this function to access the s3 client.
    """
    if CONNECTIONS.s3_client is None:
        raise ConnectionError("S3 client not started")
    return CONNECTIONS.s3_client


def record_store() -> RecordStore:
    """
    Use this function to access the configured record store.
    """
    if CONNECTIONS.store is None:
        raise ConnectionError("Record store not initialized")
    return CONNECTIONS.store


def s3_enabled() -> bool:
    settings = get_settings()
    return all([settings.s3_access_key, settings.s3_secret_key])


async def _start_store() -> None:
    settings = get_settings()
    if settings.record_store == StoreOptions.memory:
        logging.warning("Using in-memory record store, records will not be persisted")
        CONNECTIONS.store = MemoryRecordStore()
        return
    await _start_elastic()
    store = ElasticRecordStore(es(), settings.record_index)
    await store.create_index()
    CONNECTIONS.store = store


async def _close_store() -> None:
    CONNECTIONS.store = None
    await _close_elastic()


async def _start_elastic():
    """
    Check whether we can connect with elastic
    """
    settings = get_settings()
    logging.debug(
        f"Connecting with elasticsearch at {settings.elastic_host}, password? {'yes' if settings.elastic_password else 'no'} "
    )

    if settings.elastic_password:
        CONNECTIONS.elastic = AsyncElasticsearch(
            settings.elastic_host,
            basic_auth=("elastic", settings.elastic_password),
            verify_certs=bool(settings.elastic_verify_ssl),
        )
    else:
        CONNECTIONS.elastic = AsyncElasticsearch(settings.elastic_host or None)

    if not await CONNECTIONS.elastic.ping():
        raise ConnectionError(f"Cannot connect to elasticsearch server {settings.elastic_host}")


async def _close_elastic() -> None:
    if CONNECTIONS.elastic is not None:
        await CONNECTIONS.elastic.close()
        CONNECTIONS.elastic = None


async def _start_s3() -> None:
    if s3_enabled() is False:
        logging.info("No S3 credentials configured, upload and download urls are disabled")
        return None

    settings = get_settings()

    session = get_session()
    client = session.create_client(
        service_name="s3",
        endpoint_url=settings.s3_host or None,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=AioConfig(signature_version="s3v4"),
    )

    CONNECTIONS.s3_context_stack = AsyncExitStack()
    CONNECTIONS.s3_client = await CONNECTIONS.s3_context_stack.enter_async_context(client)


async def _close_s3():
    if CONNECTIONS.s3_context_stack is not None:
        await CONNECTIONS.s3_context_stack.aclose()
        CONNECTIONS.s3_client = None
        CONNECTIONS.s3_context_stack = None
