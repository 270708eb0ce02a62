import pytest
from httpx import ASGITransport, AsyncClient

from flatdrive import api
from flatdrive.auth import get_token_verifier
from flatdrive.config import StoreOptions, get_settings
from flatdrive.connections import drive_connections, record_store
from tests.tools import JWKS_URL, SigningKey, jwks


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session", autouse=True)
def test_settings():
    settings = get_settings()
    settings.record_store = StoreOptions.memory
    settings.jwks_url = JWKS_URL
    settings.s3_access_key = None
    settings.s3_secret_key = None
    settings.events_token = None
    get_token_verifier.cache_clear()
    yield settings


@pytest.fixture(scope="session")
def signing_key() -> SigningKey:
    return SigningKey("key-2024")


@pytest.fixture(scope="session")
def rotated_key() -> SigningKey:
    return SigningKey("key-2025")


@pytest.fixture(scope="session")
def foreign_key() -> SigningKey:
    """A key the identity provider never published"""
    return SigningKey("key-2024")


@pytest.fixture(autouse=True)
def empty_keyring():
    """Every test starts without cached signing keys"""
    get_token_verifier().keyring.clear()
    yield
    get_token_verifier().keyring.clear()


@pytest.fixture()
def mock_jwks(httpx_mock, signing_key):
    httpx_mock.add_response(url=JWKS_URL, method="GET", json=jwks(signing_key), is_optional=True, is_reusable=True)


@pytest.fixture()
async def client(mock_jwks):
    async with drive_connections():
        async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test") as client:
            yield client


@pytest.fixture()
def store(client):
    """The record store behind the client"""
    return record_store()


@pytest.fixture()
def owner() -> str:
    return "0b5c2f9e-owner-1"


@pytest.fixture()
def other_owner() -> str:
    return "77ad01c3-owner-2"


@pytest.fixture()
def token(signing_key, owner) -> str:
    return signing_key.user_token(owner)


@pytest.fixture()
def other_token(signing_key, other_owner) -> str:
    return signing_key.user_token(other_owner)
