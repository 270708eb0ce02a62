"""
Cache of the published signing keys (JWKS).

The cache starts empty, is filled on the first token verification and is only ever replaced as a whole:
a fetch installs a complete new KeyRing, a failed fetch clears it. There is no time based expiry,
key rotation is detected by the token verifier when it meets an unknown key id.
"""

import logging
from typing import Awaitable, Callable, Mapping

import httpx
from pydantic import BaseModel, ConfigDict

from flatdrive.errors import KeyRingUnavailable


class KeyRing(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    keys: Mapping[str, dict]

    def get(self, kid: str) -> dict | None:
        return self.keys.get(kid)


KeyRingFetcher = Callable[[], Awaitable[KeyRing]]


def parse_jwks(source: str, jwks: object) -> KeyRing:
    """Build a KeyRing from a JWKS document. Keys without a kid cannot be selected and are left out."""
    if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
        raise KeyRingUnavailable(f"Key set from {source} is invalid or missing keys")
    keys = {k["kid"]: k for k in jwks["keys"] if isinstance(k, dict) and isinstance(k.get("kid"), str)}
    return KeyRing(source=source, keys=keys)


async def fetch_jwks(url: str, timeout: float = 5.0) -> KeyRing:
    """
    GET the JWKS document at url

    raises KeyRingUnavailable on network errors, timeouts, error statuses and invalid documents
    """
    logging.info(f"Fetching signing keys from {url}")
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            r = await client.get(url)
            r.raise_for_status()
            jwks = r.json()
    except httpx.HTTPStatusError as e:
        raise KeyRingUnavailable(f"Fetching signing keys from {url} returned {e.response.status_code}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise KeyRingUnavailable(f"Could not fetch signing keys from {url}: {e}") from e
    return parse_jwks(url, jwks)


class KeyRingCache:
    """
    Holds the current KeyRing (or nothing). Concurrent requests may fetch at the same time; each of them
    installs a complete KeyRing, so readers see either the old or the new value.
    """

    def __init__(self, fetcher: KeyRingFetcher):
        self._fetcher = fetcher
        self._current: KeyRing | None = None

    @property
    def current(self) -> KeyRing | None:
        return self._current

    def replace(self, keyring: KeyRing | None) -> None:
        self._current = keyring

    def clear(self) -> None:
        self.replace(None)

    async def get(self) -> KeyRing:
        """Return the cached KeyRing, fetching it if the cache is empty"""
        keyring = self._current
        if keyring is None:
            keyring = await self.refresh()
        return keyring

    async def refresh(self) -> KeyRing:
        """Fetch the keys and replace the cache. On failure the cache is cleared and KeyRingUnavailable raised."""
        try:
            keyring = await self._fetcher()
        except KeyRingUnavailable:
            logging.exception("Fetching signing keys failed")
            self.clear()
            raise
        except Exception as e:
            logging.exception("Fetching signing keys failed")
            self.clear()
            raise KeyRingUnavailable(str(e)) from e
        self.replace(keyring)
        logging.info(f"Cached {len(keyring.keys)} signing keys from {keyring.source}")
        return keyring


def jwks_fetcher(url: str | None, timeout: float = 5.0) -> KeyRingFetcher:
    async def fetch() -> KeyRing:
        if not url:
            raise KeyRingUnavailable("No key-publishing endpoint configured")
        return await fetch_jwks(url, timeout=timeout)

    return fetch
