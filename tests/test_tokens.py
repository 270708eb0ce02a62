import httpx
import pytest

from flatdrive.auth.keyring import KeyRing, KeyRingCache, fetch_jwks, parse_jwks
from flatdrive.auth.tokens import TokenVerifier, read_header
from flatdrive.errors import (
    InvalidToken,
    KeyRingUnavailable,
    MalformedToken,
    MissingCredential,
    MissingSubject,
    UnknownSigningKey,
)
from tests.tools import JWKS_URL, create_token, jwks, now

pytestmark = pytest.mark.anyio


class KeySource:
    """Stands in for the key-publishing endpoint, counting how often it is asked for keys"""

    def __init__(self, *keys):
        self.keys = list(keys)
        self.calls = 0
        self.fail = False

    async def __call__(self) -> KeyRing:
        self.calls += 1
        if self.fail:
            raise KeyRingUnavailable("endpoint down")
        return parse_jwks("test", jwks(*self.keys))


def verifier(source: KeySource) -> TokenVerifier:
    return TokenVerifier(KeyRingCache(source))


async def test_missing_token(signing_key):
    source = KeySource(signing_key)
    for token in [None, ""]:
        with pytest.raises(MissingCredential):
            await verifier(source).verify(token)
    assert source.calls == 0


async def test_malformed_token(signing_key):
    source = KeySource(signing_key)
    no_kid = create_token(signing_key.key.as_pem(is_private=True), kid=None, sub="x", exp=now() + 100)
    for token in ["not-a-token", "a.b", "a.b.c.d", "!!!.payload.signature", "bnVsbA.e30.sig", no_kid]:
        with pytest.raises(MalformedToken):
            await verifier(source).verify(token)
    assert source.calls == 0


async def test_read_header(signing_key):
    header = read_header(signing_key.user_token("someone"))
    assert header.kid == signing_key.kid
    assert header.alg == "RS256"


async def test_verify(signing_key):
    source = KeySource(signing_key)
    v = verifier(source)
    assert await v.verify(signing_key.user_token("user-1")) == "user-1"
    assert source.calls == 1
    # keys are cached
    assert await v.verify(signing_key.user_token("user-2")) == "user-2"
    assert source.calls == 1


async def test_rotated_key(signing_key, rotated_key):
    source = KeySource(signing_key, rotated_key)
    cache = KeyRingCache(source)
    cache.replace(parse_jwks("test", jwks(signing_key)))
    v = TokenVerifier(cache)

    assert await v.verify(rotated_key.user_token("user-1")) == "user-1"
    assert source.calls == 1
    assert rotated_key.kid in cache.current.keys


async def test_unknown_key(signing_key, rotated_key):
    source = KeySource(signing_key)
    cache = KeyRingCache(source)
    cache.replace(parse_jwks("test", jwks(signing_key)))
    v = TokenVerifier(cache)

    with pytest.raises(UnknownSigningKey):
        await v.verify(rotated_key.user_token("user-1"))
    assert source.calls == 1
    # the key still works for tokens signed with a published key
    assert await v.verify(signing_key.user_token("user-1")) == "user-1"
    assert source.calls == 1


async def test_unknown_key_empty_cache(signing_key, rotated_key):
    # initial fetch plus exactly one refetch
    source = KeySource(signing_key)
    with pytest.raises(UnknownSigningKey):
        await verifier(source).verify(rotated_key.user_token("user-1"))
    assert source.calls == 2


async def test_keyring_unavailable(signing_key):
    source = KeySource(signing_key)
    source.fail = True
    cache = KeyRingCache(source)
    with pytest.raises(KeyRingUnavailable):
        await TokenVerifier(cache).verify(signing_key.user_token("user-1"))
    assert cache.current is None

    # a failed refetch clears the cache
    source.fail = False
    await cache.refresh()
    assert cache.current is not None
    source.fail = True
    with pytest.raises(KeyRingUnavailable):
        await cache.refresh()
    assert cache.current is None


async def test_keyring_fetcher_error(signing_key):
    async def broken() -> KeyRing:
        raise RuntimeError("boom")

    cache = KeyRingCache(broken)
    with pytest.raises(KeyRingUnavailable):
        await cache.get()
    assert cache.current is None


async def test_invalid_tokens(signing_key, foreign_key):
    v = verifier(KeySource(signing_key))
    # Expired tokens don't work
    with pytest.raises(InvalidToken):
        await v.verify(signing_key.user_token("user-1", valid_for=-1000))
    # Tokens need an expiry
    with pytest.raises(InvalidToken):
        await v.verify(signing_key.token(sub="user-1"))
    # Signed with another key that uses a published kid
    with pytest.raises(InvalidToken):
        await v.verify(foreign_key.user_token("user-1"))
    # Only RS256 is accepted
    hs256 = create_token("some-secret", kid=signing_key.kid, alg="HS256", sub="user-1", exp=now() + 100)
    with pytest.raises(InvalidToken):
        await v.verify(hs256)


async def test_tampered_payload(signing_key):
    header, payload, signature = signing_key.user_token("user-1").split(".")
    other_payload = signing_key.user_token("admin").split(".")[1]
    with pytest.raises(InvalidToken):
        await verifier(KeySource(signing_key)).verify(".".join([header, other_payload, signature[::-1]]))
    with pytest.raises(InvalidToken):
        await verifier(KeySource(signing_key)).verify(".".join([header, other_payload, signature]))


async def test_missing_subject(signing_key):
    v = verifier(KeySource(signing_key))
    with pytest.raises(MissingSubject):
        await v.verify(signing_key.token(exp=now() + 100))
    with pytest.raises(MissingSubject):
        await v.verify(signing_key.token(sub="", exp=now() + 100))


def test_parse_jwks(signing_key):
    keyring = parse_jwks("http://idp", {"keys": [signing_key.public_jwk, {"kty": "RSA"}, "garbage"]})
    assert set(keyring.keys) == {signing_key.kid}
    assert keyring.source == "http://idp"
    for invalid in [None, [], {}, {"keys": "nope"}]:
        with pytest.raises(KeyRingUnavailable):
            parse_jwks("http://idp", invalid)


async def test_fetch_jwks(httpx_mock, signing_key):
    httpx_mock.add_response(url=JWKS_URL, json=jwks(signing_key))
    keyring = await fetch_jwks(JWKS_URL)
    assert keyring.source == JWKS_URL
    assert keyring.get(signing_key.kid)["n"] == signing_key.public_jwk["n"]


async def test_fetch_jwks_errors(httpx_mock):
    httpx_mock.add_response(url=JWKS_URL, status_code=500)
    with pytest.raises(KeyRingUnavailable):
        await fetch_jwks(JWKS_URL)

    httpx_mock.add_response(url=JWKS_URL, text="<html>not json</html>")
    with pytest.raises(KeyRingUnavailable):
        await fetch_jwks(JWKS_URL)

    httpx_mock.add_response(url=JWKS_URL, json={"no": "keys"})
    with pytest.raises(KeyRingUnavailable):
        await fetch_jwks(JWKS_URL)

    httpx_mock.add_exception(httpx.ReadTimeout("Timed out"), url=JWKS_URL)
    with pytest.raises(KeyRingUnavailable):
        await fetch_jwks(JWKS_URL, timeout=0.1)
