"""
Verification of bearer tokens issued by the identity provider.

Verification is done in two explicit steps: the header is read without checking the signature,
only to select the key id, and then the full token is verified against the selected key.
Nothing from the unverified header is used for authorization.
"""

import functools
import json
import logging
from typing import NamedTuple

from authlib.common.encoding import to_bytes, urlsafe_b64decode
from authlib.common.errors import AuthlibBaseError
from authlib.jose import JsonWebKey, JsonWebToken, JWTClaims

from flatdrive.auth.keyring import KeyRingCache, jwks_fetcher
from flatdrive.config import get_settings
from flatdrive.errors import (
    InvalidToken,
    MalformedToken,
    MissingCredential,
    MissingSubject,
    UnknownSigningKey,
)

ALGORITHMS = ["RS256"]


class TokenHeader(NamedTuple):
    kid: str
    alg: str | None


def read_header(token: str | None) -> TokenHeader:
    """
    Decode the (unverified!) header of a compact JWS to find out which key signed it

    raises MissingCredential if there is no token and MalformedToken if it cannot be decoded
    """
    if not token:
        raise MissingCredential("Token is required")
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedToken("Invalid token format: expected header.payload.signature")
    try:
        header = json.loads(urlsafe_b64decode(to_bytes(parts[0])))
    except (ValueError, TypeError) as e:
        raise MalformedToken(f"Invalid token header: {e}") from e
    if not isinstance(header, dict):
        raise MalformedToken("Invalid token header: not an object")
    kid = header.get("kid")
    if not isinstance(kid, str) or not kid:
        raise MalformedToken("Invalid token header: missing key id")
    return TokenHeader(kid=kid, alg=header.get("alg"))


class TokenVerifier:
    def __init__(self, keyring: KeyRingCache, leeway: int = 0):
        self.keyring = keyring
        self.leeway = leeway
        self._jwt = JsonWebToken(ALGORITHMS)

    async def select_key(self, header: TokenHeader):
        """
        Find the key for this header's kid. If it is not in the cached keys, refetch them exactly once
        to pick up rotated keys.
        """
        keyring = await self.keyring.get()
        jwk = keyring.get(header.kid)
        if jwk is None:
            logging.warning(f"Signing key {header.kid} not found in cached keys, refetching")
            keyring = await self.keyring.refresh()
            jwk = keyring.get(header.kid)
            if jwk is None:
                raise UnknownSigningKey(f"Signing key {header.kid} not found, even after refreshing keys")
        try:
            return JsonWebKey.import_key(jwk)
        except (AuthlibBaseError, ValueError) as e:
            raise InvalidToken(f"Signing key {header.kid} cannot be used: {e}") from e

    def verify_signature(self, token: str, key) -> JWTClaims:
        """Verify the signature and expiry of the token with the given key, returning the claims"""
        options = {"exp": {"essential": True}}
        try:
            claims = self._jwt.decode(token, key, claims_options=options)
            claims.validate(leeway=self.leeway)
        except (AuthlibBaseError, ValueError) as e:
            raise InvalidToken(f"Token verification failed: {e}") from e
        return claims

    async def verify(self, token: str | None) -> str:
        """
        Verifies the given token and returns the subject (the caller identity)

        raises a subclass of AuthError if the token could not be validated
        """
        header = read_header(token)
        assert token is not None
        key = await self.select_key(header)
        claims = self.verify_signature(token, key)
        subject = claims.get("sub")
        if not subject or not isinstance(subject, str):
            raise MissingSubject("Token payload missing sub claim")
        return subject


@functools.lru_cache()
def get_token_verifier() -> TokenVerifier:
    """The process-wide verifier, sharing one key cache between all requests"""
    settings = get_settings()
    fetcher = jwks_fetcher(settings.jwks_source, timeout=settings.jwks_timeout)
    return TokenVerifier(KeyRingCache(fetcher), leeway=settings.token_leeway)
