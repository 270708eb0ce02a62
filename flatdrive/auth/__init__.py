"""Authentication of API callers against the published signing keys"""

from flatdrive.auth.keyring import KeyRing, KeyRingCache, fetch_jwks, jwks_fetcher
from flatdrive.auth.tokens import TokenVerifier, get_token_verifier, read_header

__all__ = [
    "KeyRing",
    "KeyRingCache",
    "TokenVerifier",
    "fetch_jwks",
    "get_token_verifier",
    "jwks_fetcher",
    "read_header",
]
