"""Helper methods for authentication."""

import logging
import secrets

from fastapi import Header, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from flatdrive.auth import get_token_verifier
from flatdrive.config import get_settings
from flatdrive.errors import AuthError, KeyRingUnavailable, MissingCredential

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="Bearer token")


async def authenticated_owner(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str:
    """
    Verifies the bearer token and returns the caller identity, which owns all records touched by the request.
    """
    token = credentials.credentials if credentials is not None else None
    try:
        return await get_token_verifier().verify(token)
    except MissingCredential as e:
        raise HTTPException(status_code=401, detail="Unauthorized: " + str(e)) from e
    except KeyRingUnavailable as e:
        logging.exception("Cannot verify token: " + str(e))
        raise HTTPException(status_code=503, detail="Signing keys unavailable, please try again later") from e
    except AuthError as e:
        logging.warning(f"Token verification failed ({type(e).__name__}): {e}")
        raise HTTPException(status_code=401, detail="Invalid token: " + str(e)) from e


async def verified_events_source(x_events_token: str | None = Header(None)) -> None:
    """
    Bucket notifications need to carry the configured shared secret.
    Without an events_token the ingestion endpoint is disabled.
    """
    expected = get_settings().events_token
    if not expected:
        raise HTTPException(status_code=503, detail="Object events are disabled: no events token configured")
    if x_events_token is None or not secrets.compare_digest(x_events_token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid events token")
