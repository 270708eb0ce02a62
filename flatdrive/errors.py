"""
Exceptions raised by flatdrive.

Every error is terminal for the request it occurs in. The API layer maps them to HTTP status codes
(see flatdrive.api), code outside the API lets them propagate.
"""


class ValidationError(ValueError):
    """The input has the wrong shape, e.g. an empty folder name or a path containing .."""


class RecordNotFound(KeyError):
    """There is no record for this (owner, path)"""


class RecordExists(Exception):
    """A record already exists for this (owner, path)"""


class AuthError(Exception):
    """Base class for everything that prevents a bearer token from yielding a caller identity"""


class MissingCredential(AuthError):
    pass


class MalformedToken(AuthError):
    pass


class KeyRingUnavailable(AuthError):
    """The signing keys could not be fetched from the key-publishing endpoint"""


class UnknownSigningKey(AuthError):
    """The token was signed with a key that is not published, even after refreshing the keys"""


class InvalidToken(AuthError):
    """Signature, algorithm or expiry check failed"""


class MissingSubject(AuthError):
    pass
