"""
Failure taxonomy for Link Platform.

Every failure the core can report belongs to exactly one `ErrorKind`.
Callers (the HTTP adapter, scripts, tests) dispatch on `exc.kind` rather
than on the class, so adding a transport never requires new subclasses.

Kinds:
    NOT_FOUND        the short code or id does not exist
    GONE             the link exists but is unusable (invalidated or expired)
    UNAUTHORIZED     the link requires a secret that was missing or wrong
    ALREADY_INVALID  invalidate called on a link that is already invalid

None of these are transient: every operation is deterministic, so nothing
is retried.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    GONE = "gone"
    UNAUTHORIZED = "unauthorized"
    ALREADY_INVALID = "already_invalid"


class LinkError(Exception):
    """Base class for all link lifecycle failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LinkNotFoundError(LinkError):
    kind = ErrorKind.NOT_FOUND

    @classmethod
    def for_code(cls, short_code: str) -> "LinkNotFoundError":
        return cls(f'Link with short code "{short_code}" not found.')

    @classmethod
    def for_id(cls, link_id: int) -> "LinkNotFoundError":
        return cls(f'Link with id "{link_id}" not found.')


class LinkGoneError(LinkError):
    """Link exists but can no longer be resolved.

    `reason` is either "invalidated" or "expired".
    """

    kind = ErrorKind.GONE

    INVALIDATED = "invalidated"
    EXPIRED = "expired"

    def __init__(self, short_code: str, reason: str):
        if reason == self.INVALIDATED:
            message = f'Link with short code "{short_code}" has been invalidated and cannot be resolved.'
        elif reason == self.EXPIRED:
            message = f'Link with short code "{short_code}" has expired and cannot be resolved.'
        else:
            raise ValueError(f"Unknown gone reason: {reason!r}")
        super().__init__(message)
        self.short_code = short_code
        self.reason = reason


class LinkUnauthorizedError(LinkError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, short_code: str, supplied: Optional[str] = None):
        # The supplied secret is never echoed back.
        detail = "missing" if supplied is None else "incorrect"
        super().__init__(f'Secret {detail} for link with short code "{short_code}".')
        self.short_code = short_code


class LinkAlreadyInvalidError(LinkError):
    kind = ErrorKind.ALREADY_INVALID

    def __init__(self, short_code: str):
        super().__init__(f'Link with short code "{short_code}" is already invalidated.')
        self.short_code = short_code
