"""
LinkManager module for Link Platform.

Responsibilities:
    - Create links with a unique random short code
    - Resolve a short code to its target while counting the access
    - Invalidate links (one-way, not idempotent)
    - Report per-link statistics without leaking the secret

Design notes:
    - Storage is an injected dependency; every mutation goes through the
      backend's atomic primitives (`insert_link`, `locked`), so the same rules
      hold for the in-memory store and for Postgres.
    - Code generation retries in a loop until the backend accepts the code;
      the backend re-checks uniqueness inside the insert critical section.
    - Resolve checks run in a fixed order: invalidated, expired, secret.
      A link that is both gone and protected reports "gone" first.
    - Expiration is derived from `expires_at` and the injected clock at call
      time; it is never stored as a flag.
    - The clock is injectable (a zero-arg callable returning an aware
      datetime) so tests can pin "now" exactly on the expiry boundary.
"""

import hmac
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from link_platform.errors import (
    LinkAlreadyInvalidError,
    LinkGoneError,
    LinkNotFoundError,
    LinkUnauthorizedError,
)
from link_platform.models import Link, LinkStats
from link_platform.storage.base import BaseStorage

from .strategies import BaseStrategy, _safe_len, get_strategy_from_config

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons with the clock never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _secrets_match(expected: str, supplied: Optional[str]) -> bool:
    if supplied is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class LinkManager:
    """
    Owns the link lifecycle: create, resolve_and_track, invalidate, stats.

    One instance is constructed at process start and injected into the
    transport layer; tests build a fresh one per case.
    """

    def __init__(
        self,
        storage: BaseStorage,
        code_strategy: Optional[BaseStrategy] = None,
        code_length: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize LinkManager with a storage backend.

        Args:
            storage (BaseStorage): Backend storage instance.
            code_strategy (Optional[BaseStrategy]): Code generator; resolved from
                settings.CODE_STRATEGY when omitted.
            code_length (Optional[int]): Short-code length; settings.CODE_LENGTH
                (default 6) when omitted.
            clock (Optional[Clock]): Source of "now"; UTC wall clock by default.
        """
        self.storage = storage
        self.code_strategy = code_strategy or get_strategy_from_config()
        self.code_length = _safe_len(code_length)
        self.clock = clock or utc_now

    def _now(self) -> datetime:
        return _as_utc(self.clock())

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create(
        self,
        target: str,
        secret: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Link:
        """
        Create a link for `target`.

        Rules:
            - `target` is stored as-is; only the empty string is rejected.
            - An empty secret means "unprotected".
            - Candidate codes are drawn until the backend accepts one. The
              backend checks uniqueness under the same lock that inserts, so
              two concurrent creates never commit the same code.

        Returns:
            Link: The stored record, secret included. Callers decide what to expose.

        Raises:
            ValueError: If `target` is empty.
        """
        if not target:
            raise ValueError("Target URL must not be empty")

        secret = secret or None
        if expires_at is not None:
            expires_at = _as_utc(expires_at)

        created_at = self._now()
        attempts = 0
        while True:
            attempts += 1
            code = self.code_strategy.generate(length=self.code_length)
            link = self.storage.insert_link(
                target_url=target,
                short_code=code,
                created_at=created_at,
                secret=secret,
                expires_at=expires_at,
            )
            if link is not None:
                break
            logger.warning("Short code collision on %s (attempt %d), regenerating", code, attempts)

        logger.info(
            "Created link id=%s code=%s protected=%s expires_at=%s",
            link.id, link.short_code, link.has_secret, link.expires_at,
        )
        return link

    def resolve_and_track(self, short_code: str, supplied_secret: Optional[str] = None) -> str:
        """
        Return the target for `short_code` and count the access.

        Checks, in order, each with its own failure:
            1. invalidated            -> LinkGoneError(reason="invalidated")
            2. now > expires_at       -> LinkGoneError(reason="expired")
            3. secret missing/wrong   -> LinkUnauthorizedError

        The checks and the increment happen inside one locked section, so an
        interleaved invalidate can never race a click in, and concurrent
        resolves never lose an increment.

        Raises:
            LinkNotFoundError, LinkGoneError, LinkUnauthorizedError
        """
        with self.storage.locked(short_code) as link:
            if link is None:
                raise LinkNotFoundError.for_code(short_code)
            try:
                self._check_resolvable(link, supplied_secret)
            except (LinkGoneError, LinkUnauthorizedError) as exc:
                logger.info("Refused resolve of %s: %s", short_code, exc.kind.value)
                raise
            link.clicks += 1
            target = link.target_url

        logger.debug("Resolved %s", short_code)
        return target

    def _check_resolvable(self, link: Link, supplied_secret: Optional[str]) -> None:
        if not link.valid:
            raise LinkGoneError(link.short_code, LinkGoneError.INVALIDATED)
        if link.is_expired(self._now()):
            raise LinkGoneError(link.short_code, LinkGoneError.EXPIRED)
        if link.secret is not None and not _secrets_match(link.secret, supplied_secret):
            raise LinkUnauthorizedError(link.short_code, supplied_secret)

    def invalidate(self, short_code: str) -> Link:
        """
        Mark a link permanently unusable.

        Not idempotent: the first call on a valid link succeeds, every later
        call fails. Concurrent calls yield exactly one success.

        Raises:
            LinkNotFoundError: Unknown short code.
            LinkAlreadyInvalidError: The link was already invalidated.
        """
        with self.storage.locked(short_code) as link:
            if link is None:
                raise LinkNotFoundError.for_code(short_code)
            if not link.valid:
                raise LinkAlreadyInvalidError(short_code)
            link.valid = False
            result = link.copy()

        logger.info("Invalidated link id=%s code=%s", result.id, short_code)
        return result

    def stats(self, link_id: int) -> LinkStats:
        """
        Read projection for a link by id; reports `has_secret`, never the secret.

        Raises:
            LinkNotFoundError: Unknown id.
        """
        link = self.storage.get_by_id(link_id)
        if link is None:
            raise LinkNotFoundError.for_id(link_id)
        return LinkStats.from_link(link, self._now())
