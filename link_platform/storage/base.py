"""
Base storage interface for Link Platform.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, Postgres) can implement without requiring changes to the
    lifecycle rules in `LinkManager`.

Atomicity contract:
    - `insert_link` checks short-code uniqueness and commits the new record
      in one critical section; it returns None instead of writing a duplicate.
    - `locked(code)` yields the record for `code` while holding exclusive
      access to it. Changes to `clicks` / `valid` made inside the block are
      committed on a clean exit and discarded if the block raises, so a
      failed check never leaves a half-applied mutation behind.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Optional

from link_platform.models import Link


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def insert_link(
        self,
        target_url: str,
        short_code: str,
        created_at: datetime,
        secret: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Optional[Link]:
        """
        Allocate the next id and persist a new link under `short_code`.

        Returns:
            Optional[Link]: The stored record, or None if `short_code` is
            already taken (the caller retries with a fresh code).
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_by_code(self, short_code: str) -> Optional[Link]:
        """
        Retrieve a snapshot of a link by its short code.

        Returns:
            Optional[Link]: A copy of the record, or None if not found.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_by_id(self, link_id: int) -> Optional[Link]:
        """
        Retrieve a snapshot of a link by its numeric id.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def locked(self, short_code: str) -> AbstractContextManager:
        """
        Context manager yielding the live record for `short_code` (or None)
        under mutual exclusion with every other mutation of that code.

        Usage:
            with storage.locked(code) as link:
                if link is not None and link.valid:
                    link.clicks += 1
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count(self) -> int:
        """Number of stored links."""
        raise NotImplementedError
