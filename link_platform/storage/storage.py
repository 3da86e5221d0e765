"""
Storage module for Link Platform (in-memory implementation).

Responsibilities:
    - Hold links indexed by short code and by id (O(1) lookup by either key)
    - Issue sequential ids starting at 1, never reused
    - Reject duplicate short codes under the same lock that inserts
    - Provide the locked read-modify-write section used by resolve/invalidate

Design:
    - One `threading.RLock` guards both indexes and the id counter. It is the
      single mutual-exclusion domain for the whole store; every operation is
      in-memory and bounded, so contention is short.
    - Reads return copies so callers never mutate state outside the lock.
    - Mutations inside `locked()` operate on a working copy that is swapped
      in only if the block exits cleanly.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, Optional

from link_platform.models import Link

from .base import BaseStorage


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self._by_code = { short_code: Link }
            self._by_id   = { id: Link }      # same objects as _by_code
        """
        self._lock = threading.RLock()
        self._by_code: Dict[str, Link] = {}
        self._by_id: Dict[int, Link] = {}
        self._next_id = 1

    def insert_link(
        self,
        target_url: str,
        short_code: str,
        created_at: datetime,
        secret: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Optional[Link]:
        """
        Insert a new link if `short_code` is free.

        Rules:
            - Uniqueness is re-checked under the lock, so two concurrent
              callers holding the same candidate code cannot both commit it.
            - The id counter only advances on a successful insert.

        Returns:
            Optional[Link]: A copy of the stored link, or None on collision.
        """
        with self._lock:
            if short_code in self._by_code:
                return None
            link = Link(
                id=self._next_id,
                target_url=target_url,
                short_code=short_code,
                created_at=created_at,
                secret=secret,
                expires_at=expires_at,
            )
            self._next_id += 1
            self._by_code[short_code] = link
            self._by_id[link.id] = link
            return link.copy()

    def get_by_code(self, short_code: str) -> Optional[Link]:
        with self._lock:
            link = self._by_code.get(short_code)
            return link.copy() if link else None

    def get_by_id(self, link_id: int) -> Optional[Link]:
        with self._lock:
            link = self._by_id.get(link_id)
            return link.copy() if link else None

    @contextmanager
    def locked(self, short_code: str) -> Iterator[Optional[Link]]:
        """
        Yield a working copy of the link while holding the store lock.

        Only `clicks` and `valid` are written back; everything else on a
        link is immutable after creation.
        """
        with self._lock:
            current = self._by_code.get(short_code)
            if current is None:
                yield None
                return
            working = current.copy()
            yield working
            current.clicks = working.clicks
            current.valid = working.valid

    def count(self) -> int:
        with self._lock:
            return len(self._by_code)
