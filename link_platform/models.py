"""
Value records for Link Platform.

`Link` is the single entity held by storage backends. `LinkStats` is the
read projection handed out by `LinkManager.stats`; it reports whether a
secret is set but never carries the secret itself.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class Link:
    id: int
    target_url: str
    short_code: str
    created_at: datetime
    clicks: int = 0
    valid: bool = True
    secret: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def has_secret(self) -> bool:
        return self.secret is not None

    def is_expired(self, now: datetime) -> bool:
        """True once `now` is strictly past `expires_at`; a link is still live at the exact instant."""
        return self.expires_at is not None and now > self.expires_at

    def copy(self) -> "Link":
        return replace(self)


@dataclass(frozen=True)
class LinkStats:
    id: int
    target_url: str
    short_code: str
    clicks: int
    created_at: datetime
    valid: bool
    expires_at: Optional[datetime]
    has_secret: bool
    expired: bool = False

    @classmethod
    def from_link(cls, link: Link, now: datetime) -> "LinkStats":
        return cls(
            id=link.id,
            target_url=link.target_url,
            short_code=link.short_code,
            clicks=link.clicks,
            created_at=link.created_at,
            valid=link.valid,
            expires_at=link.expires_at,
            has_secret=link.has_secret,
            expired=link.is_expired(now),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "target_url": self.target_url,
            "short_code": self.short_code,
            "clicks": self.clicks,
            "created_at": self.created_at,
            "valid": self.valid,
            "expires_at": self.expires_at,
            "has_secret": self.has_secret,
            "expired": self.expired,
        }
