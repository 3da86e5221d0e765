"""
Main API module for Link Platform.

Responsibilities:
    - Expose REST endpoints to create, resolve, invalidate and inspect links
    - Validate payload syntax (http/https URL, ISO-8601 expiration) before
      calling into the core
    - Map the core's failure kinds to HTTP status codes
    - Render the public short link "<LINK_PUBLIC_URL>/l/<code>"

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory Storage by default; Postgres via LINK_STORAGE_BACKEND=postgres.
    - LinkManager owns every lifecycle rule; routes only translate.

Status mapping:
    NOT_FOUND        -> 404
    GONE             -> 404 (message says "invalidated" or "expired")
    UNAUTHORIZED     -> 401
    ALREADY_INVALID  -> 400
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from link_platform.config import settings
from link_platform.errors import ErrorKind, LinkError
from link_platform.logging_setup import initialize_logging
from link_platform.manager.link_manager import LinkManager
from link_platform.storage.storage_factory import get_storage

log = logging.getLogger("link_platform.api")

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.GONE: 404,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.ALREADY_INVALID: 400,
}

# LinkStats field -> wire name used by the stats route
STATS_FIELD_NAMES: Dict[str, str] = {
    "target_url": "originalUrl",
    "short_code": "shortCode",
    "created_at": "createdAt",
    "expires_at": "expiredAt",
    "has_secret": "hasPassword",
}


ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
_HTTP_URL = TypeAdapter(HttpUrl)


class CreateLinkRequest(BaseModel):
    """Request payload for creating a new short link."""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    password: Optional[str] = None
    expires_at: Optional[datetime] = Field(default=None, alias="expiredAt")

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        """Require a well-formed http/https URL; the string itself is kept verbatim."""
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Invalid URL format")
        try:
            checked = _HTTP_URL.validate_python(value)
        except ValidationError:
            raise ValueError("Invalid URL format") from None
        host = (checked.host or "").rstrip(".")
        if not host or any(not label for label in host.split(".")):
            raise ValueError("Invalid URL format")
        return value

    @field_validator("expires_at", mode="before")
    @classmethod
    def _require_iso_datetime(cls, value: Any) -> Any:
        """Only ISO-8601 strings with both a date and a time; no epoch numbers, no bare dates."""
        if value is None:
            return value
        if not isinstance(value, str) or not ISO_DATETIME_RE.match(value):
            raise ValueError("expiredAt must be an ISO-8601 date-time, e.g. 2025-07-10T23:59:59Z")
        return value


def _error_body(status_code: int, message: str) -> Dict[str, Any]:
    return {"statusCode": status_code, "message": message}


def create_app(manager: Optional[LinkManager] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        manager (Optional[LinkManager]): Pre-built manager to serve. When
            omitted, one is built over the configured storage backend.

    Returns:
        FastAPI: A configured application with its own LinkManager.
    """
    if not logging.getLogger().handlers:
        initialize_logging()

    app = FastAPI(
        title="Link Platform",
        description="URL shortener with expiring, secret-protected and revocable links",
        docs_url="/docs",
    )

    if manager is None:
        manager = LinkManager(storage=get_storage())
    app.state.manager = manager
    log.info("Link storage backend: %s", type(manager.storage).__name__)

    @app.exception_handler(LinkError)
    async def _link_error_handler(request: Request, exc: LinkError) -> JSONResponse:
        status_code = STATUS_BY_KIND[exc.kind]
        return JSONResponse(status_code=status_code, content=_error_body(status_code, exc.message))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/create", status_code=201)
    def create_link(req: CreateLinkRequest) -> Dict[str, Any]:
        """
        Create a short link.

        Returns:
            dict: target (original URL), link (full public short URL), valid.
        """
        link = manager.create(req.url, secret=req.password, expires_at=req.expires_at)
        return {
            "target": link.target_url,
            "link": f"{settings.PUBLIC_URL}/l/{link.short_code}",
            "valid": True,
        }

    @app.get("/l/{short_code}")
    def redirect_link(
        short_code: str,
        password: Optional[str] = Query(None, description="Secret for protected links."),
    ) -> RedirectResponse:
        """
        Redirect to the original URL and count the click.

        Failures are rendered by the LinkError handler (404 / 401).
        """
        target = manager.resolve_and_track(short_code, password)
        return RedirectResponse(url=target, status_code=302)

    @app.put("/l/{short_code}")
    def invalidate_link(short_code: str) -> Dict[str, str]:
        manager.invalidate(short_code)
        return {"message": f'Link with short code "{short_code}" invalidated successfully.'}

    @app.get("/{link_id}/stats")
    def link_stats(link_id: str):
        """
        Statistics for a link by numeric id (1, 2, 3, ... in creation order).

        A non-numeric id is reported as 404, the same as an unknown one.
        """
        try:
            numeric_id = int(link_id)
        except ValueError:
            return JSONResponse(
                status_code=404,
                content=_error_body(404, "Link id must be a valid number."),
            )
        stats = manager.stats(numeric_id).as_dict()
        for key in ("created_at", "expires_at"):
            if stats[key] is not None:
                stats[key] = stats[key].isoformat()
        return {STATS_FIELD_NAMES.get(key, key): value for key, value in stats.items()}

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8080)
