"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (in-memory vs DB)
so the rest of the app can stay ignorant of where links live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- LINK_DB_DSN:          DSN string if backend=="postgres"
- LINK_DB_ENSURE_SCHEMA: create the links table on startup when truthy
"""

import logging
import os
from typing import Optional

from link_platform.config import env_flag
from link_platform.storage.base import BaseStorage
from link_platform.storage.storage import Storage

logger = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend. For postgres: dsn="...", ensure_schema=True|False
        (defaults to LINK_DB_ENSURE_SCHEMA).

    Returns
    -------
    BaseStorage-compatible instance
    """
    be = (backend or os.getenv("LINK_STORAGE_BACKEND", "memory")).strip().lower()
    logger.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("LINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env LINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from link_platform.storage.db_storage import DBStorage

        storage = DBStorage(dsn=dsn)
        ensure = kwargs.get("ensure_schema")
        if ensure is None:
            ensure = env_flag("LINK_DB_ENSURE_SCHEMA")
        if ensure:
            storage.ensure_schema()
        return storage

    raise ValueError(f"Unknown storage backend: {be!r}")
