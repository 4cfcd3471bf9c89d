"""
StreetPaws Backend — Record Storage
=====================================

Storage is the single capability interface; DatabaseStorage and
MemoryStorage are its two implementations. build_storage() picks one from
settings.storage_backend exactly once, when the application is created,
and get_storage() hands that instance to route handlers.
"""

from typing import Optional

from fastapi import Request

from streetpaws.config import Settings, settings as default_settings
from streetpaws.storage.base import Storage
from streetpaws.storage.memory import MemoryStorage
from streetpaws.storage.sql import DatabaseStorage


def build_storage(config: Optional[Settings] = None) -> Storage:
    """Instantiate the configured backend. Nothing connects until initialize()."""
    config = config or default_settings
    if config.storage_backend == "memory":
        return MemoryStorage()

    from streetpaws.database import engine, async_session_factory
    return DatabaseStorage(engine, async_session_factory)


def get_storage(request: Request) -> Storage:
    """
    FastAPI dependency: the storage instance created by create_app().

    Usage in routes:
        @router.get("/animals")
        async def list_animals(storage: Storage = Depends(get_storage)):
            ...
    """
    return request.app.state.storage


__all__ = ["Storage", "MemoryStorage", "DatabaseStorage", "build_storage", "get_storage"]
