"""Async MongoDB helpers built on top of Motor.

The client is created once per process and handed to repositories
explicitly; repositories never reach for a global connection themselves."""

from functools import lru_cache
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .settings import settings


@lru_cache
def _cached_client(uri: str) -> AsyncIOMotorClient:
    # tz_aware so datetimes read back compare with the aware ones we write.
    return AsyncIOMotorClient(
        uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
    )


def get_mongo_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    """Return the cached Motor client for ``uri`` (``settings.uri`` by default)."""

    return _cached_client(uri or settings.uri)


def get_db(name: Optional[str] = None, uri: Optional[str] = None) -> AsyncIOMotorDatabase:
    """Return the application database, ``settings.db_name`` unless overridden."""

    client = get_mongo_client(uri)
    return client[name or settings.db_name]


async def ping(db: Optional[AsyncIOMotorDatabase] = None) -> dict[str, Any]:
    """Run a simple ``ping`` command against the configured MongoDB server."""

    db = db if db is not None else get_db()
    await db.command("ping")
    return {"ok": True}
