"""Minimal MongoDB helpers shared across domain repositories.

Example usage:

    from db_core import get_db
    from comments_repo import CommentsRepository

    repo = CommentsRepository(get_db())
    comments = await repo.get_for({"context": "proposal", "reference": "p42"})
"""

from .settings import MongoSettings, settings
from .mongo import get_mongo_client, get_db, ping
from .ids import id_candidates, id_selector, ids_selector
from .typing import MongoDocument, MutableMongoDocument

__all__ = [
    "MongoSettings",
    "settings",
    "get_mongo_client",
    "get_db",
    "ping",
    "id_candidates",
    "id_selector",
    "ids_selector",
    "MongoDocument",
    "MutableMongoDocument",
]
