"""Helpers for matching ``_id`` values that may be stored as strings or ObjectIds."""

from typing import Any, Iterable, List

from bson import ObjectId


def id_candidates(value: Any) -> List[Any]:
    """Return every stored form ``value`` can take: itself, plus its ObjectId when valid."""

    text = str(value)
    if ObjectId.is_valid(text):
        return [text, ObjectId(text)]
    return [text]


def id_selector(value: Any) -> dict[str, Any]:
    """Build an ``_id`` filter matching ``value`` whether stored as a string or an ObjectId."""

    return {"$in": id_candidates(value)}


def ids_selector(values: Iterable[Any]) -> dict[str, Any]:
    candidates: List[Any] = []
    for value in values:
        candidates.extend(id_candidates(value))
    return {"$in": candidates}
