from __future__ import annotations

from typing import Any, Mapping

from .errors import InvalidCitizenError


def citizen_id(citizen: Any) -> str:
    """
    Normalise a citizen reference to its id string.

    Accepts a plain id (``str`` or ``ObjectId``), a mapping carrying ``id`` or
    ``_id`` (e.g. an identity payload or a raw citizen document) or any object
    with an ``id`` attribute such as ``AuthorSummary``.

    Raises:
        InvalidCitizenError: if no id can be found.
    """

    if isinstance(citizen, Mapping):
        value = citizen.get("id") or citizen.get("_id")
    elif isinstance(citizen, str):
        value = citizen
    else:
        value = getattr(citizen, "id", citizen)

    if value is None or value == "":
        raise InvalidCitizenError(f"citizen reference {citizen!r} has no id")
    return str(value)


def full_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()
