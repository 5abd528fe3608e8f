"""Typing aliases shared by Mongo-backed repositories."""

from typing import Any, Mapping, MutableMapping

MongoDocument = Mapping[str, Any]
MutableMongoDocument = MutableMapping[str, Any]
