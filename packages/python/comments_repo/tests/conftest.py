import copy
from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure

from comments_repo import CommentsRepository


class FakeCursor:
    """In-memory stand-in for ``AsyncIOMotorCursor``."""

    def __init__(self, docs):
        self._docs = list(docs)
        self._iter = None

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration

    async def to_list(self, length=None):
        return list(self._docs[:length] if length else self._docs)


def _matches(doc, selector):
    for key, condition in selector.items():
        value = doc.get(key)
        if isinstance(condition, dict) and "$in" in condition:
            if value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


def _project(doc, projection):
    if not projection:
        return copy.deepcopy(doc)
    keep = {key for key, flag in projection.items() if flag}
    return {key: copy.deepcopy(value) for key, value in doc.items() if key == "_id" or key in keep}


class FakeCollection:
    """Implements the slice of the Motor collection API the repository uses.

    Add an operation name to ``fail_on`` to make it raise ``OperationFailure``.
    """

    def __init__(self, name):
        self.name = name
        self.docs = []
        self.indexes = {}
        self.fail_on = set()
        self.calls = []

    def _enter(self, operation):
        self.calls.append(operation)
        if operation in self.fail_on:
            raise OperationFailure(f"{operation} failed on {self.name}")

    def find(self, selector=None, projection=None):
        self._enter("find")
        return FakeCursor(_project(doc, projection) for doc in self.docs if _matches(doc, selector or {}))

    async def find_one(self, selector=None, projection=None):
        self._enter("find_one")
        for doc in self.docs:
            if _matches(doc, selector or {}):
                return _project(doc, projection)
        return None

    async def insert_one(self, doc):
        self._enter("insert_one")
        if any(existing["_id"] == doc["_id"] for existing in self.docs):
            raise DuplicateKeyError(f"duplicate _id {doc['_id']}")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def replace_one(self, selector, doc):
        self._enter("replace_one")
        for index, existing in enumerate(self.docs):
            if _matches(existing, selector):
                self.docs[index] = copy.deepcopy(doc)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def create_index(self, keys, name=None, **kwargs):
        self._enter("create_index")
        self.indexes[name] = list(keys)
        return name


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection(name))


CITIZENS = [
    {"_id": "u1", "first_name": "Ada", "last_name": "Lovelace", "avatar": "https://example.org/ada.png", "email": "ada@example.org"},
    {"_id": "u2", "first_name": "Alan", "last_name": "Turing", "avatar": None, "email": "alan@example.org"},
]


@pytest.fixture()
def db():
    database = FakeDatabase()
    database["citizens"].docs.extend(copy.deepcopy(CITIZENS))
    return database


@pytest.fixture()
def comments(db):
    return db["comments"]


@pytest.fixture()
def repo(db):
    return CommentsRepository(db)
