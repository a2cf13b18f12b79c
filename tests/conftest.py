"""Shared fixtures: a calendar frozen in time and in-memory Mongo collections."""

import copy
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from core.context import UserContext
from core.time_utils import FixedOffsetCalendar
from data_access.collections import Collections
from services.day_state import ActivityIdFactory
from services.day_store import DayStore

# 12:00 UTC is 17:30 at +05:30, so "today" is 2026-03-15
NOON_UTC = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeCursor(list):
    def sort(self, key, direction=1):
        # missing fields sort first, as in Mongo
        return FakeCursor(sorted(self, key=lambda d: (key in d, str(d.get(key, ""))), reverse=direction < 0))


class FakeCollection:
    """The slice of pymongo's Collection API the repos use.

    Filters match top-level fields by equality. Put an operation name in
    `failing` to make it raise PyMongoError.
    """

    def __init__(self, name):
        self.name = name
        self.docs = {}
        self.failing = set()
        self.indexes = {}

    def _check(self, op):
        if op in self.failing:
            raise PyMongoError(f"{op} failed on {self.name}")

    @staticmethod
    def _matches(doc, flt):
        return all(doc.get(k) == v for k, v in (flt or {}).items())

    def find(self, flt=None, projection=None):
        self._check("find")
        return FakeCursor(copy.deepcopy(d) for d in self.docs.values() if self._matches(d, flt))

    def insert_one(self, doc):
        self._check("insert_one")
        if doc["_id"] in self.docs:
            raise DuplicateKeyError(f"duplicate _id {doc['_id']}")
        self.docs[doc["_id"]] = copy.deepcopy(doc)

    def update_one(self, flt, update, upsert=False):
        self._check("update_one")
        hit = next((d for d in self.docs.values() if self._matches(d, flt)), None)
        if hit is None:
            if not upsert:
                return SimpleNamespace(matched_count=0)
            hit = dict(flt)
            hit.update(copy.deepcopy(update.get("$setOnInsert", {})))
            self.docs[hit["_id"]] = hit
        hit.update(copy.deepcopy(update.get("$set", {})))
        return SimpleNamespace(matched_count=1)

    def delete_many(self, flt):
        self._check("delete_many")
        gone = [k for k, d in self.docs.items() if self._matches(d, flt)]
        for k in gone:
            del self.docs[k]
        return SimpleNamespace(deleted_count=len(gone))

    def count_documents(self, flt):
        return sum(1 for d in self.docs.values() if self._matches(d, flt))

    def list_indexes(self):
        return [{"name": "_id_", "key": {"_id": 1}}] + [copy.deepcopy(ix) for ix in self.indexes.values()]

    def create_index(self, keys, name, unique=False):
        self._check("create_index")
        self.indexes[name] = {"name": name, "key": dict(keys), "unique": unique}
        return name

    def drop_index(self, name):
        if name not in self.indexes:
            raise OperationFailure(f"index not found with name [{name}]")
        del self.indexes[name]


class FakeDatabase(dict):
    def __missing__(self, name):
        col = self[name] = FakeCollection(name)
        return col


@pytest.fixture
def cal():
    return FixedOffsetCalendar(clock=lambda: NOON_UTC)


@pytest.fixture
def cols():
    return Collections(catalog=FakeCollection("activity_catalog"), plans=FakeCollection("plans"),
                       completions=FakeCollection("completions"))


@pytest.fixture
def ctx():
    return UserContext(user_id="u1", email="u1@example.com")


@pytest.fixture
def id_factory():
    ticks = iter(range(1_000, 1_000_000))
    return ActivityIdFactory(clock=lambda: next(ticks))


@pytest.fixture
def store(ctx, cols, cal, id_factory):
    s = DayStore(ctx, cols, cal, id_factory=id_factory)
    yield s
    s.close()
