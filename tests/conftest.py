import copy
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure

from database import get_db
from main import app


class FakeUpdateResult:
    def __init__(self, matched_count, upserted_id=None):
        self.matched_count = matched_count
        self.upserted_id = upserted_id


class FakeDeleteResult:
    def __init__(self, deleted_count):
        self.deleted_count = deleted_count


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents

    def sort(self, key, direction=1):
        self._documents.sort(key=lambda doc: doc.get(key), reverse=direction == -1)
        return self

    def limit(self, count):
        self._documents = self._documents[:count]
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._documents:
            yield copy.deepcopy(document)


class FakeCollection:
    """In-memory stand-in for the parts of AsyncIOMotorCollection the repositories use"""

    def __init__(self, database, name):
        self.database = database
        self.name = name
        self.documents = []
        self.indexes = []

    def __getitem__(self, name):
        return self.database[f"{self.name}.{name}"]

    def _check(self):
        if self.name in self.database.failing:
            raise OperationFailure(f"collection {self.name} is unavailable")

    @staticmethod
    def _matches(document, query):
        return all(document.get(key) == value for key, value in query.items())

    def _evaluate(self, value, now):
        if value == "$$NOW":
            return now
        if isinstance(value, dict) and "$literal" in value:
            return copy.deepcopy(value["$literal"])
        raise AssertionError(f"unsupported update expression: {value!r}")

    async def find_one(self, query):
        self._check()
        for document in self.documents:
            if self._matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query):
        self._check()
        return FakeCursor([doc for doc in self.documents if self._matches(doc, query)])

    async def count_documents(self, query):
        self._check()
        if self.name in self.database.failing_counts:
            raise OperationFailure(f"count on {self.name} is unavailable")
        return sum(1 for doc in self.documents if self._matches(doc, query))

    async def update_one(self, query, update, upsert=False):
        self._check()
        now = self.database.now()
        document = next((doc for doc in self.documents if self._matches(doc, query)), None)
        matched = document is not None
        if document is None:
            if not upsert:
                return FakeUpdateResult(0)
            document = dict(query)
            self.documents.append(document)

        for stage in update:
            for key, value in stage["$set"].items():
                document[key] = self._evaluate(value, now)

        return FakeUpdateResult(1 if matched else 0, None if matched else document["_id"])

    async def delete_one(self, query):
        self._check()
        for i, document in enumerate(self.documents):
            if self._matches(document, query):
                del self.documents[i]
                return FakeDeleteResult(1)
        return FakeDeleteResult(0)

    async def create_index(self, keys, **kwargs):
        self._check()
        self.indexes.append(keys)


class FakeDatabase:
    """In-memory database with a server clock that advances 1 ms per write"""

    def __init__(self):
        self.collections = {}
        self.failing = set()
        # Collections whose count_documents fails while reads still work
        self.failing_counts = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self):
        self._clock += timedelta(milliseconds=1)
        return self._clock

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self, name)
        return self.collections[name]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def quizzes():
    """A quiz list with the required 3 multiple choice / 1 short answer / 1 essay mix"""
    multiple_choice = [
        {
            "type": "multipleChoice",
            "question": f"Question {i}?",
            "options": ["a", "b", "c", "d"],
            "answer": i,
            "explanation": "because",
        }
        for i in range(3)
    ]
    return multiple_choice + [
        {
            "type": "shortAnswer",
            "question": "Name the hook?",
            "answer": "useEffect",
            "acceptableAnswers": ["useEffect", "effect hook"],
            "explanation": "it runs effects",
        },
        {
            "type": "essay",
            "question": "Explain the module.",
            "sampleAnswer": "It exports helpers.",
            "keyPoints": ["exports", "helpers"],
            "explanation": "mention both points",
        },
    ]
