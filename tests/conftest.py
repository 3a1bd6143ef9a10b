"""
Pytest configuration and shared fixtures for MONGOBOILER tests.

This module provides:
- Mock Motor client/collection fixtures
- An in-memory Motor-like store for behavioural tests
- Real MongoDB fixtures (testcontainers) for integration tests
"""

import copy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from mongoboiler import BoilerConfig, Database, OperationContext
from mongoboiler.observability import clear_correlation_id, clear_log_context, get_metrics_collector

# ============================================================================
# CURSOR DOUBLE
# ============================================================================


class FakeCursor:
    """
    Async-iterable stand-in for AsyncIOMotorCursor.

    Yields ``documents`` in order; when ``error`` is given it is raised once
    ``error_at`` documents have been yielded. ``close`` is an AsyncMock so
    tests can assert it was awaited.
    """

    def __init__(
        self,
        documents: List[Dict[str, Any]],
        error: Optional[BaseException] = None,
        error_at: int = 0,
    ):
        self._documents = list(documents)
        self._error = error
        self._error_at = error_at
        self._index = 0
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._error is not None and self._index == self._error_at:
            raise self._error
        if self._index >= len(self._documents):
            raise StopAsyncIteration
        document = self._documents[self._index]
        self._index += 1
        return document


# ============================================================================
# MOCK MOTOR FIXTURES
# ============================================================================


def make_mock_collection(name: str = "test_collection") -> MagicMock:
    """Create a mock Motor collection with canned results."""
    collection = MagicMock()
    collection.name = name
    collection.find_one = AsyncMock(return_value={"_id": "test_id", "name": "Test"})
    collection.find = MagicMock(return_value=FakeCursor([]))
    collection.count_documents = AsyncMock(return_value=5)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="test_id"))
    collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=["id1", "id2"]))
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.update_many = AsyncMock(return_value=MagicMock(matched_count=3, modified_count=2))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.drop = AsyncMock(return_value=None)
    return collection


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """The mock Motor collection served for every collection name."""
    return make_mock_collection()


@pytest.fixture
def mock_mongo_database(mock_mongo_collection: MagicMock) -> MagicMock:
    """Create a mock Motor database."""
    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.side_effect = lambda name: mock_mongo_collection
    return db


@pytest.fixture
def mock_mongo_client(mock_mongo_database: MagicMock) -> MagicMock:
    """Create a mock Motor client."""
    client = MagicMock()
    client.__getitem__.side_effect = lambda name: mock_mongo_database
    return client


@pytest.fixture
def test_config() -> BoilerConfig:
    """Configuration with no default deadline and metrics enabled."""
    return BoilerConfig(default_timeout_ms=0, log_level="DEBUG", metrics_enabled=True)


@pytest.fixture
def database(mock_mongo_client: MagicMock, test_config: BoilerConfig) -> Database:
    """Database handle over the mock client."""
    return Database(
        mock_mongo_client, "test_db", context=OperationContext.background(), config=test_config
    )


@pytest.fixture
def collection(database: Database):
    """Collection handle over the mock collection."""
    return database.collection("test_collection")


# ============================================================================
# IN-MEMORY MOTOR-LIKE STORE
# ============================================================================


def _matches(document: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    for key, condition in filter.items():
        value = document.get(key)
        if isinstance(condition, dict) and condition and next(iter(condition)).startswith("$"):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
                if op == "$gte" and not (value is not None and value >= operand):
                    return False
        elif value != condition:
            return False
    return True


def _apply_update(document: Dict[str, Any], update: Dict[str, Any]) -> bool:
    before = copy.deepcopy(document)
    for field, value in update.get("$set", {}).items():
        document[field] = value
    for field, value in update.get("$inc", {}).items():
        document[field] = document.get(field, 0) + value
    for field in update.get("$unset", {}):
        document.pop(field, None)
    return document != before


class InMemoryCollection:
    """Motor-like collection keeping documents in insertion order."""

    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.cursors: List[FakeCursor] = []

    async def find_one(self, filter: Dict[str, Any], **kwargs: Any):
        for document in self.documents:
            if _matches(document, filter):
                return copy.deepcopy(document)
        return None

    def find(self, filter: Dict[str, Any], **kwargs: Any) -> FakeCursor:
        cursor = FakeCursor([copy.deepcopy(d) for d in self.documents if _matches(d, filter)])
        self.cursors.append(cursor)
        return cursor

    async def count_documents(self, filter: Dict[str, Any], **kwargs: Any) -> int:
        return sum(1 for d in self.documents if _matches(d, filter))

    async def insert_one(self, document: Dict[str, Any], **kwargs: Any):
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def insert_many(self, documents: List[Dict[str, Any]], **kwargs: Any):
        if not documents:
            raise TypeError("documents must be a non-empty list")
        ids = []
        for document in documents:
            result = await self.insert_one(document)
            ids.append(result.inserted_id)
        return SimpleNamespace(inserted_ids=ids)

    async def _update(self, filter, update, many: bool):
        matched = modified = 0
        for document in self.documents:
            if _matches(document, filter):
                matched += 1
                if _apply_update(document, update):
                    modified += 1
                if not many:
                    break
        return SimpleNamespace(matched_count=matched, modified_count=modified)

    async def update_one(self, filter, update, **kwargs: Any):
        return await self._update(filter, update, many=False)

    async def update_many(self, filter, update, **kwargs: Any):
        return await self._update(filter, update, many=True)

    async def _delete(self, filter, many: bool):
        kept, deleted = [], 0
        for document in self.documents:
            if _matches(document, filter) and (many or deleted == 0):
                deleted += 1
            else:
                kept.append(document)
        self.documents = kept
        return SimpleNamespace(deleted_count=deleted)

    async def delete_one(self, filter, **kwargs: Any):
        return await self._delete(filter, many=False)

    async def delete_many(self, filter, **kwargs: Any):
        return await self._delete(filter, many=True)

    async def drop(self):
        self.documents = []


class InMemoryClient:
    """Motor-like client: ``client[db][collection]`` returns InMemoryCollection."""

    def __init__(self):
        self._databases: Dict[str, Dict[str, InMemoryCollection]] = {}

    def __getitem__(self, db_name: str):
        collections = self._databases.setdefault(db_name, {})

        class _Database:
            name = db_name

            def __getitem__(self, name: str) -> InMemoryCollection:
                if name not in collections:
                    collections[name] = InMemoryCollection(name)
                return collections[name]

        return _Database()


@pytest.fixture
def memory_client() -> InMemoryClient:
    return InMemoryClient()


@pytest.fixture
def memory_db(memory_client: InMemoryClient, test_config: BoilerConfig) -> Database:
    """Database handle over the in-memory store."""
    return Database(memory_client, "memory_db", config=test_config)


# ============================================================================
# GLOBAL STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables and global observability state before each test."""
    for var in (
        "MONGOBOILER_DEFAULT_TIMEOUT_MS",
        "MONGOBOILER_LOG_LEVEL",
        "MONGOBOILER_METRICS_ENABLED",
    ):
        monkeypatch.delenv(var, raising=False)
    get_metrics_collector().reset()
    clear_correlation_id()
    clear_log_context()
    yield


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: the container starts once and is reused.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    container = MongoDbContainer(image="mongo:7.0")
    try:
        container.start()
    except Exception as e:  # Docker missing or unreachable
        pytest.skip(f"Could not start MongoDB container: {e}")
    yield container
    container.stop()


@pytest.fixture
async def real_mongo_client(mongodb_container):
    """AsyncIOMotorClient connected to the container, closed after the test."""
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(mongodb_container.get_connection_url())
    await client.admin.command("ping")
    yield client
    client.close()


@pytest.fixture
async def real_db(real_mongo_client, test_config: BoilerConfig):
    """Database handle on a throwaway database, dropped after the test."""
    db_name = f"mongoboiler_test_{ObjectId()}"
    yield Database(
        real_mongo_client,
        db_name,
        context=OperationContext.background().with_timeout(30),
        config=test_config,
    )
    await real_mongo_client.drop_database(db_name)
