"""
Database and Collection handles.

Thin helpers over Motor that remove the boilerplate around the common CRUD
calls: every method awaits a single driver call under the owning handle's
OperationContext, turns the driver result into a plain value and reports
driver failures as MONGOBOILER exceptions chained to the original error.

Usage:
    from motor.motor_asyncio import AsyncIOMotorClient
    from mongoboiler import Database, OperationContext

    client = AsyncIOMotorClient("mongodb://localhost:27017")
    db = Database(client, "shop", OperationContext.background().with_timeout(5))

    order_id = await db.orders.insert_one({"sku": "A-1", "qty": 2})
    order = await db.orders.find_one({"_id": order_id})
    open_orders = await db.orders.find_many({"status": "open"}, Order)
    matched, modified = await db.orders.update_many(
        {"status": "open"}, {"$set": {"status": "shipped"}}
    )
    deleted = await db.orders.delete_many({"status": "cancelled"})
"""

import logging
import time
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any, NamedTuple, TypeVar

from bson.errors import BSONError
from pymongo.errors import PyMongoError

from ..config import BoilerConfig
from ..constants import METRIC_PREFIX
from ..context import OperationContext
from ..exceptions import (
    CursorError,
    DecodeError,
    DocumentNotFoundError,
    DropError,
    MongoBoilerError,
    OperationError,
    ReadError,
    WriteError,
)
from ..observability import get_metrics_collector, log_operation, record_operation
from .decoding import decode_document, encode_document

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures raised by the driver, or by pymongo/bson while validating arguments
DRIVER_FAILURES = (PyMongoError, BSONError, TypeError, ValueError)


class UpdateCounts(NamedTuple):
    """Outcome of an update: how many documents matched and how many changed."""

    matched_count: int
    modified_count: int


class Collection:
    """
    CRUD helpers for one collection of a Database.

    The collection shares the client, context and configuration of the
    Database it was created from; it holds a reference to that Database and
    reads them through it.

    Example:
        users = db.collection("users")
        user_id = await users.insert_one({"name": "Ada"})
        user = await users.find_one({"_id": user_id}, User)
    """

    def __init__(self, database: "Database", name: str):
        """
        Args:
            database: Owning Database handle
            name: Collection name
        """
        self._database = database
        self.name = name
        self._collection = database.database[name]

    @property
    def database(self) -> "Database":
        return self._database

    @property
    def context(self) -> OperationContext:
        return self._database.context

    @property
    def client(self) -> Any:
        return self._database.client

    @property
    def raw(self) -> Any:
        """The underlying Motor collection, for calls these helpers do not cover."""
        return self._collection

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(
        self,
        operation: str,
        error_class: type[OperationError],
        message: str,
        **error_kwargs: Any,
    ) -> AsyncIterator[None]:
        start = time.perf_counter()
        success = False
        try:
            with self._database.operation_context().scope():
                yield
            success = True
        except MongoBoilerError:
            raise
        except DRIVER_FAILURES as e:
            logger.exception(f"Database operation failed in {operation} on {self.name}")
            raise error_class(
                message,
                operation=operation,
                collection=self.name,
                cause=e,
                **error_kwargs,
            ) from e
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            config = self._database.config
            if config.metrics_enabled:
                record_operation(
                    f"{METRIC_PREFIX}.{operation}",
                    duration_ms,
                    success,
                    database=self._database.name,
                    collection=self.name,
                )
            if success:
                log_operation(
                    logger,
                    operation,
                    level=logging.getLevelName(config.log_level),
                    duration_ms=duration_ms,
                    database=self._database.name,
                    collection=self.name,
                )

    def _decode(self, document: Mapping[str, Any], document_class: type[T], operation: str) -> T:
        try:
            return decode_document(document, document_class)
        except DecodeError as e:
            e.operation = operation
            e.collection = self.name
            e.context.update({"operation": operation, "collection": self.name})
            logger.warning(f"Failed to decode document from {self.name} in {operation}: {e}")
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_one(
        self,
        filter: Mapping[str, Any] | None = None,
        document_class: type[T] = dict,
        **kwargs: Any,
    ) -> T:
        """
        Find the first document matching ``filter`` and decode it.

        Args:
            filter: Query filter ({} when omitted)
            document_class: Type to decode the document into (dict by default)
            **kwargs: Passed to the driver (projection, sort, ...)

        Returns:
            The decoded document

        Raises:
            DocumentNotFoundError: If no document matches
            DecodeError: If the document does not fit ``document_class``
            ReadError: If the driver call fails
        """
        async with self._operation("find_one", ReadError, "Error retrieving document"):
            document = await self._collection.find_one(filter or {}, **kwargs)

        if document is None:
            raise DocumentNotFoundError(
                "No document matches the filter",
                operation="find_one",
                collection=self.name,
            )
        return self._decode(document, document_class, "find_one")

    async def find_many(
        self,
        filter: Mapping[str, Any] | None = None,
        document_class: type[T] = dict,
        **kwargs: Any,
    ) -> list[T]:
        """
        Find every document matching ``filter``, decoded, in server order.

        The cursor is closed once iteration ends, whether or not it failed.

        Args:
            filter: Query filter ({} when omitted)
            document_class: Type to decode each document into (dict by default)
            **kwargs: Passed to the driver (projection, sort, limit, ...)

        Returns:
            List of decoded documents

        Raises:
            CursorError: If the cursor fails; ``partial_results`` holds the documents
                decoded before the failure
            DecodeError: If a document does not fit ``document_class``
        """
        results: list[T] = []
        async with self._operation(
            "find_many", CursorError, "Error reading documents", partial_results=results
        ):
            cursor = self._collection.find(filter or {}, **kwargs)
            try:
                async for document in cursor:
                    results.append(self._decode(document, document_class, "find_many"))
            except BaseException:
                # The iteration error is the one the caller sees
                try:
                    await cursor.close()
                except DRIVER_FAILURES:
                    logger.warning(f"Failed to close cursor on {self.name}", exc_info=True)
                raise
            await cursor.close()
        return results

    async def count_documents(self, filter: Mapping[str, Any] | None = None, **kwargs: Any) -> int:
        """Count documents matching ``filter``."""
        async with self._operation("count_documents", ReadError, "Error counting documents"):
            return await self._collection.count_documents(filter or {}, **kwargs)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update_one(
        self, filter: Mapping[str, Any], update: Any, **kwargs: Any
    ) -> UpdateCounts:
        """
        Apply ``update`` to at most one document matching ``filter``.

        Returns:
            UpdateCounts; both counts are 0 or 1 and modified_count may be 0 for
            a no-op update
        """
        async with self._operation("update_one", WriteError, "Failed to update document"):
            result = await self._collection.update_one(filter, update, **kwargs)
        return UpdateCounts(result.matched_count, result.modified_count)

    async def update_many(
        self, filter: Mapping[str, Any], update: Any, **kwargs: Any
    ) -> UpdateCounts:
        """Apply ``update`` to every document matching ``filter``."""
        async with self._operation("update_many", WriteError, "Failed to update documents"):
            result = await self._collection.update_many(filter, update, **kwargs)
        return UpdateCounts(result.matched_count, result.modified_count)

    async def insert_one(self, document: Any, **kwargs: Any) -> Any:
        """
        Insert one document.

        ``document`` may be a mapping, a pydantic model or a dataclass
        instance; see ``encode_document``.

        Returns:
            The inserted document's ``_id`` (generated when the document has none)
        """
        async with self._operation("insert_one", WriteError, "Failed to insert document"):
            result = await self._collection.insert_one(encode_document(document), **kwargs)
        return result.inserted_id

    async def insert_many(self, documents: Iterable[Any], **kwargs: Any) -> list[Any]:
        """
        Insert a batch of documents.

        ``documents`` may be any iterable; it is consumed once. Batch semantics
        (``ordered``, partial failure) are the driver's; a failed batch raises
        WriteError chained to the driver's BulkWriteError.

        Returns:
            Inserted ids, positionally matching ``documents``
        """
        batch: dict[str, Any] = {}
        async with self._operation(
            "insert_many", WriteError, "Failed to insert documents", context=batch
        ):
            encoded = [encode_document(d) for d in documents]
            batch["count"] = len(encoded)
            result = await self._collection.insert_many(encoded, **kwargs)
        return list(result.inserted_ids)

    async def delete_one(self, filter: Mapping[str, Any], **kwargs: Any) -> int:
        """
        Delete at most one document matching ``filter``.

        Returns:
            Number of documents deleted (0 or 1)
        """
        async with self._operation("delete_one", WriteError, "Failed to delete document"):
            result = await self._collection.delete_one(filter, **kwargs)
        return result.deleted_count

    async def delete_many(self, filter: Mapping[str, Any], **kwargs: Any) -> int:
        """
        Delete every document matching ``filter``.

        Returns:
            Number of documents deleted
        """
        async with self._operation("delete_many", WriteError, "Failed to delete documents"):
            result = await self._collection.delete_many(filter, **kwargs)
        return result.deleted_count

    async def drop(self) -> None:
        """Drop the collection with all of its documents and indexes."""
        async with self._operation("drop", DropError, "Failed to drop collection"):
            await self._collection.drop()

    def get_metrics(self) -> list[dict[str, Any]]:
        """
        Call metrics recorded for this collection, one entry per operation.

        Empty when ``config.metrics_enabled`` is off.
        """
        return get_metrics_collector().get_metrics(
            database=self._database.name, collection=self.name
        )

    def __repr__(self) -> str:
        return f"Collection(database={self._database.name!r}, name={self.name!r})"


class Database:
    """
    A named database bound to a client and an OperationContext.

    Factory for Collection handles. The client and name are neither checked
    nor contacted here; a bad client or name only shows up when an operation
    runs.

    Example:
        db = Database(client, "shop")
        orders = db.collection("orders")
        same_orders = db.orders
    """

    def __init__(
        self,
        client: Any,
        name: str,
        context: OperationContext | None = None,
        config: BoilerConfig | None = None,
    ):
        """
        Args:
            client: A connected AsyncIOMotorClient (owned by the caller)
            name: Database name
            context: Context shared by every collection of this handle. Its
                deadline is absolute. When omitted, a background context is
                used and each call gets ``config.default_timeout`` of its own.
            config: Handle configuration (read from the environment when omitted)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config = config or BoilerConfig()
        self.config.validate()
        self.client = client
        self.name = name
        self.database = client[name]
        if context is None:
            self.context = OperationContext.background()
            self._call_timeout = self.config.default_timeout
        else:
            self.context = context
            self._call_timeout = None
        self._collection_cache: dict[str, Collection] = {}

    def operation_context(self) -> OperationContext:
        """
        Context for one driver call.

        This is ``self.context``, or a child of it expiring
        ``config.default_timeout`` from now when the handle was built
        without a context.
        """
        if self._call_timeout is None:
            return self.context
        return self.context.with_timeout(self._call_timeout)

    def collection(self, name: str) -> Collection:
        """
        Get the Collection handle for ``name``.

        One handle is kept per name for the lifetime of this Database.
        """
        if name not in self._collection_cache:
            self._collection_cache[name] = Collection(self, name)
        return self._collection_cache[name]

    def with_context(self, context: OperationContext) -> "Database":
        """Return a Database on the same client and name bound to ``context``."""
        return Database(self.client, self.name, context=context, config=self.config)

    def __getattr__(self, name: str) -> Collection:
        """
        Allow direct access to collections as attributes.

        Example:
            await db.users.find_one({"name": "Ada"})
        """
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        return self.collection(name)

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, context={self.context!r})"
