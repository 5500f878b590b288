"""
MongoDB data store.

Executes query model operations against one MongoDB database and returns
decoded results or typed errors.
"""

import logging
from contextlib import contextmanager, nullcontext
from functools import partial
from typing import (
    Any,
    Callable,
    ContextManager,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Type,
)

import pymongo
from pydantic import BaseModel, ValidationError
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.results import BulkWriteResult

from snack_query.adapters.mongodb.query_translator import MongoQueryTranslator
from snack_query.config import Settings
from snack_query.core.errors import CancellationError, DecodeError, NotFoundError
from snack_query.core.interfaces import IQueryTranslator
from snack_query.core.models import (
    AggregateKeys,
    Filters,
    GroupKeys,
    Page,
    Projections,
    SortKeys,
    Updates,
)
from snack_query.query.translator import QueryTranslator

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


class ScopedCursor:
    """
    Lazy cursor whose every fetch runs inside a data store operation scope.

    The driver only talks to the server while the caller iterates, so the
    deadline and error mapping are applied per fetch rather than once when
    the cursor is created. Other attributes are delegated to the wrapped
    cursor.
    """

    def __init__(self, cursor: Any, scope: Callable[[], ContextManager[Any]]):
        self._cursor = cursor
        self._scope = scope
        self._iterator: Optional[Iterator[Any]] = None

    def __iter__(self) -> "ScopedCursor":
        return self

    def __next__(self) -> Any:
        with self._scope():
            if self._iterator is None:
                self._iterator = iter(self._cursor)
            document = next(self._iterator, _EXHAUSTED)
        if document is _EXHAUSTED:
            raise StopIteration
        return document

    def __enter__(self) -> "ScopedCursor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._cursor.close()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cursor, name)


class MongoDataStore:
    """
    Executes CRUD and aggregation operations on a MongoDB database.
    
    Implements the IDataStore interface for MongoDB. The client is
    injected and owned for the lifetime of the store; reconnection is left
    to the driver's connection pool. Each call runs in the driver's
    implicit per-operation session and holds no locks, so a single store
    can be shared between threads.
    """
    
    def __init__(
        self,
        client: MongoClient,
        database_name: str,
        translator: Optional[IQueryTranslator] = None,
        default_timeout: Optional[float] = None,
    ):
        """
        Initialize MongoDB data store.
        
        Args:
            client: Connected MongoDB client
            database_name: Name of the database
            translator: Query translator (lenient MongoQueryTranslator by default)
            default_timeout: Timeout in seconds for calls that do not pass one
        """
        self.client = client
        self.database_name = database_name
        self.default_timeout = default_timeout
        
        self.db: Database = client[database_name]
        self.translator = QueryTranslator(translator or MongoQueryTranslator())
    
    @classmethod
    def from_uri(
        cls,
        mongo_uri: str,
        database_name: str,
        strict: bool = False,
        default_timeout: Optional[float] = None,
    ) -> "MongoDataStore":
        """
        Create a data store with its own client.
        
        Args:
            mongo_uri: MongoDB connection URI
            database_name: Name of the database
            strict: Use strict operator handling in the translator
            default_timeout: Timeout in seconds for calls that do not pass one
            
        Returns:
            Configured MongoDataStore
        """
        return cls(
            client=MongoClient(mongo_uri),
            database_name=database_name,
            translator=MongoQueryTranslator(strict=strict),
            default_timeout=default_timeout,
        )
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoDataStore":
        return cls.from_uri(
            mongo_uri=settings.mongo_uri,
            database_name=settings.database_name,
            strict=settings.strict_operators,
            default_timeout=settings.timeout_seconds,
        )
    
    def get_reader_db(self) -> Database:
        return self.db
    
    def get_writer_db(self) -> Database:
        return self.db
    
    @contextmanager
    def _operation(
        self, name: str, collection: str, timeout: Optional[float]
    ) -> Iterator[Collection]:
        """
        Scope a single native call.
        
        Applies the caller's deadline, turns driver timeouts into
        CancellationError and logs every other driver failure once before
        re-raising it unchanged.
        """
        if timeout is None:
            timeout = self.default_timeout
        deadline = pymongo.timeout(timeout) if timeout is not None else nullcontext()
        
        try:
            with deadline:
                yield self.db[collection]
        except PyMongoError as e:
            if e.timeout:
                logger.warning(f"{name} on '{collection}' cancelled: {e}")
                raise CancellationError(
                    f"{name} on '{collection}' did not complete within its deadline"
                ) from e
            logger.error(f"Err. Mongo {name} on '{collection}': {e}")
            raise
    
    def insert(self, collection: str, record: Any, timeout: Optional[float] = None) -> None:
        document = self._to_document(record)
        with self._operation("Insert", collection, timeout) as c:
            c.insert_one(document)
    
    def insert_many(
        self, collection: str, records: Iterable[Any], timeout: Optional[float] = None
    ) -> None:
        """
        Insert records as an unordered batch.
        
        A failing record does not stop the remaining ones from being
        written; the driver reports all failures together afterwards.
        """
        documents = [self._to_document(record) for record in records]
        if not documents:
            return
        with self._operation("InsertMany", collection, timeout) as c:
            c.insert_many(documents, ordered=False)
    
    def bulk_write(
        self, collection: str, operations: List[Any], timeout: Optional[float] = None
    ) -> BulkWriteResult:
        with self._operation("BulkWrite", collection, timeout) as c:
            return c.bulk_write(operations)
    
    def get(
        self,
        collection: str,
        filters: Optional[Filters],
        offset: str = "",
        limit: int = 0,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Page:
        """
        Fetch one page of matching documents.
        
        Args:
            collection: Collection name
            filters: Filters selecting the documents
            offset: Stringified number of documents to skip ("" for the first page)
            limit: Page size; 0 returns every match and skips the count query
            document_class: Optional pydantic model to decode documents into
            timeout: Deadline in seconds
            
        Returns:
            Page with the documents and the offset of the next page
        """
        return self._find_page("Get", collection, filters, None, offset, limit, document_class, timeout)
    
    def get_sorted(
        self,
        collection: str,
        filters: Optional[Filters],
        sort_keys: Optional[SortKeys],
        offset: str = "",
        limit: int = 0,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Page:
        """Same as get(), with sort keys applied before skip and limit."""
        return self._find_page(
            "GetSorted", collection, filters, sort_keys, offset, limit, document_class, timeout
        )
    
    def _find_page(
        self,
        name: str,
        collection: str,
        filters: Optional[Filters],
        sort_keys: Optional[SortKeys],
        offset: str,
        limit: int,
        document_class: Optional[Type[Any]],
        timeout: Optional[float],
    ) -> Page:
        query = self.translator.filters(filters)
        sort = self.translator.sort(sort_keys)
        skip = self._parse_offset(offset) if limit else 0
        
        with self._operation(name, collection, timeout) as c:
            cursor = c.find(query)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
                if skip:
                    cursor = cursor.skip(skip)
            documents = list(cursor)
            
            if not limit:
                logger.debug("Empty limit value: skipping docs count")
                return Page(documents=self._decode_all(documents, document_class))
            
            total = c.count_documents(query)
        
        next_offset = str(limit + skip) if limit + skip < total else ""
        return Page(documents=self._decode_all(documents, document_class), next=next_offset)
    
    def get_cursor(
        self,
        collection: str,
        filters: Optional[Filters],
        sort_keys: Optional[SortKeys] = None,
        projections: Optional[Projections] = None,
        timeout: Optional[float] = None,
    ) -> ScopedCursor:
        """
        Return a lazy cursor over matching documents.

        The timeout applies to each fetch made while iterating.
        """
        query = self.translator.filters(filters)
        sort = self.translator.sort(sort_keys)
        projection = self.translator.projection(projections)

        with self._operation("GetCursor", collection, timeout) as c:
            cursor = c.find(query, projection)
            if sort:
                cursor = cursor.sort(sort)
        return ScopedCursor(cursor, partial(self._operation, "GetCursor", collection, timeout))
    
    def get_one(
        self,
        collection: str,
        filters: Optional[Filters],
        projections: Optional[Projections] = None,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Fetch the first matching document.
        
        Args:
            collection: Collection name
            filters: Filters selecting the document
            projections: Optional fields to include or exclude
            document_class: Optional pydantic model to decode the document into
            timeout: Deadline in seconds
            
        Returns:
            The document, or an instance of document_class
            
        Raises:
            NotFoundError: If no document matches
        """
        query = self.translator.filters(filters)
        projection = self.translator.projection(projections)
        
        with self._operation("GetOne", collection, timeout) as c:
            document = c.find_one(query, projection)
        
        if document is None:
            logger.debug(f"GetOne: no document in '{collection}' for {query}")
            raise NotFoundError(collection, query)
        return self._decode(document, document_class)
    
    def find_one_and_update(
        self,
        collection: str,
        filters: Optional[Filters],
        updates: Optional[Updates],
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Atomically update the first matching document and return it.
        
        Returns:
            The document as it is after the update
            
        Raises:
            NotFoundError: If no document matches
        """
        query = self.translator.filters(filters)
        update = self.translator.updates(updates)
        
        with self._operation("FindOneAndUpdate", collection, timeout) as c:
            document = c.find_one_and_update(query, update, return_document=ReturnDocument.AFTER)
        
        if document is None:
            logger.debug(f"FindOneAndUpdate: no document in '{collection}' for {query}")
            raise NotFoundError(collection, query)
        return self._decode(document, document_class)
    
    def update(
        self,
        collection: str,
        filters: Optional[Filters],
        updates: Optional[Updates],
        timeout: Optional[float] = None,
    ) -> None:
        """Apply updates to every matching document (not transactional across matches)."""
        query = self.translator.filters(filters)
        update = self.translator.updates(updates)
        
        with self._operation("Update", collection, timeout) as c:
            c.update_many(query, update)
    
    def upsert(
        self,
        collection: str,
        filters: Optional[Filters],
        updates: Optional[Updates],
        timeout: Optional[float] = None,
    ) -> None:
        """
        Update the first matching document or create one.
        
        Updates are applied with $set semantics; a created document holds
        the filter's equality fields plus the updated fields.
        """
        query = self.translator.upsert_filters(filters)
        update = self.translator.upsert_updates(updates)
        
        with self._operation("Upsert", collection, timeout) as c:
            c.update_one(query, update, upsert=True)
    
    def replace(
        self,
        collection: str,
        filters: Optional[Filters],
        record: Any,
        timeout: Optional[float] = None,
    ) -> None:
        query = self.translator.replace_filters(filters)
        document = self._to_document(record)
        
        with self._operation("Replace", collection, timeout) as c:
            c.replace_one(query, document)
    
    def count(self, collection: str, filters: Optional[Filters], timeout: Optional[float] = None) -> int:
        query = self.translator.filters(filters)
        with self._operation("Count", collection, timeout) as c:
            return c.count_documents(query)
    
    def delete(self, collection: str, filters: Optional[Filters], timeout: Optional[float] = None) -> int:
        """Delete at most one matching document and return the deleted count."""
        query = self.translator.filters(filters)
        with self._operation("Delete", collection, timeout) as c:
            return c.delete_one(query).deleted_count
    
    def delete_many(
        self, collection: str, filters: Optional[Filters], timeout: Optional[float] = None
    ) -> int:
        query = self.translator.filters(filters)
        with self._operation("DeleteMany", collection, timeout) as c:
            return c.delete_many(query).deleted_count
    
    def distinct(
        self,
        collection: str,
        field_name: str,
        filters: Optional[Filters],
        timeout: Optional[float] = None,
    ) -> List[Any]:
        query = self.translator.filters(filters)
        with self._operation("GetDistinct", collection, timeout) as c:
            return c.distinct(field_name, query)
    
    def get_aggregate(
        self,
        collection: str,
        filters: Optional[Filters],
        group_keys: Optional[GroupKeys],
        aggregate_keys: Optional[AggregateKeys],
        timeout: Optional[float] = None,
    ) -> ScopedCursor:
        """
        Run a $match -> $group aggregation.

        Returns:
            Cursor over the grouped documents; later batches are fetched
            under the same timeout and error mapping as the first
        """
        pipeline = self.translator.aggregate_pipeline(filters, group_keys, aggregate_keys)
        with self._operation("GetAggregate", collection, timeout) as c:
            cursor = c.aggregate(pipeline)
        return ScopedCursor(cursor, partial(self._operation, "GetAggregate", collection, timeout))
    
    @staticmethod
    def _parse_offset(offset: str) -> int:
        if not offset:
            return 0
        try:
            return int(offset)
        except ValueError:
            logger.error(f"Err. converting offset -> skip: {offset!r}")
            raise
    
    @staticmethod
    def _to_document(record: Any) -> Any:
        if isinstance(record, BaseModel):
            return record.model_dump(by_alias=True)
        return record
    
    @staticmethod
    def _decode(document: Mapping[str, Any], document_class: Optional[Type[Any]]) -> Any:
        if document_class is None:
            return document
        try:
            return document_class.model_validate(document)
        except ValidationError as e:
            raise DecodeError(
                f"could not decode document into {document_class.__name__}: {e}"
            ) from e
    
    def _decode_all(
        self, documents: List[Dict[str, Any]], document_class: Optional[Type[Any]]
    ) -> List[Any]:
        return [self._decode(document, document_class) for document in documents]
