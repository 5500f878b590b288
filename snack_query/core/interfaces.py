"""
Abstract interfaces for database adapters.

These protocols define the contract that a database adapter must implement
to serve callers through the query model.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Type

from snack_query.core.models import (
    AggregateKeys,
    Filters,
    GroupKeys,
    Page,
    Projections,
    SortKeys,
    Updates,
)


class IQueryTranslator(Protocol):
    """
    Translate query model values to database-specific documents.
    
    Implementations are pure: they never touch a connection.
    """
    
    def translate_filters(self, filters: Filters) -> Dict[str, Any]:
        """
        Convert filters to a native predicate.
        
        Args:
            filters: Filter entries built by the caller
            
        Returns:
            Native predicate document
        """
        ...
    
    def translate_updates(self, updates: Updates) -> Dict[str, Any]:
        """
        Convert updates to a native update document.
        
        Args:
            updates: Update entries built by the caller
            
        Returns:
            Native update document with one clause per update operator
        """
        ...
    
    def translate_upsert_filters(self, filters: Filters) -> Dict[str, Any]:
        ...
    
    def translate_upsert_updates(self, updates: Updates) -> Dict[str, Any]:
        ...
    
    def translate_replace_filters(self, filters: Filters) -> Dict[str, Any]:
        ...
    
    def translate_sort(self, sort_keys: Optional[SortKeys]) -> Optional[List[Tuple[str, int]]]:
        ...
    
    def translate_projection(self, projections: Optional[Projections]) -> Optional[Dict[str, Any]]:
        ...
    
    def build_aggregate_pipeline(
        self,
        filters: Filters,
        group_keys: GroupKeys,
        aggregate_keys: AggregateKeys,
    ) -> List[Dict[str, Any]]:
        """
        Build a two-stage match-then-group pipeline.
        
        Args:
            filters: Filters for the match stage
            group_keys: Grouping dimensions
            aggregate_keys: Aggregated output fields
            
        Returns:
            Native pipeline stages
        """
        ...


class IDataStore(Protocol):
    """
    CRUD and aggregation operations over one named database.
    
    Every operation takes the target collection first and an optional
    ``timeout`` in seconds.
    """
    
    def insert(self, collection: str, record: Any, timeout: Optional[float] = None) -> None:
        ...
    
    def insert_many(self, collection: str, records: Iterable[Any], timeout: Optional[float] = None) -> None:
        ...
    
    def get(
        self,
        collection: str,
        filters: Filters,
        offset: str = "",
        limit: int = 0,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Page:
        """
        Fetch one page of matching documents.
        
        Returns:
            Page holding the documents and the next offset ("" on the last page)
        """
        ...
    
    def get_sorted(
        self,
        collection: str,
        filters: Filters,
        sort_keys: Optional[SortKeys],
        offset: str = "",
        limit: int = 0,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Page:
        ...
    
    def get_one(
        self,
        collection: str,
        filters: Filters,
        projections: Optional[Projections] = None,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Fetch the first matching document.
        
        Raises:
            NotFoundError: If nothing matches
        """
        ...
    
    def update(self, collection: str, filters: Filters, updates: Updates, timeout: Optional[float] = None) -> None:
        ...
    
    def upsert(self, collection: str, filters: Filters, updates: Updates, timeout: Optional[float] = None) -> None:
        ...
    
    def replace(self, collection: str, filters: Filters, record: Any, timeout: Optional[float] = None) -> None:
        ...
    
    def find_one_and_update(
        self,
        collection: str,
        filters: Filters,
        updates: Updates,
        document_class: Optional[Type[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        ...
    
    def count(self, collection: str, filters: Filters, timeout: Optional[float] = None) -> int:
        ...
    
    def delete(self, collection: str, filters: Filters, timeout: Optional[float] = None) -> int:
        ...
    
    def delete_many(self, collection: str, filters: Filters, timeout: Optional[float] = None) -> int:
        ...
    
    def distinct(self, collection: str, field_name: str, filters: Filters, timeout: Optional[float] = None) -> List[Any]:
        ...
    
    def get_aggregate(
        self,
        collection: str,
        filters: Filters,
        group_keys: GroupKeys,
        aggregate_keys: AggregateKeys,
        timeout: Optional[float] = None,
    ) -> Any:
        ...
    
    def bulk_write(self, collection: str, operations: List[Any], timeout: Optional[float] = None) -> Any:
        ...

    def get_cursor(
        self,
        collection: str,
        filters: Filters,
        sort_keys: Optional[SortKeys] = None,
        projections: Optional[Projections] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Return a lazy cursor over matching documents.

        Iteration is subject to the same timeout and error mapping as the
        other operations.
        """
        ...

    def get_reader_db(self) -> Any:
        ...

    def get_writer_db(self) -> Any:
        ...
