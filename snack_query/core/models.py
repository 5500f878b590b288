"""
Shared data models for the query layer.

Filters, updates, sort/group/aggregate keys and projections are built by
callers per request and handed to a data store operation. They carry no
behavior beyond construction and append; translation into a native query
language lives in the database adapters.
"""

from enum import Enum, IntEnum
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DataType(IntEnum):
    """Declared type of a filter or update value."""
    
    INT64 = 1
    STRING = 2
    STRING_ARRAY = 3
    INT = 4
    INT64_ARRAY = 5
    UINT64_ARRAY = 6
    FLOAT64 = 7
    TIME = 8
    BOOL = 9


class Operator(IntEnum):
    """Comparison operators available to a Filter."""
    
    EQUAL = 0
    IN = 1
    GREATER_THAN_EQUAL = 2
    LESS_THAN_EQUAL = 3
    GREATER_THAN = 4
    BETWEEN = 5
    IN_ARRAY = 6
    OR = 7
    LESS_THAN = 8
    NOT_IN = 9
    ALL = 10


class UpdateOperator(str, Enum):
    """Update operators, named after the native clause they produce."""
    
    SET = "$set"
    UNSET = "$unset"
    PUSH = "$push"
    PULL = "$pull"
    INC = "$inc"
    ARRAY_IN = "$in"
    NOT = "$not"


class Order(IntEnum):
    """Sort direction."""
    
    ASC = 1
    DESC = -1


class AggregateOperator(IntEnum):
    """Accumulators available to an AggregateKey."""
    
    SUM = 1
    MIN = 2
    MAX = 3


class _QueryValue(BaseModel):
    """Immutable base for query model values."""
    
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Range(_QueryValue):
    """Inclusive bounds used by the BETWEEN operator."""
    
    left: Any
    right: Any


class Filter(_QueryValue):
    """
    A single predicate entry.
    
    ``value`` is polymorphic: a scalar or list for most operators, a
    ``Range`` for BETWEEN and a nested ``Filters`` for OR. ``operator``
    also accepts a raw int so that values outside the known operator set
    can still be expressed; how those are handled is up to the translator.
    """
    
    key: str
    value: Any = None
    type: Optional[DataType] = None
    operator: Union[Operator, int] = Operator.EQUAL
    
    @classmethod
    def between(
        cls,
        key: str,
        left: Any,
        right: Any,
        type: Optional[DataType] = None,
    ) -> "Filter":
        """Build a BETWEEN filter with a properly shaped Range value."""
        return cls(
            key=key,
            value=Range(left=left, right=right),
            type=type,
            operator=Operator.BETWEEN,
        )
    
    @classmethod
    def any_of(cls, key: str, filters: Iterable["Filter"]) -> "Filter":
        """
        Build an OR filter whose alternatives are the given sub-filters.
        
        Args:
            key: Native key for the disjunction (``"$or"`` for MongoDB)
            filters: Sub-filters, each translated into one alternative
            
        Returns:
            Filter carrying a nested ``Filters`` value
        """
        return cls(key=key, value=Filters(filters), operator=Operator.OR)


class Update(_QueryValue):
    """A single mutation entry."""
    
    key: str
    value: Any = None
    type: Optional[DataType] = None
    update_operator: Union[UpdateOperator, str] = UpdateOperator.SET


class SortKey(_QueryValue):
    key: str
    order: Order = Order.ASC


class GroupKey(_QueryValue):
    """Grouping dimension; ``value`` is usually a field reference like ``"$status"``."""
    
    key: str
    value: Any


class AggregateKey(_QueryValue):
    """One aggregated output field of a $group stage."""
    
    key: str
    operator: Union[AggregateOperator, int]
    value: Any


class Projection(_QueryValue):
    key: str
    value: Any = 1


class _Entries(list):
    """List of query model entries with variadic append."""
    
    def append(self, *entries: Any) -> None:
        """Append one or more entries, keeping existing order."""
        self.extend(entries)


class Filters(_Entries):
    """Sequence of Filter entries."""


class Updates(_Entries):
    """Sequence of Update entries."""


class SortKeys(_Entries):
    """Sequence of SortKey entries."""


class GroupKeys(_Entries):
    """Sequence of GroupKey entries."""


class AggregateKeys(_Entries):
    """Sequence of AggregateKey entries."""


class Projections(_Entries):
    """Sequence of Projection entries."""


class Page(BaseModel):
    """One page of a paginated read."""
    
    documents: List[Any] = Field(default_factory=list)
    next: str = ""  # empty when there is no further page
    
    @property
    def has_next(self) -> bool:
        return bool(self.next)

