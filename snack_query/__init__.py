"""
Snack Query - database-agnostic query layer for the snack-track bot.

Callers build Filters and Updates and run them through a data store; the
MongoDB adapter translates them to native queries.
"""

from snack_query.adapters.mongodb import MongoDataStore, MongoQueryTranslator
from snack_query.core.errors import (
    CancellationError,
    DecodeError,
    DriverError,
    NotFoundError,
    SnackQueryError,
    TranslationError,
)
from snack_query.core.models import (
    AggregateKey,
    AggregateKeys,
    AggregateOperator,
    DataType,
    Filter,
    Filters,
    GroupKey,
    GroupKeys,
    Operator,
    Order,
    Page,
    Projection,
    Projections,
    Range,
    SortKey,
    SortKeys,
    Update,
    UpdateOperator,
    Updates,
)

__all__ = [
    "MongoDataStore",
    "MongoQueryTranslator",
    "CancellationError",
    "DecodeError",
    "DriverError",
    "NotFoundError",
    "SnackQueryError",
    "TranslationError",
    "AggregateKey",
    "AggregateKeys",
    "AggregateOperator",
    "DataType",
    "Filter",
    "Filters",
    "GroupKey",
    "GroupKeys",
    "Operator",
    "Order",
    "Page",
    "Projection",
    "Projections",
    "Range",
    "SortKey",
    "SortKeys",
    "Update",
    "UpdateOperator",
    "Updates",
]
