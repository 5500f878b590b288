"""Core interfaces, models and errors for the query layer."""

from snack_query.core.interfaces import IDataStore, IQueryTranslator
from snack_query.core.models import (
    DataType,
    Filter,
    Filters,
    Operator,
    Page,
    Range,
    Update,
    UpdateOperator,
    Updates,
)

__all__ = [
    "IDataStore",
    "IQueryTranslator",
    "DataType",
    "Filter",
    "Filters",
    "Operator",
    "Page",
    "Range",
    "Update",
    "UpdateOperator",
    "Updates",
]
