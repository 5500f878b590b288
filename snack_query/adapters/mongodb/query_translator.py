"""
MongoDB query translator.

Converts query model values to MongoDB predicates, update documents and
aggregation pipelines.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from snack_query.core.errors import TranslationError
from snack_query.core.models import (
    AggregateKeys,
    AggregateOperator,
    Filter,
    Filters,
    GroupKeys,
    Operator,
    Projections,
    Range,
    SortKeys,
    Update,
    UpdateOperator,
    Updates,
)
from snack_query.core.type_mappings import TypeMapper

logger = logging.getLogger(__name__)


class MongoQueryTranslator:
    """
    Translates query model values to MongoDB documents.
    
    Implements the IQueryTranslator interface for MongoDB.
    
    In lenient mode (the default) an unknown operator produces no
    constraint and a repeated filter key overwrites the earlier one. In
    strict mode both raise ``TranslationError``, and values are checked
    against their declared ``DataType``.
    """
    
    COMPARISON_OPERATORS = {
        Operator.IN: "$in",
        Operator.GREATER_THAN_EQUAL: "$gte",
        Operator.LESS_THAN_EQUAL: "$lte",
        Operator.GREATER_THAN: "$gt",
        Operator.LESS_THAN: "$lt",
        Operator.NOT_IN: "$nin",
        Operator.ALL: "$all",
    }
    
    UPSERT_OPERATORS = (
        Operator.EQUAL,
        Operator.IN,
        Operator.GREATER_THAN_EQUAL,
        Operator.LESS_THAN,
    )
    
    REPLACE_OPERATORS = (Operator.EQUAL, Operator.IN)
    
    ACCUMULATORS = {
        AggregateOperator.SUM: "$sum",
        AggregateOperator.MIN: "$min",
        AggregateOperator.MAX: "$max",
    }
    
    def __init__(self, strict: bool = False):
        """
        Initialize MongoDB query translator.
        
        Args:
            strict: Fail on unknown operators, duplicate filter keys and
                values that do not match their declared type
        """
        self.strict = strict
    
    def translate_filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        """
        Convert filters to a MongoDB predicate.
        
        Args:
            filters: Filter entries; OR entries carry nested Filters
            
        Returns:
            Predicate document keyed by field path
        """
        query: Dict[str, Any] = {}
        
        for entry in filters or []:
            self._require(entry, Filter)
            operator = self._resolve_operator(entry, "filter")
            if operator is None:
                continue
            
            self._check_filter_type(entry, operator)
            self._assign(query, entry.key, self._translate_filter(entry, operator))
        
        return query
    
    def _translate_filter(self, entry: Filter, operator: Operator) -> Any:
        """Translate a single filter entry to its field constraint."""
        if operator in (Operator.EQUAL, Operator.IN_ARRAY):
            return entry.value
        
        if operator in self.COMPARISON_OPERATORS:
            return {self.COMPARISON_OPERATORS[operator]: entry.value}
        
        if operator == Operator.BETWEEN:
            if not isinstance(entry.value, Range):
                raise TranslationError(
                    f"BETWEEN requires a Range value, got {type(entry.value).__name__}",
                    key=entry.key,
                )
            return {"$gte": entry.value.left, "$lte": entry.value.right}
        
        # Operator.OR: every field of the nested translation is one alternative
        sub_filters = entry.value
        if not isinstance(sub_filters, (list, tuple)):
            raise TranslationError(
                f"OR requires nested Filters, got {type(sub_filters).__name__}",
                key=entry.key,
            )
        sub_query = self.translate_filters(sub_filters)
        return [{field: constraint} for field, constraint in sub_query.items()]
    
    def translate_updates(self, updates: Optional[Updates]) -> Dict[str, Any]:
        """
        Convert updates to a MongoDB update document.
        
        Entries sharing an update operator are merged into one clause.
        PUSH entries for the same field accumulate into a single
        ``{"$each": [...]}`` append, in input order.
        
        Args:
            updates: Update entries
            
        Returns:
            Update document, e.g. {"$set": {...}, "$push": {...}}
        """
        document: Dict[str, Dict[str, Any]] = {}
        
        for entry in updates or []:
            self._require(entry, Update)
            clause_name = self._resolve_update_operator(entry)
            self._check_update_type(entry, clause_name)
            clause = document.setdefault(clause_name, {})
            
            if clause_name == UpdateOperator.PUSH.value:
                values = entry.value if isinstance(entry.value, (list, tuple)) else [entry.value]
                batch = clause.setdefault(entry.key, {"$each": []})
                batch["$each"].extend(values)
            else:
                clause[entry.key] = entry.value
        
        return document
    
    def translate_upsert_filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        """
        Convert filters to the match side of an upsert.
        
        Only EQUAL, IN, GREATER_THAN_EQUAL and LESS_THAN are supported.
        """
        query: Dict[str, Any] = {}
        
        for entry in filters or []:
            self._require(entry, Filter)
            operator = self._resolve_operator(entry, "upsert")
            if operator is None:
                continue
            if operator not in self.UPSERT_OPERATORS:
                self._unsupported(entry, "upsert")
                continue
            
            self._check_filter_type(entry, operator)
            if operator == Operator.IN:
                self._assign(query, entry.key, {"$in": self._as_list(entry.value)})
            elif operator == Operator.EQUAL:
                self._assign(query, entry.key, entry.value)
            else:
                # Compared against the bare value; wrapping it in a list
                # would compare the field to an array and never match.
                self._assign(query, entry.key, {self.COMPARISON_OPERATORS[operator]: entry.value})

        return query

    def translate_upsert_updates(self, updates: Optional[Updates]) -> Dict[str, Any]:
        """Fold every update entry into a single $set clause."""
        fields: Dict[str, Any] = {}
        
        for entry in updates or []:
            self._require(entry, Update)
            clause_name = self._resolve_update_operator(entry)
            if clause_name != UpdateOperator.SET.value:
                if self.strict:
                    raise TranslationError(
                        f"upsert only supports $set, got {clause_name}", key=entry.key
                    )
                logger.warning(
                    f"Upsert applies $set semantics: {clause_name} on '{entry.key}' treated as $set"
                )
            self._check_update_type(entry, UpdateOperator.SET.value)
            fields[entry.key] = entry.value
        
        return {UpdateOperator.SET.value: fields}
    
    def translate_replace_filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        """Convert filters to the match side of a replace (EQUAL and IN only)."""
        query: Dict[str, Any] = {}
        
        for entry in filters or []:
            self._require(entry, Filter)
            operator = self._resolve_operator(entry, "replace")
            if operator is None:
                continue
            if operator not in self.REPLACE_OPERATORS:
                self._unsupported(entry, "replace")
                continue
            
            self._check_filter_type(entry, operator)
            if operator == Operator.IN:
                self._assign(query, entry.key, {"$in": self._as_list(entry.value)})
            else:
                self._assign(query, entry.key, entry.value)
        
        return query
    
    def translate_sort(self, sort_keys: Optional[SortKeys]) -> Optional[List[Tuple[str, int]]]:
        """Convert sort keys to a pymongo sort specification, keeping key order."""
        if not sort_keys:
            return None
        return [(sort_key.key, int(sort_key.order)) for sort_key in sort_keys]
    
    def translate_projection(self, projections: Optional[Projections]) -> Optional[Dict[str, Any]]:
        if not projections:
            return None
        return {projection.key: projection.value for projection in projections}
    
    def build_aggregate_pipeline(
        self,
        filters: Optional[Filters],
        group_keys: Optional[GroupKeys],
        aggregate_keys: Optional[AggregateKeys],
    ) -> List[Dict[str, Any]]:
        """
        Build a $match -> $group pipeline.
        
        Args:
            filters: Filters for the $match stage
            group_keys: Grouping dimensions, combined into the group _id
            aggregate_keys: One accumulator field per entry
            
        Returns:
            Two-stage MongoDB aggregation pipeline
        """
        match_stage = {"$match": self.translate_filters(filters)}
        
        group_id = {group_key.key: group_key.value for group_key in group_keys or []}
        group: Dict[str, Any] = {"_id": group_id}
        
        for aggregate_key in aggregate_keys or []:
            try:
                operator = AggregateOperator(aggregate_key.operator)
            except ValueError:
                if self.strict:
                    raise TranslationError(
                        f"unknown aggregate operator {aggregate_key.operator!r}",
                        key=aggregate_key.key,
                    )
                logger.warning(
                    f"Aggregate operator {aggregate_key.operator!r} not implemented, "
                    f"skipping '{aggregate_key.key}'"
                )
                continue
            group[aggregate_key.key] = {self.ACCUMULATORS[operator]: aggregate_key.value}
        
        return [match_stage, {"$group": group}]
    
    def _resolve_operator(self, entry: Filter, context: str) -> Optional[Operator]:
        try:
            return Operator(entry.operator)
        except ValueError:
            self._unsupported(entry, context)
            return None
    
    def _resolve_update_operator(self, entry: Update) -> str:
        try:
            return UpdateOperator(entry.update_operator).value
        except ValueError:
            operator = entry.update_operator
            if self.strict or not isinstance(operator, str):
                raise TranslationError(
                    f"unknown update operator {operator!r}", key=entry.key
                )
            logger.warning(f"Update operator {operator!r} is not a known operator, passing it through")
            return operator
    
    def _unsupported(self, entry: Filter, context: str) -> None:
        if self.strict:
            raise TranslationError(
                f"operator {entry.operator!r} not supported in {context}", key=entry.key
            )
        logger.warning(
            f"Operator[{entry.operator!r}] not implemented in {context}, skipping '{entry.key}'"
        )
    
    def _assign(self, query: Dict[str, Any], key: str, constraint: Any) -> None:
        # Repeated keys overwrite (last write wins) unless strict
        if self.strict and key in query:
            raise TranslationError("duplicate filter key", key=key)
        query[key] = constraint
    
    def _check_filter_type(self, entry: Filter, operator: Operator) -> None:
        if not self.strict or entry.type is None:
            return
        if operator == Operator.OR:
            return
        if operator == Operator.BETWEEN:
            if isinstance(entry.value, Range):
                values = [entry.value.left, entry.value.right]
            else:
                return  # shape error is reported by translation
        else:
            values = [entry.value]
        
        for value in values:
            if not TypeMapper.matches(entry.type, value):
                raise TranslationError(
                    f"value {value!r} does not match declared type {entry.type.name}",
                    key=entry.key,
                )
    
    def _check_update_type(self, entry: Update, clause_name: str) -> None:
        if not self.strict or entry.type is None:
            return
        if clause_name == UpdateOperator.UNSET.value:
            return
        if not TypeMapper.matches(entry.type, entry.value):
            raise TranslationError(
                f"value {entry.value!r} does not match declared type {entry.type.name}",
                key=entry.key,
            )
    
    @staticmethod
    def _require(entry: Any, expected: type) -> None:
        if not isinstance(entry, expected):
            raise TranslationError(
                f"expected {expected.__name__}, got {type(entry).__name__}"
            )
    
    @staticmethod
    def _as_list(value: Any) -> List[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]
