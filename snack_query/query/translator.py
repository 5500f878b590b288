"""
Query translation coordinator.

Delegates translation to database-specific translators.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from snack_query.core.errors import TranslationError
from snack_query.core.interfaces import IQueryTranslator
from snack_query.core.models import (
    AggregateKeys,
    Filters,
    GroupKeys,
    Projections,
    SortKeys,
    Updates,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryTranslator:
    """
    Coordinates query translation from query model values to database queries.
    
    This class wraps a database-specific query translator and guarantees
    that a malformed payload surfaces as ``TranslationError`` instead of
    whatever low-level exception the translator happened to hit.
    """
    
    def __init__(self, translator: IQueryTranslator):
        """
        Initialize query translator.
        
        Args:
            translator: Database-specific query translator implementation
        """
        self.translator = translator
    
    def filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        query = self._run("filters", self.translator.translate_filters, filters)
        logger.debug(f"Filters: {query}")
        return query
    
    def updates(self, updates: Optional[Updates]) -> Dict[str, Any]:
        document = self._run("updates", self.translator.translate_updates, updates)
        logger.debug(f"Updates: {document}")
        return document
    
    def upsert_filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        return self._run("upsert filters", self.translator.translate_upsert_filters, filters)
    
    def upsert_updates(self, updates: Optional[Updates]) -> Dict[str, Any]:
        return self._run("upsert updates", self.translator.translate_upsert_updates, updates)
    
    def replace_filters(self, filters: Optional[Filters]) -> Dict[str, Any]:
        return self._run("replace filters", self.translator.translate_replace_filters, filters)
    
    def sort(self, sort_keys: Optional[SortKeys]) -> Optional[List[Tuple[str, int]]]:
        return self._run("sort keys", self.translator.translate_sort, sort_keys)
    
    def projection(self, projections: Optional[Projections]) -> Optional[Dict[str, Any]]:
        return self._run("projections", self.translator.translate_projection, projections)
    
    def aggregate_pipeline(
        self,
        filters: Optional[Filters],
        group_keys: Optional[GroupKeys],
        aggregate_keys: Optional[AggregateKeys],
    ) -> List[Dict[str, Any]]:
        """
        Translate filters, group keys and aggregate keys into a pipeline.
        
        Returns:
            List of pipeline stages
        """
        pipeline = self._run(
            "aggregate pipeline",
            self.translator.build_aggregate_pipeline,
            filters,
            group_keys,
            aggregate_keys,
        )
        logger.debug(f"Pipeline: {pipeline}")
        return pipeline
    
    @staticmethod
    def _run(what: str, translate: Callable[..., T], *args: Any) -> T:
        try:
            return translate(*args)
        except TranslationError:
            raise
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            raise TranslationError(f"could not translate {what}: {e}") from e
