"""MongoDB adapter for the query layer."""

from snack_query.adapters.mongodb.query_translator import MongoQueryTranslator
from snack_query.adapters.mongodb.data_store import MongoDataStore

__all__ = ["MongoQueryTranslator", "MongoDataStore"]
