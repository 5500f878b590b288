"""Query translation components."""

from snack_query.query.translator import QueryTranslator

__all__ = ["QueryTranslator"]
