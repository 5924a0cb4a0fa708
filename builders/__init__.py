"""
Query builders.

Translate HTTP query parameters into MongoDB filters, separate from the
HTTP layer.
"""

from .query import BuiltQuery, ListQueryBuilder

__all__ = [
    "BuiltQuery",
    "ListQueryBuilder",
]
