"""Natural Language Processing module for the query engine."""

from .interfaces import (
    QueryIntent,
    QueryPattern,
    QueryAnalysis,
)

from .patterns import ACTION_WORDS, build_query_patterns
from .query_analyzer import QueryAnalyzer

__all__ = [
    # Enums
    "QueryIntent",

    # Data classes
    "QueryPattern",
    "QueryAnalysis",

    # Rule catalog
    "ACTION_WORDS",
    "build_query_patterns",

    # Implementations
    "QueryAnalyzer",
]
