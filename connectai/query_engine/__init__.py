"""
Connect AI Query Engine - local query understanding over cached CRM data.

This module provides intent classification for Czech free-text queries,
an in-memory fuzzy search index with relationship lookup, and the
processor that turns both into ready-to-display answers.
"""

from .catalog import TableCatalog, DEFAULT_SEARCH_FIELDS
from .formatting import ResponseFormatter, entity_label, record_name, record_preview
from .models import QueryResult
from .nlp import QueryAnalysis, QueryAnalyzer, QueryIntent
from .processor import QueryProcessor
from .search import SearchEngine, SearchResult, TableData, IndexStatistics

__all__ = [
    # Core classes
    "QueryProcessor",
    "QueryAnalyzer",
    "SearchEngine",
    "TableCatalog",
    "ResponseFormatter",

    # Models
    "QueryResult",
    "QueryAnalysis",
    "QueryIntent",
    "SearchResult",
    "TableData",
    "IndexStatistics",

    # Helpers
    "DEFAULT_SEARCH_FIELDS",
    "entity_label",
    "record_name",
    "record_preview",
]
