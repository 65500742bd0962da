"""Search module for the query engine."""

from .interfaces import (
    TableData,
    IndexedRecord,
    RelationshipEdge,
    SearchMatch,
    SearchResult,
    IndexStatistics,
    extract_records,
    record_fields,
)

from .tokenizer import tokenize, levenshtein_distance, similarity
from .engine import SearchEngine

__all__ = [
    # Data classes
    "TableData",
    "IndexedRecord",
    "RelationshipEdge",
    "SearchMatch",
    "SearchResult",
    "IndexStatistics",

    # Functions
    "extract_records",
    "record_fields",
    "tokenize",
    "levenshtein_distance",
    "similarity",

    # Implementations
    "SearchEngine",
]
