"""Natural Language Processing module interfaces for the query engine.

This module defines the data structures for intent classification.
"""

import re
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum


class QueryIntent(str, Enum):
    """Types of query intents."""
    COUNT = "count"
    LIST = "list"
    SEARCH = "search"
    DETAIL = "detail"
    RELATED = "related"
    SYSTEM = "system"
    GENERAL = "general"


ParameterExtractor = Callable[["re.Match[str]"], Dict[str, Any]]


@dataclass
class QueryPattern:
    """One classification rule."""
    regex: "re.Pattern[str]"
    confidence: float = 0.8
    extract: Optional[ParameterExtractor] = None
    needs_entity_name: bool = False

    def match(self, text: str) -> Optional["re.Match[str]"]:
        return self.regex.search(text)


@dataclass
class QueryAnalysis:
    """Classified query with extracted parameters."""
    original_query: str
    normalized_query: str
    type: QueryIntent = QueryIntent.GENERAL
    entity: Optional[str] = None
    entity_name: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_query": self.original_query,
            "normalized_query": self.normalized_query,
            "type": self.type.value,
            "entity": self.entity,
            "entity_name": self.entity_name,
            "parameters": dict(self.parameters),
            "confidence": self.confidence,
        }
