"""Connect AI: natural-language questions over exported CRM data.

This package provides:
- Rule-based understanding of Czech CRM queries
- A local fuzzy search index with relationship lookup
- Pluggable CRM data providers and AI answer formatters
"""

from .assistant import Assistant
from .config import ConfigManager
from .models import AppConfig
from .query_engine import QueryProcessor, QueryResult, SearchEngine

__all__ = [
    "Assistant",
    "ConfigManager",
    "AppConfig",
    "QueryProcessor",
    "QueryResult",
    "SearchEngine",
]

__version__ = "2.0.0"
