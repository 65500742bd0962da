"""Search module interfaces for the query engine.

This module defines the data structures shared by the indexer and the
search engine, plus the single normalization rule for CRM table payloads.
"""

from typing import List, Dict, Any, Optional, Set, Mapping
from dataclasses import dataclass, field


# Wrapper keys probed in order when a table payload is not a bare list.
RECORD_CONTAINER_KEYS = ("items", "data", "records", "results")


@dataclass
class TableData:
    """One CRM table as delivered by a CRM provider."""
    name: str
    data: Any
    entity_type: Optional[str] = None
    record_count: Optional[int] = None

    @classmethod
    def from_mapping(cls, table_id: str, raw: Mapping[str, Any]) -> "TableData":
        """Build from a loosely-shaped provider mapping.

        Accepts ``entity_type``, camel-case ``entityType`` or the shorter
        ``type`` tag.
        """
        return cls(
            name=raw.get("name") or table_id,
            data=raw.get("data"),
            entity_type=raw.get("entity_type") or raw.get("entityType") or raw.get("type"),
            record_count=raw.get("record_count", raw.get("recordCount")),
        )


@dataclass
class IndexedRecord:
    """The engine's augmented view of a CRM record."""
    id: str
    entity_type: str
    table_id: str
    record: Dict[str, Any]
    search_text: str
    tokens: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class RelationshipEdge:
    """Directed link discovered through a reference-shaped field value."""
    target_id: str
    field_name: str


@dataclass
class SearchMatch:
    """A query token found inside one field of a record."""
    field: str
    value: Any
    token: str


@dataclass
class SearchResult:
    """Scored search hit."""
    record: Dict[str, Any]
    type: str
    score: float
    matches: List[SearchMatch] = field(default_factory=list)

    def __lt__(self, other: "SearchResult") -> bool:
        """Enable sorting by score (descending)."""
        return self.score > other.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": self.record,
            "type": self.type,
            "score": self.score,
            "matches": [
                {"field": m.field, "value": m.value, "token": m.token}
                for m in self.matches
            ],
        }


@dataclass
class IndexStatistics:
    """Counts gathered while building the index."""
    total: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_table: Dict[str, int] = field(default_factory=dict)
    indexing_time_ms: float = 0.0

    def copy(self) -> "IndexStatistics":
        return IndexStatistics(
            total=self.total,
            by_type=dict(self.by_type),
            by_table=dict(self.by_table),
            indexing_time_ms=self.indexing_time_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "by_type": dict(self.by_type),
            "by_table": dict(self.by_table),
            "indexing_time_ms": self.indexing_time_ms,
        }


def extract_records(data: Any) -> List[Dict[str, Any]]:
    """Normalize a table payload into a list of records.

    A bare list is returned as is. A mapping is probed for the keys
    ``items``, ``data``, ``records`` and ``results`` in that order and the
    first one holding a list wins. Any other shape yields an empty list.
    Non-mapping entries inside the list are dropped.
    """
    records: Any = None
    if isinstance(data, list):
        records = data
    elif isinstance(data, Mapping):
        for key in RECORD_CONTAINER_KEYS:
            candidate = data.get(key)
            if isinstance(candidate, list):
                records = candidate
                break

    if not records:
        return []
    return [record for record in records if isinstance(record, dict)]


def record_fields(record: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the field mapping of a record.

    CRM exports either wrap values under ``fields`` or keep them flat.
    """
    fields = record.get("fields")
    if isinstance(fields, Mapping):
        return fields
    return record
