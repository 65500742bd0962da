"""In-memory search engine over cached CRM tables.

The engine owns four structures that are rebuilt together on every
``build_index`` call:

- ``by_type``: entity type -> indexed records in table scan order
- ``by_id``: record id -> indexed record (last write wins on collisions)
- ``postings``: token -> ids of records containing it
- ``relationships``: source id -> edges found in reference-shaped fields

Scoring walks the candidate records directly; postings are kept for
coverage lookups and are not used to prune candidates.
"""

import logging
import random
import string
import time
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from ...error_handling import ErrorHandler, IndexingError
from ...logging_config import Timer, log_performance
from ..catalog import TableCatalog
from .interfaces import (
    IndexedRecord,
    IndexStatistics,
    RelationshipEdge,
    SearchMatch,
    SearchResult,
    TableData,
    extract_records,
    record_fields,
)
from .tokenizer import similarity, tokenize

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 0.7
FUZZY_WEIGHT = 0.8
ALL_TOKENS_BOOST = 1.2
REFERENCE_NAME_FIELDS = ("name", "nazev", "title")


class SearchEngine:
    """Fast local search and indexing engine."""

    def __init__(self, catalog: Optional[TableCatalog] = None):
        self.catalog = catalog or TableCatalog()
        self.error_handler = ErrorHandler(context={"component": "search_engine"}, raise_on_critical=False)
        self._reset()

    def _reset(self) -> None:
        self.by_type: Dict[str, List[IndexedRecord]] = {}
        self.by_id: Dict[str, IndexedRecord] = {}
        self.postings: Dict[str, Set[str]] = defaultdict(set)
        self.relationships: Dict[str, List[RelationshipEdge]] = {}
        self._incoming: Dict[str, List[str]] = defaultdict(list)
        self._ids_by_identity: Dict[int, str] = {}
        self.statistics = IndexStatistics()

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def build_index(self, tables: Mapping[str, Union[TableData, Mapping[str, Any]]]) -> None:
        """Rebuild the whole index from a mapping of table id -> table data."""
        with Timer() as timer:
            self._reset()

            for table_id, table in (tables or {}).items():
                with self.error_handler.with_context(table_id=table_id):
                    if not isinstance(table, TableData):
                        if not isinstance(table, Mapping):
                            self.error_handler.handle_error(IndexingError(
                                f"Skipping table with unexpected shape: {type(table).__name__}",
                                table_id=table_id,
                            ))
                            continue
                        table = TableData.from_mapping(table_id, table)
                    self._index_table(table_id, table)

            self._build_relationship_index()

        self.statistics.indexing_time_ms = timer.duration_ms
        log_performance(
            __name__,
            "build_index",
            timer.duration_ms,
            total=self.statistics.total,
            by_type=dict(self.statistics.by_type),
        )

    def _index_table(self, table_id: str, table: TableData) -> None:
        records = extract_records(table.data)
        entity_type = (
            table.entity_type
            or self.catalog.entity_type_for_table(table_id)
            or "unknown"
        )
        search_fields = self.catalog.search_fields_for_type(entity_type)
        bucket = self.by_type.setdefault(entity_type, [])

        for record in records:
            record_id = self._normalize_id(record.get("id")) or self._generate_id()
            search_text = self._build_search_text(record, search_fields)
            indexed = IndexedRecord(
                id=record_id,
                entity_type=entity_type,
                table_id=table_id,
                record=record,
                search_text=search_text,
                tokens=tokenize(search_text),
            )

            bucket.append(indexed)
            self.by_id[record_id] = indexed
            self._ids_by_identity[id(record)] = record_id
            for token in indexed.tokens:
                self.postings[token].add(record_id)

            self.statistics.total += 1
            self.statistics.by_type[entity_type] = self.statistics.by_type.get(entity_type, 0) + 1

        self.statistics.by_table[table.name or table_id] = len(records)
        logger.debug(
            "Indexed table",
            extra={"table_id": table_id, "entity_type": entity_type, "records": len(records)},
        )

    def _build_search_text(self, record: Mapping[str, Any], search_fields: List[str]) -> str:
        fields = record_fields(record)
        parts = []

        for field_name in search_fields:
            value = self._field_text(fields.get(field_name))
            if value:
                parts.append(value.lower())

        for key, value in fields.items():
            if isinstance(value, str) and not key.startswith("_"):
                parts.append(value.lower())

        return " ".join(parts)

    def _build_relationship_index(self) -> None:
        for records in self.by_type.values():
            for indexed in records:
                for field_name, value in record_fields(indexed.record).items():
                    candidates = value if isinstance(value, list) else [value]
                    for candidate in candidates:
                        if not self._is_reference(candidate):
                            continue
                        target_id = self._reference_id(candidate)
                        if target_id:
                            self._add_relationship(indexed.id, target_id, field_name)

    def _add_relationship(self, source_id: str, target_id: str, field_name: str) -> None:
        self.relationships.setdefault(source_id, []).append(
            RelationshipEdge(target_id=target_id, field_name=field_name)
        )
        self._incoming[target_id].append(source_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(
        self,
        query: Optional[str],
        type: Optional[str] = None,
        fuzzy: bool = True,
        limit: int = 10,
        min_score: float = 0.3,
    ) -> List[SearchResult]:
        """Score candidate records against the query and return the best hits."""
        tokens = sorted(tokenize(query or ""))
        candidates = self.by_type.get(type, []) if type else self._all_indexed()

        results = []
        for indexed in candidates:
            score = self.calculate_score(indexed, tokens, fuzzy=fuzzy)
            if score >= min_score:
                results.append(SearchResult(
                    record=indexed.record,
                    type=indexed.entity_type,
                    score=score,
                    matches=self._get_matches(indexed, tokens),
                ))

        results.sort()
        results = results[:max(limit, 0)]
        logger.debug(
            "Search finished",
            extra={"query": query, "entity_type": type, "hits": len(results)},
        )
        return results

    def calculate_score(self, indexed: IndexedRecord, query_tokens: List[str], fuzzy: bool = True) -> float:
        """Average per-token score with a boost when every token matched."""
        if not query_tokens:
            return 0.0

        score = 0.0
        matched = 0
        for query_token in query_tokens:
            token_score = 0.0
            if query_token in indexed.tokens:
                token_score = 1.0
            elif fuzzy:
                for record_token in indexed.tokens:
                    sim = similarity(query_token, record_token)
                    if sim > FUZZY_THRESHOLD:
                        token_score = max(token_score, sim * FUZZY_WEIGHT)
            if token_score > 0:
                matched += 1
            score += token_score

        score = score / len(query_tokens)
        if matched == len(query_tokens):
            score *= ALL_TOKENS_BOOST
        return min(score, 1.0)

    def get_all_records(self, type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Records of one entity type.

        Without a type, or for a type nothing was indexed under, every record
        is returned in index order.
        """
        if type and type in self.by_type:
            return [indexed.record for indexed in self.by_type[type]]
        return [indexed.record for indexed in self._all_indexed()]

    def find_related(
        self,
        record: Mapping[str, Any],
        record_type: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Records linked to ``record`` in either direction."""
        record_id = self._find_record_id(record)
        if not record_id:
            logger.debug("Related lookup without resolvable id", extra={"record_type": record_type})
            return []

        related_ids: List[str] = []
        seen: Set[str] = set()

        def consider(candidate_id: str) -> None:
            if candidate_id in seen:
                return
            if related_type and self.get_record_type(candidate_id) != related_type:
                return
            seen.add(candidate_id)
            related_ids.append(candidate_id)

        for edge in self.relationships.get(record_id, []):
            consider(edge.target_id)
        for source_id in self._incoming.get(record_id, []):
            consider(source_id)

        return [self.by_id[rid].record for rid in related_ids if rid in self.by_id]

    def get_record_type(self, record_id: str) -> Optional[str]:
        indexed = self.by_id.get(record_id)
        return indexed.entity_type if indexed else None

    def get_statistics(self) -> IndexStatistics:
        """Snapshot of the index statistics."""
        return self.statistics.copy()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _all_indexed(self) -> List[IndexedRecord]:
        return [indexed for records in self.by_type.values() for indexed in records]

    def _find_record_id(self, record: Mapping[str, Any]) -> Optional[str]:
        known_id = self._ids_by_identity.get(id(record))
        if known_id:
            indexed = self.by_id.get(known_id)
            if indexed is not None and indexed.record is record:
                return known_id
        return self._normalize_id(record.get("id")) or self._normalize_id(record.get("_id"))

    def _get_matches(self, indexed: IndexedRecord, query_tokens: List[str]) -> List[SearchMatch]:
        matches = []
        for field_name, value in record_fields(indexed.record).items():
            text = self._field_text(value).lower()
            if not text:
                continue
            for token in query_tokens:
                if token in text:
                    matches.append(SearchMatch(field=field_name, value=value, token=token))
        return matches

    def _field_text(self, value: Any) -> str:
        """Render a field value as searchable text."""
        if value is None or value == "" or value is False:
            return ""
        if isinstance(value, Mapping):
            fields = value.get("fields")
            if isinstance(fields, Mapping):
                for name_field in REFERENCE_NAME_FIELDS:
                    if fields.get(name_field):
                        return self._field_text(fields[name_field])
                return ""
            if value.get("href") and value.get("isMailto"):
                return str(value["href"]).replace("mailto:", "")
            return ""
        if isinstance(value, list):
            return " ".join(filter(None, (self._field_text(item) for item in value)))
        return str(value)

    @staticmethod
    def _is_reference(value: Any) -> bool:
        return isinstance(value, Mapping) and bool(value.get("id") or value.get("fields"))

    def _reference_id(self, value: Mapping[str, Any]) -> Optional[str]:
        return self._normalize_id(value.get("id")) or self._normalize_id(value.get("_id"))

    @staticmethod
    def _normalize_id(value: Any) -> Optional[str]:
        if value is None or value == "" or isinstance(value, (dict, list)):
            return None
        return str(value)

    @staticmethod
    def _generate_id() -> str:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        return f"gen_{int(time.time() * 1000)}_{suffix}"
