"""Query analysis: intent classification and entity-name extraction.

This module maps a free-text query onto one of the supported intents using
ordered pattern rules, then recovers the entity type (from configured table
keywords) and the entity name the user is asking about.
"""

import logging
import re
from typing import Dict, List, Optional

from ..catalog import TableCatalog
from .interfaces import QueryAnalysis, QueryIntent, QueryPattern
from .patterns import ACTION_WORDS, build_query_patterns

logger = logging.getLogger(__name__)

_UPPER = "A-ZÁČĎĚÉÍŇÓŘŠŤÚŮÝŽ"
_LOWER = "a-záčďěéíňóřšťúůýž"
_QUOTED = re.compile(r'"([^"]+)"')
_CAPITALIZED_RUN = re.compile(rf"[{_UPPER}][{_LOWER}]+(?:\s+[{_UPPER}][{_LOWER}]+)*")

FALLBACK_SEARCH_CONFIDENCE = 0.6


class QueryAnalyzer:
    """Rule-based query classifier."""

    def __init__(
        self,
        catalog: Optional[TableCatalog] = None,
        patterns: Optional[Dict[QueryIntent, List[QueryPattern]]] = None,
        action_words: Optional[List[str]] = None,
    ):
        self.catalog = catalog or TableCatalog()
        self.patterns = patterns if patterns is not None else build_query_patterns()
        self.action_words = list(action_words if action_words is not None else ACTION_WORDS)

    def analyze(self, query: Optional[str]) -> QueryAnalysis:
        """Classify a raw query."""
        original = query or ""
        normalized = original.lower().strip()
        analysis = QueryAnalysis(original_query=original, normalized_query=normalized)

        analysis.entity = self.extract_entity_type(normalized)

        for intent, rules in self.patterns.items():
            for rule in rules:
                match = rule.match(normalized)
                if not match:
                    continue

                analysis.type = intent
                analysis.confidence = rule.confidence
                if rule.extract:
                    analysis.parameters = rule.extract(match)
                if rule.needs_entity_name:
                    scope = self._name_scope(rule, original) if intent is QueryIntent.DETAIL else original
                    analysis.entity_name = self.extract_entity_name(scope, analysis.entity)

                logger.debug("Query classified", extra={"analysis": analysis.to_dict()})
                return analysis

        analysis.entity_name = self.extract_entity_name(original, analysis.entity)
        if analysis.entity_name:
            analysis.type = QueryIntent.SEARCH
            analysis.confidence = FALLBACK_SEARCH_CONFIDENCE

        logger.debug("Query classified by fallback", extra={"analysis": analysis.to_dict()})
        return analysis

    @staticmethod
    def _name_scope(rule: QueryPattern, original: str) -> str:
        """Original-case text a detail rule captured after "o", else the whole query.

        Keeps leading words such as "Co" in "Co víš o Alza?" out of the
        capitalized-run heuristic.
        """
        match = rule.match(original)
        if match and rule.extract:
            scoped = rule.extract(match).get("query")
            if scoped:
                return scoped
        return original

    def extract_entity_type(self, normalized_query: str) -> Optional[str]:
        """Entity type of the first table whose keyword occurs in the query."""
        return self.catalog.entity_type_in_text(normalized_query)

    def extract_entity_name(self, query: str, entity_type: Optional[str]) -> Optional[str]:
        """Recover the name of the entity the query is about.

        Quoted text wins over a run of capitalized words, which wins over
        whatever remains once keywords and action words are removed.
        Keywords are stems, so the whole inflected word goes ("firmu").
        """
        clean = query
        for keyword in self.catalog.keywords_for_type(entity_type):
            clean = re.sub(rf"\b{re.escape(keyword)}\w*", "", clean, flags=re.IGNORECASE)
        for word in self.action_words:
            clean = re.sub(re.escape(word), "", clean, flags=re.IGNORECASE)

        quoted = _QUOTED.search(clean)
        if quoted:
            return quoted.group(1)

        capitalized = _CAPITALIZED_RUN.search(clean)
        if capitalized:
            return capitalized.group(0)

        clean = clean.strip()
        return clean if len(clean) > 1 else None
