"""Czech rule catalog for query classification.

Categories are tried in dictionary order and rules within a category in
list order; the first matching rule decides the intent.
"""

import re
from typing import Dict, List

from .interfaces import QueryIntent, QueryPattern


# Action words stripped from a query before looking for an entity name.
ACTION_WORDS = [
    "najdi", "vyhledej", "zobraz", "ukaž", "vypiš", "hledám",
    "jaké", "kolik", "detail", "informace",
]

# Related-lookup phrasing "zobraz kontakty firmy X" must not be read as a list.
_RELATED_OWNER = r"(?:firmy|osoby|kontaktu)"


def _rule(pattern: str, confidence: float = 0.8, extract=None, needs_entity_name: bool = False) -> QueryPattern:
    return QueryPattern(
        regex=re.compile(pattern, re.IGNORECASE),
        confidence=confidence,
        extract=extract,
        needs_entity_name=needs_entity_name,
    )


def build_query_patterns() -> Dict[QueryIntent, List[QueryPattern]]:
    """Build the ordered rule catalog."""
    return {
        QueryIntent.COUNT: [
            _rule(r"kolik\s+(\w+)\s*(je|máme|existuje|je v systému)", 0.9,
                  lambda m: {"entity": m.group(1)}),
            _rule(r"počet\s+(\w+)", 0.9,
                  lambda m: {"entity": m.group(1)}),
            _rule(r"jaký je počet\s+(\w+)", 0.9,
                  lambda m: {"entity": m.group(1)}),
        ],
        QueryIntent.LIST: [
            _rule(r"vypiš\s+(všechny\s+)?(\w+)", 0.9,
                  lambda m: {"all": True, "entity": m.group(2)}),
            _rule(rf"zobraz\s+(?!statistik)(?!\w+\s+{_RELATED_OWNER}\s+\S)(seznam\s+)?(\w+)", 0.9,
                  lambda m: {"entity": m.group(2)}),
            _rule(r"ukaž\s+(mi\s+)?(všechny\s+)?(\w+)", 0.9,
                  lambda m: {"entity": m.group(3)}),
            _rule(r"jaké\s+(\w+)\s+(to\s+)?jsou", 0.8,
                  lambda m: {"entity": m.group(1)}),
        ],
        QueryIntent.SEARCH: [
            _rule(r"najdi\s+(\w+)\s+(.+)", 0.9,
                  lambda m: {"entity": m.group(1), "query": m.group(2)},
                  needs_entity_name=True),
            _rule(r"vyhledej\s+(\w+)\s+(.+)", 0.9,
                  lambda m: {"entity": m.group(1), "query": m.group(2)},
                  needs_entity_name=True),
            _rule(r"hledám\s+(\w+)\s+(.+)", 0.8,
                  lambda m: {"entity": m.group(1), "query": m.group(2)},
                  needs_entity_name=True),
        ],
        QueryIntent.DETAIL: [
            _rule(r"(detaily?|informace|údaje)\s+o\s+(.+)", 0.9,
                  lambda m: {"query": m.group(2)},
                  needs_entity_name=True),
            _rule(r"co víš o\s+(.+)", 0.8,
                  lambda m: {"query": m.group(1)},
                  needs_entity_name=True),
        ],
        QueryIntent.RELATED: [
            _rule(r"jaké\s+(\w+)\s+má\s+(.+)", 0.9,
                  lambda m: {"related_entity": m.group(1), "query": m.group(2)},
                  needs_entity_name=True),
            _rule(rf"zobraz\s+(\w+)\s+{_RELATED_OWNER}\s+(.+)", 0.9,
                  lambda m: {"related_entity": m.group(1), "query": m.group(2)},
                  needs_entity_name=True),
        ],
        QueryIntent.SYSTEM: [
            _rule(r"jak\s+(systém\s+)?funguje", 0.9,
                  lambda m: {"action": "help"}),
            _rule(r"jakou\s+verzi", 0.9,
                  lambda m: {"action": "version"}),
            _rule(r"zobraz\s+statistiky", 0.9,
                  lambda m: {"action": "stats"}),
        ],
    }
