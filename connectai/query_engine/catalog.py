"""Table catalog: routing metadata for CRM tables.

The catalog answers the three lookups the core needs from configuration:
keywords per entity type, search fields per entity type and the entity
type of a table id. Table order is significant, the first table whose
keyword appears in a query decides its entity type.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from ..models import TableConfig


DEFAULT_SEARCH_FIELDS = ["name", "email", "title", "description"]


class TableCatalog:
    """In-memory lookup over configured CRM tables."""

    def __init__(self, tables: Optional[Iterable[Union[TableConfig, Dict[str, Any]]]] = None):
        self._tables: List[TableConfig] = [
            table if isinstance(table, TableConfig) else TableConfig.model_validate(table)
            for table in (tables or [])
        ]

    @property
    def tables(self) -> List[TableConfig]:
        return list(self._tables)

    def entity_type_for_table(self, table_id: str) -> Optional[str]:
        for table in self._tables:
            if table.id == table_id:
                return table.type
        return None

    def table_for_type(self, entity_type: Optional[str]) -> Optional[TableConfig]:
        if not entity_type:
            return None
        for table in self._tables:
            if table.type == entity_type:
                return table
        return None

    def search_fields_for_type(self, entity_type: Optional[str]) -> List[str]:
        table = self.table_for_type(entity_type)
        if table and table.search_fields:
            return list(table.search_fields)
        return list(DEFAULT_SEARCH_FIELDS)

    def keywords_for_type(self, entity_type: Optional[str]) -> List[str]:
        table = self.table_for_type(entity_type)
        return list(table.keywords) if table else []

    def entity_type_in_text(self, text: str) -> Optional[str]:
        """Entity type of the first table with a keyword contained in text."""
        lowered = text.lower()
        for table in self._tables:
            for keyword in table.keywords:
                if keyword in lowered:
                    return table.type
        return None

    def resolve_entity_word(self, word: Optional[str]) -> Optional[str]:
        """Map a free word such as ``kontakty`` to an entity type.

        Known entity type names resolve to themselves.
        """
        if not word:
            return None
        lowered = word.lower()
        for table in self._tables:
            if lowered == table.type:
                return table.type
        return self.entity_type_in_text(lowered)
