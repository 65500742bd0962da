"""CRM provider reading exported tables from JSON files."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..error_handling import ProviderError, error_context
from ..models import TableConfig
from ..query_engine.search import TableData, extract_records
from .base import ConnectionStatus

logger = logging.getLogger(__name__)


class JSONFileCRMProvider:
    """Loads CRM tables from ``<table id>.json`` files in one directory.

    A file may hold a bare list of records or a wrapper object such as
    ``{"items": [...]}``; the raw payload is handed to the search engine
    unchanged. Missing or unreadable tables are skipped with a warning.
    """

    name = "json"

    def __init__(
        self,
        data_dir: Optional[str] = None,
        tables: Optional[Iterable[Union[TableConfig, Dict[str, Any]]]] = None,
    ):
        """Initialize the provider.

        Args:
            data_dir: Directory with exported table files
            tables: Tables to load; every ``*.json`` file when omitted
        """
        self.data_dir = Path(data_dir) if data_dir else None
        self.tables: Optional[List[TableConfig]] = None
        if tables is not None:
            self.tables = [
                table if isinstance(table, TableConfig) else TableConfig.model_validate(table)
                for table in tables
            ]
        self._cache: Dict[str, TableData] = {}

    async def connect(self) -> None:
        if self.data_dir is None:
            raise ProviderError(
                "No data directory configured for the JSON provider",
                provider=self.name,
                error_code="NOT_CONFIGURED",
            )
        if not self.data_dir.is_dir():
            raise ProviderError(
                f"Data directory does not exist: {self.data_dir}",
                provider=self.name,
                error_code="DATA_DIR_MISSING",
                context={"data_dir": str(self.data_dir)},
            )

    async def load_data(self) -> Dict[str, TableData]:
        await self.connect()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._load_all)

    async def test_connection(self) -> ConnectionStatus:
        try:
            await self.connect()
        except ProviderError as e:
            return ConnectionStatus(success=False, provider=self.name, message=str(e))

        available = self.available_tables()
        return ConnectionStatus(
            success=True,
            provider=self.name,
            message=f"Found {len(available)} table files",
            details={"data_dir": str(self.data_dir), "tables": available},
        )

    def available_tables(self) -> List[str]:
        if self.data_dir is None or not self.data_dir.is_dir():
            return []
        return sorted(path.stem for path in self.data_dir.glob("*.json") if path.is_file())

    def refresh_cache(self, table_id: Optional[str] = None) -> None:
        """Forget loaded data so the next load reads from disk."""
        if table_id:
            self._cache.pop(table_id, None)
        else:
            self._cache.clear()

    def _load_all(self) -> Dict[str, TableData]:
        result: Dict[str, TableData] = {}
        for table_id, table_name, entity_type in self._wanted_tables():
            if table_id in self._cache:
                result[table_id] = self._cache[table_id]
                continue

            path = self._find_table_file(table_id)
            if path is None:
                logger.warning("Table file not found", extra={"table_id": table_id, "data_dir": str(self.data_dir)})
                continue

            try:
                payload = self._read_json(path, table_id)
            except ProviderError as e:
                logger.warning(str(e), extra={"table_id": table_id, "path": str(path)})
                continue

            table = TableData(
                name=table_name,
                data=payload,
                entity_type=entity_type,
                record_count=len(extract_records(payload)),
            )
            self._cache[table_id] = table
            result[table_id] = table

        logger.info("Loaded CRM tables", extra={"provider": self.name, "tables": sorted(result)})
        return result

    def _wanted_tables(self) -> List[tuple]:
        if self.tables is None:
            return [(table_id, table_id, None) for table_id in self.available_tables()]
        return [(table.id, table.name, table.type) for table in self.tables]

    def _find_table_file(self, table_id: str) -> Optional[Path]:
        candidate = self.data_dir / f"{table_id}.json"
        if candidate.is_file():
            return candidate

        for path in self.data_dir.glob("*.json"):
            if path.stem.lower() == table_id.lower():
                return path
        return None

    def _read_json(self, path: Path, table_id: str) -> Any:
        with error_context("read_table", convert_to=ProviderError, table_id=table_id):
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
