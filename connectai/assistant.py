"""Assistant service: loads CRM data and answers queries.

This is the layer the CLI talks to. It owns the providers and the current
query processor, and applies the optional AI formatter to results that
ask for it.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog

from .models import AppConfig
from .providers.base import AIFormatter, ConnectionStatus, CRMProvider, describe
from .providers.registry import ProviderRegistry, create_default_registry
from .query_engine import IndexStatistics, QueryProcessor, QueryResult, TableData


logger = structlog.get_logger()


class Assistant:
    """Bridge between CRM providers, the query processor and an AI formatter."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        crm_providers: Optional[Sequence[CRMProvider]] = None,
        formatter: Optional[AIFormatter] = None,
    ):
        self.config = config or AppConfig()
        self.crm_providers: List[CRMProvider] = list(crm_providers or [])
        self.formatter = formatter
        self.processor = QueryProcessor.from_config(self.config)
        self._loaded = False

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        registry: Optional[ProviderRegistry] = None,
    ) -> "Assistant":
        """Create providers named in the config through the registry."""
        registry = registry or create_default_registry()

        crm_provider = registry.create(
            "crm",
            config.crm.provider,
            data_dir=config.crm.data_dir,
            tables=config.crm.tables,
        )

        formatter = None
        if config.ai.provider:
            formatter = registry.create(
                "ai",
                config.ai.provider,
                templates=config.ai.templates,
                system_prompt=config.ai.system_prompt,
            )

        return cls(config=config, crm_providers=[crm_provider], formatter=formatter)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> IndexStatistics:
        """Load tables from every provider and swap in a fresh index.

        The first provider delivering a table id wins. A provider that
        fails is logged and skipped.
        """
        tables: Dict[str, TableData] = {}

        for provider in self.crm_providers:
            provider_name = describe(provider)
            try:
                provider_tables = await provider.load_data()
            except Exception as e:
                logger.warning(
                    "CRM provider failed to load",
                    provider=provider_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            for table_id, table in provider_tables.items():
                if table_id in tables:
                    logger.warning(
                        "Duplicate table ignored",
                        provider=provider_name,
                        table_id=table_id,
                    )
                    continue
                tables[table_id] = table

        processor = QueryProcessor.from_config(self.config, tables)
        self.processor = processor
        self._loaded = True

        stats = processor.search_engine.get_statistics()
        logger.info(
            "CRM data indexed",
            tables=len(tables),
            total=stats.total,
            by_type=stats.by_type,
            indexing_time_ms=round(stats.indexing_time_ms, 2),
        )
        return stats

    async def ask(self, query: Optional[str]) -> QueryResult:
        """Answer a query, narrated by the formatter when it is worth it."""
        result = self.processor.process(query)

        if not result.use_ai or self.formatter is None:
            return result

        try:
            result.response = await self.formatter.format_message(query or "", result)
        except Exception as e:
            logger.warning(
                "AI formatting failed, using plain answer",
                formatter=describe(self.formatter),
                error=str(e),
                query_type=result.type,
            )
            result.ai_error = str(e)

        return result

    def statistics(self) -> IndexStatistics:
        return self.processor.search_engine.get_statistics()

    async def test_connections(self) -> List[ConnectionStatus]:
        """Run connection tests for every configured provider."""
        providers: List[Any] = list(self.crm_providers)
        if self.formatter is not None:
            providers.append(self.formatter)

        statuses = []
        for provider in providers:
            try:
                status = await provider.test_connection()
            except Exception as e:
                status = ConnectionStatus(success=False, provider=describe(provider), message=str(e))
            statuses.append(status)
        return statuses
