"""Query processor: routes analysed queries to the search engine.

The processor is the single recovery seam of the core. Whatever happens
while analysing, searching or formatting is caught in ``process`` and
turned into an ``error`` result, so callers never see an exception.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..error_handling import ErrorHandler
from ..logging_config import Timer, log_context, log_performance
from ..models import AppConfig, AppInfo, DisplayConfig
from .catalog import TableCatalog
from .formatting import ResponseFormatter
from .models import QueryResult
from .nlp import QueryAnalysis, QueryAnalyzer, QueryIntent
from .search import SearchEngine

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
AI_RESULTS_THRESHOLD = 3
GENERAL_CONFIDENCE = 0.5
NOT_UNDERSTOOD_CONFIDENCE = 0.1


class QueryProcessor:
    """Analyses and answers user queries against the local index."""

    def __init__(
        self,
        search_engine: SearchEngine,
        analyzer: Optional[QueryAnalyzer] = None,
        display: Optional[DisplayConfig] = None,
        app_info: Optional[AppInfo] = None,
        formatter: Optional[ResponseFormatter] = None,
    ):
        self.search_engine = search_engine
        self.catalog = search_engine.catalog
        self.analyzer = analyzer or QueryAnalyzer(self.catalog)
        self.display = display or DisplayConfig()
        self.app_info = app_info or AppInfo()
        self.formatter = formatter or ResponseFormatter(
            preview_fields=self.display.preview_fields_count
        )
        self.error_handler = ErrorHandler(
            context={"component": "query_processor"},
            raise_on_critical=False,
        )
        self._handlers: Dict[QueryIntent, Callable[[QueryAnalysis], QueryResult]] = {
            QueryIntent.COUNT: self._handle_count,
            QueryIntent.LIST: self._handle_list,
            QueryIntent.SEARCH: self._handle_search,
            QueryIntent.DETAIL: self._handle_detail,
            QueryIntent.RELATED: self._handle_related,
            QueryIntent.SYSTEM: self._handle_system,
            QueryIntent.GENERAL: self._handle_general,
        }

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        tables: Optional[Mapping[str, Any]] = None,
    ) -> "QueryProcessor":
        """Wire engine, analyzer and formatter from application config."""
        catalog = TableCatalog(config.crm.tables)
        engine = SearchEngine(catalog)
        if tables is not None:
            engine.build_index(tables)
        return cls(
            search_engine=engine,
            analyzer=QueryAnalyzer(catalog),
            display=config.ui.display,
            app_info=config.app,
            formatter=ResponseFormatter(
                messages=config.ui.messages,
                preview_fields=config.ui.display.preview_fields_count,
            ),
        )

    def process(self, query: Optional[str]) -> QueryResult:
        """Answer a query. Never raises."""
        try:
            with log_context(query=query), Timer() as timer:
                analysis = self.analyzer.analyze(query)
                handler = self._handlers.get(analysis.type, self._handle_general)
                result = handler(analysis)
            log_performance(
                __name__,
                "process_query",
                timer.duration_ms,
                query_type=result.type,
                use_ai=result.use_ai,
            )
            return result
        except Exception as e:
            self.error_handler.handle_error(e, additional_context={"query": query})
            return QueryResult(
                type="error",
                response=self.formatter.message("error"),
                use_ai=False,
                error=str(e),
            )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_count(self, analysis: QueryAnalysis) -> QueryResult:
        stats = self.search_engine.get_statistics()
        entity_type = analysis.entity

        if entity_type and entity_type in stats.by_type:
            count = stats.by_type[entity_type]
            label_type = entity_type
        else:
            count = stats.total
            label_type = None

        return QueryResult(
            type="count",
            entity=entity_type,
            count=count,
            response=self.formatter.format_count(count, label_type),
            use_ai=False,
            confidence=analysis.confidence,
        )

    def _handle_list(self, analysis: QueryAnalysis) -> QueryResult:
        entity_type = analysis.entity
        records = self.search_engine.get_all_records(entity_type)
        max_records = self.display.max_records_to_show

        return QueryResult(
            type="list",
            entity=entity_type,
            records=records,
            total_count=len(records),
            display_count=min(len(records), max_records),
            response=self.formatter.format_records_list(records, entity_type, max_records),
            use_ai=False,
            confidence=analysis.confidence,
        )

    def _handle_search(self, analysis: QueryAnalysis) -> QueryResult:
        search_term = self._search_term(analysis)
        results = self.search_engine.search(
            search_term, type=analysis.entity, fuzzy=True, limit=SEARCH_LIMIT
        )

        if not results:
            return QueryResult(
                type="search",
                query=search_term,
                found=False,
                response=self.formatter.message("no_results", query=search_term),
                use_ai=False,
                confidence=analysis.confidence,
            )

        if len(results) == 1:
            record = results[0].record
            return QueryResult(
                type="detail",
                entity=analysis.entity or results[0].type,
                query=search_term,
                found=True,
                record=record,
                response=self.formatter.format_detailed_record(record),
                use_ai=True,
                confidence=analysis.confidence,
            )

        return QueryResult(
            type="search",
            query=search_term,
            found=True,
            results=results,
            response=self.formatter.format_search_results(results, search_term),
            use_ai=len(results) > AI_RESULTS_THRESHOLD,
            confidence=analysis.confidence,
        )

    def _handle_detail(self, analysis: QueryAnalysis) -> QueryResult:
        search_term = self._search_term(analysis)
        results = self.search_engine.search(search_term, type=analysis.entity, limit=1)

        if not results:
            return QueryResult(
                type="detail",
                query=search_term,
                found=False,
                response=self.formatter.message("detail_not_found", query=search_term),
                use_ai=False,
                confidence=analysis.confidence,
            )

        record = results[0].record
        return QueryResult(
            type="detail",
            entity=analysis.entity or results[0].type,
            query=search_term,
            found=True,
            record=record,
            response=self.formatter.format_detailed_record(record),
            use_ai=True,
            confidence=analysis.confidence,
        )

    def _handle_related(self, analysis: QueryAnalysis) -> QueryResult:
        search_term = self._search_term(analysis)
        main_results = self.search_engine.search(search_term, type=analysis.entity, limit=1)

        if not main_results:
            return QueryResult(
                type="related",
                query=search_term,
                found=False,
                response=self.formatter.message("related_not_found", query=search_term),
                use_ai=False,
                confidence=analysis.confidence,
            )

        main_record = main_results[0].record
        related_type = self.catalog.resolve_entity_word(analysis.parameters.get("related_entity"))
        related_records = self.search_engine.find_related(
            main_record, main_results[0].type, related_type
        )

        return QueryResult(
            type="related",
            entity=main_results[0].type,
            query=search_term,
            found=True,
            main_record=main_record,
            related_type=related_type,
            related_records=related_records,
            response=self.formatter.format_related_summary(main_record, related_records, related_type),
            use_ai=True,
            confidence=analysis.confidence,
        )

    def _handle_system(self, analysis: QueryAnalysis) -> QueryResult:
        action = analysis.parameters.get("action")

        if action == "help":
            return QueryResult(
                type="system",
                action="help",
                response=self.formatter.help_text(),
                use_ai=False,
                confidence=1.0,
            )
        if action == "version":
            return QueryResult(
                type="system",
                action="version",
                response=self.formatter.format_version(self.app_info.name, self.app_info.version),
                use_ai=False,
                confidence=1.0,
            )
        if action == "stats":
            stats = self.search_engine.get_statistics()
            return QueryResult(
                type="system",
                action="stats",
                stats=stats.to_dict(),
                response=self.formatter.format_statistics(stats),
                use_ai=False,
                confidence=1.0,
            )

        return self._handle_general(analysis)

    def _handle_general(self, analysis: QueryAnalysis) -> QueryResult:
        results = self.search_engine.search(analysis.original_query, fuzzy=True, limit=SEARCH_LIMIT)

        if results:
            return QueryResult(
                type="general",
                query=analysis.original_query,
                found=True,
                results=results,
                response=self.formatter.format_search_results(results, analysis.original_query),
                use_ai=True,
                confidence=GENERAL_CONFIDENCE,
            )

        return QueryResult(
            type="general",
            found=False,
            response=self.formatter.message("not_understood"),
            use_ai=False,
            confidence=NOT_UNDERSTOOD_CONFIDENCE,
        )

    @staticmethod
    def _search_term(analysis: QueryAnalysis) -> str:
        return analysis.entity_name or analysis.parameters.get("query") or ""
