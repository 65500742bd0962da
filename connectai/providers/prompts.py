"""Prompt construction for AI formatters and the offline echo formatter."""

import json
from typing import Any, Dict, Optional

from ..query_engine.models import QueryResult
from .base import ConnectionStatus


DEFAULT_TEMPLATE = "User query: {query}\n\nContext: {context}"

# Result types sharing a template with another type; others use their own name.
TEMPLATE_ALIASES = {"general": "search"}


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class PromptBuilder:
    """Fills per-result-type templates with query result payloads.

    Templates are looked up by result type (``detail``, ``related``,
    ``search``) and fall back to ``default``. Supported placeholders:
    ``{query}``, ``{data}``, ``{main_record}``, ``{related_data}``,
    ``{results}`` and ``{context}``.
    """

    def __init__(self, templates: Optional[Dict[str, str]] = None, system_prompt: str = ""):
        self.templates = dict(templates or {})
        self.system_prompt = system_prompt

    def select_template(self, result_type: str) -> str:
        key = TEMPLATE_ALIASES.get(result_type, result_type)
        if self.templates.get(key):
            return self.templates[key]
        return self.templates.get("default") or DEFAULT_TEMPLATE

    def build(self, query: str, result: QueryResult) -> str:
        context = result.to_context()
        results = context.get("results")

        if result.record is not None:
            data = result.record
        elif result.records is not None:
            data = result.records
        else:
            data = results

        values = {
            "query": query,
            "data": _to_json(data),
            "main_record": _to_json(result.main_record),
            "related_data": _to_json(result.related_records),
            "results": _to_json(results),
            "context": _to_json(context),
        }

        prompt = self.select_template(result.type)
        for name, value in values.items():
            prompt = prompt.replace("{" + name + "}", value)
        return prompt


class EchoFormatter:
    """Offline formatter that answers with the plain-text fallback.

    Builds the prompt a real backend would receive and keeps it in
    ``last_prompt``, which makes template configuration easy to inspect.
    """

    name = "echo"

    def __init__(self, prompt_builder: Optional[PromptBuilder] = None, **options: Any):
        self.prompt_builder = prompt_builder or PromptBuilder(
            templates=options.get("templates"),
            system_prompt=options.get("system_prompt", ""),
        )
        self.last_prompt: Optional[str] = None

    async def format_message(self, query: str, result: QueryResult) -> str:
        self.last_prompt = self.prompt_builder.build(query, result)
        return result.response

    async def test_connection(self) -> ConnectionStatus:
        return ConnectionStatus(success=True, provider=self.name, message="Offline formatter")
