"""Tests for the async assistant service."""

import pytest

from connectai.assistant import Assistant
from connectai.error_handling import ProviderError
from connectai.providers import ConnectionStatus, EchoFormatter, JSONFileCRMProvider
from connectai.query_engine import TableData


class StaticCRMProvider:
    """CRM provider serving fixed tables."""

    def __init__(self, name, tables=None, error=None):
        self.name = name
        self.tables = tables or {}
        self.error = error

    async def connect(self):
        pass

    async def load_data(self):
        if self.error:
            raise self.error
        return self.tables

    async def test_connection(self):
        return ConnectionStatus(success=self.error is None, provider=self.name)


class FailingFormatter:
    """AI formatter whose backend is down."""

    name = "failing"

    async def format_message(self, query, result):
        raise ProviderError("AI service unavailable", provider=self.name)

    async def test_connection(self):
        raise ProviderError("AI service unavailable", provider=self.name)


class UppercaseFormatter:
    name = "upper"

    def __init__(self):
        self.calls = []

    async def format_message(self, query, result):
        self.calls.append((query, result.type))
        return result.response.upper()

    async def test_connection(self):
        return ConnectionStatus(success=True, provider=self.name)


class TestLoading:
    """Test loading CRM data into the assistant."""

    async def test_ask_before_load(self, app_config):
        assistant = Assistant(app_config)

        result = await assistant.ask("Kolik firem je v systému?")

        assert assistant.loaded is False
        assert result.count == 0

    async def test_load_builds_index(self, app_config, crm_tables):
        assistant = Assistant(app_config, crm_providers=[StaticCRMProvider("static", crm_tables)])

        stats = await assistant.load()

        assert assistant.loaded is True
        assert stats.total == 7
        assert (await assistant.ask("Kolik firem je v systému?")).count == 3

    async def test_first_provider_wins_on_duplicate_tables(self, app_config):
        first = StaticCRMProvider("first", {
            "companies": TableData(name="Firmy", data=[{"id": "c1", "name": "Alza"}]),
        })
        second = StaticCRMProvider("second", {
            "companies": TableData(name="Firmy", data=[{"id": "x1"}, {"id": "x2"}]),
            "contacts": TableData(name="Kontakty", data=[{"id": "p1", "jmeno": "Jan"}]),
        })
        assistant = Assistant(app_config, crm_providers=[first, second])

        stats = await assistant.load()

        assert stats.by_type == {"company": 1, "contact": 1}

    async def test_failing_provider_is_skipped(self, app_config, crm_tables):
        broken = StaticCRMProvider("broken", error=ProviderError("connection refused"))
        working = StaticCRMProvider("working", crm_tables)
        assistant = Assistant(app_config, crm_providers=[broken, working])

        stats = await assistant.load()

        assert stats.total == 7

    async def test_reload_swaps_processor(self, app_config, crm_tables):
        provider = StaticCRMProvider("static", crm_tables)
        assistant = Assistant(app_config, crm_providers=[provider])
        await assistant.load()
        old_processor = assistant.processor

        provider.tables = {"companies": TableData(name="Firmy", data=[])}
        await assistant.load()

        assert assistant.processor is not old_processor
        assert assistant.statistics().total == 0
        assert old_processor.search_engine.get_statistics().total == 7

    async def test_from_config_with_json_files(self, app_config, data_dir):
        app_config.crm.data_dir = str(data_dir)
        app_config.ai.provider = "echo"

        assistant = Assistant.from_config(app_config)
        await assistant.load()

        assert isinstance(assistant.crm_providers[0], JSONFileCRMProvider)
        assert isinstance(assistant.formatter, EchoFormatter)
        assert assistant.statistics().total == 7

    async def test_from_config_unknown_provider(self, app_config):
        app_config.ai.provider = "oracle"

        with pytest.raises(ProviderError):
            Assistant.from_config(app_config)


class TestAsk:
    """Test AI formatting of answers."""

    @pytest.fixture
    def make_assistant(self, app_config, crm_tables):
        async def factory(formatter):
            assistant = Assistant(
                app_config,
                crm_providers=[StaticCRMProvider("static", crm_tables)],
                formatter=formatter,
            )
            await assistant.load()
            return assistant
        return factory

    async def test_formatter_applied_when_use_ai(self, make_assistant):
        formatter = UppercaseFormatter()
        assistant = await make_assistant(formatter)

        result = await assistant.ask("Jaké kontakty má firma Microsoft?")

        assert result.use_ai is True
        assert result.response == "MICROSOFT MÁ 2 KONTAKTY."
        assert formatter.calls == [("Jaké kontakty má firma Microsoft?", "related")]

    async def test_formatter_skipped_without_use_ai(self, make_assistant):
        formatter = UppercaseFormatter()
        assistant = await make_assistant(formatter)

        result = await assistant.ask("Kolik firem je v systému?")

        assert result.response == "V databázi je celkem **3 firmy**."
        assert formatter.calls == []

    async def test_formatter_failure_keeps_fallback(self, make_assistant):
        assistant = await make_assistant(FailingFormatter())

        result = await assistant.ask("Jaké kontakty má firma Microsoft?")

        assert result.response == "Microsoft má 2 kontakty."
        assert result.ai_error == "AI service unavailable"

    async def test_without_formatter(self, make_assistant):
        assistant = await make_assistant(None)
        result = await assistant.ask("Informace o Microsoft")
        assert result.use_ai is True
        assert '"name": "Microsoft"' in result.response

    async def test_connection_report(self, app_config):
        assistant = Assistant(
            app_config,
            crm_providers=[StaticCRMProvider("ok"), StaticCRMProvider("down", error=ProviderError("x"))],
            formatter=FailingFormatter(),
        )

        statuses = await assistant.test_connections()

        assert [(status.provider, status.success) for status in statuses] == [
            ("ok", True), ("down", False), ("failing", False),
        ]
