"""Global test configuration and fixtures."""

import copy
import json

import pytest

from connectai.config import ConfigManager
from connectai.models import AppConfig
from connectai.query_engine import QueryProcessor, SearchEngine, TableCatalog, TableData


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CONNECTAI_* variables from the developer's shell out of tests."""
    for name in (
        "CONNECTAI_DATA_DIR",
        "CONNECTAI_MAX_RECORDS",
        "CONNECTAI_AI_PROVIDER",
        "CONNECTAI_LOG_LEVEL",
        "CONNECTAI_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app_config():
    """Default application configuration, untouched by the environment."""
    return AppConfig(**copy.deepcopy(ConfigManager.DEFAULT_CONFIG))


@pytest.fixture
def catalog(app_config):
    """Catalog of the default companies/contacts/activities/deals tables."""
    return TableCatalog(app_config.crm.tables)


@pytest.fixture
def companies():
    return [
        {"id": "c1", "name": "Alza", "ico": "27082440", "email": "info@alza.cz", "status": "aktivní"},
        {"id": "c2", "name": "Microsoft", "email": "info@microsoft.com"},
        {"id": "c3", "name": "Seznam", "email": "info@seznam.cz"},
    ]


@pytest.fixture
def contacts():
    return [
        {
            "id": "p1",
            "jmeno": "Jan",
            "prijmeni": "Novák",
            "email": "jan.novak@alza.cz",
            "company": {"id": "c1", "fields": {"name": "Alza"}},
        },
        {
            "id": "p2",
            "jmeno": "Petra",
            "prijmeni": "Svobodová",
            "email": "petra@microsoft.com",
            "company": {"id": "c2", "fields": {"name": "Microsoft"}},
        },
        {
            "id": "p3",
            "jmeno": "Karel",
            "prijmeni": "Dvořák",
            "email": "karel@microsoft.com",
            "company": {"id": "c2", "fields": {"name": "Microsoft"}},
        },
    ]


@pytest.fixture
def deals():
    return [
        {"id": "d1", "title": "Nový e-shop", "value": 250000, "status": "open", "company": {"id": "c1"}},
    ]


@pytest.fixture
def crm_tables(companies, contacts, deals):
    """Tables in the shapes CRM exports arrive in: bare and wrapped lists."""
    return {
        "companies": {"name": "Firmy", "data": companies},
        "contacts": TableData(name="Kontakty", data={"items": contacts}, entity_type="contact"),
        "deals": {"name": "Obchodní případy", "type": "deal", "data": {"records": deals}},
    }


@pytest.fixture
def engine(catalog, crm_tables):
    """Search engine indexed with the sample CRM data."""
    search_engine = SearchEngine(catalog)
    search_engine.build_index(crm_tables)
    return search_engine


@pytest.fixture
def processor(app_config, crm_tables):
    return QueryProcessor.from_config(app_config, crm_tables)


@pytest.fixture
def data_dir(tmp_path, companies, contacts, deals):
    """Directory with exported tables as JSON files."""
    export_dir = tmp_path / "export"
    export_dir.mkdir()

    (export_dir / "companies.json").write_text(
        json.dumps(companies, ensure_ascii=False), encoding="utf-8"
    )
    (export_dir / "contacts.json").write_text(
        json.dumps({"items": contacts}, ensure_ascii=False), encoding="utf-8"
    )
    (export_dir / "deals.json").write_text(
        json.dumps({"records": deals}, ensure_ascii=False), encoding="utf-8"
    )
    return export_dir
