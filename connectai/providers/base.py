"""Provider interfaces for CRM data sources and AI formatters."""

from typing import Any, Dict, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from ..query_engine.models import QueryResult
from ..query_engine.search import TableData


class ConnectionStatus(BaseModel):
    """Outcome of a provider connection test."""

    success: bool
    provider: str
    message: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class CRMProvider(Protocol):
    """Interface for loading CRM tables."""

    name: str

    async def connect(self) -> None:
        """Prepare the provider for loading."""
        ...

    async def load_data(self) -> Dict[str, TableData]:
        """Load every available table keyed by table id."""
        ...

    async def test_connection(self) -> ConnectionStatus:
        """Check that the data source is reachable."""
        ...


@runtime_checkable
class AIFormatter(Protocol):
    """Interface for turning a query result into a narrated answer."""

    name: str

    async def format_message(self, query: str, result: QueryResult) -> str:
        """Return the text shown to the user instead of the fallback."""
        ...

    async def test_connection(self) -> ConnectionStatus:
        """Check that the formatter backend is usable."""
        ...


def describe(provider: Any) -> str:
    """Provider name for logs, tolerating objects without one."""
    return getattr(provider, "name", None) or type(provider).__name__
