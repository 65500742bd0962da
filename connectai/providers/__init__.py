"""CRM data providers and AI formatters."""

from .base import AIFormatter, CRMProvider, ConnectionStatus
from .json_crm import JSONFileCRMProvider
from .prompts import EchoFormatter, PromptBuilder
from .registry import ProviderRegistry, create_default_registry

__all__ = [
    # Interfaces
    "CRMProvider",
    "AIFormatter",
    "ConnectionStatus",

    # Implementations
    "JSONFileCRMProvider",
    "EchoFormatter",
    "PromptBuilder",

    # Registry
    "ProviderRegistry",
    "create_default_registry",
]
