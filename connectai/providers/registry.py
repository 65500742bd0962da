"""Name-keyed registry of CRM and AI provider factories."""

import logging
from typing import Any, Callable, Dict, List

from ..error_handling import ProviderError

logger = logging.getLogger(__name__)

PROVIDER_KINDS = ("crm", "ai")

ProviderFactory = Callable[..., Any]


class ProviderRegistry:
    """Registry for creating providers by kind and name."""

    def __init__(self):
        self._factories: Dict[str, Dict[str, ProviderFactory]] = {kind: {} for kind in PROVIDER_KINDS}

    def register(self, kind: str, name: str, factory: ProviderFactory) -> None:
        """Register a provider factory, replacing any previous one of that name."""
        self._check_kind(kind)
        self._factories[kind][name] = factory
        logger.debug("Registered provider", extra={"kind": kind, "provider": name})

    def create(self, kind: str, name: str, **options: Any) -> Any:
        """Instantiate a registered provider.

        Raises:
            ProviderError: If no provider of that kind and name exists.
        """
        self._check_kind(kind)
        factory = self._factories[kind].get(name)
        if factory is None:
            raise ProviderError(
                f"Provider not found: {kind}/{name}",
                provider=name,
                error_code="PROVIDER_NOT_FOUND",
                context={"kind": kind, "available": self.available(kind)},
            )
        return factory(**options)

    def available(self, kind: str) -> List[str]:
        self._check_kind(kind)
        return sorted(self._factories[kind])

    def has_provider(self, kind: str, name: str) -> bool:
        return name in self._factories.get(kind, {})

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in PROVIDER_KINDS:
            raise ProviderError(
                f"Invalid provider kind: {kind}",
                error_code="INVALID_PROVIDER_KIND",
                context={"kind": kind},
            )


def create_default_registry() -> ProviderRegistry:
    """Registry with the providers shipped in this package."""
    from .json_crm import JSONFileCRMProvider
    from .prompts import EchoFormatter

    registry = ProviderRegistry()
    registry.register("crm", JSONFileCRMProvider.name, JSONFileCRMProvider)
    registry.register("ai", EchoFormatter.name, EchoFormatter)
    return registry
