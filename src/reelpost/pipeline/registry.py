"""Capability registry mapping (kind, name) to provider factories."""

import logging
from collections.abc import Callable
from typing import Any

from reelpost.config import ConfigResolver
from reelpost.models.errors import ProviderNotFound

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "mock"

ProviderFactory = Callable[[ConfigResolver], Any]


class CapabilityRegistry:
    """Name -> factory table per capability kind.

    Built once at start-up and passed to the executor and scheduler. The
    active implementation for a kind is read from ``provider.<kind>`` on
    every ``resolve`` so operator changes apply to the next stage.
    """

    def __init__(self, config: ConfigResolver):
        self.config = config
        self._factories: dict[tuple[str, str], ProviderFactory] = {}

    def register(self, kind: str, name: str, factory: ProviderFactory) -> None:
        """Add an implementation. Re-registering a (kind, name) replaces it."""
        if (kind, name) in self._factories:
            logger.debug("Replacing provider %s:%s", kind, name)
        self._factories[(kind, name)] = factory

    def active_name(self, kind: str) -> str:
        return self.config.get(f"provider.{kind}") or DEFAULT_PROVIDER

    def resolve(self, kind: str) -> Any:
        """Return a fresh instance of the active provider for ``kind``."""
        name = self.active_name(kind)
        factory = self._factories.get((kind, name))
        if factory is None:
            raise ProviderNotFound(kind, name, self.list_providers(kind))
        return factory(self.config)

    def list_providers(self, kind: str) -> list[str]:
        return sorted(name for k, name in self._factories if k == kind)

    def list_all_providers(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for kind, name in self._factories:
            result.setdefault(kind, []).append(name)
        return {kind: sorted(names) for kind, names in result.items()}

    def clear(self) -> None:
        self._factories.clear()
