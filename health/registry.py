# ============================================================================
# PROBE REGISTRY
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Probe provider registration
# PURPOSE: Register and discover pluggable health check providers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Registry

Holds the pluggable check providers by display name, in registration
order. Registration order is the order their lines appear in a report.

Usage:
    # Decorator registration (global registry)
    @register_probe(tags=("db",))
    class PostgresProbe(ProbeProvider):
        ...

    # Explicit registration
    registry = ProbeRegistry()
    registry.register(PostgresProbe())

    # Enumerate for execution
    providers = registry.get_all()
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Type

from health.core import ProbeProvider

logger = logging.getLogger(__name__)


class ProbeRegistry:
    """
    Registry for probe providers.

    Safe to modify while reports are being evaluated: readers get a
    copy of the provider list.
    """

    def __init__(self, providers: Iterable[ProbeProvider] = ()):
        self._providers: Dict[str, ProbeProvider] = {}
        self._lock = threading.Lock()
        for provider in providers:
            self.register(provider)

    def register(self, provider: ProbeProvider) -> None:
        """
        Register a provider instance.

        A provider with the same display name is replaced in place.
        """
        name = provider.display_name
        with self._lock:
            if name in self._providers:
                logger.warning(f"Overwriting probe provider: {name}")
            self._providers[name] = provider
        logger.debug(f"Registered probe provider: {name} (tags={list(provider.tags)})")

    def register_class(
        self,
        provider_class: Type[ProbeProvider],
        **kwargs
    ) -> ProbeProvider:
        """Instantiate and register a provider class."""
        instance = provider_class(**kwargs)
        self.register(instance)
        return instance

    def unregister(self, name: str) -> bool:
        """
        Remove a provider by display name.

        Returns:
            True if a provider was removed
        """
        with self._lock:
            removed = self._providers.pop(name, None)
        if removed is not None:
            logger.debug(f"Unregistered probe provider: {name}")
        return removed is not None

    def get(self, name: str) -> Optional[ProbeProvider]:
        return self._providers.get(name)

    def get_all(self) -> List[ProbeProvider]:
        """All providers in registration order."""
        with self._lock:
            return list(self._providers.values())

    def clear(self) -> None:
        with self._lock:
            self._providers.clear()

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: str) -> bool:
        return name in self._providers


# ============================================================================
# GLOBAL REGISTRY & DECORATOR
# ============================================================================

_registry: Optional[ProbeRegistry] = None


def get_registry() -> ProbeRegistry:
    """Get the global probe registry."""
    global _registry
    if _registry is None:
        _registry = ProbeRegistry()
    return _registry


def register_probe(
    name: str = None,
    tags: Iterable[str] = None,
    timeout_seconds: float = None,
    cache_ttl_seconds: float = None,
):
    """
    Decorator to register a provider class with the global registry.

    Args:
        name: Override display name
        tags: Override tags
        timeout_seconds: Override timeout
        cache_ttl_seconds: Override result cache lifetime

    Example:
        @register_probe(tags=("system",))
        class DiskProbe(ProbeProvider):
            name = "disk"

            async def check(self):
                ...
    """
    def decorator(cls: Type[ProbeProvider]) -> Type[ProbeProvider]:
        if name is not None:
            cls.name = name
        if tags is not None:
            cls.tags = tuple(tags)
        if timeout_seconds is not None:
            cls.timeout_seconds = timeout_seconds
        if cache_ttl_seconds is not None:
            cls.cache_ttl_seconds = cache_ttl_seconds

        get_registry().register_class(cls)
        return cls

    return decorator


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeRegistry",
    "get_registry",
    "register_probe",
]
