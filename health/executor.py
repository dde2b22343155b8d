# ============================================================================
# CHECK EXECUTOR
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Pluggable check execution
# PURPOSE: Run probe providers with timeouts and failure isolation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Check Executor

Executes pluggable probe providers with:
- Concurrent execution, results kept in provider registration order
- Per-provider timeouts (or one global override). A provider that blocks
  inside check() must set blocking = True, otherwise it stalls the event
  loop and the timeout cannot fire
- Failure isolation: an exception or timeout is logged and the provider
  contributes nothing to the report
- A circuit breaker per provider so a hanging provider stops costing
  every request its full timeout
- Tag based selection and an optional per-provider result cache

Execution Strategy:
1. Drop ignored providers and those not selected by tags
2. Serve cached results unless instant execution is forced
3. Run the remaining providers in parallel under asyncio.wait_for
4. Flatten results, stamping each with the provider's display name
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from health.circuit import CircuitBreaker, CircuitConfig
from health.core import CheckResult, ProbeProvider, as_result_list
from health.registry import ProbeRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckSelection:
    """
    Selection and execution hints for one evaluation.

    Attributes:
        tags: Only run providers carrying these tags (empty = all)
        combine_tags_with_or: Provider needs any tag instead of all tags
        force_instant_execution: Ignore cached results
        timeout_seconds: Replaces every provider's own timeout
    """
    tags: Tuple[str, ...] = ()
    combine_tags_with_or: bool = False
    force_instant_execution: bool = False
    timeout_seconds: Optional[float] = None

    def matches(self, provider: ProbeProvider) -> bool:
        if not self.tags:
            return True
        provider_tags = set(provider.tags)
        if self.combine_tags_with_or:
            return any(tag in provider_tags for tag in self.tags)
        return all(tag in provider_tags for tag in self.tags)


class CheckExecutor:
    """
    Executes the providers of a ProbeRegistry.

    Never raises for a provider failure; see module docstring.
    """

    def __init__(
        self,
        registry: Optional[ProbeRegistry] = None,
        circuit_config: Optional[CircuitConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize executor.

        Args:
            registry: Probe registry (uses global if None)
            circuit_config: Breaker thresholds shared by all providers
            clock: Monotonic clock for cache expiry and breakers
        """
        self.registry = registry if registry is not None else get_registry()
        self.circuit_config = circuit_config or CircuitConfig()
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._cache: Dict[str, Tuple[float, List[CheckResult]]] = {}

    def select(
        self,
        ignore: Iterable[str] = (),
        selection: CheckSelection = CheckSelection(),
    ) -> List[ProbeProvider]:
        """Providers to run, in registration order."""
        ignored = set(ignore)
        return [
            p for p in self.registry.get_all()
            if p.display_name not in ignored and selection.matches(p)
        ]

    async def execute(
        self,
        ignore: Iterable[str] = (),
        selection: CheckSelection = CheckSelection(),
    ) -> List[CheckResult]:
        """
        Execute all selected providers.

        Returns:
            Flattened results in provider order, each provider's entries
            in the order it returned them
        """
        providers = self.select(ignore, selection)
        if not providers:
            return []

        outcomes = await asyncio.gather(
            *(self._execute_provider(p, selection) for p in providers)
        )
        return [result for results in outcomes for result in results]

    def breaker(self, name: str) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = self._breakers.setdefault(
                name, CircuitBreaker(self.circuit_config, clock=self._clock)
            )
        return breaker

    async def _execute_provider(
        self,
        provider: ProbeProvider,
        selection: CheckSelection,
    ) -> List[CheckResult]:
        """Execute one provider; failures yield an empty list."""
        name = provider.display_name

        if not selection.force_instant_execution:
            cached = self._cache.get(name)
            if cached is not None and cached[0] > self._clock():
                return cached[1]

        breaker = self.breaker(name)
        if not breaker.should_allow():
            logger.warning(f"Health check {name} skipped: circuit open")
            return []

        timeout = selection.timeout_seconds or provider.timeout_seconds
        start_time = time.monotonic()

        try:
            outcome = await asyncio.wait_for(self._invoke(provider), timeout=timeout)
            results = [
                replace(result, provider_name=name)
                for result in as_result_list(outcome)
            ]

        except asyncio.TimeoutError:
            breaker.on_error()
            logger.warning(f"Health check {name} timed out after {timeout}s")
            return []

        except asyncio.CancelledError:
            breaker.on_error()
            raise

        except Exception as e:
            breaker.on_error()
            logger.error(f"Health check {name} failed: {e}", exc_info=True)
            return []

        breaker.on_success()
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"Health check {name}: {len(results)} entries ({duration_ms:.1f}ms)")

        if provider.cache_ttl_seconds > 0:
            self._cache[name] = (self._clock() + provider.cache_ttl_seconds, results)

        return results

    @staticmethod
    async def _invoke(provider: ProbeProvider):
        if provider.blocking:
            return await asyncio.to_thread(asyncio.run, provider.check())
        return await provider.check()


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "CheckExecutor",
    "CheckSelection",
]
