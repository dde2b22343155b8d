# ============================================================================
# HEALTH SERVICE
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Health aggregation
# PURPOSE: Combine module, log and pluggable probes into one report
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Service

Evaluates one health report per probe request:

1. Grace gate: during the startup window (and while the module baseline
   is not healthy) answer with the synthetic wait report.
2. Modules: every inactive, non-ignored module fails the report.
3. Log findings: any finding fails the report (optionally reset).
4. Pluggable checks: CRITICAL/ERROR results fail the report.

Every evaluation works on the settings snapshot in effect when it
started. No internal fault escapes evaluate(): a failing probe simply
contributes nothing.

Lifecycle:
    service = HealthService(settings, module_source=modules)
    service.activate()              # subscribe to the log stream
    report = await service.evaluate()
    service.update_settings(new)    # atomic swap, re-subscribes if needed
    service.deactivate()
"""

import logging
import time
from typing import Callable, List, Optional

from core.config import HealthSettings, SettingsHolder
from health.core import CheckResult, CheckStatus
from health.executor import CheckExecutor, CheckSelection
from health.grace import GracePeriodGate
from health.log_tracker import HEALTH_REPORT_MARKER, LogAnomalyTracker
from health.modules import ModuleSource, inactive_modules
from health.registry import ProbeRegistry
from health.report import HealthReport, HealthReportBuilder

logger = logging.getLogger(__name__)


class HealthService:
    """Aggregates all probes into a HealthReport."""

    def __init__(
        self,
        settings: Optional[HealthSettings] = None,
        module_source: Optional[ModuleSource] = None,
        registry: Optional[ProbeRegistry] = None,
        executor: Optional[CheckExecutor] = None,
        tracker: Optional[LogAnomalyTracker] = None,
        gate: Optional[GracePeriodGate] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            settings: Initial settings snapshot (defaults if None)
            module_source: Host module registry (module check skipped if None)
            registry: Probe registry for the executor (global if None)
            executor: Check executor (built from registry if None)
            tracker: Log anomaly tracker (built from settings if None)
            gate: Grace gate (starts now if None)
            clock: Wall clock in seconds
        """
        self._holder = SettingsHolder(settings)
        self._clock = clock
        current = self._holder.get()

        self.module_source = module_source
        self.executor = executor or CheckExecutor(registry=registry)
        self.tracker = tracker or LogAnomalyTracker(current.log_patterns, current.log_level)
        self.gate = gate or GracePeriodGate(clock=clock)
        self._active = False

    @property
    def settings(self) -> HealthSettings:
        return self._holder.get()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def activate(self) -> None:
        """Start watching the log stream if log checking is enabled."""
        self._active = True
        if self.settings.log_enabled:
            self.tracker.subscribe()
        logger.info("Health service activated")

    def deactivate(self) -> None:
        self._active = False
        self.tracker.unsubscribe()
        logger.info("Health service deactivated")

    def update_settings(self, settings: HealthSettings) -> HealthSettings:
        """
        Install a new settings snapshot.

        Returns:
            The previous snapshot
        """
        self.tracker.configure(settings.log_patterns, settings.log_level)
        previous = self._holder.replace(settings)

        if self._active:
            if settings.log_enabled:
                self.tracker.subscribe()
            else:
                self.tracker.unsubscribe()

        logger.info("Health settings updated")
        return previous

    # =========================================================================
    # EVALUATION
    # =========================================================================

    async def evaluate(self) -> HealthReport:
        """Build the report for one probe request."""
        settings = self._holder.get()
        now = self._clock()

        baseline = None
        if settings.bundles_enabled:
            baseline = lambda: self._baseline_healthy(settings)

        if self.gate.is_waiting(settings.wait_after_start_seconds, baseline):
            return HealthReport.wait_report(now)

        builder = HealthReportBuilder(
            now,
            fail_on=CheckStatus(settings.check_fail_on),
            error_status_code=settings.error_status_code,
        )

        if settings.bundles_enabled:
            builder.add_inactive_modules(self._inactive_modules(settings))

        if settings.log_enabled:
            builder.add_log_findings(self.tracker.snapshot(reset=settings.log_reset_finding))

        if settings.check_enabled:
            builder.add_check_results(await self._run_checks(settings))

        report = builder.build()
        if not report.healthy:
            logger.error(
                "Health check failed:\n" + report.render(),
                extra={HEALTH_REPORT_MARKER: True},
            )
        return report

    def _inactive_modules(self, settings: HealthSettings) -> List[str]:
        if self.module_source is None:
            return []
        try:
            modules = self.module_source.list_modules()
        except Exception as e:
            logger.warning(f"Module registry unavailable: {e}")
            return []
        return inactive_modules(modules, settings.bundles_ignore)

    def _baseline_healthy(self, settings: HealthSettings) -> bool:
        """True when module liveness is fully healthy."""
        if self.module_source is None:
            return True
        try:
            modules = self.module_source.list_modules()
        except Exception as e:
            logger.warning(f"Module registry unavailable: {e}")
            return False
        return not inactive_modules(modules, settings.bundles_ignore)

    async def _run_checks(self, settings: HealthSettings) -> List[CheckResult]:
        selection = CheckSelection(
            tags=settings.check_tags,
            combine_tags_with_or=settings.check_combine_tags_with_or,
            force_instant_execution=settings.check_force_instant_execution,
            timeout_seconds=settings.check_timeout_seconds,
        )
        try:
            return await self.executor.execute(ignore=settings.check_ignore, selection=selection)
        except Exception as e:
            logger.error(f"Pluggable checks failed: {e}", exc_info=True)
            return []


__all__ = [
    "HealthService",
]
