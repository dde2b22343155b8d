# ============================================================================
# HEALTH SERVICE TESTS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Tests - End-to-end aggregation
# PURPOSE: Verify the combined report across modules, logs and checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Service Tests

Covers:
1. Module liveness verdicts and ignore list
2. Grace window short-circuit and early exit
3. Log findings with and without reset
4. Pluggable check isolation and ignore list
5. Settings replacement and log subscription lifecycle
6. Failure report written to the log

Run with:
    pytest tests/test_service.py -v
"""

import asyncio
import logging

from core.config import HealthSettings
from health.core import CheckResult, ProbeProvider
from health.grace import GateState, GracePeriodGate
from health.log_tracker import ERROR_INT, INFO_INT
from health.modules import ModuleRegistry, ModuleSource
from health.registry import ProbeRegistry
from health.report import HealthReport, format_time_line
from health.service import HealthService

START = 1_760_875_200.0


# ============================================================================
# FIXTURES
# ============================================================================

class FakeClock:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class StaticProbe(ProbeProvider):
    def __init__(self, name, *results):
        self.name = name
        self.results = list(results)

    async def check(self):
        return self.results


class ExplodingProbe(ProbeProvider):
    name = "exploding"

    async def check(self):
        raise RuntimeError("probe crashed")


class BrokenModuleSource(ModuleSource):
    def list_modules(self):
        raise ConnectionError("registry unavailable")


def _modules(**states) -> ModuleRegistry:
    registry = ModuleRegistry()
    for module_id, active in states.items():
        registry.register(module_id, active=active)
    return registry


def _service(settings=None, modules=None, probes=(), clock=None) -> HealthService:
    """Service with the grace window already elapsed unless settings say otherwise."""
    clock = clock or FakeClock()
    settings = settings or HealthSettings(wait_after_start=0)
    return HealthService(
        settings,
        module_source=modules,
        registry=ProbeRegistry(probes),
        gate=GracePeriodGate(clock=clock, activation_time=START),
        clock=clock,
    )


def _evaluate(service: HealthService) -> HealthReport:
    return asyncio.run(service.evaluate())


# ============================================================================
# MODULE LIVENESS
# ============================================================================

class TestModules:

    def test_inactive_module_reported(self):
        service = _service(modules=_modules(A=True, B=False))
        report = _evaluate(service)

        assert "Bundle: B" in report.lines
        assert "Bundle: A" not in report.lines
        assert report.lines[-1] == "status: error"
        assert report.healthy is False

    def test_all_active_is_healthy(self):
        report = _evaluate(_service(modules=_modules(A=True, B=True)))
        assert report.healthy is True
        assert report.lines == (format_time_line(START), "status: ok")

    def test_ignored_module_not_reported(self):
        settings = HealthSettings(wait_after_start=0, bundles_ignore=("B",))
        report = _evaluate(_service(settings, modules=_modules(A=True, B=False)))
        assert report.healthy is True
        assert not any(line.startswith("Bundle:") for line in report.lines)

    def test_module_lines_in_registry_order(self):
        report = _evaluate(_service(modules=_modules(z=False, a=False, m=True)))
        assert report.lines[1:3] == ("Bundle: z", "Bundle: a")

    def test_module_check_disabled(self):
        settings = HealthSettings(wait_after_start=0, bundles_enabled=False)
        report = _evaluate(_service(settings, modules=_modules(B=False)))
        assert report.healthy is True

    def test_module_state_read_fresh(self):
        modules = _modules(B=False)
        service = _service(modules=modules)
        assert _evaluate(service).healthy is False
        modules.set_active("B")
        assert _evaluate(service).healthy is True

    def test_broken_module_source_contributes_nothing(self):
        report = _evaluate(_service(modules=BrokenModuleSource()))
        assert report.healthy is True


# ============================================================================
# GRACE WINDOW
# ============================================================================

class TestGraceWindow:

    def test_wait_template_inside_window(self):
        clock = FakeClock(START + 1.0)
        settings = HealthSettings(wait_after_start=60000)
        service = _service(settings, modules=_modules(B=False), clock=clock)

        report = _evaluate(service)

        assert report.render() == (
            f"{format_time_line(START + 1.0)}\nwait: Wait after start\nstatus: ok\n"
        )
        assert report.healthy is True
        assert service.gate.state is GateState.WAITING

    def test_wait_ignores_failing_probes(self):
        clock = FakeClock(START + 1.0)
        settings = HealthSettings(wait_after_start=60000)
        service = _service(
            settings,
            modules=_modules(B=False),
            probes=[StaticProbe("db", CheckResult.critical("down"))],
            clock=clock,
        )
        service.tracker.ingest(ERROR_INT, "OutOfMemoryError")

        report = _evaluate(service)
        assert report.waiting is True
        assert report.healthy is True

    def test_healthy_baseline_skips_window(self):
        clock = FakeClock(START + 1.0)
        settings = HealthSettings(wait_after_start=60000)
        service = _service(
            settings,
            modules=_modules(A=True),
            probes=[StaticProbe("db", CheckResult.ok("up"))],
            clock=clock,
        )

        report = _evaluate(service)
        assert report.waiting is False
        assert "db: INFO up" in report.lines
        assert service.gate.state is GateState.ACTIVE

    def test_window_without_module_check_never_exits_early(self):
        clock = FakeClock(START + 1.0)
        settings = HealthSettings(wait_after_start=60000, bundles_enabled=False)
        service = _service(settings, modules=_modules(A=True), clock=clock)

        assert _evaluate(service).waiting is True
        clock.now = START + 60.0
        assert _evaluate(service).waiting is False

    def test_gate_never_reopens(self):
        clock = FakeClock(START + 1.0)
        modules = _modules(A=True)
        settings = HealthSettings(wait_after_start=60000)
        service = _service(settings, modules=modules, clock=clock)

        assert _evaluate(service).waiting is False

        modules.set_active("A", False)
        report = _evaluate(service)
        assert report.waiting is False
        assert "Bundle: A" in report.lines

        modules.set_active("A", True)
        assert _evaluate(service).waiting is False


# ============================================================================
# LOG FINDINGS
# ============================================================================

class TestLogFindings:

    def test_finding_persists_without_reset(self):
        settings = HealthSettings(
            wait_after_start=0, log_patterns=(".*OutOfMemoryError.*",),
        )
        service = _service(settings)
        service.tracker.ingest(ERROR_INT, "java.lang.OutOfMemoryError: heap")

        first = _evaluate(service)
        second = _evaluate(service)
        for report in (first, second):
            assert "Log: .*OutOfMemoryError.*" in report.lines
            assert report.healthy is False

    def test_finding_cleared_with_reset(self):
        settings = HealthSettings(
            wait_after_start=0,
            log_patterns=(".*OutOfMemoryError.*",),
            log_reset_finding=True,
        )
        service = _service(settings)
        service.tracker.ingest(ERROR_INT, "OutOfMemoryError")

        assert "Log: .*OutOfMemoryError.*" in _evaluate(service).lines
        report = _evaluate(service)
        assert "Log: .*OutOfMemoryError.*" not in report.lines
        assert report.healthy is True

    def test_repeated_matches_one_line(self):
        settings = HealthSettings(wait_after_start=0, log_patterns=(".*timeout.*",))
        service = _service(settings)
        for _ in range(3):
            service.tracker.ingest(ERROR_INT, "request timeout")

        lines = [l for l in _evaluate(service).lines if l.startswith("Log:")]
        assert lines == ["Log: .*timeout.*"]

    def test_severity_floor_applies(self):
        settings = HealthSettings(
            wait_after_start=0, log_level="warn", log_patterns=(".*timeout.*",),
        )
        service = _service(settings)
        service.tracker.ingest(INFO_INT, "request timeout")
        assert _evaluate(service).healthy is True

    def test_log_check_disabled_hides_findings(self):
        settings = HealthSettings(wait_after_start=0, log_enabled=False)
        service = _service(settings)
        service.tracker.ingest(ERROR_INT, "MemoryError")
        assert _evaluate(service).healthy is True


# ============================================================================
# PLUGGABLE CHECKS
# ============================================================================

class TestPluggableChecks:

    def test_check_lines_in_provider_order(self):
        service = _service(probes=[
            StaticProbe("db", CheckResult.ok("connected"), CheckResult.warn("slow")),
            StaticProbe("queue", CheckResult.ok("empty")),
        ])
        report = _evaluate(service)
        assert report.lines[1:4] == (
            "db: INFO connected",
            "db: WARN slow",
            "queue: INFO empty",
        )
        assert report.healthy is True

    def test_critical_check_fails(self):
        service = _service(probes=[StaticProbe("db", CheckResult.critical("down"))])
        report = _evaluate(service)
        assert report.healthy is False
        assert "db: ERROR down" in report.lines

    def test_exception_isolated(self):
        service = _service(probes=[
            ExplodingProbe(),
            StaticProbe("db", CheckResult.ok("connected")),
        ])
        report = _evaluate(service)
        assert report.healthy is True
        assert "db: INFO connected" in report.lines
        assert not any("exploding" in line for line in report.lines)

    def test_ignored_check_not_run(self):
        settings = HealthSettings(wait_after_start=0, check_ignore=("db",))
        service = _service(settings, probes=[StaticProbe("db", CheckResult.critical("down"))])
        assert _evaluate(service).healthy is True

    def test_checks_disabled(self):
        settings = HealthSettings(wait_after_start=0, check_enabled=False)
        service = _service(settings, probes=[StaticProbe("db", CheckResult.critical("down"))])
        report = _evaluate(service)
        assert report.healthy is True
        assert len(report.lines) == 2

    def test_fail_on_warn(self):
        settings = HealthSettings(wait_after_start=0, check_fail_on="WARN")
        service = _service(settings, probes=[StaticProbe("db", CheckResult.warn("slow"))])
        assert _evaluate(service).healthy is False

    def test_fail_on_error_still_fails_critical(self):
        settings = HealthSettings(wait_after_start=0, check_fail_on="ERROR")
        service = _service(settings, probes=[StaticProbe("db", CheckResult.critical("down"))])
        report = _evaluate(service)
        assert report.healthy is False
        assert report.lines[-1] == "status: error"

    def test_full_report_order(self):
        settings = HealthSettings(wait_after_start=0, log_patterns=(".*OOM.*",))
        service = _service(
            settings,
            modules=_modules(B=False),
            probes=[StaticProbe("db", CheckResult.ok("up"))],
        )
        service.tracker.ingest(ERROR_INT, "OOM killer")

        assert _evaluate(service).lines == (
            format_time_line(START),
            "Bundle: B",
            "Log: .*OOM.*",
            "db: INFO up",
            "status: error",
        )


# ============================================================================
# LIFECYCLE + LOGGING
# ============================================================================

class TestLifecycle:

    def test_failure_written_to_log(self, caplog):
        service = _service(modules=_modules(B=False))
        with caplog.at_level(logging.ERROR, logger="health.service"):
            _evaluate(service)
        assert "Health check failed:" in caplog.text
        assert "Bundle: B" in caplog.text

    def test_healthy_report_not_logged(self, caplog):
        service = _service(modules=_modules(A=True))
        with caplog.at_level(logging.ERROR, logger="health.service"):
            _evaluate(service)
        assert "Health check failed" not in caplog.text

    def test_failure_report_does_not_feed_tracker(self):
        service = _service(modules=_modules(B=False))
        service.activate()
        try:
            service.tracker.ingest(ERROR_INT, "MemoryError")
            _evaluate(service)
            service.tracker.clear()
            # The logged failure mentions the pattern but must not re-trigger it
            report = _evaluate(service)
            assert not any(line.startswith("Log:") for line in report.lines)
        finally:
            service.deactivate()

    def test_activate_subscribes_when_log_enabled(self):
        service = _service()
        service.activate()
        try:
            assert service.tracker.subscribed
        finally:
            service.deactivate()
        assert not service.tracker.subscribed

    def test_activate_without_log_check(self):
        service = _service(HealthSettings(wait_after_start=0, log_enabled=False))
        service.activate()
        try:
            assert not service.tracker.subscribed
        finally:
            service.deactivate()

    def test_update_settings_swaps_snapshot(self):
        service = _service(modules=_modules(B=False))
        assert _evaluate(service).healthy is False

        new = HealthSettings(wait_after_start=0, bundles_ignore=("B",))
        previous = service.update_settings(new)

        assert previous.bundles_ignore == ()
        assert service.settings is new
        assert _evaluate(service).healthy is True

    def test_update_settings_toggles_subscription(self):
        service = _service()
        service.activate()
        try:
            service.update_settings(HealthSettings(wait_after_start=0, log_enabled=False))
            assert not service.tracker.subscribed
            service.update_settings(HealthSettings(wait_after_start=0, log_enabled=True))
            assert service.tracker.subscribed
        finally:
            service.deactivate()

    def test_update_settings_reconfigures_patterns(self):
        service = _service()
        service.update_settings(HealthSettings(wait_after_start=0, log_patterns=(".*panic.*",)))
        service.tracker.ingest(ERROR_INT, "kernel panic")
        assert "Log: .*panic.*" in _evaluate(service).lines

    def test_status_code_follows_evaluated_snapshot(self):
        service = _service(HealthSettings(wait_after_start=0, error_status_code=501))

        class ReconfiguringProbe(ProbeProvider):
            name = "db"

            async def check(self):
                service.update_settings(
                    HealthSettings(wait_after_start=0, error_status_code=599)
                )
                return CheckResult.critical("down")

        service.executor.registry.register(ReconfiguringProbe())

        report = _evaluate(service)

        assert report.healthy is False
        assert report.status_code == 501
        assert service.settings.error_status_code == 599
