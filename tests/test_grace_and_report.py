# ============================================================================
# GRACE GATE + REPORT BUILDER TESTS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Tests - Startup window and report assembly
# PURPOSE: Verify gate transitions and deterministic report layout
# CREATED: 19 OCT 2026
# ============================================================================
"""
Grace Gate + Report Builder Tests

Covers:
1. WAITING -> ACTIVE on deadline and on healthy baseline
2. ACTIVE is terminal
3. Report line order, verdict and rendering
4. Wait template

Run with:
    pytest tests/test_grace_and_report.py -v
"""

import re

import pytest

from health.core import CheckResult, CheckStatus
from health.grace import GateState, GracePeriodGate
from health.report import (
    HealthReport,
    HealthReportBuilder,
    STATUS_ERROR_LINE,
    STATUS_OK_LINE,
    WAIT_LINE,
    format_time_line,
)


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# ============================================================================
# GRACE PERIOD GATE
# ============================================================================

class TestGracePeriodGate:

    def test_starts_waiting(self):
        gate = GracePeriodGate(clock=FakeClock())
        assert gate.state is GateState.WAITING
        assert gate.activation_time == 1000.0

    def test_waits_before_deadline(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        clock.now += 1.0
        assert gate.is_waiting(60.0, lambda: False) is True
        assert gate.state is GateState.WAITING

    def test_activates_at_deadline(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        clock.now += 60.0
        assert gate.is_waiting(60.0, lambda: False) is False
        assert gate.state is GateState.ACTIVE

    def test_healthy_baseline_exits_early(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        clock.now += 1.0
        assert gate.is_waiting(60.0, lambda: True) is False
        assert gate.state is GateState.ACTIVE

    def test_no_baseline_never_exits_early(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        for _ in range(5):
            clock.now += 10.0
            assert gate.is_waiting(60.0, None) is True
        clock.now += 10.0
        assert gate.is_waiting(60.0, None) is False

    def test_active_never_reverts(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        assert gate.is_waiting(60.0, lambda: True) is False

        # Baseline turns false again, and the window grows
        assert gate.is_waiting(600.0, lambda: False) is False
        assert gate.is_waiting(600.0, None) is False
        assert gate.state is GateState.ACTIVE

    def test_baseline_not_consulted_after_activation(self):
        calls = []
        gate = GracePeriodGate(clock=FakeClock())
        gate.is_waiting(0.0, lambda: calls.append(1) or False)
        gate.is_waiting(60.0, lambda: calls.append(1) or False)
        assert calls == []

    def test_window_read_at_call_time(self):
        clock = FakeClock()
        gate = GracePeriodGate(clock=clock)
        clock.now += 30.0
        assert gate.is_waiting(60.0) is True
        assert gate.is_waiting(10.0) is False


# ============================================================================
# REPORT
# ============================================================================

class TestTimeLine:

    def test_format(self):
        line = format_time_line(1760875200.123)
        assert line.startswith("time: 1760875200123 ")
        assert re.search(r"\d{2}:\d{2}:\d{2}", line)
        assert line.endswith("2025")


class TestHealthReportBuilder:

    def test_empty_report_is_healthy(self):
        report = HealthReportBuilder(1000.0).build()
        assert report.healthy is True
        assert report.lines == (format_time_line(1000.0), STATUS_OK_LINE)

    def test_sections_in_fixed_order(self):
        builder = HealthReportBuilder(1000.0)
        builder.add_check_results([
            CheckResult(status=CheckStatus.OK, message="fine", provider_name="db"),
        ])
        builder.add_log_findings([".*OutOfMemoryError.*"])
        builder.add_inactive_modules(["worker", "api"])

        report = builder.build()
        assert report.lines == (
            format_time_line(1000.0),
            "Bundle: worker",
            "Bundle: api",
            "Log: .*OutOfMemoryError.*",
            "db: INFO fine",
            STATUS_ERROR_LINE,
        )
        assert report.healthy is False

    def test_inactive_module_fails(self):
        report = HealthReportBuilder(1000.0).add_inactive_modules(["B"]).build()
        assert report.healthy is False
        assert report.lines[-1] == STATUS_ERROR_LINE

    def test_log_finding_fails(self):
        report = HealthReportBuilder(1000.0).add_log_findings(["x"]).build()
        assert report.healthy is False

    @pytest.mark.parametrize("status,healthy", [
        (CheckStatus.OK, True),
        (CheckStatus.WARN, True),
        (CheckStatus.CRITICAL, False),
        (CheckStatus.ERROR, False),
    ])
    def test_check_status_verdict(self, status, healthy):
        result = CheckResult(status=status, message="m", provider_name="p")
        report = HealthReportBuilder(1000.0).add_check_results([result]).build()
        assert report.healthy is healthy

    def test_fail_on_threshold(self):
        result = CheckResult(status=CheckStatus.WARN, message="m", provider_name="p")
        report = (
            HealthReportBuilder(1000.0, fail_on=CheckStatus.WARN)
            .add_check_results([result])
            .build()
        )
        assert report.healthy is False

    @pytest.mark.parametrize("fail_on", [CheckStatus.ERROR, CheckStatus.CRITICAL])
    def test_critical_fails_whatever_the_threshold(self, fail_on):
        result = CheckResult(status=CheckStatus.CRITICAL, message="down", provider_name="db")
        report = (
            HealthReportBuilder(1000.0, fail_on=fail_on)
            .add_check_results([result])
            .build()
        )
        assert report.healthy is False
        assert report.lines[-1] == "status: error"

    def test_status_code(self):
        healthy = HealthReportBuilder(1000.0, error_status_code=503).build()
        unhealthy = (
            HealthReportBuilder(1000.0, error_status_code=503)
            .add_inactive_modules(["B"])
            .build()
        )
        assert healthy.status_code == 200
        assert unhealthy.status_code == 503

    def test_check_line_uses_explicit_log_level(self):
        result = CheckResult(
            status=CheckStatus.WARN, message="slow", log_level="DEBUG", provider_name="p",
        )
        report = HealthReportBuilder(1000.0).add_check_results([result]).build()
        assert "p: DEBUG slow" in report.lines

    def test_render(self):
        report = HealthReportBuilder(1000.0).add_inactive_modules(["B"]).build()
        text = report.render()
        assert text.endswith("Bundle: B\nstatus: error\n")
        assert text.count("\n") == 3


class TestWaitReport:

    def test_template(self):
        report = HealthReport.wait_report(1001.0)
        assert report.render() == (
            f"{format_time_line(1001.0)}\n{WAIT_LINE}\n{STATUS_OK_LINE}\n"
        )
        assert report.healthy is True
        assert report.waiting is True
