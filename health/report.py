# ============================================================================
# HEALTH REPORT
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Report assembly
# PURPOSE: Fold probe outputs into one ordered plain-text report
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Report

A report is a list of text lines in a fixed order:

    time: <epoch-ms> <human-date>
    Bundle: <module-id>                 (inactive modules)
    Log: <pattern>                      (log findings)
    <provider>: <level> <message>       (check results)
    status: ok | status: error

The builder keeps each section separately, so the order of the output
does not depend on the order the sections were added in.
"""

import time
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from health.core import CheckResult, CheckStatus

STATUS_OK_LINE = "status: ok"
STATUS_ERROR_LINE = "status: error"
WAIT_LINE = "wait: Wait after start"


def format_time_line(timestamp: float) -> str:
    """'time: <epoch-ms> <human-date>' for a wall clock timestamp in seconds."""
    millis = int(timestamp * 1000)
    human = time.strftime("%a %b %d %H:%M:%S %Z %Y", time.localtime(timestamp))
    return f"time: {millis} {human}"


@dataclass(frozen=True)
class HealthReport:
    """Point-in-time health report. Built per request, never stored."""
    timestamp: float
    lines: Tuple[str, ...]
    healthy: bool
    waiting: bool = False
    error_status_code: int = 501

    @property
    def status_code(self) -> int:
        """HTTP status for this report, fixed by the settings it was built with."""
        return 200 if self.healthy else self.error_status_code

    def render(self) -> str:
        """Plain-text body, one line per entry, newline terminated."""
        return "".join(f"{line}\n" for line in self.lines)

    @classmethod
    def wait_report(cls, timestamp: float) -> "HealthReport":
        """Synthetic healthy report served during the grace window."""
        return cls(
            timestamp=timestamp,
            lines=(format_time_line(timestamp), WAIT_LINE, STATUS_OK_LINE),
            healthy=True,
            waiting=True,
        )


class HealthReportBuilder:
    """Collects report sections and decides the overall verdict."""

    def __init__(
        self,
        timestamp: float,
        fail_on: CheckStatus = CheckStatus.CRITICAL,
        error_status_code: int = 501,
    ):
        self.timestamp = timestamp
        self.fail_on = fail_on
        self.error_status_code = error_status_code
        self.healthy = True
        self._module_lines: List[str] = []
        self._log_lines: List[str] = []
        self._check_lines: List[str] = []

    def add_inactive_modules(self, module_ids: Iterable[str]) -> "HealthReportBuilder":
        for module_id in module_ids:
            self._module_lines.append(f"Bundle: {module_id}")
            self.healthy = False
        return self

    def add_log_findings(self, findings: Iterable[str]) -> "HealthReportBuilder":
        for finding in findings:
            self._log_lines.append(f"Log: {finding}")
            self.healthy = False
        return self

    def add_check_results(self, results: Iterable[CheckResult]) -> "HealthReportBuilder":
        for result in results:
            self._check_lines.append(result.to_line())
            if result.status.fails(self.fail_on):
                self.healthy = False
        return self

    def build(self) -> HealthReport:
        lines = [format_time_line(self.timestamp)]
        lines.extend(self._module_lines)
        lines.extend(self._log_lines)
        lines.extend(self._check_lines)
        lines.append(STATUS_OK_LINE if self.healthy else STATUS_ERROR_LINE)
        return HealthReport(
            timestamp=self.timestamp,
            lines=tuple(lines),
            healthy=self.healthy,
            error_status_code=self.error_status_code,
        )


__all__ = [
    "HealthReport",
    "HealthReportBuilder",
    "format_time_line",
    "STATUS_OK_LINE",
    "STATUS_ERROR_LINE",
    "WAIT_LINE",
]
