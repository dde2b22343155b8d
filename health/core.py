# ============================================================================
# HEALTH CHECK CORE TYPES
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Base classes for health probes
# PURPOSE: Probe provider interface and result types
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Core Types

Defines the probe provider interface and the result types shared by
the module check, the check executor and the report builder.

Status Hierarchy (worst wins):
- OK: Check passed
- WARN: Operational with warnings (never fails the report on its own)
- CRITICAL: Check failed
- ERROR: Check could not determine a result
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union


class CheckStatus(str, Enum):
    """Check status values."""
    OK = "OK"
    WARN = "WARN"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"

    @property
    def severity(self) -> int:
        order = {
            CheckStatus.OK: 0,
            CheckStatus.WARN: 1,
            CheckStatus.CRITICAL: 2,
            CheckStatus.ERROR: 3,
        }
        return order[self]

    def __lt__(self, other: "CheckStatus") -> bool:
        """Enable comparison for 'worst wins' ordering."""
        return self.severity < other.severity

    def fails(self, threshold: "CheckStatus" = None) -> bool:
        """
        True if this status marks a report unhealthy.

        The threshold can only lower the cutoff: CRITICAL and ERROR
        always fail.
        """
        cutoff = min(threshold or CheckStatus.CRITICAL, CheckStatus.CRITICAL)
        return self.severity >= cutoff.severity

    @property
    def default_log_level(self) -> str:
        """Log level printed for a result that does not name its own."""
        levels = {
            CheckStatus.OK: "INFO",
            CheckStatus.WARN: "WARN",
            CheckStatus.CRITICAL: "ERROR",
            CheckStatus.ERROR: "ERROR",
        }
        return levels[self]


@dataclass(frozen=True)
class ModuleStatus:
    """Activation state of one host module, read fresh per evaluation."""
    id: str
    active: bool


@dataclass(frozen=True)
class CheckResult:
    """
    One entry returned by a probe provider.

    provider_name is stamped by the executor from the provider's
    display name, so providers normally leave it empty.
    """
    status: CheckStatus
    message: str = ""
    log_level: Optional[str] = None
    provider_name: str = ""

    @property
    def level(self) -> str:
        return self.log_level or self.status.default_log_level

    @classmethod
    def ok(cls, message: str = "", log_level: str = None) -> "CheckResult":
        return cls(status=CheckStatus.OK, message=message, log_level=log_level)

    @classmethod
    def warn(cls, message: str, log_level: str = None) -> "CheckResult":
        return cls(status=CheckStatus.WARN, message=message, log_level=log_level)

    @classmethod
    def critical(cls, message: str, log_level: str = None) -> "CheckResult":
        return cls(status=CheckStatus.CRITICAL, message=message, log_level=log_level)

    @classmethod
    def error(cls, message: str, log_level: str = None) -> "CheckResult":
        return cls(status=CheckStatus.ERROR, message=message, log_level=log_level)

    def to_line(self) -> str:
        """Report line: '<provider>: <level> <message>'."""
        return f"{self.provider_name}: {self.level} {self.message}"


ProbeOutcome = Union[CheckResult, Sequence[CheckResult]]


class ProbeProvider(ABC):
    """
    Base class for pluggable health check providers.

    Subclass and implement check(). Register instances with a
    ProbeRegistry (or the @register_probe decorator).

    Attributes:
        name: Stable display name; used for ignore lists and report lines.
              Defaults to the class name.
        tags: Tags used by tag based selection
        timeout_seconds: Max execution time before the provider is skipped
        cache_ttl_seconds: How long results may be reused (0 = never)
        blocking: check() makes blocking calls; it then runs on its own
                  event loop in a worker thread so the timeout still holds
                  and other requests are not stalled

    Example:
        @register_probe(tags=("db",))
        class PostgresProbe(ProbeProvider):
            name = "postgres"
            timeout_seconds = 5.0

            async def check(self):
                await db.execute("SELECT 1")
                return CheckResult.ok("connected")
    """

    name: Optional[str] = None
    tags: Tuple[str, ...] = ()
    timeout_seconds: float = 10.0
    cache_ttl_seconds: float = 0.0
    blocking: bool = False

    @property
    def display_name(self) -> str:
        return self.name or type(self).__name__

    @abstractmethod
    async def check(self) -> ProbeOutcome:
        """
        Execute the check.

        Returns:
            A CheckResult or a sequence of them, in report order
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.display_name}>"


def as_result_list(outcome: ProbeOutcome) -> List[CheckResult]:
    """Normalize a provider outcome to a list of CheckResult."""
    if outcome is None:
        return []
    if isinstance(outcome, CheckResult):
        return [outcome]
    results = list(outcome)
    for item in results:
        if not isinstance(item, CheckResult):
            raise TypeError(f"Expected CheckResult, got {type(item).__name__}")
    return results
