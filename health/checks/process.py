# ============================================================================
# PROCESS HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Built-in probe providers
# PURPOSE: Basic process and system memory checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Process Health Checks

Built-in providers registered with the global probe registry:
- ProcessCheck: Always OK if the process answers (reports pid and uptime)
- MemoryCheck: System memory usage via psutil
"""

import os
import logging
import time

import psutil

from health.core import CheckResult, ProbeProvider
from health.registry import register_probe

logger = logging.getLogger(__name__)

_STARTED_AT = time.time()


@register_probe(tags=("process",))
class ProcessCheck(ProbeProvider):
    """
    Basic process health check.

    Always returns OK if the check runs (proves process is alive).
    """

    name = "process"
    timeout_seconds = 1.0

    async def check(self) -> CheckResult:
        uptime = time.time() - _STARTED_AT
        return CheckResult.ok(f"pid {os.getpid()} up {uptime:.0f}s")


@register_probe(tags=("system",))
class MemoryCheck(ProbeProvider):
    """
    System memory check.

    WARN above warn_percent, CRITICAL above critical_percent used.
    Results are cached briefly; psutil reads /proc on every call.
    """

    name = "memory"
    timeout_seconds = 2.0
    cache_ttl_seconds = 5.0

    warn_percent = 90.0
    critical_percent = 98.0

    async def check(self) -> CheckResult:
        memory = psutil.virtual_memory()
        message = f"{memory.percent:.1f}% used ({memory.available // (1024 * 1024)} MB available)"

        if memory.percent >= self.critical_percent:
            logger.warning(f"Memory usage critical: {message}")
            return CheckResult.critical(message)
        if memory.percent >= self.warn_percent:
            return CheckResult.warn(message)
        return CheckResult.ok(message)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessCheck",
    "MemoryCheck",
]
