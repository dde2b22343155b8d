# ============================================================================
# BUILT-IN PROBE PROVIDERS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Providers shipped with the health aggregator
# CREATED: 19 OCT 2026
# ============================================================================
"""
Built-in Probe Providers

- process: Process alive (pid, uptime)
- memory: System memory usage (psutil)

Import this module to register them with the global registry:
    import health.checks
"""

from health.checks.process import ProcessCheck, MemoryCheck

__all__ = [
    "ProcessCheck",
    "MemoryCheck",
]
