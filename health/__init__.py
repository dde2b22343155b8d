# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Health aggregation engine
# PURPOSE: Consolidated Kubernetes probe for modules, logs and checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Module

Combines independent probes into one plain-text health report:
- Module liveness: inactive host modules fail the report
- Log anomalies: configured patterns seen in the log fail the report
- Pluggable checks: CRITICAL/ERROR results fail the report
- Grace window: failures are suppressed while the process boots

Architecture:
- ProbeProvider: Base class for pluggable checks
- ProbeRegistry: Provider registration
- CheckExecutor: Parallel execution with timeouts and circuit breakers
- LogAnomalyTracker: Log stream pattern matching
- GracePeriodGate: Startup window state machine
- HealthService: Aggregation into a HealthReport
- health_router: GET /health

Usage:
    from health import HealthService, health_router, set_health_service

    service = HealthService(settings, module_source=modules)
    service.activate()
    set_health_service(service)
    app.include_router(health_router)
"""

from health.core import (
    CheckStatus,
    CheckResult,
    ModuleStatus,
    ProbeProvider,
)
from health.registry import (
    ProbeRegistry,
    register_probe,
    get_registry,
)
from health.modules import ModuleSource, ModuleRegistry
from health.executor import CheckExecutor, CheckSelection
from health.log_tracker import LogAnomalyTracker
from health.grace import GracePeriodGate, GateState
from health.report import HealthReport, HealthReportBuilder
from health.service import HealthService
from health.router import health_router, set_health_service

__all__ = [
    # Core types
    "CheckStatus",
    "CheckResult",
    "ModuleStatus",
    "ProbeProvider",
    # Registry
    "ProbeRegistry",
    "register_probe",
    "get_registry",
    # Modules
    "ModuleSource",
    "ModuleRegistry",
    # Execution
    "CheckExecutor",
    "CheckSelection",
    # Log anomalies
    "LogAnomalyTracker",
    # Grace window
    "GracePeriodGate",
    "GateState",
    # Report
    "HealthReport",
    "HealthReportBuilder",
    "HealthService",
    # Router
    "health_router",
    "set_health_service",
]
