# ============================================================================
# KUBE HEALTH AGGREGATOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Serve the consolidated health probe
# CREATED: 19 OCT 2026
# ============================================================================
"""
Kube Health Aggregator Main Application

FastAPI application that:
1. Loads the health settings (YAML file + HEALTH_* environment)
2. Subscribes the log anomaly tracker to the application log
3. Serves GET /health for Kubernetes liveness/readiness probes

The host publishes module states through the ModuleRegistry exposed as
`modules`; this application registers itself as module "app" and marks
it active once startup has completed.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import asyncio
import os
import signal
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import HealthSettings
from core.logging import configure_logging, get_logger
from health import HealthService, ModuleRegistry, get_registry, health_router, set_health_service

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

APP_MODULE = "app"

# Host module registry (other components may register themselves here)
modules = ModuleRegistry()
modules.register(APP_MODULE, active=False)

_service: HealthService = None


def reload_settings() -> None:
    """Reload settings from file/environment and swap them in (SIGHUP)."""
    if _service is None:
        return
    logger.info("Reloading health settings")
    _service.update_settings(HealthSettings.load())


def install_reload_handler(loop: asyncio.AbstractEventLoop) -> bool:
    """Reload settings on SIGHUP. Returns False where signals are unavailable."""
    if not hasattr(signal, "SIGHUP"):
        return False
    try:
        loop.add_signal_handler(signal.SIGHUP, reload_settings)
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows, or loop not running in the main thread
        return False
    return True


def remove_reload_handler(loop: asyncio.AbstractEventLoop) -> None:
    loop.remove_signal_handler(signal.SIGHUP)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Activates the health service on startup, releases it on shutdown.
    """
    global _service

    logger.info(f"Starting Kube Health Aggregator v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    settings = HealthSettings.load()

    import health.checks  # Register built-in probe providers
    registry = get_registry()
    logger.info(f"Probe providers registered: {len(registry)}")

    _service = HealthService(settings, module_source=modules, registry=registry)
    _service.activate()
    set_health_service(_service)

    loop = asyncio.get_running_loop()
    reload_installed = install_reload_handler(loop)

    modules.set_active(APP_MODULE, True)

    yield

    logger.info("Shutting down Kube Health Aggregator...")
    if reload_installed:
        remove_reload_handler(loop)
    modules.set_active(APP_MODULE, False)
    set_health_service(None)
    _service.deactivate()
    logger.info("Kube Health Aggregator stopped")


app = FastAPI(
    title="Kube Health Aggregator",
    description="Consolidated liveness/readiness probe",
    version=__version__,
    lifespan=lifespan,
)

# Health probe routes (no prefix - /health, /health/*)
app.include_router(health_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Kube Health Aggregator",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "health": "/health",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
