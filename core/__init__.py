# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Core module initialization
# PURPOSE: Configuration and logging shared by the health aggregator
# CREATED: 19 OCT 2026
# ============================================================================

from core.config import HealthSettings, SettingsHolder
from core.logging import configure_logging, get_logger

__all__ = [
    # Configuration
    "HealthSettings",
    "SettingsHolder",
    # Logging
    "configure_logging",
    "get_logger",
]
