# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Core - Configuration
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides the immutable health settings snapshot and its holder.
"""

from core.config.settings import (
    DEFAULT_CONFIG_FILE,
    HealthSettings,
    SettingsHolder,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "HealthSettings",
    "SettingsHolder",
]
