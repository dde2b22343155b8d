# ============================================================================
# HEALTH SETTINGS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Core - Configuration snapshot
# PURPOSE: Immutable health probe options loaded from YAML and environment
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Settings

Immutable configuration snapshot for the health aggregator.

Sources (later wins):
1. Defaults declared on HealthSettings
2. YAML file (HEALTH_CONFIG_FILE, default etc/health.yaml)
3. Environment variables (HEALTH_<OPTION>, e.g. HEALTH_WAIT_AFTER_START)

Option keys accept both the camelCase names (waitAfterStart) and the
python field names (wait_after_start). List options accept YAML lists
or comma separated strings. Log patterns may themselves contain commas,
so a string holds one pattern per line, and the environment also accepts
indexed variables (HEALTH_LOG_PATTERNS_1, HEALTH_LOG_PATTERNS_2, ...).

Invalid values never abort loading: the offending option is logged as
a warning and its default is used.

Snapshots are never mutated. SettingsHolder swaps the whole snapshot so
readers see either the old or the new configuration, never a mix.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "etc/health.yaml"
ENV_PREFIX = "HEALTH_"
PATTERN_ENV_PREFIX = f"{ENV_PREFIX}LOG_PATTERNS_"

# Mirrors health.core.CheckStatus (kept here to avoid an import cycle)
CHECK_STATUS_NAMES = ("OK", "WARN", "CRITICAL", "ERROR")


class HealthSettings(BaseModel):
    """Options recognised by the health aggregator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Grace window
    wait_after_start: int = Field(
        default=60000,
        ge=0,
        alias="waitAfterStart",
        description="Grace window after start in milliseconds",
    )

    # Module liveness
    bundles_enabled: bool = Field(default=True, alias="bundlesEnabled")
    bundles_ignore: Tuple[str, ...] = Field(default=(), alias="bundlesIgnore")

    # Log anomalies
    log_enabled: bool = Field(default=True, alias="logEnabled")
    log_level: str = Field(default="DEBUG", alias="logLevel")
    log_patterns: Tuple[str, ...] = Field(default=(), alias="logPatterns")
    log_reset_finding: bool = Field(default=False, alias="logResetFinding")

    # Pluggable checks
    check_enabled: bool = Field(default=True, alias="checkEnabled")
    check_ignore: Tuple[str, ...] = Field(default=(), alias="checkIgnore")
    check_tags: Tuple[str, ...] = Field(default=(), alias="checkTags")
    check_combine_tags_with_or: bool = Field(default=False, alias="checkCombineTagsWithOr")
    check_force_instant_execution: bool = Field(
        default=False, alias="checkForceInstantExecution"
    )
    check_override_global_timeout: int = Field(
        default=0,
        ge=0,
        alias="checkOverrideGlobalTimeout",
        description="Timeout for every check in milliseconds (0 = per check)",
    )
    check_fail_on: str = Field(
        default="CRITICAL",
        alias="checkFailOn",
        description="Lowest check status that fails the report",
    )

    # Transport
    error_status_code: int = Field(default=501, ge=500, le=599, alias="errorStatusCode")

    @field_validator(
        "bundles_ignore", "check_ignore", "check_tags",
        mode="before",
    )
    @classmethod
    def _split_list(cls, value: Any) -> Any:
        """Accept comma separated strings; drop blank items."""
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple, set)):
            return tuple(str(v).strip() for v in value if str(v).strip())
        return value

    @field_validator("log_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        """One pattern per line; commas belong to the pattern."""
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.splitlines()
        if isinstance(value, (list, tuple)):
            return tuple(str(v) for v in value if str(v).strip())
        return value

    @field_validator("check_fail_on", mode="before")
    @classmethod
    def _check_status_name(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("check status must be a string")
        value = value.strip().upper()
        if value not in CHECK_STATUS_NAMES:
            raise ValueError(f"unknown check status: {value}")
        return value

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================

    @property
    def wait_after_start_seconds(self) -> float:
        return self.wait_after_start / 1000.0

    @property
    def check_timeout_seconds(self) -> Optional[float]:
        """Global check timeout override, None when each check uses its own."""
        if self.check_override_global_timeout <= 0:
            return None
        return self.check_override_global_timeout / 1000.0

    # =========================================================================
    # LOADERS
    # =========================================================================

    @classmethod
    def _option_keys(cls) -> Dict[str, Tuple[str, ...]]:
        """Map every accepted key (name or alias) to all spellings of its option."""
        keys: Dict[str, Tuple[str, ...]] = {}
        for name, field in cls.model_fields.items():
            spellings = tuple(k for k in (name, field.alias) if k)
            for key in spellings:
                keys[key] = spellings
        return keys

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HealthSettings":
        """
        Build settings from a flat mapping of options.

        Invalid options are dropped (with a warning) until the rest
        validates, so a single bad value never discards the others.
        """
        option_keys = cls._option_keys()
        values = {k: v for k, v in data.items() if v is not None}

        while True:
            try:
                return cls.model_validate(values)
            except ValidationError as e:
                bad_keys = set()
                for error in e.errors():
                    if not error["loc"]:
                        continue
                    for key in option_keys.get(str(error["loc"][0]), ()):
                        if key in values:
                            bad_keys.add(key)

                if not bad_keys:
                    logger.warning(f"Invalid health settings, using defaults: {e}")
                    return cls()

                for key in sorted(bad_keys):
                    logger.warning(f"Ignoring invalid health option {key}={values[key]!r}")
                    del values[key]

    @classmethod
    def read_file(cls, path: Optional[str] = None) -> Dict[str, Any]:
        """
        Read raw options from a YAML file.

        A missing or unreadable file yields an empty mapping.
        """
        config_path = Path(path or os.environ.get("HEALTH_CONFIG_FILE", DEFAULT_CONFIG_FILE))

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}")
            return {}

        logger.info(f"Load config file {config_path}")
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read config file {config_path}: {e}")
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Config file {config_path} is not a mapping, ignored")
            return {}

        # Allow the options to live under a top-level "health" key
        if isinstance(data.get("health"), dict):
            data = data["health"]
        return data

    @classmethod
    def read_env(cls, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """Read raw options from HEALTH_<OPTION> environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            env_name = f"{ENV_PREFIX}{name.upper()}"
            if env_name in environ:
                values[name] = environ[env_name]

        indexed = [
            (int(key[len(PATTERN_ENV_PREFIX):]), value)
            for key, value in environ.items()
            if key.startswith(PATTERN_ENV_PREFIX) and key[len(PATTERN_ENV_PREFIX):].isdigit()
        ]
        if indexed:
            patterns = [value for _, value in sorted(indexed)]
            if "log_patterns" in values:
                patterns = values["log_patterns"].splitlines() + patterns
            values["log_patterns"] = patterns
        return values

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "HealthSettings":
        """Create from a YAML file."""
        return cls.from_mapping(cls.read_file(path))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HealthSettings":
        """Create from environment variables."""
        return cls.from_mapping(cls.read_env(environ))

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HealthSettings":
        """Create from the YAML file, overridden by environment variables."""
        option_keys = cls._option_keys()
        values = dict(cls.read_file(path))
        for name, value in cls.read_env(environ).items():
            for key in option_keys[name]:
                values.pop(key, None)
            values[name] = value
        return cls.from_mapping(values)


class SettingsHolder:
    """
    Holds the settings snapshot in effect.

    get() is lock-free; replace() swaps the reference atomically.
    """

    def __init__(self, settings: Optional[HealthSettings] = None):
        self._settings = settings or HealthSettings()
        self._lock = threading.Lock()

    def get(self) -> HealthSettings:
        return self._settings

    def replace(self, settings: HealthSettings) -> HealthSettings:
        """Install a new snapshot and return the previous one."""
        with self._lock:
            previous = self._settings
            self._settings = settings
        return previous


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "HealthSettings",
    "SettingsHolder",
]
