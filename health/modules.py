# ============================================================================
# MODULE LIVENESS
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Host module activation state
# PURPOSE: Module registry interface and the module liveness check
# CREATED: 19 OCT 2026
# ============================================================================
"""
Module Liveness

The host runtime publishes the activation state of its modules through
a ModuleSource. The health service reads it fresh on every evaluation
and never caches it.

ModuleRegistry is an in-memory ModuleSource that host code updates as
its components start and stop.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from health.core import ModuleStatus

logger = logging.getLogger(__name__)


class ModuleSource(ABC):
    """Host registry of modules and their activation state."""

    @abstractmethod
    def list_modules(self) -> List[ModuleStatus]:
        """All known modules, in the host's enumeration order."""
        pass


class ModuleRegistry(ModuleSource):
    """In-memory module registry updated by the host application."""

    def __init__(self):
        self._modules: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def register(self, module_id: str, active: bool = False) -> None:
        with self._lock:
            self._modules[module_id] = active

    def set_active(self, module_id: str, active: bool = True) -> None:
        """Update activation state; unknown modules are registered."""
        with self._lock:
            previous = self._modules.get(module_id)
            self._modules[module_id] = active
        if previous is not None and previous != active:
            logger.info(f"Module {module_id} {'activated' if active else 'deactivated'}")

    def unregister(self, module_id: str) -> bool:
        with self._lock:
            return self._modules.pop(module_id, None) is not None

    def list_modules(self) -> List[ModuleStatus]:
        with self._lock:
            return [ModuleStatus(id=k, active=v) for k, v in self._modules.items()]


def inactive_modules(modules: Iterable[ModuleStatus], ignore: Iterable[str] = ()) -> List[str]:
    """Ids of inactive modules that are not ignored, in enumeration order."""
    ignored = set(ignore)
    return [m.id for m in modules if not m.active and m.id not in ignored]


__all__ = [
    "ModuleSource",
    "ModuleRegistry",
    "inactive_modules",
]
