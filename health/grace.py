# ============================================================================
# GRACE PERIOD GATE
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Startup grace window
# PURPOSE: Suppress probe failures while the process is still booting
# CREATED: 19 OCT 2026
# ============================================================================
"""
Grace Period Gate

State machine with two states:

    WAITING --(deadline passed | baseline healthy)--> ACTIVE

While WAITING the health endpoint answers with the fixed "wait after
start" report. ACTIVE is terminal: the gate never reopens.

The deadline is activation_time + waitAfterStart, where waitAfterStart
comes from the settings snapshot in effect at call time.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"


class GracePeriodGate:
    """Startup grace window shared by all probe requests."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        activation_time: Optional[float] = None,
    ):
        """
        Args:
            clock: Wall clock in seconds
            activation_time: Start of the window (defaults to now)
        """
        self._clock = clock
        self.activation_time = clock() if activation_time is None else activation_time
        self._state = GateState.WAITING
        self._lock = threading.Lock()

    @property
    def state(self) -> GateState:
        return self._state

    def deadline(self, wait_after_start_seconds: float) -> float:
        return self.activation_time + wait_after_start_seconds

    def is_waiting(
        self,
        wait_after_start_seconds: float,
        baseline_healthy: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """
        Decide whether a request still gets the wait response.

        Args:
            wait_after_start_seconds: Grace window length
            baseline_healthy: Early-exit check; None disables early exit

        Returns:
            True while the window is open and the baseline is not healthy
        """
        if self._state is GateState.ACTIVE:
            return False

        if self._clock() >= self.deadline(wait_after_start_seconds):
            self._activate("grace window elapsed")
            return False

        if baseline_healthy is not None and baseline_healthy():
            self._activate("baseline healthy before deadline")
            return False

        return True

    def _activate(self, reason: str) -> None:
        with self._lock:
            if self._state is GateState.ACTIVE:
                return
            self._state = GateState.ACTIVE
        logger.info(f"Grace period ended: {reason}")


__all__ = [
    "GateState",
    "GracePeriodGate",
]
