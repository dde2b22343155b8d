# ============================================================================
# PROBE CIRCUIT BREAKER
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Failure isolation for probe providers
# PURPOSE: Stop calling providers that keep failing or hanging
# CREATED: 19 OCT 2026
# ============================================================================
"""
Simple circuit breaker with a half-open probe.

States: closed -> open (after N consecutive failures) -> half_open
(after the recovery timeout, one call allowed) -> closed on success,
open again on failure.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitConfig:
    failure_threshold: int = 3
    recovery_timeout_seconds: float = 30.0
    half_open_requests: int = 1


class CircuitBreaker:
    def __init__(self, cfg: CircuitConfig = None, clock: Callable[[], float] = time.monotonic):
        self.cfg = cfg or CircuitConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._half_open_budget = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def should_allow(self) -> bool:
        with self._lock:
            if self._state is CircuitState.OPEN:
                if self._clock() - self._opened_at >= self.cfg.recovery_timeout_seconds:
                    self._state = CircuitState.HALF_OPEN
                    self._half_open_budget = self.cfg.half_open_requests - 1
                    return True
                return False
            if self._state is CircuitState.HALF_OPEN:
                if self._half_open_budget > 0:
                    self._half_open_budget -= 1
                    return True
                return False
            return True

    def on_success(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures = 0

    def on_error(self) -> None:
        with self._lock:
            self._failures += 1
            if (
                self._state is CircuitState.HALF_OPEN
                or self._failures >= self.cfg.failure_threshold
            ):
                self._state = CircuitState.OPEN
                self._opened_at = self._clock()


__all__ = [
    "CircuitBreaker",
    "CircuitConfig",
    "CircuitState",
]
