"""
Three-state circuit breaker for outbound dependencies.

States:
    CLOSED: calls pass through, outcomes are counted over a rolling window
    OPEN: calls are rejected without touching the network
    HALF_OPEN: a single probe call decides whether to close or reopen

State lives in process memory. Every worker process learns of a degraded
dependency independently, within one volume threshold's worth of calls.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Tuple

from app.core.config import CircuitBreakerSettings

logger = logging.getLogger(__name__)

TransitionListener = Callable[[str, "CircuitState", "CircuitState"], None]


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Failure-rate breaker over a rolling time window.

    Attributes:
        name: Dependency this breaker protects, used in logs.
        volume_threshold: Minimum calls in the window before the rate is judged.
        error_threshold_percentage: Failure rate (0-100) at which the circuit opens.
        reset_timeout: Seconds spent open before a probe is allowed.
        rolling_window: Seconds of history considered for the failure rate.
    """

    name: str = "default"
    volume_threshold: int = 5
    error_threshold_percentage: float = 50.0
    reset_timeout: float = 30.0
    rolling_window: float = 10.0
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _outcomes: Deque[Tuple[float, bool]] = field(default_factory=deque, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _probe_in_flight: bool = field(default=False, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _listeners: List[TransitionListener] = field(default_factory=list, init=False)

    @classmethod
    def from_settings(cls, name: str, settings: CircuitBreakerSettings) -> "CircuitBreaker":
        return cls(
            name=name,
            volume_threshold=settings.volume_threshold,
            error_threshold_percentage=settings.error_threshold_percentage,
            reset_timeout=settings.reset_timeout_seconds,
            rolling_window=settings.rolling_window_seconds,
        )

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._check_reset_timeout()
            return self._state

    def add_listener(self, listener: TransitionListener) -> None:
        """Register ``listener(name, old_state, new_state)`` for every transition."""
        self._listeners.append(listener)

    def allow_request(self) -> bool:
        """Return ``True`` if a call may proceed now."""
        with self._lock:
            self._check_reset_timeout()
            if self._state == CircuitState.CLOSED:
                return True
            if self._state == CircuitState.OPEN:
                return False
            if self._probe_in_flight:
                return False
            self._probe_in_flight = True
            return True

    def record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._probe_in_flight = False
                self._transition_to(CircuitState.CLOSED)
                return
            self._record(True)

    def record_failure(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._probe_in_flight = False
                self._open()
                return
            if self._state == CircuitState.OPEN:
                return
            self._record(False)
            total, failures = self._window_counts()
            if total >= self.volume_threshold and (failures / total) * 100 >= self.error_threshold_percentage:
                self._open()

    def release_probe(self) -> None:
        """Free the half-open slot when a probe ended without an outcome."""
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._probe_in_flight = False

    def reset(self) -> None:
        with self._lock:
            self._probe_in_flight = False
            self._transition_to(CircuitState.CLOSED)

    def snapshot(self) -> dict:
        with self._lock:
            self._check_reset_timeout()
            total, failures = self._window_counts()
            return {
                "name": self.name,
                "state": self._state.value,
                "window_calls": total,
                "window_failures": failures,
            }

    def _record(self, success: bool) -> None:
        now = self.clock()
        self._outcomes.append((now, success))
        self._prune(now)

    def _prune(self, now: float) -> None:
        horizon = now - self.rolling_window
        while self._outcomes and self._outcomes[0][0] < horizon:
            self._outcomes.popleft()

    def _window_counts(self) -> Tuple[int, int]:
        self._prune(self.clock())
        failures = sum(1 for _, success in self._outcomes if not success)
        return len(self._outcomes), failures

    def _open(self) -> None:
        self._opened_at = self.clock()
        self._transition_to(CircuitState.OPEN)

    def _check_reset_timeout(self) -> None:
        if self._state == CircuitState.OPEN and self.clock() - self._opened_at >= self.reset_timeout:
            self._probe_in_flight = False
            self._transition_to(CircuitState.HALF_OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        if new_state == CircuitState.CLOSED:
            self._outcomes.clear()

        if new_state == CircuitState.OPEN:
            logger.warning("Circuit opened", extra={"circuit": self.name, "from_state": old_state.value})
        else:
            logger.info(
                "Circuit state changed",
                extra={"circuit": self.name, "from_state": old_state.value, "to_state": new_state.value},
            )
        for listener in list(self._listeners):
            listener(self.name, old_state, new_state)


__all__ = ["CircuitBreaker", "CircuitState"]
