"""
Circuit Breaker Pattern.

Protects the news and completion API calls from cascading failures:
once a provider keeps failing, the remaining users of a digest run fail
fast instead of each waiting out the full timeout.
"""

import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple, Type

from watchlist_notifier.infrastructure.logging import get_logger
from watchlist_notifier.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


STATE_GAUGE_VALUES = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration."""
    failure_threshold: int = 5       # Failures before opening
    success_threshold: int = 2       # Successes to close from half-open
    timeout_seconds: float = 30.0    # Time before trying again
    excluded_exceptions: Tuple[Type[Exception], ...] = ()


class CircuitBreakerOpenError(Exception):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, name: str):
        super().__init__(f"Circuit breaker '{name}' is open")
        self.name = name


class CircuitBreaker:
    """Circuit breaker for a named external service."""

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> None:
        self._name = name
        self._config = config or CircuitBreakerConfig()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[float] = None
        self._lock = Lock()
        self._publish_state()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        """Get current state, moving OPEN to HALF_OPEN once the timeout elapsed."""
        with self._lock:
            if self._state == CircuitState.OPEN and self._timeout_elapsed():
                self._transition(CircuitState.HALF_OPEN)
                self._success_count = 0
            return self._state

    def _timeout_elapsed(self) -> bool:
        if self._last_failure_time is None:
            return True
        return time.monotonic() - self._last_failure_time >= self._config.timeout_seconds

    def _transition(self, new_state: CircuitState) -> None:
        """Change state; caller holds the lock."""
        if new_state == self._state:
            return
        logger.info(
            f"Circuit breaker '{self._name}' {self._state.value} -> {new_state.value}",
            extra={"extra_fields": {
                "circuit": self._name,
                "from_state": self._state.value,
                "to_state": new_state.value,
                "failure_count": self._failure_count,
            }}
        )
        self._state = new_state
        self._publish_state()

    def _publish_state(self) -> None:
        get_metrics().circuit_breaker_state.set(
            STATE_GAUGE_VALUES[self._state], circuit=self._name
        )

    def _record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self._config.success_threshold:
                    self._failure_count = 0
                    self._transition(CircuitState.CLOSED)
            else:
                self._failure_count = 0

    def _record_failure(self, exception: Exception) -> None:
        if isinstance(exception, self._config.excluded_exceptions):
            return

        with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()

            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
            elif self._failure_count >= self._config.failure_threshold:
                self._transition(CircuitState.OPEN)

    def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        """
        Execute a function through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If circuit is open.
            Exception: Any exception from the function.
        """
        if self.state == CircuitState.OPEN:
            raise CircuitBreakerOpenError(self._name)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e)
            raise
        self._record_success()
        return result

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        with self._lock:
            self._failure_count = 0
            self._success_count = 0
            self._last_failure_time = None
            self._transition(CircuitState.CLOSED)

    def snapshot(self) -> Dict[str, Any]:
        """State summary for the health endpoint."""
        return {
            "state": self.state.value,
            "failure_count": self._failure_count,
        }


# Global circuit breakers registry
_circuit_breakers: Dict[str, CircuitBreaker] = {}
_registry_lock = Lock()


def get_circuit_breaker(
    name: str,
    config: Optional[CircuitBreakerConfig] = None,
) -> CircuitBreaker:
    """Get or create a circuit breaker by name."""
    with _registry_lock:
        if name not in _circuit_breakers:
            _circuit_breakers[name] = CircuitBreaker(name, config)
        return _circuit_breakers[name]


def all_circuit_breakers() -> Dict[str, CircuitBreaker]:
    with _registry_lock:
        return dict(_circuit_breakers)


def reset_circuit_breakers() -> None:
    """Forget every registered breaker (for testing)."""
    with _registry_lock:
        _circuit_breakers.clear()
