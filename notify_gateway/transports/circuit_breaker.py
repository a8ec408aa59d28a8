"""
Circuit breaker guarding transport calls.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, Union
from datetime import datetime, timedelta

from notify_gateway.notifications.exceptions import DeliveryError
from notify_gateway.notifications.models import EmailMessage, SendResult, SmsMessage


logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, requests blocked
    HALF_OPEN = "half_open"  # Testing if provider recovered


class CircuitBreaker:
    """
    Stops calling a provider after repeated failures.

    After ``failure_threshold`` consecutive failures the circuit opens and
    calls fail fast with DeliveryError. Once ``timeout_seconds`` have passed
    one trial call is allowed; success closes the circuit, failure reopens it.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        timeout_seconds: int = 60,
        expected_exception: Type[Exception] = DeliveryError
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Provider name used in logs and errors
            failure_threshold: Consecutive failures that open the circuit
            timeout_seconds: Seconds to wait before a trial call
            expected_exception: Exception type that counts as failure
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.expected_exception = expected_exception

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[datetime] = None
        self._lock = threading.Lock()

        logger.info(f"Circuit breaker '{name}' initialized")

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute function with circuit breaker protection.

        Raises:
            DeliveryError: If the circuit is open
        """
        with self._lock:
            self._update_state()
            if self.state == CircuitState.OPEN:
                raise DeliveryError(
                    f"Circuit breaker '{self.name}' is OPEN; provider temporarily disabled",
                    provider=self.name,
                )

        try:
            result = func(*args, **kwargs)
        except self.expected_exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _update_state(self):
        if (self.state == CircuitState.OPEN and self.last_failure_time and
                datetime.now() - self.last_failure_time >= timedelta(seconds=self.timeout_seconds)):
            self.state = CircuitState.HALF_OPEN
            logger.info(f"Circuit breaker '{self.name}' half-opened for testing")

    def _on_success(self):
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"Circuit breaker '{self.name}' closed - provider recovered")
            self.state = CircuitState.CLOSED
            self.failure_count = 0

    def _on_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now()

            logger.warning(f"Circuit breaker '{self.name}': Failure {self.failure_count}/{self.failure_threshold}")

            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitState.OPEN
                logger.warning(f"Circuit breaker '{self.name}' opened due to failures")

    def is_available(self) -> bool:
        with self._lock:
            self._update_state()
            return self.state != CircuitState.OPEN

    def reset(self):
        """Reset circuit breaker to initial state."""
        with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.last_failure_time = None
        logger.info(f"Circuit breaker '{self.name}' reset")

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None,
            "timeout_seconds": self.timeout_seconds,
            "is_available": self.is_available()
        }


class CircuitBreakerTransport:
    """Wraps an email or SMS transport so its ``send`` runs through a CircuitBreaker."""

    def __init__(self, transport, breaker: Optional[CircuitBreaker] = None):
        self.transport = transport
        self.name = transport.name
        self.breaker = breaker or CircuitBreaker(name=transport.name)

    def send(self, message: Union[EmailMessage, SmsMessage]) -> SendResult:
        return self.breaker.call(self.transport.send, message)
