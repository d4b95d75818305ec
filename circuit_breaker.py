import time
import threading
from enum import Enum
import logging

from google.api_core.exceptions import (
    ServiceUnavailable,       # 503: server temporarily down
    ResourceExhausted,        # 429: rate limit or quota exceeded
    InternalServerError,      # 500: server bug
    Aborted,                  # concurrent update conflict
)

TRANSIENT_EXCEPTIONS = (ServiceUnavailable, ResourceExhausted, InternalServerError, Aborted)


class State(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(RuntimeError):
    pass


class CircuitBreaker:
    """
    Guards calls to one remote service. Only transient failures count against
    the circuit; errors such as NotFound or PermissionDenied are answers from a
    healthy service and leave the counters alone.
    """
    def __init__(
        self,
        name: str = 'pubsub',
        failure_threshold: int = 5,
        recovery_timeout: float = 10,
        half_open_success_threshold: int = 1,
        expected_exceptions: tuple[type[BaseException], ...] = TRANSIENT_EXCEPTIONS
    ):
        """
        :param name: Service label used in log lines and errors.
        :param failure_threshold: Number of consecutive transient failures before opening.
        :param recovery_timeout: Seconds to wait before letting a trial call through (half-open).
        :param half_open_success_threshold: Successes in half-open before closing.
        :param expected_exceptions: Exceptions that count as failures.
        """
        self.logger = logging.getLogger('CircuitBreaker')

        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_success_threshold = half_open_success_threshold
        self.expected_exceptions = expected_exceptions

        self.state = State.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_since = None
        self._lock = threading.Lock()

    def call(self, func, *args, **kwargs):
        with self._lock:
            if not self._can_pass_through():
                raise CircuitOpenError(f"Circuit for {self.name} is open")

        try:
            result = func(*args, **kwargs)
        except self.expected_exceptions:
            with self._lock:
                self._handle_failure()
            raise
        except Exception:
            # A definitive answer from the service still proves it is reachable.
            with self._lock:
                self._handle_success()
            raise
        with self._lock:
            self._handle_success()
        return result

    def _can_pass_through(self) -> bool:
        if self.state == State.OPEN:
            if (time.monotonic() - self.opened_since) >= self.recovery_timeout:
                self._transition_to(State.HALF_OPEN)
                return True
            return False
        return True

    def _transition_to(self, state: State) -> None:
        self.state = state
        self.failure_count = 0
        self.success_count = 0
        self.opened_since = time.monotonic() if state == State.OPEN else None

    def _handle_failure(self) -> None:
        if self.state == State.HALF_OPEN:
            self._transition_to(State.OPEN)
            self.logger.warning(f"Circuit for {self.name} reopened after a failed trial call.")
            return

        if self.state == State.CLOSED:
            self.failure_count += 1
            if self.failure_count >= self.failure_threshold:
                self._transition_to(State.OPEN)
                self.logger.warning(f"Circuit for {self.name} opened after {self.failure_threshold} consecutive failures.")

    def _handle_success(self) -> None:
        if self.state == State.CLOSED:
            self.failure_count = 0
            return

        if self.state == State.HALF_OPEN:
            self.success_count += 1
            if self.success_count >= self.half_open_success_threshold:
                self._transition_to(State.CLOSED)
                self.logger.info(f"Circuit for {self.name} closed.")
