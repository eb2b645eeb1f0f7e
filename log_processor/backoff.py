"""
Exponential backoff for AWS requests
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from log_processor.errors import StopPolling, TransportServiceError

logger = logging.getLogger(__name__)

BACKOFF_SLEEP_TIME = 1
BACKOFF_FACTOR = 2
MAX_TIME_BEFORE_RESET = 60

T = TypeVar('T')


@dataclass
class BackoffState:
    """Delay bookkeeping for one BackoffRunner.run() call"""
    current_delay: float = BACKOFF_SLEEP_TIME
    initial_delay: float = BACKOFF_SLEEP_TIME
    factor: float = BACKOFF_FACTOR
    max_delay: float = MAX_TIME_BEFORE_RESET

    def advance(self) -> None:
        # The cap restarts the curve instead of clamping it, so one sleep may exceed max_delay
        if self.current_delay > self.max_delay:
            self.current_delay = self.initial_delay
        else:
            self.current_delay = self.current_delay * self.factor


class BackoffRunner:
    """
    Runs an operation, retrying forever with exponential backoff on service errors

    Errors outside retry_on propagate immediately.
    """

    def __init__(
        self,
        initial_delay: float = BACKOFF_SLEEP_TIME,
        factor: float = BACKOFF_FACTOR,
        max_delay: float = MAX_TIME_BEFORE_RESET,
        retry_on: Tuple[Type[BaseException], ...] = (TransportServiceError,),
        should_stop: Optional[Callable[[], bool]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            initial_delay: First sleep in seconds, also the value the curve restarts from
            factor: Multiplier applied after each failure
            max_delay: Once the current delay exceeds this, the next one restarts at initial_delay
            retry_on: Exception types that trigger a retry
            should_stop: Checked before and after each sleep, StopPolling is raised when it returns True
            sleep: Sleep function, injectable for tests
        """
        self.initial_delay = initial_delay
        self.factor = factor
        self.max_delay = max_delay
        self.retry_on = retry_on
        self.should_stop = should_stop
        self.sleep = sleep

    def _check_stop(self) -> None:
        if self.should_stop is not None and self.should_stop():
            raise StopPolling("Stop requested during backoff")

    def run(self, operation: Callable[[], T]) -> T:
        """
        Execute operation until it succeeds

        Raises:
            StopPolling: if should_stop returns True around a backoff sleep
        """
        state = BackoffState(
            current_delay=self.initial_delay,
            initial_delay=self.initial_delay,
            factor=self.factor,
            max_delay=self.max_delay
        )
        while True:
            try:
                result = operation()
            except self.retry_on as e:
                logger.warning(f"{type(e).__name__} ... retrying request with exponential backoff, "
                               f"sleeping {state.current_delay}s: {str(e)}")
                self._check_stop()
                self.sleep(state.current_delay)
                self._check_stop()
                state.advance()
                continue

            return result
