"""
SQS poll loop with cooperative shutdown

The loop requests one message at a time so that every message gets its own
accept/requeue decision. A stop request is observed before each receive
request, so shutdown takes at most one long-poll round trip instead of
waiting for the queue to drain.
"""

import logging
import signal
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from log_processor.backoff import BackoffRunner
from log_processor.errors import QueueServiceError, StopPolling
from log_processor.models import Outcome, QueueMessage

logger = logging.getLogger(__name__)

MAX_NUMBER_OF_MESSAGES = 1


class PollerStats:
    """Counters passed to before-request hooks"""

    def __init__(self):
        self.polling_started_at = datetime.now(timezone.utc)
        self.request_count = 0
        self.received_message_count = 0
        self.accepted_message_count = 0
        self.requeued_message_count = 0
        self.last_message_received_at = None

    def __repr__(self):
        return (f"PollerStats(requests={self.request_count}, received={self.received_message_count}, "
                f"accepted={self.accepted_message_count}, requeued={self.requeued_message_count})")


class ShutdownController:
    """Holds the stop flag shared by the poll loop, its backoff and signal handlers"""

    def __init__(self):
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def before_request(self, stats: PollerStats) -> None:
        """Poller hook, ends polling once stop() has been called"""
        if self.stop_requested:
            logger.warning(f"Stop requested, stopping poll loop after {stats.request_count} requests")
            raise StopPolling("Stop requested")

    def install_signal_handlers(self) -> None:
        """Stop on SIGINT and SIGTERM (main thread only)"""
        def handle_signal(signum, frame):
            logger.info(f"Received signal {signal.Signals(signum).name}, shutting down after the current message")
            self.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)


class QueuePoller:
    """
    Polls a queue and hands each message to a handler

    The handler returns an Outcome: ACCEPT deletes the message, REQUEUE leaves
    it for redelivery after the visibility timeout.
    """

    def __init__(
        self,
        transport,
        handler,
        wait_time_seconds: Optional[int] = None,
        visibility_timeout: Optional[int] = None,
        shutdown: Optional[ShutdownController] = None,
        backoff: Optional[BackoffRunner] = None
    ):
        """
        Args:
            transport: QueueTransport for the source queue
            handler: Object with handle(message) -> Outcome
            wait_time_seconds: Long polling wait, None uses the queue's setting
            visibility_timeout: Visibility timeout for received messages, None uses the queue's setting
            shutdown: Stop flag holder, registered as a before-request hook
            backoff: Retry policy for receive requests
        """
        self.transport = transport
        self.handler = handler
        self.wait_time_seconds = wait_time_seconds
        self.visibility_timeout = visibility_timeout
        self.shutdown = shutdown if shutdown is not None else ShutdownController()
        self.backoff = backoff if backoff is not None else BackoffRunner(
            retry_on=(QueueServiceError,),
            should_stop=lambda: self.shutdown.stop_requested
        )
        self.stats = PollerStats()
        self._before_request_hooks: List[Callable[[PollerStats], None]] = [self.shutdown.before_request]

    def before_request(self, hook: Callable[[PollerStats], None]) -> None:
        """Register a hook called before each receive request, it may raise StopPolling"""
        self._before_request_hooks.append(hook)

    def _receive(self) -> List[QueueMessage]:
        for hook in self._before_request_hooks:
            hook(self.stats)
        self.stats.request_count += 1
        return self.transport.receive(
            max_messages=MAX_NUMBER_OF_MESSAGES,
            wait_time_seconds=self.wait_time_seconds,
            visibility_timeout=self.visibility_timeout
        )

    def _handle(self, message: QueueMessage) -> Outcome:
        try:
            return self.handler.handle(message)
        except Exception as e:
            logger.error(f"Unexpected error processing message {message.message_id}: {str(e)}. "
                         f"Message will be retried.", exc_info=True)
            return Outcome.REQUEUE

    def _settle(self, message: QueueMessage, outcome: Outcome) -> None:
        if outcome is Outcome.ACCEPT:
            try:
                self.transport.acknowledge(message)
                self.stats.accepted_message_count += 1
                logger.info(f"Successfully deleted message {message.message_id}")
            except QueueServiceError as e:
                # Redelivery duplicates the events, which at-least-once allows
                logger.error(f"Failed to delete message {message.message_id}: {str(e)}")
        else:
            self.transport.requeue(message)
            self.stats.requeued_message_count += 1

    def poll_once(self) -> int:
        """
        Run a single receive/handle cycle

        Returns:
            Number of messages handled

        Raises:
            StopPolling: if a before-request hook or the backoff asked to stop
        """
        messages = self.backoff.run(self._receive)
        for message in messages:
            self.stats.received_message_count += 1
            self.stats.last_message_received_at = datetime.now(timezone.utc)
            logger.info(f"Received message {message.message_id}")
            self._settle(message, self._handle(message))
        return len(messages)

    def run(self) -> PollerStats:
        """Poll until a stop is requested"""
        logger.info(f"Starting SQS polling for queue: {self.transport.queue_name}")
        try:
            while True:
                if not self.poll_once():
                    logger.debug("No messages received, continuing to poll...")
        except StopPolling:
            elapsed = datetime.now(timezone.utc) - self.stats.polling_started_at
            logger.info(f"Polling stopped after {elapsed.total_seconds():.1f}s: {self.stats}")
        return self.stats
