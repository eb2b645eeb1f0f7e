#!/usr/bin/env python3
"""
Command line entry point for the S3/SQS log processor
Supports SQS polling and manual input modes
"""

import argparse
import json
import logging
import sys
import threading
from typing import Any, Dict, TextIO

from log_processor.codecs import get_codec
from log_processor.config import ProcessorConfig
from log_processor.errors import ConfigurationError
from log_processor.models import Outcome, QueueMessage
from log_processor.poller import QueuePoller, ShutdownController
from log_processor.processor import EventDecorator, MessageHandler, ObjectProcessor
from log_processor.services.aws import create_client
from log_processor.services.s3 import ObjectStore
from log_processor.services.sqs import QueueTransport
from log_processor.utils.logger import setup_logging

logger = logging.getLogger(__name__)


class JsonLinesSink:
    """Writes each event as one JSON document per line"""

    def __init__(self, stream: TextIO = None):
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def __call__(self, event: Dict[str, Any]) -> None:
        line = json.dumps(event, default=str)
        with self._lock:
            self.stream.write(line + '\n')
            self.stream.flush()


def build_handler(config: ProcessorConfig, emit, s3_client=None) -> MessageHandler:
    """Wire the object processor for the given configuration"""
    if s3_client is None:
        s3_client = create_client('s3', config)
    processor = ObjectProcessor(
        store=ObjectStore(s3_client),
        codec=get_codec(config.codec, config.charset),
        emit=emit,
        decorate=EventDecorator(type=config.type, tags=config.tags, add_field=config.add_field)
    )
    return MessageHandler(processor)


def build_poller(config: ProcessorConfig, emit, shutdown: ShutdownController = None,
                 sqs_client=None, s3_client=None) -> QueuePoller:
    """
    Create the queue poller with its clients

    The queue URL is resolved here so that a wrong queue name or missing
    credentials fail at startup.

    Raises:
        ConfigurationError: if no queue is configured or it cannot be resolved
    """
    if not config.queue:
        raise ConfigurationError("SQS queue name is required (--queue or SQS_QUEUE_NAME)")

    logger.info(f"Registering SQS input for queue: {config.queue}")
    if sqs_client is None:
        sqs_client = create_client('sqs', config)
    transport = QueueTransport(sqs_client, config.queue)
    transport.resolve_queue_url()

    return QueuePoller(
        transport=transport,
        handler=build_handler(config, emit, s3_client=s3_client),
        wait_time_seconds=config.wait_time_seconds,
        visibility_timeout=config.visibility_timeout,
        shutdown=shutdown
    )


def sqs_polling_mode(config: ProcessorConfig, emit) -> int:
    """Poll the queue until SIGINT/SIGTERM"""
    shutdown = ShutdownController()
    poller = build_poller(config, emit, shutdown=shutdown)
    shutdown.install_signal_handlers()
    poller.run()
    return 0


def manual_input_mode(config: ProcessorConfig, emit, stdin: TextIO = None) -> int:
    """
    Process a single SQS message body read from stdin

    Returns:
        0 if the message would be accepted, 1 otherwise
    """
    logger.info("Manual input mode - reading SQS message body from stdin")
    stdin = stdin if stdin is not None else sys.stdin

    input_data = stdin.read().strip()
    if not input_data:
        logger.error("No input data provided")
        return 1

    message = QueueMessage(message_id='manual-input', receipt_handle='manual', body=input_data)
    outcome = build_handler(config, emit).handle(message)
    if outcome is Outcome.ACCEPT:
        logger.info("Successfully processed manual input")
        return 0

    logger.error("Manual input could not be fully processed")
    return 1


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='S3/SQS log processor')
    parser.add_argument('--mode', choices=['sqs', 'manual'], default='sqs',
                        help='Execution mode: sqs (poll queue) or manual (stdin input)')
    parser.add_argument('--queue', help='SQS queue name (default: $SQS_QUEUE_NAME)')
    parser.add_argument('--region', help='AWS region (default: $AWS_REGION or us-east-1)')
    parser.add_argument('--endpoint-url', help='Custom AWS endpoint, e.g. LocalStack or MinIO')
    parser.add_argument('--wait-time', type=int, dest='wait_time_seconds',
                        help="Long polling wait time in seconds (default: the queue's setting)")
    parser.add_argument('--visibility-timeout', type=int,
                        help="Visibility timeout in seconds (default: the queue's setting)")
    parser.add_argument('--codec', choices=['plain', 'json'], help='Line codec (default: plain)')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point for standalone execution
    """
    args = parse_args(argv)

    try:
        config = ProcessorConfig.from_env(
            queue=args.queue,
            region=args.region,
            endpoint_url=args.endpoint_url,
            wait_time_seconds=args.wait_time_seconds,
            visibility_timeout=args.visibility_timeout,
            codec=args.codec,
            log_level=args.log_level
        )
    except ConfigurationError as e:
        setup_logging()
        logger.error(str(e))
        return 1

    setup_logging(config.log_level)
    emit = JsonLinesSink()

    try:
        if args.mode == 'manual':
            return manual_input_mode(config, emit)
        return sqs_polling_mode(config, emit)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
