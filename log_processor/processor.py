"""
Processing of S3 objects announced by SQS notifications

A message is only accepted (deleted from the queue) once every object it
references has been downloaded with the announced size and decoded to
completion. Anything else leaves the message in the queue for redelivery.
"""

import gzip
import logging
import zlib
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from log_processor.errors import NotificationFormatError, ObjectStoreError
from log_processor.models import ObjectRecord, Outcome, QueueMessage
from log_processor.notifications import parse_notification

logger = logging.getLogger(__name__)

Event = Dict[str, Any]


def split_lines(content: bytes) -> Iterator[bytes]:
    """
    Split content on newlines

    Empty lines inside the content are kept, trailing empty lines are dropped.
    """
    lines = content.split(b'\n')
    while lines and lines[-1] == b'':
        lines.pop()
    return iter(lines)


def decompress_content(content: bytes, record: ObjectRecord) -> bytes:
    """Gunzip content, falling back to the raw bytes if it is not valid gzip"""
    try:
        decompressed = gzip.decompress(content)
    except (OSError, EOFError, zlib.error) as e:
        logger.warning(f"Content is marked as gzip but can't be decompressed, assuming plain text: "
                       f"bucket={record.bucket_name}, key={record.object_key}, error={str(e)}")
        return content

    logger.debug(f"Decompressed {len(content)} bytes to {len(decompressed)} bytes for {record.location}")
    return decompressed


class EventDecorator:
    """Adds ingest metadata and configured fields to every event"""

    def __init__(self, type: Optional[str] = None, tags: Optional[List[str]] = None,
                 add_field: Optional[Dict[str, Any]] = None):
        self.type = type
        self.tags = list(tags or [])
        self.add_field = dict(add_field or {})

    def __call__(self, event: Event) -> Event:
        event.setdefault('ingest_timestamp',
                         datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'))
        if self.type is not None:
            event.setdefault('type', self.type)
        if self.tags:
            existing = event.get('tags')
            tags = list(existing) if isinstance(existing, list) else ([existing] if existing else [])
            tags.extend(tag for tag in self.tags if tag not in tags)
            event['tags'] = tags
        for field, value in self.add_field.items():
            event.setdefault(field, value)
        return event


class ObjectProcessor:
    """
    Downloads one object, verifies it and emits its decoded lines

    Never raises for expected failures: every download, size or decoding
    problem is logged and reported as Outcome.REQUEUE.
    """

    def __init__(self, store, codec, emit: Callable[[Event], Any], decorate: Callable[[Event], Event] = None):
        """
        Args:
            store: ObjectStore used to fetch objects
            codec: Codec with a decode(line: bytes) method
            emit: Called with each decorated event as soon as it is decoded
            decorate: Event decoration, defaults to EventDecorator()
        """
        self.store = store
        self.codec = codec
        self.emit = emit
        self.decorate = decorate if decorate is not None else EventDecorator()

    def process(self, record: ObjectRecord) -> Outcome:
        logger.info(f"Processing S3 object: {record.location}")

        try:
            fetched = self.store.fetch(record.bucket_name, record.object_key)
        except ObjectStoreError as e:
            logger.warning(f"Requeueing on failed download: bucket={record.bucket_name}, "
                           f"key={record.object_key}, error={str(e)}")
            return Outcome.REQUEUE

        if fetched.content_length != record.expected_size:
            fetched.close()
            logger.warning(f"Requeueing on wrong download content size: bucket={record.bucket_name}, "
                           f"key={record.object_key}, download_size={fetched.content_length}, "
                           f"expected={record.expected_size}, last_modified={fetched.last_modified}")
            return Outcome.REQUEUE

        emitted = 0
        try:
            content = fetched.read()
            content_encoding = fetched.content_encoding or record.content_encoding
            if content_encoding and content_encoding.lower() == 'gzip':
                content = decompress_content(content, record)

            for line in split_lines(content):
                for event in self.codec.decode(line):
                    self.emit(self.decorate(event))
                    emitted += 1
        except Exception as e:
            logger.warning(f"Requeueing on failed plain text processing: bucket={record.bucket_name}, "
                           f"key={record.object_key}, emitted={emitted}, error={str(e)}", exc_info=True)
            return Outcome.REQUEUE

        logger.info(f"Emitted {emitted} events from {record.location}")
        return Outcome.ACCEPT


class MessageHandler:
    """Decides whether a queue message can be deleted"""

    def __init__(self, processor: ObjectProcessor, parse: Callable[[str], List[ObjectRecord]] = parse_notification):
        self.processor = processor
        self.parse = parse

    def handle(self, message: QueueMessage) -> Outcome:
        """
        Process every eligible record of a message in order

        Stops at the first record that needs a retry. Events already emitted
        for earlier records stay emitted.
        """
        try:
            records = self.parse(message.body)
        except NotificationFormatError as e:
            # A format regression must not drop data, keep the message
            logger.error(f"Invalid notification in message {message.message_id}: {str(e)}. Message will be retried.")
            return Outcome.REQUEUE

        for index, record in enumerate(records):
            if self.processor.process(record) is Outcome.REQUEUE:
                logger.warning(f"Message {message.message_id} will be retried, "
                               f"{len(records) - index - 1} remaining records skipped")
                return Outcome.REQUEUE

        logger.info(f"Message {message.message_id} processed, {len(records)} objects")
        return Outcome.ACCEPT
