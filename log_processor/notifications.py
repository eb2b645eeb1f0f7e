"""
Parsing of S3 event notifications delivered through SQS
"""

import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from log_processor.errors import NotificationFormatError
from log_processor.models import ObjectRecord

logger = logging.getLogger(__name__)

EVENT_SOURCE = 'aws:s3'
EVENT_TYPE = 'ObjectCreated'


def is_object_created_event(record: Dict[str, Any]) -> bool:
    """Check whether a notification record is an S3 object-created event"""
    event_name = record.get('eventName')
    return (
        record.get('eventSource') == EVENT_SOURCE
        and isinstance(event_name, str)
        and event_name.startswith(EVENT_TYPE)
    )


def _load_json_object(raw: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise NotificationFormatError(f"Invalid {what}: {str(e)}") from e
    if not isinstance(data, dict):
        raise NotificationFormatError(f"Invalid {what}: expected a JSON object, got {type(data).__name__}")
    return data


def _unwrap_sns(data: Dict[str, Any]) -> Dict[str, Any]:
    # S3 -> SNS -> SQS fan-out wraps the S3 event in an SNS envelope
    if 'Records' not in data and data.get('Type') == 'Notification' and isinstance(data.get('Message'), str):
        logger.debug(f"Unwrapping SNS notification {data.get('MessageId', 'unknown')}")
        return _load_json_object(data['Message'], 'SNS message')
    return data


def parse_notification(raw_body: str) -> List[ObjectRecord]:
    """
    Extract the object-created records from an SQS message body

    Bodies without a Records array (e.g. the s3:TestEvent sent when a bucket
    notification is configured) yield no records. Records that are not S3
    object-created events are skipped.

    Args:
        raw_body: SQS message body

    Returns:
        Eligible records in notification order

    Raises:
        NotificationFormatError: if the body is not a well-formed notification
    """
    data = _unwrap_sns(_load_json_object(raw_body, 'SQS message format'))

    records = data.get('Records')
    if records is None:
        logger.info("Message contains no Records, nothing to process")
        return []
    if not isinstance(records, list):
        raise NotificationFormatError(f"Invalid S3 event format: Records is {type(records).__name__}, expected a list")

    object_records = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.info(f"Skipping record {index}: not an object ({type(record).__name__})")
            continue

        if not is_object_created_event(record):
            logger.info(f"Skipping record {index}: eventSource={record.get('eventSource')!r}, "
                        f"eventName={record.get('eventName')!r}")
            continue

        try:
            object_records.append(ObjectRecord.from_notification(record))
        except KeyError as e:
            raise NotificationFormatError(f"Invalid S3 event format: record {index} missing {str(e)}") from e
        except (TypeError, ValidationError) as e:
            raise NotificationFormatError(f"Invalid S3 event format: record {index}: {str(e)}") from e

    return object_records
