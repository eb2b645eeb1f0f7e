"""
Pydantic models for queue messages, S3 notification records and fetched objects
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Outcome(str, Enum):
    """Result of handling a queue message or a single object record"""
    ACCEPT = "accept"
    REQUEUE = "requeue"


class QueueMessage(BaseModel):
    """A message received from SQS"""
    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., description="SQS message ID")
    receipt_handle: str = Field(..., description="Handle used to delete the message")
    body: str = Field(..., description="Raw message body")

    @classmethod
    def from_sqs(cls, message: Dict[str, Any]) -> "QueueMessage":
        """Build from an entry of a ReceiveMessage response"""
        return cls(
            message_id=message['MessageId'],
            receipt_handle=message['ReceiptHandle'],
            body=message['Body']
        )


class ObjectRecord(BaseModel):
    """An S3 event notification record referencing one object"""
    model_config = ConfigDict(frozen=True)

    event_source: str
    event_name: str
    bucket_name: str = Field(..., min_length=1)
    object_key: str = Field(..., min_length=1)
    expected_size: int = Field(..., ge=0, strict=True, description="Object size announced by the notification")
    # S3 notifications never carry an encoding, the fetched object's wins
    content_encoding: Optional[str] = None

    @field_validator('object_key')
    @classmethod
    def decode_object_key(cls, v):
        """S3 notifications URL-encode object keys"""
        return unquote_plus(v)

    @classmethod
    def from_notification(cls, record: Dict[str, Any]) -> "ObjectRecord":
        """
        Build from an element of the notification's Records array

        Raises:
            KeyError, TypeError: if the s3 section is missing or malformed
            pydantic.ValidationError: if field values are invalid
        """
        s3 = record['s3']
        return cls(
            event_source=record['eventSource'],
            event_name=record['eventName'],
            bucket_name=s3['bucket']['name'],
            object_key=s3['object']['key'],
            expected_size=s3['object']['size']
        )

    @property
    def location(self) -> str:
        return f"s3://{self.bucket_name}/{self.object_key}"


class FetchedObject(BaseModel):
    """An S3 object as returned by GetObject, body not yet read"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    content_length: int
    content_encoding: Optional[str] = None
    last_modified: Optional[datetime] = None
    body: Any = Field(..., description="Readable byte stream (botocore StreamingBody)")

    def read(self) -> bytes:
        """Read the whole body and release the underlying connection"""
        try:
            return self.body.read()
        finally:
            self.close()

    def close(self) -> None:
        close = getattr(self.body, 'close', None)
        if close is not None:
            close()
