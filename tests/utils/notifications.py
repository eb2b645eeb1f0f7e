"""
Builders for S3 event notification payloads as delivered through SQS
"""
import json
from typing import Any, Dict, List


def s3_record(bucket: str, key: str, size: int,
              event_source: str = 'aws:s3', event_name: str = 'ObjectCreated:Put') -> Dict[str, Any]:
    """Build a single element of a notification's Records array"""
    return {
        'eventVersion': '2.1',
        'eventSource': event_source,
        'awsRegion': 'us-east-1',
        'eventTime': '2024-01-01T10:00:00.000Z',
        'eventName': event_name,
        's3': {
            's3SchemaVersion': '1.0',
            'bucket': {'name': bucket, 'arn': f'arn:aws:s3:::{bucket}'},
            'object': {'key': key, 'size': size, 'eTag': 'd41d8cd98f00b204e9800998ecf8427e'}
        }
    }


def notification_body(records: List[Dict[str, Any]]) -> str:
    """Serialize records as an S3 notification message body"""
    return json.dumps({'Records': records})


def sns_envelope(body: str) -> str:
    """Wrap a notification body the way SNS does before delivering it to SQS"""
    return json.dumps({
        'Type': 'Notification',
        'MessageId': 'sns-message-id',
        'TopicArn': 'arn:aws:sns:us-east-1:123456789012:s3-events',
        'Message': body
    })
