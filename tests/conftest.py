"""
Test configuration and fixtures for the log processor tests
"""
import io
import pytest
import boto3
from moto import mock_aws

from log_processor.models import FetchedObject, ObjectRecord, QueueMessage

TEST_REGION = 'us-east-1'
TEST_BUCKET = 'test-log-bucket'
TEST_QUEUE = 'test-log-queue'


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS Credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', TEST_REGION)


@pytest.fixture
def mock_aws_services(aws_credentials):
    """Mock all AWS services."""
    with mock_aws():
        yield


@pytest.fixture
def s3_client(mock_aws_services):
    """Mocked S3 client with an empty test bucket"""
    client = boto3.client('s3', region_name=TEST_REGION)
    client.create_bucket(Bucket=TEST_BUCKET)
    return client


@pytest.fixture
def sqs_client(mock_aws_services):
    """Mocked SQS client"""
    return boto3.client('sqs', region_name=TEST_REGION)


@pytest.fixture
def queue_url(sqs_client):
    """URL of an empty test queue"""
    return sqs_client.create_queue(QueueName=TEST_QUEUE)['QueueUrl']


@pytest.fixture
def object_record():
    """Eligible record for an 11 byte object"""
    return ObjectRecord(
        event_source='aws:s3',
        event_name='ObjectCreated:Put',
        bucket_name='b',
        object_key='k',
        expected_size=11
    )


@pytest.fixture
def fetched_object():
    """Factory for FetchedObject instances backed by in-memory bytes"""
    def _make(content: bytes, content_length: int = None, content_encoding: str = None) -> FetchedObject:
        return FetchedObject(
            content_length=len(content) if content_length is None else content_length,
            content_encoding=content_encoding,
            body=io.BytesIO(content)
        )
    return _make


@pytest.fixture
def queue_message():
    """Factory for QueueMessage instances"""
    def _make(body: str, message_id: str = 'test-message-id') -> QueueMessage:
        return QueueMessage(message_id=message_id, receipt_handle=f'receipt-{message_id}', body=body)
    return _make
