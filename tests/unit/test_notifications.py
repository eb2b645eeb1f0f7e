"""
Unit tests for S3 notification parsing
"""
import json
import pytest

from log_processor.errors import NotificationFormatError
from log_processor.notifications import is_object_created_event, parse_notification
from tests.utils.notifications import notification_body, s3_record, sns_envelope


class TestEventFilter:
    """Test the object-created event filter."""

    @pytest.mark.parametrize('event_name', [
        'ObjectCreated:Put',
        'ObjectCreated:Post',
        'ObjectCreated:Copy',
        'ObjectCreated:CompleteMultipartUpload',
    ])
    def test_object_created_events_match(self, event_name):
        assert is_object_created_event(s3_record('b', 'k', 1, event_name=event_name))

    @pytest.mark.parametrize('event_source,event_name', [
        ('aws:s3', 'ObjectRemoved:Delete'),
        ('aws:s3', 'ObjectRestore:Completed'),
        ('aws:sqs', 'ObjectCreated:Put'),
        ('aws:S3', 'ObjectCreated:Put'),
        ('aws:s3', 'objectcreated:Put'),
    ])
    def test_other_events_do_not_match(self, event_source, event_name):
        record = s3_record('b', 'k', 1, event_source=event_source, event_name=event_name)
        assert not is_object_created_event(record)

    def test_missing_event_name_does_not_match(self):
        assert not is_object_created_event({'eventSource': 'aws:s3'})


class TestParseNotification:
    """Test parse_notification."""

    def test_single_record(self):
        """Test parsing the canonical single record notification."""
        body = ('{"Records":[{"eventSource":"aws:s3","eventName":"ObjectCreated:Put",'
                '"s3":{"bucket":{"name":"b"},"object":{"key":"k","size":11}}}]}')

        records = parse_notification(body)

        assert len(records) == 1
        record = records[0]
        assert record.event_source == 'aws:s3'
        assert record.event_name == 'ObjectCreated:Put'
        assert record.bucket_name == 'b'
        assert record.object_key == 'k'
        assert record.expected_size == 11
        assert record.content_encoding is None

    def test_body_without_records(self):
        """Test a body without Records yields nothing."""
        assert parse_notification('{"foo":"bar"}') == []

    def test_s3_test_event(self):
        """Test the s3:TestEvent sent on notification setup yields nothing."""
        body = json.dumps({
            'Service': 'Amazon S3',
            'Event': 's3:TestEvent',
            'Time': '2024-01-01T10:00:00.000Z',
            'Bucket': 'test-log-bucket'
        })
        assert parse_notification(body) == []

    def test_empty_records(self):
        assert parse_notification(notification_body([])) == []

    def test_non_matching_records_are_skipped(self):
        """Test only object-created records are returned, in order."""
        body = notification_body([
            s3_record('b', 'first', 1),
            s3_record('b', 'deleted', 0, event_name='ObjectRemoved:Delete'),
            {'eventSource': 'aws:dynamodb', 'eventName': 'INSERT'},
            s3_record('b', 'second', 2, event_name='ObjectCreated:CompleteMultipartUpload'),
        ])

        records = parse_notification(body)

        assert [r.object_key for r in records] == ['first', 'second']

    def test_object_key_is_url_decoded(self):
        """Test URL-encoded keys are decoded."""
        body = notification_body([s3_record('b', 'logs/2024-01-01/my+file%3A1.log', 5)])

        records = parse_notification(body)

        assert records[0].object_key == 'logs/2024-01-01/my file:1.log'

    def test_sns_envelope_is_unwrapped(self):
        """Test notifications fanned out through SNS are parsed."""
        body = sns_envelope(notification_body([s3_record('b', 'k', 3)]))

        records = parse_notification(body)

        assert len(records) == 1
        assert records[0].object_key == 'k'

    def test_sns_envelope_without_records(self):
        body = sns_envelope(json.dumps({'Event': 's3:TestEvent'}))
        assert parse_notification(body) == []

    @pytest.mark.parametrize('body', [
        'invalid json content',
        '',
        '{"Records": [',
    ])
    def test_invalid_json(self, body):
        with pytest.raises(NotificationFormatError) as exc_info:
            parse_notification(body)

        assert 'Invalid SQS message format' in str(exc_info.value)

    @pytest.mark.parametrize('body', ['[]', '"Records"', '42', 'null'])
    def test_top_level_not_an_object(self, body):
        with pytest.raises(NotificationFormatError):
            parse_notification(body)

    def test_records_not_a_list(self):
        with pytest.raises(NotificationFormatError) as exc_info:
            parse_notification('{"Records": {"eventSource": "aws:s3"}}')

        assert 'expected a list' in str(exc_info.value)

    def test_record_not_an_object_is_skipped(self):
        """Test scalar and null elements are ignored like other non-matching records."""
        body = notification_body(['not-an-s3-event', None, 42, s3_record('b', 'k', 1)])

        records = parse_notification(body)

        assert [r.object_key for r in records] == ['k']

    def test_only_non_object_records(self):
        assert parse_notification('{"Records": ["not-an-s3-event", null]}') == []

    def test_eligible_record_missing_size(self):
        """Test an object-created record without size is a format error."""
        record = s3_record('b', 'k', 1)
        del record['s3']['object']['size']

        with pytest.raises(NotificationFormatError) as exc_info:
            parse_notification(notification_body([record]))

        assert "missing 'size'" in str(exc_info.value)

    def test_eligible_record_missing_bucket(self):
        record = s3_record('b', 'k', 1)
        del record['s3']['bucket']

        with pytest.raises(NotificationFormatError):
            parse_notification(notification_body([record]))

    @pytest.mark.parametrize('size', ['eleven', '11', 11.0, True, -1])
    def test_eligible_record_with_invalid_size(self, size):
        """Test a size that is not a non-negative integer is a format error."""
        record = s3_record('b', 'k', 1)
        record['s3']['object']['size'] = size

        with pytest.raises(NotificationFormatError):
            parse_notification(notification_body([record]))

    def test_malformed_ineligible_record_is_ignored(self):
        """Test non object-created records are not validated."""
        body = notification_body([{'eventSource': 'aws:s3', 'eventName': 'ObjectRemoved:Delete'}])
        assert parse_notification(body) == []
