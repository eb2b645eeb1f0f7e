"""
Exception classes for the S3/SQS log processor
"""


class LogProcessorError(Exception):
    """Base class for all log processor errors"""
    pass


class ConfigurationError(LogProcessorError):
    """Raised when the processor cannot be configured (fatal, not retried)"""
    pass


class NotificationFormatError(LogProcessorError):
    """Raised when an SQS message body is not a parseable S3 notification"""
    pass


class TransportServiceError(LogProcessorError):
    """Raised for AWS service or transport failures"""
    pass


class QueueServiceError(TransportServiceError):
    """Raised for SQS operation errors"""
    pass


class ObjectStoreError(TransportServiceError):
    """Raised for S3 operation errors"""

    def __init__(self, message: str, bucket: str = None, key: str = None):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class ObjectNotFoundError(ObjectStoreError):
    """Raised when the S3 object referenced by a notification does not exist"""
    pass


class ObjectAccessDeniedError(ObjectStoreError):
    """Raised when access to the S3 object is denied"""
    pass


class StopPolling(LogProcessorError):
    """Raised by before-request hooks to end the poll loop"""
    pass
