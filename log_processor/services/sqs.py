"""
SQS service layer: queue URL resolution, receive and delete
"""

import logging
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from log_processor.errors import ConfigurationError, QueueServiceError
from log_processor.models import QueueMessage

logger = logging.getLogger(__name__)


class QueueTransport:
    """
    Thin wrapper around an SQS client bound to a single queue

    Messages are removed only through acknowledge(). A message that is not
    acknowledged becomes visible again once its visibility timeout expires.
    """

    def __init__(self, client, queue_name: str, queue_url: str = None):
        """
        Args:
            client: boto3 SQS client
            queue_name: Name of the queue (not the URL or ARN)
            queue_url: Already resolved queue URL, skips get_queue_url
        """
        self.client = client
        self.queue_name = queue_name
        self._queue_url = queue_url

    @property
    def queue_url(self) -> str:
        if self._queue_url is None:
            self._queue_url = self.resolve_queue_url()
        return self._queue_url

    def resolve_queue_url(self) -> str:
        """
        Look up the queue URL by name

        Raises:
            ConfigurationError: if the queue does not exist or cannot be accessed
        """
        try:
            response = self.client.get_queue_url(QueueName=self.queue_name)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Cannot establish connection to Amazon SQS queue '{self.queue_name}': {str(e)}")
            raise ConfigurationError("Verify the SQS queue name and your credentials") from e

        self._queue_url = response['QueueUrl']
        logger.info(f"Resolved SQS queue '{self.queue_name}' to {self._queue_url}")
        return self._queue_url

    def receive(
        self,
        max_messages: int = 1,
        wait_time_seconds: Optional[int] = None,
        visibility_timeout: Optional[int] = None
    ) -> List[QueueMessage]:
        """
        Receive up to max_messages messages, long polling for wait_time_seconds

        A wait_time_seconds of None leaves the queue's Receive Message Wait Time in effect.

        Raises:
            QueueServiceError: on any SQS failure
        """
        params = {
            'QueueUrl': self.queue_url,
            'MaxNumberOfMessages': max_messages,
        }
        if wait_time_seconds is not None:
            params['WaitTimeSeconds'] = wait_time_seconds
        if visibility_timeout is not None:
            params['VisibilityTimeout'] = visibility_timeout

        try:
            response = self.client.receive_message(**params)
        except (ClientError, BotoCoreError) as e:
            raise QueueServiceError(f"Failed to receive messages from {self.queue_name}: {str(e)}") from e

        return [QueueMessage.from_sqs(message) for message in response.get('Messages', [])]

    def acknowledge(self, message: QueueMessage) -> None:
        """
        Delete a processed message from the queue

        Raises:
            QueueServiceError: on any SQS failure
        """
        try:
            self.client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=message.receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise QueueServiceError(f"Failed to delete message {message.message_id}: {str(e)}") from e

        logger.debug(f"Deleted message {message.message_id}")

    def requeue(self, message: QueueMessage) -> None:
        """Leave a message in the queue for redelivery after its visibility timeout"""
        logger.info(f"Leaving message {message.message_id} in queue {self.queue_name} for redelivery")
