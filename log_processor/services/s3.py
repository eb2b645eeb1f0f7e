"""
S3 service layer for fetching objects referenced by notifications
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from log_processor.errors import ObjectAccessDeniedError, ObjectNotFoundError, ObjectStoreError
from log_processor.models import FetchedObject

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {'NoSuchKey', 'NoSuchBucket', 'NotFound', '404'}
ACCESS_DENIED_CODES = {'AccessDenied', 'Forbidden', '403'}


class ObjectStore:
    """
    Read-only access to S3 objects

    Objects are never modified or deleted.
    """

    def __init__(self, client):
        """
        Args:
            client: boto3 S3 client
        """
        self.client = client

    def fetch(self, bucket: str, key: str) -> FetchedObject:
        """
        Get an object, leaving its body unread

        Raises:
            ObjectNotFoundError: bucket or key does not exist
            ObjectAccessDeniedError: missing s3:GetObject permission
            ObjectStoreError: any other service or transport failure
        """
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object not found: s3://{bucket}/{key}", bucket, key) from e
            if error_code in ACCESS_DENIED_CODES:
                raise ObjectAccessDeniedError(f"Access denied: s3://{bucket}/{key}", bucket, key) from e
            raise ObjectStoreError(f"Failed to get s3://{bucket}/{key}: {str(e)}", bucket, key) from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to get s3://{bucket}/{key}: {str(e)}", bucket, key) from e

        return FetchedObject(
            content_length=response['ContentLength'],
            content_encoding=response.get('ContentEncoding'),
            last_modified=response.get('LastModified'),
            body=response['Body']
        )
