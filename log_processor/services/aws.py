"""
boto3 client factory shared by the SQS and S3 services
"""

import logging

import boto3
import botocore.config

from log_processor.config import ProcessorConfig

logger = logging.getLogger(__name__)

# Request-level retries inside botocore, the poll loop adds its own backoff on top
BOTO_CONFIG = botocore.config.Config(
    retries={"max_attempts": 3, "mode": "standard"}
)


def create_client(service_name: str, config: ProcessorConfig, client_config: botocore.config.Config = BOTO_CONFIG):
    """
    Create a boto3 client for the given service

    Explicit credentials are only passed when configured, otherwise boto3's
    default credential chain (environment, profile, instance role) applies.

    Args:
        service_name: boto3 service name ('sqs', 's3')
        config: Processor configuration
        client_config: botocore client configuration

    Returns:
        boto3 client
    """
    kwargs = {
        'region_name': config.region,
        'config': client_config,
    }
    if config.endpoint_url:
        kwargs['endpoint_url'] = config.endpoint_url
    if config.aws_access_key_id:
        kwargs['aws_access_key_id'] = config.aws_access_key_id
        kwargs['aws_secret_access_key'] = config.aws_secret_access_key
        if config.aws_session_token:
            kwargs['aws_session_token'] = config.aws_session_token

    logger.debug(f"Creating {service_name} client for region {config.region}"
                 + (f" with endpoint {config.endpoint_url}" if config.endpoint_url else ""))
    return boto3.client(service_name, **kwargs)
