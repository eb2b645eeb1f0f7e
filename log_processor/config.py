"""
Configuration for the S3/SQS log processor
"""

import os
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from log_processor.errors import ConfigurationError

# Environment variable -> config field
ENV_VARS = {
    'SQS_QUEUE_NAME': 'queue',
    'AWS_REGION': 'region',
    'AWS_ACCESS_KEY_ID': 'aws_access_key_id',
    'AWS_SECRET_ACCESS_KEY': 'aws_secret_access_key',
    'AWS_SESSION_TOKEN': 'aws_session_token',
    'AWS_ENDPOINT_URL': 'endpoint_url',
    'WAIT_TIME_SECONDS': 'wait_time_seconds',
    'VISIBILITY_TIMEOUT': 'visibility_timeout',
    'CODEC': 'codec',
    'CHARSET': 'charset',
    'EVENT_TYPE': 'type',
    'EVENT_TAGS': 'tags',
    'LOG_LEVEL': 'log_level',
}


class ProcessorConfig(BaseModel):
    """Validated processor settings"""
    queue: Optional[str] = Field(default=None, min_length=1, max_length=80,
                                 description="Name of the SQS queue (not the URL or ARN), required for polling")
    region: str = Field(default='us-east-1', description="AWS region for SQS and S3")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    aws_session_token: Optional[str] = Field(default=None)
    endpoint_url: Optional[str] = Field(default=None, description="Custom endpoint (MinIO, LocalStack)")
    wait_time_seconds: Optional[int] = Field(
        default=None, ge=0, le=20,
        description="Long polling wait time, None uses the queue's Receive Message Wait Time"
    )
    visibility_timeout: Optional[int] = Field(
        default=None, ge=0, le=43200,
        description="Visibility timeout for received messages, None uses the queue default"
    )
    codec: Literal['plain', 'json'] = Field(default='plain')
    charset: str = Field(default='utf-8')
    type: Optional[str] = Field(default=None, description="Value for the 'type' field of each event")
    tags: List[str] = Field(default_factory=list, description="Tags added to each event")
    add_field: Dict[str, Any] = Field(default_factory=dict, description="Fields added to each event")
    log_level: str = Field(default='INFO')

    @field_validator('region')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region format"""
        if not v or not v.replace('-', '').isalnum():
            raise ValueError('Region must be a valid AWS region')
        return v

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, v):
        """Accept a comma separated string as well as a list"""
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(',') if tag.strip()]
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level

    @model_validator(mode='after')
    def require_key_pair(self):
        """Explicit credentials need both halves, otherwise the default chain is used"""
        if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
            raise ValueError('aws_access_key_id and aws_secret_access_key must be set together')
        return self

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "ProcessorConfig":
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read from (defaults to os.environ)
            **overrides: Explicit values that take precedence over the environment;
                None values are ignored

        Raises:
            ConfigurationError: if the resulting settings are invalid
        """
        if environ is None:
            environ = os.environ

        values = {}
        for env_name, field_name in ENV_VARS.items():
            value = environ.get(env_name)
            if value is not None and value != '':
                values[field_name] = value

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid processor configuration: {e}") from e
