"""Process-wide settings via Pydantic Settings.

Every variable is mapped explicitly so the AWS names boto3 already uses
(AWS_REGION, AWS_ACCESS_KEY_ID, ...) are picked up alongside our own.
"""

import threading
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError

DEFAULT_TABLE_NAME = "AtomicCounters"
DEFAULT_KEY_ATTRIBUTE = "id"
DEFAULT_COUNT_ATTRIBUTE = "lastValue"
DEFAULT_INCREMENT = 1


class CounterSettings(BaseSettings):
    # Counter addressing
    table_name: str = Field(default=DEFAULT_TABLE_NAME, validation_alias="ATOMIC_COUNTER_TABLE")
    key_attribute: str = Field(
        default=DEFAULT_KEY_ATTRIBUTE,
        validation_alias="ATOMIC_COUNTER_KEY_ATTRIBUTE",
    )
    count_attribute: str = Field(
        default=DEFAULT_COUNT_ATTRIBUTE,
        validation_alias="ATOMIC_COUNTER_COUNT_ATTRIBUTE",
    )

    # DynamoDB client
    region_name: Optional[str] = Field(default=None, validation_alias="AWS_REGION")
    endpoint_url: Optional[str] = Field(default=None, validation_alias="DYNAMODB_ENDPOINT_URL")
    aws_access_key_id: Optional[str] = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_session_token: Optional[str] = Field(default=None, validation_alias="AWS_SESSION_TOKEN")
    connect_timeout: float = Field(default=5.0, validation_alias="DYNAMODB_CONNECT_TIMEOUT")
    read_timeout: float = Field(default=10.0, validation_alias="DYNAMODB_READ_TIMEOUT")
    # Total attempts, first call included: a retried UpdateItem can add twice.
    max_attempts: int = Field(default=1, ge=1, validation_alias="DYNAMODB_MAX_ATTEMPTS")

    # Worker threads that carry the blocking boto3 calls
    max_workers: int = Field(default=10, ge=1, validation_alias="ATOMIC_COUNTER_MAX_WORKERS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


_lock = threading.Lock()
_settings = None
_frozen = False


def get_settings():
    """Return the process-wide settings, loading them from the environment once."""
    global _settings
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = CounterSettings()
    return _settings


def configure(**overrides):
    """Replace the process-wide settings.

    Only allowed until the shared DynamoDB client has been built from them.
    """
    global _settings
    with _lock:
        if _frozen:
            raise ConfigurationError(
                "the shared DynamoDB client already exists; configure() must run before first use"
            )
        _settings = CounterSettings(**overrides)
        return _settings


def freeze_settings():
    """Mark the process-wide settings as in use by the shared client and return them."""
    global _settings, _frozen
    with _lock:
        if _settings is None:
            _settings = CounterSettings()
        _frozen = True
        return _settings


def _reset():
    global _settings, _frozen
    with _lock:
        _settings = None
        _frozen = False
