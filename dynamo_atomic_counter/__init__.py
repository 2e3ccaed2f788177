"""
DynamoDB Atomic Counter Package
"""

from .version import __version__
from .config import CounterSettings, configure, get_settings
from .counter import AtomicCounter, CounterSpec, IncrementRequest
from .helpers import get_default_counter, get_last_value, increment
from .exceptions import ConfigurationError, CounterError, ParseError, StoreError
from .dynamo_backend import DynamoBackend

__all__ = [
    "AtomicCounter",
    "CounterSpec",
    "IncrementRequest",
    "CounterSettings",
    "configure",
    "get_settings",
    "increment",
    "get_last_value",
    "get_default_counter",
    "CounterError",
    "ConfigurationError",
    "ParseError",
    "StoreError",
    "DynamoBackend",
    "__version__",
]
