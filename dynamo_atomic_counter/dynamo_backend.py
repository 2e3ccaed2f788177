import logging
import threading

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import get_settings
from .exceptions import StoreError

logger = logging.getLogger(__name__)


def create_client(settings):
    """Build a low-level DynamoDB client from ``CounterSettings``."""
    botocore_config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"total_max_attempts": settings.max_attempts, "mode": "standard"},
    )
    return boto3.client(
        "dynamodb",
        region_name=settings.region_name,
        endpoint_url=settings.endpoint_url,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_session_token=settings.aws_session_token,
        config=botocore_config,
    )


class DynamoBackend:
    """Thin wrapper over the two DynamoDB calls a counter needs.

    The boto3 client is built on first use and shared by every thread
    afterwards; boto3 clients are thread-safe once created.
    """

    def __init__(self, settings=None, client=None):
        self.settings = settings
        self._client = client
        self._lock = threading.Lock()

    @property
    def client(self):
        if self._client is None:
            with self._lock:
                if self._client is None:
                    settings = self.settings or get_settings()
                    logger.debug("Creating DynamoDB client (region=%s, endpoint=%s)",
                                 settings.region_name, settings.endpoint_url)
                    self._client = create_client(settings)
        return self._client

    def atomic_add(self, params, counter_id=None):
        """UpdateItem with prepared parameters; returns the raw response."""
        return self._call("update_item", "increment", counter_id, params)

    def get_item(self, params, counter_id=None):
        """GetItem with prepared parameters; returns the raw response."""
        return self._call("get_item", "get_last_value", counter_id, params)

    def _call(self, method, operation, counter_id, params):
        logger.debug("%s on %s for counter %r", method, params.get("TableName"), counter_id)
        try:
            return getattr(self.client, method)(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB %s failed for counter %r: %s", method, counter_id, exc)
            raise StoreError(operation, counter_id, exc) from exc
