import logging

from botocore.exceptions import ClientError

from .config import get_settings
from .dynamo_backend import create_client

logger = logging.getLogger(__name__)


def create_counter_table(client=None, table_name=None, key_attribute=None, wait=True):
    """Create the counters table if it does not exist yet.

    Returns True when the table was created, False when it was already there.
    """
    settings = get_settings()
    client = client or create_client(settings)
    table_name = table_name or settings.table_name
    key_attribute = key_attribute or settings.key_attribute

    try:
        client.describe_table(TableName=table_name)
        logger.info("Table already exists: %s", table_name)
        return False
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
            raise

    logger.info("Creating counters table %s (hash key %s)", table_name, key_attribute)
    client.create_table(
        TableName=table_name,
        BillingMode="PAY_PER_REQUEST",
        AttributeDefinitions=[
            {"AttributeName": key_attribute, "AttributeType": "S"}
        ],
        KeySchema=[
            {"AttributeName": key_attribute, "KeyType": "HASH"}
        ]
    )

    if wait:
        waiter = client.get_waiter("table_exists")
        waiter.wait(TableName=table_name)
        logger.info("Table %s is active", table_name)
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_counter_table()
