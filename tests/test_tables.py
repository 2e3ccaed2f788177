import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from dynamo_atomic_counter.tables import create_counter_table


def test_creates_missing_table(dynamodb_client):
    with Stubber(dynamodb_client) as stubber:
        stubber.add_client_error("describe_table", service_error_code="ResourceNotFoundException")
        stubber.add_response(
            "create_table",
            {},
            {
                "TableName": "AtomicCounters",
                "BillingMode": "PAY_PER_REQUEST",
                "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
                "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            },
        )
        assert create_counter_table(client=dynamodb_client, wait=False) is True
        stubber.assert_no_pending_responses()


def test_existing_table_is_left_alone(dynamodb_client):
    with Stubber(dynamodb_client) as stubber:
        stubber.add_response(
            "describe_table",
            {"Table": {"TableName": "Sequences"}},
            {"TableName": "Sequences"},
        )
        assert create_counter_table(client=dynamodb_client, table_name="Sequences") is False
        stubber.assert_no_pending_responses()


def test_other_describe_errors_propagate(dynamodb_client):
    with Stubber(dynamodb_client) as stubber:
        stubber.add_client_error("describe_table", service_error_code="AccessDeniedException")
        with pytest.raises(ClientError):
            create_counter_table(client=dynamodb_client)
