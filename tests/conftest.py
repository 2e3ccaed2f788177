"""Pytest configuration and shared fixtures."""

import threading

import boto3
import pytest

from dynamo_atomic_counter import config, helpers
from dynamo_atomic_counter.config import CounterSettings
from dynamo_atomic_counter.counter import AtomicCounter
from dynamo_atomic_counter.dynamo_backend import DynamoBackend


class FakeDynamoClient:
    """In-memory stand-in for the low-level DynamoDB client.

    Implements just enough of UpdateItem (AttributeUpdates ADD) and GetItem
    for the counter, with updates serialised under a lock the way DynamoDB
    serialises writes to one item.
    """

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.error = None
        self.next_response = None
        self.gate = None
        self._lock = threading.Lock()

    def put(self, table_name, key_attribute, counter_id, attributes):
        item = {key_attribute: {"S": counter_id}}
        item.update(attributes)
        self.tables.setdefault(table_name, {})[counter_id] = item

    def _respond(self, method, params):
        self.calls.append((method, params))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if self.next_response is not None:
            response, self.next_response = self.next_response, None
            return response
        return None

    def update_item(self, **params):
        canned = self._respond("update_item", params)
        if canned is not None:
            return canned

        ((key_attribute, key_value),) = params["Key"].items()
        updates = params["AttributeUpdates"]
        with self._lock:
            table = self.tables.setdefault(params["TableName"], {})
            item = table.setdefault(key_value["S"], {key_attribute: key_value})
            old = dict(item)
            for name, update in updates.items():
                assert update["Action"] == "ADD"
                current = int(item[name]["N"]) if name in item else 0
                item[name] = {"N": str(current + int(update["Value"]["N"]))}
            new = dict(item)

        return_values = params.get("ReturnValues", "NONE")
        if return_values == "UPDATED_NEW":
            return {"Attributes": {name: new[name] for name in updates}}
        if return_values == "UPDATED_OLD":
            attributes = {name: old[name] for name in updates if name in old}
            return {"Attributes": attributes} if attributes else {}
        if return_values == "ALL_NEW":
            return {"Attributes": new}
        return {}

    def get_item(self, **params):
        canned = self._respond("get_item", params)
        if canned is not None:
            return canned

        ((_, key_value),) = params["Key"].items()
        with self._lock:
            item = self.tables.get(params["TableName"], {}).get(key_value["S"])
            if item is None:
                return {}
            wanted = params.get("AttributesToGet")
            if wanted:
                item = {name: value for name, value in item.items() if name in wanted}
            return {"Item": dict(item)}


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    for name in (
        "ATOMIC_COUNTER_TABLE",
        "ATOMIC_COUNTER_KEY_ATTRIBUTE",
        "ATOMIC_COUNTER_COUNT_ATTRIBUTE",
        "DYNAMODB_ENDPOINT_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    config._reset()
    yield
    helpers.reset_default_counter()
    config._reset()


@pytest.fixture
def settings():
    return CounterSettings(region_name="us-east-1")


@pytest.fixture
def fake_client():
    return FakeDynamoClient()


@pytest.fixture
def counter(settings, fake_client):
    with AtomicCounter(backend=DynamoBackend(settings, client=fake_client), settings=settings) as counter:
        yield counter


@pytest.fixture
def dynamodb_client():
    return boto3.client(
        "dynamodb",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
