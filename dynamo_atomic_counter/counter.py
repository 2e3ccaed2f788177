"""Atomic counters on top of DynamoDB UpdateItem/GetItem.

DynamoDB serialises every ``ADD`` on the same key, so concurrent callers,
in this process or any other, each get a distinct post-increment value.
An item that does not exist yet is created by the first ``ADD`` with the
count attribute set to the delta; nothing here special-cases first use.

A failed ``increment`` is ambiguous: DynamoDB may have applied the add
before the error reached us. Nothing is retried here, and callers that
need exactly-once identifiers must bring their own idempotency token.
"""

import asyncio
import logging
import re
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from .config import (
    DEFAULT_COUNT_ATTRIBUTE,
    DEFAULT_INCREMENT,
    DEFAULT_KEY_ATTRIBUTE,
    DEFAULT_TABLE_NAME,
    get_settings,
)
from .dynamo_backend import DynamoBackend
from .exceptions import ParseError

logger = logging.getLogger(__name__)

INCREMENT = "increment"
GET_LAST_VALUE = "get_last_value"

_INTEGER = re.compile(r"[+-]?[0-9]+")

Hook = Optional[Callable[..., Any]]


@dataclass(frozen=True)
class CounterSpec:
    """Where a counter lives: table, key attribute and count attribute."""

    counter_id: str
    table_name: str = DEFAULT_TABLE_NAME
    key_attribute: str = DEFAULT_KEY_ATTRIBUTE
    count_attribute: str = DEFAULT_COUNT_ATTRIBUTE

    def __post_init__(self):
        if not isinstance(self.counter_id, str) or not self.counter_id:
            raise ValueError("counter_id must be a non-empty string")

    @property
    def key(self) -> dict:
        return {self.key_attribute: {"S": self.counter_id}}


@dataclass(frozen=True)
class IncrementRequest:
    spec: CounterSpec
    delta: int = DEFAULT_INCREMENT
    store_overrides: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.delta, bool) or not isinstance(self.delta, int):
            raise TypeError(f"increment must be an int, got {type(self.delta).__name__}")


def build_update_params(request: IncrementRequest) -> dict:
    """UpdateItem parameters for an increment; ``store_overrides`` win on conflicts."""
    spec = request.spec
    params = {
        "TableName": spec.table_name,
        "Key": spec.key,
        "AttributeUpdates": {
            spec.count_attribute: {
                "Action": "ADD",
                "Value": {"N": str(request.delta)},
            },
        },
        "ReturnValues": "UPDATED_NEW",
    }
    params.update(request.store_overrides)
    return params


def build_get_params(spec: CounterSpec, store_overrides: Optional[Mapping[str, Any]] = None) -> dict:
    params = {
        "TableName": spec.table_name,
        "Key": spec.key,
        "AttributesToGet": [spec.count_attribute],
    }
    params.update(store_overrides or {})
    return params


def parse_count(raw, operation=None, counter_id=None) -> int:
    """Strict base-10 integer parsing: optional sign, ASCII digits, nothing else."""
    if isinstance(raw, str) and _INTEGER.fullmatch(raw):
        return int(raw, 10)
    logger.warning("Unparsable value %r for counter %r (%s)", raw, counter_id, operation)
    raise ParseError(raw, operation, counter_id)


def _raw_number(attribute):
    # {"N": "42"} normally; any other type descriptor is handed on as-is for the error.
    if "N" in attribute:
        return attribute["N"]
    return next(iter(attribute.values()), None)


def _count_value(attributes, spec, operation):
    attribute = attributes.get(spec.count_attribute)
    if not attribute:
        logger.warning("Count attribute %r missing for counter %r (%s)",
                       spec.count_attribute, spec.counter_id, operation)
        raise ParseError(None, operation, spec.counter_id)
    return parse_count(_raw_number(attribute), operation, spec.counter_id)


def interpret_update(response: Mapping[str, Any], spec: CounterSpec) -> int:
    """New counter value from an UpdateItem response.

    DynamoDB always returns the updated attributes, so a missing count
    attribute is a ParseError like any other unreadable value, never 0.
    """
    return _count_value(response.get("Attributes") or {}, spec, INCREMENT)


def interpret_get(response: Mapping[str, Any], spec: CounterSpec) -> int:
    """Counter value from a GetItem response; a missing or empty ``Item`` is 0."""
    item = response.get("Item")
    if not item:
        return 0
    return _count_value(item, spec, GET_LAST_VALUE)


def _deliver(hook, outcome, context):
    if hook is None:
        return
    if context is None:
        hook(outcome)
    else:
        hook(outcome, context)


def _attach_hooks(future, success, error, complete, context):
    if success is None and error is None and complete is None:
        return

    def on_done(done):
        if done.cancelled():
            exc = CancelledError()
        else:
            exc = done.exception()
        outcome = done.result() if exc is None else exc
        try:
            _deliver(success if exc is None else error, outcome, context)
        finally:
            _deliver(complete, outcome, context)

    future.add_done_callback(on_done)


class AtomicCounter:
    """Increment and read named counters stored in one DynamoDB table.

    Both operations return a ``concurrent.futures.Future`` right away; the
    blocking boto3 call runs on a worker thread. Optional ``success``,
    ``error`` and ``complete`` hooks are called once when the future
    settles, with ``context`` as a second argument when one is given.
    """

    def __init__(self, backend=None, settings=None, executor=None):
        self.settings = settings or get_settings()
        self.backend = backend or DynamoBackend(self.settings)
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()

    @property
    def executor(self):
        if self._executor is None:
            with self._lock:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=self.settings.max_workers,
                        thread_name_prefix="atomic-counter",
                    )
        return self._executor

    def spec(self, counter_id, table_name=None, key_attribute=None, count_attribute=None) -> CounterSpec:
        return CounterSpec(
            counter_id,
            table_name=table_name or self.settings.table_name,
            key_attribute=key_attribute or self.settings.key_attribute,
            count_attribute=count_attribute or self.settings.count_attribute,
        )

    def increment(
        self,
        counter_id: str,
        increment: Optional[int] = None,
        table_name: Optional[str] = None,
        key_attribute: Optional[str] = None,
        count_attribute: Optional[str] = None,
        store_overrides: Optional[Mapping[str, Any]] = None,
        success: Hook = None,
        error: Hook = None,
        complete: Hook = None,
        context: Any = None,
    ) -> "Future[int]":
        """Add ``increment`` (default 1, may be zero or negative) and resolve to the new value."""
        request = IncrementRequest(
            self.spec(counter_id, table_name, key_attribute, count_attribute),
            delta=DEFAULT_INCREMENT if increment is None else increment,
            store_overrides=store_overrides or {},
        )
        params = build_update_params(request)
        future = self.executor.submit(self._increment, request.spec, params)
        _attach_hooks(future, success, error, complete, context)
        return future

    def get_last_value(
        self,
        counter_id: str,
        table_name: Optional[str] = None,
        key_attribute: Optional[str] = None,
        count_attribute: Optional[str] = None,
        store_overrides: Optional[Mapping[str, Any]] = None,
        success: Hook = None,
        error: Hook = None,
        complete: Hook = None,
        context: Any = None,
    ) -> "Future[int]":
        """Resolve to the counter's current value, or 0 if it was never incremented.

        A read racing an increment may see either the old or the new value.
        """
        spec = self.spec(counter_id, table_name, key_attribute, count_attribute)
        params = build_get_params(spec, store_overrides)
        future = self.executor.submit(self._get_last_value, spec, params)
        _attach_hooks(future, success, error, complete, context)
        return future

    async def aincrement(self, counter_id: str, **options) -> int:
        return await asyncio.wrap_future(self.increment(counter_id, **options))

    async def aget_last_value(self, counter_id: str, **options) -> int:
        return await asyncio.wrap_future(self.get_last_value(counter_id, **options))

    def _increment(self, spec, params):
        response = self.backend.atomic_add(params, spec.counter_id)
        value = interpret_update(response, spec)
        logger.debug("Counter %r incremented to %d", spec.counter_id, value)
        return value

    def _get_last_value(self, spec, params):
        response = self.backend.get_item(params, spec.counter_id)
        return interpret_get(response, spec)

    def close(self):
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
