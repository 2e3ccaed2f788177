class CounterError(Exception):
    """Base class for every error raised by dynamo_atomic_counter."""


class ConfigurationError(CounterError):
    pass


class StoreError(CounterError):
    """The DynamoDB call itself failed (network, throttling, permissions, bad request).

    The botocore exception is kept as ``cause`` and chained as ``__cause__``.
    An Increment that fails with this error may still have been applied by
    DynamoDB, so resubmitting it can count twice.
    """

    def __init__(self, operation, counter_id, cause):
        self.operation = operation
        self.counter_id = counter_id
        self.cause = cause
        response = getattr(cause, "response", None) or {}
        self.code = response.get("Error", {}).get("Code")
        super().__init__(f"{operation} failed for counter {counter_id!r}: {cause}")


class ParseError(CounterError):
    """DynamoDB answered, but the count attribute is not a base-10 integer."""

    def __init__(self, raw_value, operation=None, counter_id=None):
        self.raw_value = raw_value
        self.operation = operation
        self.counter_id = counter_id
        if raw_value is None:
            message = "count attribute missing from response"
        else:
            message = f"could not parse counter value {raw_value!r}"
        if operation:
            message = f"{operation} for counter {counter_id!r}: {message}"
        super().__init__(message)
