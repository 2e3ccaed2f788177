import threading

from .config import freeze_settings
from .counter import AtomicCounter

_lock = threading.Lock()
_default_counter = None


def get_default_counter():
    """Process-wide AtomicCounter, built from the process-wide settings on first use."""
    global _default_counter
    if _default_counter is None:
        with _lock:
            if _default_counter is None:
                _default_counter = AtomicCounter(settings=freeze_settings())
    return _default_counter


def reset_default_counter():
    global _default_counter
    with _lock:
        counter, _default_counter = _default_counter, None
    if counter is not None:
        counter.close()


def increment(counter_id, **options):
    return get_default_counter().increment(counter_id, **options)


def get_last_value(counter_id, **options):
    return get_default_counter().get_last_value(counter_id, **options)
