"""Operation timing hook used by the services."""

import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

# (operation name, duration in milliseconds, outcome)
OperationHook = Callable[[str, float, str], None]


class OperationTimer:
    """Collects the outcome of a timed block; ``outcome`` may be set inside it."""

    def __init__(self, operation: str):
        self.operation = operation
        self.outcome = "ok"


@contextmanager
def timed_operation(hook: Optional[OperationHook], operation: str) -> Iterator[OperationTimer]:
    """
    Time the enclosed block and report it to ``hook``.

    An exception escaping the block is reported with its class name as the
    outcome and then re-raised.
    """
    timer = OperationTimer(operation)
    start = time.perf_counter()
    try:
        yield timer
    except Exception as e:
        timer.outcome = type(e).__name__
        raise
    finally:
        if hook is not None:
            hook(operation, (time.perf_counter() - start) * 1000, timer.outcome)
