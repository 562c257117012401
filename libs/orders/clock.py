"""Injectable time source for validation and timestamps."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def current_timestamp_in_seconds() -> int:
    """Current unix time, truncated to whole seconds."""
    return int(time.time())
