from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def unix_timestamp() -> int:
    """Current UTC time in whole seconds."""
    return int(datetime.now(timezone.utc).timestamp())


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a fixed clock."""
    return unix_timestamp
