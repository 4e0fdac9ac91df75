"""
Clock used by the tracer for start/step/end instants.

Instants are naive local datetimes, the same shape the API serializes.
"""

import threading
from datetime import datetime
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """
    Wall clock that never goes backwards.

    If the system time steps back (NTP adjustment), the last returned
    instant is repeated instead.
    """

    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now()
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
            return current
