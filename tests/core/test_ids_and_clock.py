"""
Unit Tests for IdGenerator and SystemClock
"""

import re
import threading
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from xray.core.clock import SystemClock
from xray.core.ids import IdGenerator

EXEC_ID = re.compile(r"^exec_[0-9a-f]{8}$")
STEP_ID = re.compile(r"^step_[0-9a-f]{8}$")


@pytest.mark.unit
def test_id_formats():
    ids = IdGenerator()

    assert EXEC_ID.match(ids.execution_id())
    assert STEP_ID.match(ids.step_id())


@pytest.mark.unit
def test_ids_are_random():
    ids = IdGenerator()
    generated = {ids.step_id() for _ in range(1000)}

    # 32 bits of randomness: collisions in 1000 draws are vanishingly rare
    assert len(generated) >= 999


@pytest.mark.unit
def test_system_clock_returns_naive_local_datetime():
    now = SystemClock().now()

    assert isinstance(now, datetime)
    assert now.tzinfo is None


@pytest.mark.unit
def test_system_clock_never_goes_backwards():
    clock = SystemClock()
    later = datetime(2030, 1, 1, 12, 0, 0)
    earlier = later - timedelta(seconds=5)

    with patch("xray.core.clock.datetime") as mock_datetime:
        mock_datetime.now.side_effect = [later, earlier]
        first = clock.now()
        second = clock.now()

    assert first == later
    assert second == later


@pytest.mark.unit
def test_system_clock_thread_safe_monotone():
    clock = SystemClock()
    results = []
    lock = threading.Lock()

    def worker():
        values = [clock.now() for _ in range(200)]
        with lock:
            results.append(values)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for values in results:
        assert values == sorted(values)
