import time

import pytest
from readaloud.services.status_store import StatusStore


@pytest.fixture
def status():
    return StatusStore()


def wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
