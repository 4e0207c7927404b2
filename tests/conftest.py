import itertools
import time

import pytest

from rcos_alpaca.config.models import ClientConfig
from rcos_alpaca.simulator.mock_tcc import MockTccTransport
from rcos_alpaca.tcc.client import TccClient


FAST_CLIENT = ClientConfig(idle_delay_ms=1, error_backoff_ms=5, query_settle_ms=500)

_markers = itertools.count(1)


def wait_until(predicate, timeout=2.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def sim():
    return MockTccTransport(read_timeout=0.01)


@pytest.fixture
def client(sim):
    tcc = TccClient(sim, FAST_CLIENT)
    yield tcc
    tcc.close()


@pytest.fixture
def sync():
    """Block until the reader has dispatched everything injected so far."""

    def _sync(tcc, transport):
        marker = str(next(_markers))
        transport.inject(f":sync {marker} ".encode("ascii"))
        assert wait_until(
            lambda: any(t.key == "sync" and t.value == marker for t in tcc.raw_tokens.entries())
        )

    return _sync
