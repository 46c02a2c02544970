import socket
import threading
import time

import pytest

from portsweep.models import ProbeResult


@pytest.fixture
def listener():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    yield srv
    srv.close()


@pytest.fixture
def closed_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


class InstrumentedProbe:
    """Fake probe that tracks how many calls overlap."""

    def __init__(self, open_ports=(), delay_s=0.0):
        self.open_ports = set(open_ports)
        self.delay_s = delay_s
        self.lock = threading.Lock()
        self.inflight = 0
        self.max_inflight = 0
        self.calls = 0

    def __call__(self, target, port, timeout_s):
        with self.lock:
            self.inflight += 1
            self.calls += 1
            self.max_inflight = max(self.max_inflight, self.inflight)
        try:
            if self.delay_s:
                time.sleep(self.delay_s)
            if (target, port) in self.open_ports:
                return ProbeResult.OPEN
            return ProbeResult.CLOSED
        finally:
            with self.lock:
                self.inflight -= 1


@pytest.fixture
def make_probe():
    return InstrumentedProbe
