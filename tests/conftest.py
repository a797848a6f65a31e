"""Shared fixtures: a fake capture session and ARP frame builders."""

import io
import ipaddress
import queue
import threading

import pytest
from rich.console import Console
from scapy.compat import raw
from scapy.layers.inet import IP, TCP
from scapy.layers.l2 import ARP, Ether

from arpsweep.errors import WriteError
from arpsweep.utils import Interface
from arpsweep.vendors import load_vendor_table

LOCAL_MAC = "02:00:00:00:00:01"


class FakeSession:
    """In-memory stand-in for a capture session."""

    def __init__(self, name="eth0", frames=(), fail_after=None):
        self.name = name
        self.written = []
        self.closed = False
        self.fail_after = fail_after
        self.idle = threading.Event()
        self.readers = 0
        self.readers_at_close = None
        self._inbox = queue.Queue()
        self._lock = threading.Lock()
        for frame in frames:
            self._inbox.put(frame)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def inject(self, frame):
        with self._lock:
            self._inbox.put(frame)
            self.idle.clear()

    def write(self, frame):
        assert not self.closed, "write after close"
        if self.fail_after is not None and len(self.written) >= self.fail_after:
            raise WriteError("link down")
        self.written.append(frame)

    def frames(self):
        self.readers += 1
        try:
            while not self.closed:
                try:
                    frame = self._inbox.get(timeout=0.01)
                except queue.Empty:
                    with self._lock:
                        if self._inbox.empty():
                            self.idle.set()
                    yield None
                    continue
                yield frame
        finally:
            self.readers -= 1

    def close(self):
        self.readers_at_close = self.readers
        self.closed = True


@pytest.fixture
def interface():
    # 192.168.1.8/30: hosts .9 and .10
    return Interface(
        name="eth0",
        mac=LOCAL_MAC,
        ip=ipaddress.IPv4Address("192.168.1.10"),
        netmask=ipaddress.IPv4Address("255.255.255.252"),
    )


@pytest.fixture
def vendors():
    return load_vendor_table(["AABBCC ExampleCorp\n", "0000AA Xerox Corporation\n"])


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, highlight=False)


@pytest.fixture
def arp_frame():
    def build(op, hwsrc, psrc, hwdst="00:00:00:00:00:00", pdst="192.168.1.10"):
        dst = "ff:ff:ff:ff:ff:ff" if op == 1 else LOCAL_MAC
        return raw(Ether(src=hwsrc, dst=dst) / ARP(op=op, hwsrc=hwsrc, psrc=psrc, hwdst=hwdst, pdst=pdst))
    return build


@pytest.fixture
def tcp_frame():
    return raw(Ether(src="aa:bb:cc:11:22:33", dst=LOCAL_MAC) / IP(src="192.168.1.9", dst="192.168.1.10") / TCP(dport=80))
