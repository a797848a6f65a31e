#!/usr/bin/env python3

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

from rich.console import Console
from rich.text import Text

from arpsweep.frames import ARP_REPLY, parse_reply

logger = logging.getLogger(__name__)

HEADER = f"{'IPv4':<20} {'MAC':<20} {'Hardware':<30}"
RULE = "=" * 67


class Host(NamedTuple):
    ip: str
    mac: str
    vendor: str


class HostReporter:
    """
    Prints one line per discovered host and keeps track of what was printed.
    Safe to call from several threads at once.
    """

    def __init__(self, vendors, console=None):
        self.vendors = vendors
        self.console = console or Console(highlight=False)
        self._hosts = []
        self._lock = threading.Lock()

    @property
    def hosts(self):
        with self._lock:
            return list(self._hosts)

    def print_header(self):
        self.console.print(HEADER, highlight=False)
        self.console.print(RULE, highlight=False)

    def __call__(self, record):
        host = Host(record.sender_ip, record.sender_mac, self.vendors.lookup(record.sender_mac))
        with self._lock:
            self._hosts.append(host)
        self.console.print(
            Text.assemble(
                (f"{host.ip:<20} ", "cyan"),
                (f"{host.mac:<20} ", "magenta"),
                (f"{host.vendor:<30}", "green"),
            ),
            soft_wrap=True,
        )
        return host


def _log_report_failure(future):
    exc = future.exception()
    if exc is not None:
        logger.error("Failed to report host: %s", exc)


class ReplyListener:
    """
    Reads frames from a capture session on a background thread and hands
    every ARP reply not sent by `local_mac` to `report`, each on a worker
    thread. Replies are reported in no particular order.
    """

    def __init__(self, session, local_mac, report, max_workers=8):
        self.session = session
        self.local_mac = local_mac.lower()
        self.report = report
        self._stop = threading.Event()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="arp-report")
        self._thread = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name="arp-listener", daemon=True)
        self._thread.start()

    def stop(self):
        """Signals the reader to stop, waits for it, then waits for pending reports."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self._pool.shutdown(wait=True)

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def handle_frame(self, frame):
        """Dispatches `frame` for reporting if it is a foreign ARP reply. Returns True if it was."""
        record = parse_reply(frame)
        if record is None or record.op != ARP_REPLY:
            return False
        if record.sender_mac == self.local_mac:
            # Our own traffic.
            return False

        self._pool.submit(self.report, record).add_done_callback(_log_report_failure)
        return True

    def _run(self):
        try:
            for frame in self.session.frames():
                if self._stop.is_set():
                    break
                if frame is not None:
                    self.handle_frame(frame)
        except Exception as e:
            logger.error("Listener on %s stopped: %s", getattr(self.session, "name", "?"), e)
