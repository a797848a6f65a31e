#!/usr/bin/env python3

"""Raw link-layer send/receive on one interface, backed by scapy's L2 socket."""

import logging

from scapy.compat import raw
from scapy.config import conf
from scapy.error import Scapy_Exception

from arpsweep.errors import CaptureOpenError, WriteError

logger = logging.getLogger(__name__)


class CaptureSession:
    """
    An open capture handle on one device.

    frames() blocks for at most `poll_interval` seconds per step and yields
    None when nothing arrived, so readers can check for cancellation.
    """

    def __init__(self, sock, name, poll_interval=0.1):
        self._sock = sock
        self.name = name
        self.poll_interval = poll_interval
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def write(self, frame):
        try:
            self._sock.send(frame)
        except (OSError, Scapy_Exception) as e:
            raise WriteError(f"Failed to send frame on {self.name}: {e}") from e

    def frames(self):
        while not self.closed:
            ready = self._sock.select([self._sock], self.poll_interval)
            if not ready:
                yield None
                continue
            try:
                pkt = self._sock.recv()
            except (OSError, Scapy_Exception):
                if self.closed:
                    return
                raise
            yield raw(pkt) if pkt is not None else None

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._sock.close()
        logger.debug("Closed capture session on %s", self.name)


def open_capture(name, poll_interval=0.1):
    """Opens a capture session on `name`. Raises CaptureOpenError on failure."""
    try:
        sock = conf.L2socket(iface=name, promisc=False)
    except (OSError, Scapy_Exception) as e:
        raise CaptureOpenError(f"Could not open {name}: {e}") from e
    logger.debug("Opened capture session on %s", name)
    return CaptureSession(sock, name, poll_interval)
