"""ARP host discovery for the local IPv4 subnet.

Sends an ARP request to every host address of an interface's subnet and
reports each host that answers, with its hardware vendor when known.

Requirements:
    Sending raw frames needs root or the CAP_NET_RAW capability.

Example:
    >>> from arpsweep import ScanConfig, HostReporter, arp_scan, load_vendor_table, resolve_interface
    >>> iface = resolve_interface("eth0")
    >>> reporter = HostReporter(load_vendor_table("mac-fab.txt"))
    >>> for host in arp_scan(iface, ScanConfig(window=3), reporter):
    ...     print(f"{host.ip} -> {host.mac} ({host.vendor})")
"""

from arpsweep.errors import (
    CaptureOpenError,
    PreconditionError,
    ScanError,
    SerializationError,
    VendorLoadError,
    WriteError,
)
from arpsweep.listener import Host, HostReporter
from arpsweep.scanner import ScanConfig, arp_scan
from arpsweep.utils import host_addresses, list_interfaces, resolve_interface
from arpsweep.vendors import load_vendor_table

__all__ = [
    "CaptureOpenError",
    "Host",
    "HostReporter",
    "PreconditionError",
    "ScanConfig",
    "ScanError",
    "SerializationError",
    "VendorLoadError",
    "WriteError",
    "arp_scan",
    "host_addresses",
    "list_interfaces",
    "load_vendor_table",
    "resolve_interface",
]
__version__ = "0.1.0"
