#!/usr/bin/env python3

import argparse
import ipaddress
import logging
import os
import sys
import time
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from arpsweep.capture import open_capture
from arpsweep.errors import CaptureOpenError, PreconditionError, VendorLoadError, WriteError
from arpsweep.frames import build_request
from arpsweep.listener import HostReporter, ReplyListener
from arpsweep.utils import default_interface_name, host_addresses, list_interfaces, resolve_interface
from arpsweep.vendors import (
    DEFAULT_VENDOR_FILE,
    load_vendor_table,
    mac_lookup_cache_path,
    read_mac_lookup_cache,
    update_vendor_file,
)

logger = logging.getLogger(__name__)

# Seconds to keep listening after the last request went out (tune this to network size)
DEFAULT_WINDOW = 3.0


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one scan, built once from the command line."""

    interface: Optional[str] = None
    window: float = DEFAULT_WINDOW
    vendor_path: str = DEFAULT_VENDOR_FILE
    update_vendors: bool = False
    table: bool = False
    verbose: bool = False


def send_requests(session, interface):
    """
    Writes one ARP request per host address of the interface's subnet.
    Stops at the first WriteError, which is re-raised.
    """
    sent = 0
    for target in host_addresses(interface.ip, interface.netmask):
        session.write(build_request(interface.mac, interface.ip, target))
        sent += 1
    return sent


def arp_scan(interface, config, reporter, open_session=open_capture):
    """
    Scans the interface's subnet with ARP requests.
    Hosts are reported as their replies arrive; the list of reported hosts
    is returned once the observation window has passed.
    """
    with open_session(interface.name) as session:
        logger.info(
            "[*] Scanning on %s: %s [%s/%d]",
            interface.name, interface.ip, interface.network.network_address, interface.prefix,
        )
        reporter.print_header()

        listener = ReplyListener(session, interface.mac, reporter)
        listener.start()
        try:
            sent = send_requests(session, interface)
            logger.debug("Sent %d ARP requests, waiting %.1fs for replies", sent, config.window)
            time.sleep(config.window)
        finally:
            # The session closes on leaving the with-block, after the listener is joined.
            listener.stop()

    return reporter.hosts


def display_results(hosts, console):
    """Displays the discovered hosts in a table, ordered by address."""
    if not hosts:
        console.print("No devices found.")
        return

    table = Table(title="Live Devices on Network")
    table.add_column("#", style="dim", width=3)
    table.add_column("IP Address", style="cyan", no_wrap=True)
    table.add_column("MAC Address", style="magenta")
    table.add_column("Vendor", style="green")

    for i, host in enumerate(sorted(hosts, key=lambda h: ipaddress.IPv4Address(h.ip)), 1):
        table.add_row(str(i), host.ip, host.mac, host.vendor)
    console.print(table)


def load_vendors(path):
    """
    Loads the vendor table from `path`. When the default file is not in the
    working directory, the registry cached by mac_vendor_lookup is used instead.
    """
    if path == DEFAULT_VENDOR_FILE and not os.path.exists(path):
        cache = mac_lookup_cache_path()
        if os.path.exists(cache):
            try:
                lines = read_mac_lookup_cache(cache)
            except VendorLoadError as e:
                logger.warning("%s", e)
            else:
                logger.debug("No %s here, using vendor cache %s", path, cache)
                return load_vendor_table(lines)
    return load_vendor_table(path)


def run_scan(config, console, open_session=open_capture):
    """Resolves the interface, loads vendors, scans. Fatal errors propagate."""
    name = config.interface or default_interface_name()
    interface = resolve_interface(name)

    if config.update_vendors:
        try:
            update_vendor_file(config.vendor_path)
        except VendorLoadError as e:
            logger.warning("%s", e)
    vendors = load_vendors(config.vendor_path)

    reporter = HostReporter(vendors, console)
    hosts = arp_scan(interface, config, reporter, open_session=open_session)
    logger.info("%d host(s) responded on %s", len(hosts), interface.network)

    if config.table:
        display_results(hosts, console)
    return hosts


def configure_logging(config):
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # Suppress Scapy's verbose logging
    logging.getLogger("scapy.runtime").setLevel(logging.ERROR)


def build_parser():
    parser = argparse.ArgumentParser(description="Discover hosts on the local subnet using ARP requests.")
    parser.add_argument(
        "-i", "--interface",
        type=str,
        default=None,
        help="Interface to scan on. Defaults to the interface holding the default route."
    )
    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=DEFAULT_WINDOW,
        help=f"Seconds to wait for replies after all requests are sent (default: {DEFAULT_WINDOW:g})."
    )
    parser.add_argument(
        "--vendors",
        type=str,
        default=DEFAULT_VENDOR_FILE,
        help=f"Path to the MAC prefix vendor file (default: {DEFAULT_VENDOR_FILE})."
    )
    parser.add_argument(
        "--update-vendors",
        action="store_true",
        help="Download the IEEE OUI list into the vendor file before scanning."
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Print a summary table of discovered hosts after the scan."
    )
    parser.add_argument(
        "--list-interfaces",
        action="store_true",
        help="List available interfaces and exit."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging."
    )
    return parser


def main(argv=None, console=None, open_session=open_capture):
    args = build_parser().parse_args(argv)
    config = ScanConfig(
        interface=args.interface,
        window=args.timeout,
        vendor_path=args.vendors,
        update_vendors=args.update_vendors,
        table=args.table,
        verbose=args.verbose,
    )
    configure_logging(config)
    console = console or Console(highlight=False)

    if args.list_interfaces:
        for name in list_interfaces():
            console.print(name)
        return 0

    if config.window < 0:
        logger.error("Timeout must not be negative: %s", config.window)
        return 2

    try:
        run_scan(config, console, open_session=open_session)
    except CaptureOpenError as e:
        logger.error("%s", e)
        if isinstance(e.__cause__, PermissionError):
            logger.error("Root/Administrator privileges are required to send ARP packets. "
                         "Please try running with sudo or as an Administrator.")
        return 1
    except (PreconditionError, WriteError) as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Scan stopped by user.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
