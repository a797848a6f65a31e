#!/usr/bin/env python3

# Interface resolution and subnet address helpers.

import ipaddress
import logging
import socket
from dataclasses import dataclass

import psutil
from scapy.config import conf

from arpsweep.errors import PreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interface:
    """A resolved network interface: name, hardware address, IPv4 address and netmask."""

    name: str
    mac: str
    ip: ipaddress.IPv4Address
    netmask: ipaddress.IPv4Address

    @property
    def prefix(self):
        return bin(int(self.netmask)).count("1")

    @property
    def network(self):
        return ipaddress.IPv4Network(f"{self.ip}/{self.netmask}", strict=False)


def _as_int(address):
    if isinstance(address, int):
        return address & 0xFFFFFFFF
    return int(ipaddress.IPv4Address(address))


def host_addresses(ip, mask):
    """
    Yields every host address of the subnet containing `ip`, in ascending order.
    The network and broadcast addresses are excluded, so /31 and /32 yield nothing.
    This is a generator: a /0 is walked lazily, never materialised.
    """
    bmask = _as_int(mask)
    bnet = _as_int(ip) & bmask
    bbroadcast = bnet | (~bmask & 0xFFFFFFFF)

    for addr in range(bnet + 1, bbroadcast):
        yield ipaddress.IPv4Address(addr)


def list_interfaces():
    """Returns the names of all interfaces known to the system."""
    return sorted(psutil.net_if_addrs())


def default_interface_name():
    """Returns scapy's default interface (the one holding the default route)."""
    iface = conf.iface
    return getattr(iface, "name", None) or str(iface)


def _lookup_name(name):
    for candidate in psutil.net_if_addrs():
        if candidate.lower() == name.lower():
            return candidate
    return None


def resolve_interface(name):
    """
    Resolves an interface name (case-insensitive) into an Interface.
    Raises PreconditionError if it does not exist, is down, or lacks an
    IPv4 address, netmask or hardware address.
    """
    real_name = _lookup_name(name)
    if real_name is None:
        raise PreconditionError(f"Interface not found: {name}")

    stats = psutil.net_if_stats().get(real_name)
    if stats is None or not stats.isup:
        raise PreconditionError(f"Interface is down: {real_name}")

    ip = netmask = mac = None
    for addr in psutil.net_if_addrs()[real_name]:
        if addr.family == socket.AF_INET and ip is None:
            ip, netmask = addr.address, addr.netmask
        elif addr.family == psutil.AF_LINK:
            mac = addr.address

    if ip is None or not netmask:
        raise PreconditionError(f"Interface has no IPv4 address: {real_name}")
    if not mac:
        raise PreconditionError(f"Interface has no hardware address: {real_name}")

    iface = Interface(
        name=real_name,
        mac=mac.replace("-", ":").lower(),
        ip=ipaddress.IPv4Address(ip),
        netmask=ipaddress.IPv4Address(netmask),
    )
    logger.debug("Resolved %s: %s %s/%d", iface.name, iface.mac, iface.ip, iface.prefix)
    return iface
