#!/usr/bin/env python3

# Builds ARP request frames and decodes ARP frames (RFC 826 over Ethernet).

import ipaddress
import struct
from typing import NamedTuple

from scapy.compat import raw
from scapy.error import Scapy_Exception
from scapy.layers.l2 import ARP, Ether

from arpsweep.errors import SerializationError

BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"
ZERO_MAC = "00:00:00:00:00:00"

ETH_TYPE_ARP = 0x0806
ETH_TYPE_IPV4 = 0x0800
HW_TYPE_ETHERNET = 1

ARP_REQUEST = 1
ARP_REPLY = 2

_ETH_HEADER_LEN = 14
_ARP_IPV4_LEN = 28
_ARP_ETHERTYPE = struct.pack("!H", ETH_TYPE_ARP)
# ptype, hwlen, plen of an Ethernet/IPv4 ARP packet
_ARP_IPV4_LAYOUT = struct.pack("!HBB", ETH_TYPE_IPV4, 6, 4)


class ArpRecord(NamedTuple):
    op: int
    sender_mac: str
    sender_ip: str
    target_mac: str
    target_ip: str


def _format_mac(mac):
    if isinstance(mac, (bytes, bytearray)):
        data = bytes(mac)
    else:
        try:
            data = bytes.fromhex(str(mac).replace(":", "").replace("-", ""))
        except ValueError:
            raise SerializationError(f"Malformed hardware address: {mac!r}") from None
    if len(data) != 6:
        raise SerializationError(f"Hardware address must be 6 bytes, got {len(data)}: {mac!r}")
    return ":".join(f"{b:02x}" for b in data)


def _format_ip(ip):
    try:
        return str(ipaddress.IPv4Address(ip))
    except (ipaddress.AddressValueError, ValueError) as e:
        raise SerializationError(f"Malformed IPv4 address: {ip!r}") from e


def build_request(sender_mac, sender_ip, target_ip):
    """
    Returns the bytes of a broadcast Ethernet frame carrying an ARP request
    for `target_ip`, sent from `sender_mac` / `sender_ip`.
    Raises SerializationError if any address is malformed.
    """
    mac = _format_mac(sender_mac)
    eth = Ether(dst=BROADCAST_MAC, src=mac, type=ETH_TYPE_ARP)
    arp = ARP(
        hwtype=HW_TYPE_ETHERNET,
        ptype=ETH_TYPE_IPV4,
        hwlen=6,
        plen=4,
        op=ARP_REQUEST,
        hwsrc=mac,
        psrc=_format_ip(sender_ip),
        hwdst=ZERO_MAC,
        pdst=_format_ip(target_ip),
    )
    return raw(eth / arp)


def parse_reply(frame):
    """
    Decodes an Ethernet frame into an ArpRecord.
    Returns None for anything that is not an Ethernet/IPv4 ARP packet.
    """
    # Checked before dissection: most traffic on the wire is not ARP.
    if len(frame) < _ETH_HEADER_LEN + _ARP_IPV4_LEN or frame[12:14] != _ARP_ETHERTYPE:
        return None
    if frame[16:20] != _ARP_IPV4_LAYOUT:
        return None

    try:
        arp = Ether(frame).getlayer(ARP)
    except (Scapy_Exception, struct.error, IndexError, ValueError):
        return None
    if arp is None:
        return None

    return ArpRecord(
        op=arp.op,
        sender_mac=arp.hwsrc.lower(),
        sender_ip=arp.psrc,
        target_mac=arp.hwdst.lower(),
        target_ip=arp.pdst,
    )
