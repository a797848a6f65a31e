"""Tests for ARP frame encoding and decoding."""

import pytest

from arpsweep.errors import SerializationError
from arpsweep.frames import ARP_REPLY, ARP_REQUEST, ArpRecord, build_request, parse_reply

SENDER_MAC = "02:00:00:00:00:01"


class TestBuildRequest:
    """Tests for build_request."""

    def test_exact_bytes(self):
        """The frame is a standard 42 byte broadcast ARP request."""
        frame = build_request(SENDER_MAC, "192.168.1.10", "192.168.1.9")
        expected = bytes.fromhex(
            "ffffffffffff"   # destination
            "020000000001"   # source
            "0806"           # EtherType ARP
            "0001" "0800"    # Ethernet / IPv4
            "06" "04"        # address lengths
            "0001"           # request
            "020000000001" "c0a8010a"
            "000000000000" "c0a80109"
        )
        assert frame == expected

    def test_accepts_raw_mac_bytes(self):
        frame = build_request(bytes.fromhex("020000000001"), "192.168.1.10", "192.168.1.9")
        assert frame == build_request(SENDER_MAC, "192.168.1.10", "192.168.1.9")

    @pytest.mark.parametrize("mac", ["aa:bb:cc", "zz:bb:cc:dd:ee:ff", b"\x01\x02", "aa:bb:cc:dd:ee:ff:00"])
    def test_malformed_mac(self, mac):
        with pytest.raises(SerializationError):
            build_request(mac, "192.168.1.10", "192.168.1.9")

    @pytest.mark.parametrize("sender_ip, target_ip", [
        ("300.1.1.1", "192.168.1.9"),
        ("192.168.1.10", "fe80::1"),
        ("192.168.1.10", b"\x01\x02"),
    ])
    def test_malformed_ip(self, sender_ip, target_ip):
        with pytest.raises(SerializationError):
            build_request(SENDER_MAC, sender_ip, target_ip)


class TestParseReply:
    """Tests for parse_reply."""

    def test_round_trip_request(self):
        """Decoding a built request recovers the operation and all addresses."""
        record = parse_reply(build_request(SENDER_MAC, "192.168.1.10", "192.168.1.9"))
        assert record == ArpRecord(
            op=ARP_REQUEST,
            sender_mac=SENDER_MAC,
            sender_ip="192.168.1.10",
            target_mac="00:00:00:00:00:00",
            target_ip="192.168.1.9",
        )

    def test_reply(self, arp_frame):
        record = parse_reply(arp_frame(2, "AA:BB:CC:11:22:33", "192.168.1.9", hwdst=SENDER_MAC))
        assert record.op == ARP_REPLY
        assert record.sender_mac == "aa:bb:cc:11:22:33"
        assert record.sender_ip == "192.168.1.9"
        assert record.target_mac == SENDER_MAC

    def test_non_arp_frame(self, tcp_frame):
        assert parse_reply(tcp_frame) is None

    def test_truncated_arp_frame(self, arp_frame):
        assert parse_reply(arp_frame(2, "aa:bb:cc:11:22:33", "192.168.1.9")[:30]) is None

    def test_garbage(self):
        assert parse_reply(b"") is None
        assert parse_reply(b"\x00" * 12 + b"\x08\x06" + b"\xff" * 28) is None
