import ipaddress
import struct

import pytest

from simbapcap.packet_types import (
    ETHERNET_HEADER,
    IPV4_HEADER,
    PCAP_FILE_HEADER,
    PCAP_PACKET_HEADER,
    TCP_HEADER,
    UDP_HEADER,
    PacketInfo,
    ParseStats,
    ip_to_string,
    mac_to_string,
)


@pytest.mark.parametrize("value", [0, 1, 0x7F000001, 0xC0A80001, 0xFFFFFFFF, 0x0A141E28])
def test_ip_to_string_matches_stdlib(value):
    assert ip_to_string(value) == str(ipaddress.IPv4Address(value))


def test_ip_to_string_ignores_bits_above_32():
    assert ip_to_string((1 << 32) | 0x01020304) == str(ipaddress.IPv4Address(0x01020304))


def test_mac_to_string_round_trip():
    mac = bytes([0x0A, 0x1B, 0x2C, 0x3D, 0x4E, 0x5F])
    text = mac_to_string(mac)
    assert text.count(":") == 5
    assert bytes.fromhex(text.replace(":", "")) == mac


def test_mac_to_string_is_lower_case_and_zero_padded():
    text = mac_to_string([0x02, 0x00, 0x00, 0xAB, 0xCD, 0x0F])
    assert text == text.lower()
    assert all(len(part) == 2 for part in text.split(":"))


@pytest.mark.parametrize("mac", [b"", bytes(5), bytes(7)])
def test_mac_to_string_rejects_wrong_length(mac):
    with pytest.raises(ValueError):
        mac_to_string(mac)


def test_packet_info_defaults():
    info = PacketInfo()
    assert info.has_ip is False
    assert info.has_transport is False
    assert info.is_tcp is False
    assert info.payload_size == 0
    assert info.src_mac == bytes(6)


def test_packet_info_string_helpers():
    src_mac = bytes([0x02, 0x11, 0x22, 0x33, 0x44, 0x55])
    dest_mac = bytes([0x02, 0x66, 0x77, 0x88, 0x99, 0xAA])
    info = PacketInfo(src_ip=0x0A000001, dest_ip=0xE0000001, src_mac=src_mac, dest_mac=dest_mac)
    assert info.src_ip_str() == str(ipaddress.IPv4Address(0x0A000001))
    assert info.dest_ip_str() == str(ipaddress.IPv4Address(0xE0000001))
    assert info.src_mac_str() == mac_to_string(src_mac)
    assert info.dest_mac_str() == mac_to_string(dest_mac)


def test_payload_size_follows_payload():
    data = b"abcdefgh"
    info = PacketInfo(payload=memoryview(data)[2:])
    assert info.payload_size == len(data) - 2


def test_parse_stats_start_at_zero():
    stats = ParseStats()
    assert stats.total_packets == 0
    assert stats.parse_errors == 0
    assert stats.total_bytes_processed == 0
    assert stats.parse_time_ms == 0.0


@pytest.mark.parametrize(
    "header, size",
    [
        (PCAP_FILE_HEADER, 24),
        (PCAP_PACKET_HEADER, 16),
        (ETHERNET_HEADER, 14),
        (IPV4_HEADER, 20),
        (UDP_HEADER, 8),
        (TCP_HEADER, 20),
    ],
)
def test_header_layouts_match_wire_format(header, size):
    fields = header.unpack(bytes(size))
    assert len(header.pack(*fields)) == size
    with pytest.raises(struct.error):
        header.unpack(bytes(size - 1))


def test_ethernet_header_reads_ethertype_big_endian():
    raw = bytes(6) + bytes(6) + b"\x08\x00"
    _, _, ethertype = ETHERNET_HEADER.unpack(raw)
    assert ethertype == 0x0800