"""Packet-level data types: wire header layouts, parsed packet info and parse statistics."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Sequence, Union

# Capture-file structures are stored little-endian; network headers are big-endian.
PCAP_FILE_HEADER = struct.Struct("<IHHiIII")  # 24 bytes
PCAP_PACKET_HEADER = struct.Struct("<IIII")  # 16 bytes
ETHERNET_HEADER = struct.Struct("!6s6sH")  # 14 bytes
IPV4_HEADER = struct.Struct("!BBHHHBBHII")  # 20 bytes minimum
UDP_HEADER = struct.Struct("!HHHH")  # 8 bytes
TCP_HEADER = struct.Struct("!HHIIBBHHH")  # 20 bytes minimum

ETHERTYPE_IPV4 = 0x0800
IPPROTO_TCP = 6
IPPROTO_UDP = 17

Payload = Union[bytes, bytearray, memoryview]


def ip_to_string(ip: int) -> str:
    """Render a host-order IPv4 address as dotted decimal."""
    return ".".join(str((ip >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def mac_to_string(mac: Sequence[int]) -> str:
    """Render a six-byte MAC address as lower-case colon-separated hex."""
    octets = bytes(mac)
    if len(octets) != 6:
        raise ValueError(f"MAC address must be 6 bytes, got {len(octets)}")
    return ":".join(f"{octet:02x}" for octet in octets)


@dataclass
class PacketInfo:
    """Decoded link, network and transport information of one captured packet."""

    timestamp_us: int = 0
    packet_length: int = 0
    captured_length: int = 0

    src_mac: bytes = bytes(6)
    dest_mac: bytes = bytes(6)
    ethertype: int = 0

    has_ip: bool = False
    src_ip: int = 0
    dest_ip: int = 0
    ip_protocol: int = 0

    has_transport: bool = False
    src_port: int = 0
    dest_port: int = 0

    is_tcp: bool = False
    tcp_seq: int = 0
    tcp_ack: int = 0
    tcp_flags: int = 0

    payload: Payload = field(default=b"", repr=False)

    @property
    def payload_size(self) -> int:
        return len(self.payload)

    def src_ip_str(self) -> str:
        return ip_to_string(self.src_ip)

    def dest_ip_str(self) -> str:
        return ip_to_string(self.dest_ip)

    def src_mac_str(self) -> str:
        return mac_to_string(self.src_mac)

    def dest_mac_str(self) -> str:
        return mac_to_string(self.dest_mac)


@dataclass
class ParseStats:
    """Counters gathered while parsing a capture file."""

    total_packets: int = 0
    ethernet_packets: int = 0
    ip_packets: int = 0
    tcp_packets: int = 0
    udp_packets: int = 0
    other_packets: int = 0
    parse_errors: int = 0
    total_bytes_processed: int = 0
    parse_time_ms: float = 0.0