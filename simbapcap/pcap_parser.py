"""Streaming parser for classic libpcap capture files carrying Ethernet/IPv4 traffic."""

from __future__ import annotations

import os
import time
from typing import Callable, Optional

from .mapper import MemoryMapper
from .packet_types import (
    ETHERNET_HEADER,
    ETHERTYPE_IPV4,
    IPPROTO_TCP,
    IPPROTO_UDP,
    IPV4_HEADER,
    PCAP_FILE_HEADER,
    PCAP_PACKET_HEADER,
    TCP_HEADER,
    UDP_HEADER,
    PacketInfo,
    ParseStats,
)

MICROSECOND_MAGICS = frozenset({0xA1B2C3D4, 0xD4C3B2A1})
NANOSECOND_MAGICS = frozenset({0xA1B23C4D, 0x4D3CB2A1})

PacketCallback = Callable[[PacketInfo], None]


class PcapFormatError(ValueError):
    """The file does not start with a valid capture-file header."""


class PcapParser:
    """Reads packets from a memory-mapped capture file and decodes their headers."""

    def __init__(self, filename: str | os.PathLike) -> None:
        self._mapper = MemoryMapper(filename)
        self._offset = 0
        self._header_validated = False
        self._nanosecond_format = False
        self._stats = ParseStats()
        self._callback: Optional[PacketCallback] = None
        self._start_time = time.perf_counter()
        self._mapper.advise_sequential()

    @property
    def stats(self) -> ParseStats:
        return self._stats

    @property
    def is_nanosecond_format(self) -> bool:
        return self._nanosecond_format

    def set_packet_callback(self, callback: Optional[PacketCallback]) -> None:
        """Register a function called with every successfully parsed packet."""
        self._callback = callback

    def parse_all(self) -> ParseStats:
        """Parse packets until the end of the file or the first bad packet."""
        self._validate_header()
        while self.has_more_data():
            packet = self.parse_next_packet()
            if packet is None:
                break
            if self._callback is not None:
                self._callback(packet)
        self._stats.parse_time_ms = (time.perf_counter() - self._start_time) * 1000.0
        return self._stats

    def parse_next_packet(self) -> Optional[PacketInfo]:
        """Parse the next packet; return None at the end of data or on a bad packet."""
        self._validate_header()
        size = self._mapper.size
        if self._offset + PCAP_PACKET_HEADER.size > size:
            return None

        ts_sec, ts_frac, caplen, length = PCAP_PACKET_HEADER.unpack_from(
            self._mapper.data, self._offset
        )
        self._offset += PCAP_PACKET_HEADER.size

        if self._offset + caplen > size:
            self._stats.parse_errors += 1
            return None

        frame = self._mapper.read_at(self._offset, caplen) or b""
        self._offset += caplen

        packet = self._parse_ethernet(frame, ts_sec, ts_frac, caplen, length)
        if packet is None:
            self._stats.parse_errors += 1
            return None
        self._stats.total_packets += 1
        self._stats.total_bytes_processed += caplen
        return packet

    def has_more_data(self) -> bool:
        return self._offset < self._mapper.size

    def reset(self) -> None:
        """Rewind to the first packet and clear the statistics."""
        self._offset = PCAP_FILE_HEADER.size
        self._stats = ParseStats()
        self._start_time = time.perf_counter()

    def close(self) -> None:
        self._mapper.close()

    def __enter__(self) -> "PcapParser":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _validate_header(self) -> None:
        if self._header_validated:
            return
        if self._mapper.size < PCAP_FILE_HEADER.size:
            raise PcapFormatError(
                f"{self._mapper.filename}: file too short for a capture header"
            )
        magic = PCAP_FILE_HEADER.unpack_from(self._mapper.data, 0)[0]
        if magic not in MICROSECOND_MAGICS and magic not in NANOSECOND_MAGICS:
            raise PcapFormatError(
                f"{self._mapper.filename}: unknown capture magic 0x{magic:08X}"
            )
        self._nanosecond_format = magic in NANOSECOND_MAGICS
        self._offset = PCAP_FILE_HEADER.size
        self._header_validated = True

    def _parse_ethernet(
        self, frame: bytes, ts_sec: int, ts_frac: int, caplen: int, length: int
    ) -> Optional[PacketInfo]:
        if self._nanosecond_format:
            ts_frac //= 1000
        packet = PacketInfo(
            timestamp_us=ts_sec * 1_000_000 + ts_frac,
            packet_length=length,
            captured_length=caplen,
        )
        if len(frame) < ETHERNET_HEADER.size:
            return None

        dest_mac, src_mac, ethertype = ETHERNET_HEADER.unpack_from(frame)
        self._stats.ethernet_packets += 1
        packet.src_mac = src_mac
        packet.dest_mac = dest_mac
        packet.ethertype = ethertype

        if ethertype == ETHERTYPE_IPV4:
            if self._parse_ipv4(frame[ETHERNET_HEADER.size:], packet):
                self._stats.ip_packets += 1
        return packet

    def _parse_ipv4(self, data: bytes, packet: PacketInfo) -> bool:
        if len(data) < IPV4_HEADER.size:
            return False
        fields = IPV4_HEADER.unpack_from(data)
        version_ihl, protocol = fields[0], fields[6]
        packet.has_ip = True
        packet.src_ip = fields[8]
        packet.dest_ip = fields[9]
        packet.ip_protocol = protocol

        header_len = (version_ihl & 0x0F) * 4
        if header_len < IPV4_HEADER.size or header_len > len(data):
            return False

        transport = data[header_len:]
        if protocol == IPPROTO_TCP:
            if self._parse_tcp(transport, packet):
                self._stats.tcp_packets += 1
                packet.is_tcp = True
        elif protocol == IPPROTO_UDP:
            if self._parse_udp(transport, packet):
                self._stats.udp_packets += 1
        else:
            self._stats.other_packets += 1
        return True

    @staticmethod
    def _parse_tcp(data: bytes, packet: PacketInfo) -> bool:
        if len(data) < TCP_HEADER.size:
            return False
        src_port, dest_port, seq, ack, data_offset, flags, *_ = TCP_HEADER.unpack_from(data)
        packet.has_transport = True
        packet.src_port = src_port
        packet.dest_port = dest_port
        packet.tcp_seq = seq
        packet.tcp_ack = ack
        packet.tcp_flags = flags

        header_len = (data_offset >> 4) * 4
        if TCP_HEADER.size <= header_len <= len(data):
            packet.payload = data[header_len:]
        return True

    @staticmethod
    def _parse_udp(data: bytes, packet: PacketInfo) -> bool:
        if len(data) < UDP_HEADER.size:
            return False
        src_port, dest_port, _length, _checksum = UDP_HEADER.unpack_from(data)
        packet.has_transport = True
        packet.src_port = src_port
        packet.dest_port = dest_port
        if len(data) > UDP_HEADER.size:
            packet.payload = data[UDP_HEADER.size:]
        return True