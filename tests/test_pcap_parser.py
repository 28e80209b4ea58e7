import struct

import pytest

from simbapcap.pcap_parser import PcapFormatError, PcapParser

SRC_MAC = bytes([0x02, 0, 0, 0, 0, 0x01])
DST_MAC = bytes([0x02, 0, 0, 0, 0, 0x02])
SRC_IP = 0x0A000001  # 10.0.0.1
DST_IP = 0x0A000002  # 10.0.0.2


def file_header(magic=0xA1B2C3D4):
    return struct.pack("<IHHiIII", magic, 2, 4, 0, 0, 65535, 1)


def record(frame, ts_sec=1, ts_frac=0, caplen=None, length=None):
    caplen = len(frame) if caplen is None else caplen
    length = len(frame) if length is None else length
    return struct.pack("<IIII", ts_sec, ts_frac, caplen, length) + frame


def ethernet(payload, ethertype=0x0800):
    return DST_MAC + SRC_MAC + struct.pack("!H", ethertype) + payload


def ipv4(payload, protocol):
    header = struct.pack(
        "!BBHHHBBHII", 0x45, 0, 20 + len(payload), 0, 0, 64, protocol, 0, SRC_IP, DST_IP
    )
    return header + payload


def udp(payload, src_port=5000, dest_port=20081):
    return struct.pack("!HHHH", src_port, dest_port, 8 + len(payload), 0) + payload


def tcp(payload, seq=100, ack=200, flags=0x18):
    return struct.pack("!HHIIBBHHH", 1234, 80, seq, ack, 0x50, flags, 1024, 0, 0) + payload


def write(tmp_path, data, name="capture.pcap"):
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_udp_packet_fields(tmp_path):
    frame = ethernet(ipv4(udp(b"hello"), 17))
    path = write(tmp_path, file_header() + record(frame, ts_sec=3, ts_frac=7))
    with PcapParser(path) as parser:
        packet = parser.parse_next_packet()
    assert packet.timestamp_us == 3 * 1_000_000 + 7
    assert packet.captured_length == len(frame)
    assert packet.src_mac == SRC_MAC
    assert packet.dest_mac == DST_MAC
    assert packet.ethertype == 0x0800
    assert packet.has_ip and packet.has_transport and not packet.is_tcp
    assert packet.src_ip_str() == "10.0.0.1"
    assert packet.dest_ip_str() == "10.0.0.2"
    assert packet.src_mac_str() == "02:00:00:00:00:01"
    assert (packet.src_port, packet.dest_port) == (5000, 20081)
    assert bytes(packet.payload) == b"hello"
    assert packet.payload_size == 5


def test_tcp_packet_fields(tmp_path):
    frame = ethernet(ipv4(tcp(b"data", seq=11, ack=22, flags=0x12), 6))
    path = write(tmp_path, file_header() + record(frame))
    with PcapParser(path) as parser:
        packet = parser.parse_next_packet()
        stats = parser.stats
    assert packet.is_tcp
    assert (packet.tcp_seq, packet.tcp_ack, packet.tcp_flags) == (11, 22, 0x12)
    assert (packet.src_port, packet.dest_port) == (1234, 80)
    assert bytes(packet.payload) == b"data"
    assert stats.tcp_packets == 1
    assert stats.udp_packets == 0


def test_parse_all_statistics(tmp_path):
    frames = [
        ethernet(ipv4(udp(b"a"), 17)),
        ethernet(ipv4(tcp(b""), 6)),
        ethernet(ipv4(b"\x00" * 8, 1)),
        ethernet(b"\x00" * 28, ethertype=0x0806),
    ]
    data = file_header() + b"".join(record(f) for f in frames)
    path = write(tmp_path, data)
    with PcapParser(path) as parser:
        stats = parser.parse_all()
        assert not parser.has_more_data()
    assert stats.total_packets == len(frames)
    assert stats.ethernet_packets == len(frames)
    assert stats.ip_packets == 3
    assert stats.udp_packets == 1
    assert stats.tcp_packets == 1
    assert stats.other_packets == 1
    assert stats.parse_errors == 0
    assert stats.total_bytes_processed == sum(len(f) for f in frames)
    assert stats.parse_time_ms >= 0.0


def test_non_ip_frame_has_no_ip(tmp_path):
    frame = ethernet(b"\x00" * 28, ethertype=0x0806)
    path = write(tmp_path, file_header() + record(frame))
    with PcapParser(path) as parser:
        packet = parser.parse_next_packet()
    assert packet.ethertype == 0x0806
    assert not packet.has_ip
    assert packet.payload_size == 0


def test_callback_receives_packets_in_order(tmp_path):
    frames = [ethernet(ipv4(udp(bytes([i])), 17)) for i in range(3)]
    data = file_header() + b"".join(record(f, ts_sec=i) for i, f in enumerate(frames))
    path = write(tmp_path, data)
    seen = []
    with PcapParser(path) as parser:
        parser.set_packet_callback(lambda p: seen.append(bytes(p.payload)))
        parser.parse_all()
    assert seen == [b"\x00", b"\x01", b"\x02"]


def test_nanosecond_timestamps(tmp_path):
    frame = ethernet(ipv4(udp(b""), 17))
    path = write(tmp_path, file_header(0xA1B23C4D) + record(frame, ts_sec=2, ts_frac=5000))
    with PcapParser(path) as parser:
        packet = parser.parse_next_packet()
        assert parser.is_nanosecond_format
    assert packet.timestamp_us == 2 * 1_000_000 + 5000 // 1000


def test_invalid_magic_raises(tmp_path):
    path = write(tmp_path, file_header(0x12345678))
    with PcapParser(path) as parser:
        with pytest.raises(PcapFormatError):
            parser.parse_all()


def test_short_file_raises(tmp_path):
    path = write(tmp_path, b"\xd4\xc3\xb2\xa1")
    with PcapParser(path) as parser:
        with pytest.raises(PcapFormatError):
            parser.parse_next_packet()


def test_truncated_packet_counts_error(tmp_path):
    frame = ethernet(ipv4(udp(b"abc"), 17))
    data = file_header() + record(frame, caplen=len(frame) + 50)
    path = write(tmp_path, data)
    with PcapParser(path) as parser:
        stats = parser.parse_all()
    assert stats.parse_errors == 1
    assert stats.total_packets == 0


def test_frame_shorter_than_ethernet_header_is_error(tmp_path):
    good = ethernet(ipv4(udp(b"x"), 17))
    data = file_header() + record(b"\x00" * 6) + record(good)
    path = write(tmp_path, data)
    with PcapParser(path) as parser:
        stats = parser.parse_all()
    assert stats.parse_errors == 1
    assert stats.total_packets == 0


def test_empty_capture_has_no_packets(tmp_path):
    path = write(tmp_path, file_header())
    with PcapParser(path) as parser:
        assert parser.parse_next_packet() is None
        stats = parser.parse_all()
    assert stats.total_packets == 0
    assert stats.parse_errors == 0


def test_reset_allows_reparsing(tmp_path):
    frames = [ethernet(ipv4(udp(b"q"), 17)) for _ in range(2)]
    path = write(tmp_path, file_header() + b"".join(record(f) for f in frames))
    with PcapParser(path) as parser:
        first = parser.parse_all().total_packets
        parser.reset()
        assert parser.stats.total_packets == 0
        assert parser.has_more_data()
        second = parser.parse_all().total_packets
    assert first == second == len(frames)


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        PcapParser(tmp_path / "absent.pcap")