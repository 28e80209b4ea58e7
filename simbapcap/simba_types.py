"""SIMBA market-data headers and the decoded message records."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

_SBE_HEADER = struct.Struct("<HHHH")
_MD_PACKET_HEADER = struct.Struct("<IQHH")


def _unpack(layout: struct.Struct, data: bytes, name: str) -> tuple:
    if len(data) < layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack_from(data)


@dataclass(frozen=True)
class SimbaMessageHeader:
    """SBE message header (little-endian, 8 bytes)."""

    block_length: int
    template_id: int
    schema_id: int
    version: int

    SIZE: ClassVar[int] = _SBE_HEADER.size

    @classmethod
    def unpack(cls, data: bytes) -> "SimbaMessageHeader":
        return cls(*_unpack(_SBE_HEADER, data, cls.__name__))


@dataclass(frozen=True)
class MarketDataPacketHeader:
    """Market-data packet header preceding the SBE header (little-endian, 16 bytes)."""

    msg_seq_num: int
    sending_time: int
    msg_size: int
    msg_flags: int

    SIZE: ClassVar[int] = _MD_PACKET_HEADER.size

    @classmethod
    def unpack(cls, data: bytes) -> "MarketDataPacketHeader":
        return cls(*_unpack(_MD_PACKET_HEADER, data, cls.__name__))


@dataclass
class OrderUpdate:
    timestamp_us: int = 0
    src_ip: int = 0
    dest_ip: int = 0
    src_port: int = 0
    dest_port: int = 0

    msg_seq_num: int = 0
    sending_time: int = 0
    security_id: int = 0
    order_id: int = 0
    price: int = 0
    order_qty: int = 0
    side: int = 0
    ord_type: int = 0


@dataclass
class OrderExecution:
    timestamp_us: int = 0
    src_ip: int = 0
    dest_ip: int = 0
    src_port: int = 0
    dest_port: int = 0

    msg_seq_num: int = 0
    sending_time: int = 0
    security_id: int = 0
    order_id: int = 0
    exec_id: int = 0
    last_px: int = 0
    last_qty: int = 0
    side: int = 0
    exec_type: int = 0


@dataclass
class OrderBookSnapshot:
    timestamp_us: int = 0
    src_ip: int = 0
    dest_ip: int = 0
    src_port: int = 0
    dest_port: int = 0

    msg_seq_num: int = 0
    sending_time: int = 0
    security_id: int = 0
    last_msg_seq_num_processed: int = 0
    rpt_seq: int = 0
    no_md_entries: int = 0