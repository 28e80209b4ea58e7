"""Decoding of SIMBA market-data datagrams into order records."""

from __future__ import annotations

import threading
import time
from typing import Optional, Union

from .packet_types import PacketInfo
from .queues import RingBuffer
from .simba_types import (
    MarketDataPacketHeader,
    OrderBookSnapshot,
    OrderExecution,
    OrderUpdate,
    SimbaMessageHeader,
)

SIMBA_PORT_RANGE = range(20081, 20087)

ORDER_UPDATE_TEMPLATES = frozenset({3, 4, 5})
ORDER_EXECUTION_TEMPLATES = frozenset({6, 8, 9, 11, 16})
ORDER_BOOK_SNAPSHOT_TEMPLATES = frozenset({7})

_IDLE_SLEEP_S = 1e-6

SimbaRecord = Union[OrderUpdate, OrderExecution, OrderBookSnapshot]


def is_simba_packet(packet: PacketInfo) -> bool:
    """Return True for UDP packets to a SIMBA port that can hold an SBE header."""
    return (
        packet.has_transport
        and not packet.is_tcp
        and packet.payload_size >= SimbaMessageHeader.SIZE
        and packet.dest_port in SIMBA_PORT_RANGE
    )


def _network_fields(packet: PacketInfo) -> dict:
    return {
        "timestamp_us": packet.timestamp_us,
        "src_ip": packet.src_ip,
        "dest_ip": packet.dest_ip,
        "src_port": packet.src_port,
        "dest_port": packet.dest_port,
    }


class SimbaDecoder:
    """Takes packets from an input queue and routes decoded messages by type."""

    def __init__(
        self,
        input_queue: RingBuffer[PacketInfo],
        order_update_queue: RingBuffer[OrderUpdate],
        order_execution_queue: RingBuffer[OrderExecution],
        snapshot_queue: RingBuffer[OrderBookSnapshot],
        parsing_complete: threading.Event,
    ) -> None:
        self._input = input_queue
        self._order_updates = order_update_queue
        self._order_executions = order_execution_queue
        self._snapshots = snapshot_queue
        self._parsing_complete = parsing_complete
        self._stop = threading.Event()
        self.processed_packets = 0
        self.decoded_messages = 0
        self.decode_errors = 0

    def stop(self) -> None:
        """Ask a running loop to finish."""
        self._stop.set()

    def run(self) -> None:
        """Process packets until parsing is complete and the input queue is drained."""
        while not self._stop.is_set() and (
            not self._parsing_complete.is_set() or not self._input.empty()
        ):
            packet = self._input.try_pop()
            if packet is None:
                time.sleep(_IDLE_SLEEP_S)
            else:
                self.process_packet(packet)

    def process_packet(self, packet: PacketInfo) -> None:
        """Decode one packet, counting it and the outcome."""
        self.processed_packets += 1
        if not is_simba_packet(packet):
            return
        if self._decode(packet):
            self.decoded_messages += 1
        else:
            self.decode_errors += 1

    def _decode(self, packet: PacketInfo) -> bool:
        data = bytes(packet.payload)
        if len(data) < MarketDataPacketHeader.SIZE:
            return False
        sbe = data[MarketDataPacketHeader.SIZE:]
        if len(sbe) < SimbaMessageHeader.SIZE:
            return False
        header = SimbaMessageHeader.unpack(sbe)
        if len(sbe) - SimbaMessageHeader.SIZE < header.block_length:
            return False

        record: Optional[SimbaRecord]
        target: Optional[RingBuffer]
        fields = _network_fields(packet)
        template = header.template_id
        if template in ORDER_UPDATE_TEMPLATES:
            record, target = OrderUpdate(**fields), self._order_updates
        elif template in ORDER_EXECUTION_TEMPLATES:
            record, target = OrderExecution(**fields), self._order_executions
        elif template in ORDER_BOOK_SNAPSHOT_TEMPLATES:
            record, target = OrderBookSnapshot(**fields), self._snapshots
        else:
            return False
        return target.try_push(record)