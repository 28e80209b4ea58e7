"""Writing decoded SIMBA records to a JSON array file."""

from __future__ import annotations

import os
import threading
import time
from typing import Iterable, Optional, Tuple

from .packet_types import ip_to_string
from .queues import RingBuffer
from .simba_types import OrderBookSnapshot, OrderExecution, OrderUpdate

_IDLE_SLEEP_S = 10e-6


def _format_object(type_name: str, fields: Iterable[Tuple[str, object]]) -> str:
    lines = [f'    "type": "{type_name}"']
    for name, value in fields:
        if isinstance(value, str):
            lines.append(f'    "{name}": "{value}"')
        else:
            lines.append(f'    "{name}": {int(value)}')
    return "  {\n" + ",\n".join(lines) + "\n  }"


def _network_fields(msg) -> list:
    return [
        ("timestamp_us", msg.timestamp_us),
        ("src_ip", ip_to_string(msg.src_ip)),
        ("dest_ip", ip_to_string(msg.dest_ip)),
        ("src_port", msg.src_port),
        ("dest_port", msg.dest_port),
        ("msg_seq_num", msg.msg_seq_num),
        ("sending_time", msg.sending_time),
        ("security_id", msg.security_id),
    ]


def format_order_update(msg: OrderUpdate) -> str:
    """Render an order update as an indented JSON object."""
    return _format_object(
        "OrderUpdate",
        _network_fields(msg)
        + [
            ("order_id", msg.order_id),
            ("price", msg.price),
            ("order_qty", msg.order_qty),
            ("side", msg.side),
            ("ord_type", msg.ord_type),
        ],
    )


def format_order_execution(msg: OrderExecution) -> str:
    """Render an order execution as an indented JSON object."""
    return _format_object(
        "OrderExecution",
        _network_fields(msg)
        + [
            ("order_id", msg.order_id),
            ("exec_id", msg.exec_id),
            ("last_px", msg.last_px),
            ("last_qty", msg.last_qty),
            ("side", msg.side),
            ("exec_type", msg.exec_type),
        ],
    )


def format_order_book_snapshot(msg: OrderBookSnapshot) -> str:
    """Render an order-book snapshot as an indented JSON object."""
    return _format_object(
        "OrderBookSnapshot",
        _network_fields(msg)
        + [
            ("last_msg_seq_num_processed", msg.last_msg_seq_num_processed),
            ("rpt_seq", msg.rpt_seq),
            ("no_md_entries", msg.no_md_entries),
        ],
    )


class JsonOutputWriter:
    """Drains the three record queues into a JSON array on disk."""

    def __init__(
        self,
        order_update_queue: RingBuffer[OrderUpdate],
        order_execution_queue: RingBuffer[OrderExecution],
        snapshot_queue: RingBuffer[OrderBookSnapshot],
        decoding_complete: threading.Event,
        output_filename: str | os.PathLike,
    ) -> None:
        self._sources = (
            (order_update_queue, format_order_update),
            (order_execution_queue, format_order_execution),
            (snapshot_queue, format_order_book_snapshot),
        )
        self._decoding_complete = decoding_complete
        self._stop = threading.Event()
        self.messages_written = 0
        self.write_errors = 0
        self._first_message = True
        filename = os.fspath(output_filename)
        try:
            self._file: Optional[object] = open(
                filename, "w", encoding="utf-8", newline="\n"
            )
        except OSError as exc:
            raise OSError(exc.errno, f"Failed to open output file: {filename}") from exc
        self._file.write("[\n")

    def stop(self) -> None:
        """Ask a running loop to finish."""
        self._stop.set()

    def _all_queues_empty(self) -> bool:
        return all(queue.empty() for queue, _ in self._sources)

    def run(self) -> None:
        """Write records until decoding is complete and every queue is drained."""
        while not self._stop.is_set() and (
            not self._decoding_complete.is_set() or not self._all_queues_empty()
        ):
            processed_any = False
            for queue, formatter in self._sources:
                record = queue.try_pop()
                if record is not None:
                    self._write(formatter(record))
                    self.messages_written += 1
                    processed_any = True
            if not processed_any:
                time.sleep(_IDLE_SLEEP_S)
        if self._file is not None:
            self._file.flush()

    def _write(self, text: str) -> None:
        try:
            if self._file is None:
                raise ValueError("output file is closed")
            if not self._first_message:
                self._file.write(",\n")
            else:
                self._first_message = False
            self._file.write(text)
        except (OSError, ValueError):
            self.write_errors += 1

    def close(self) -> None:
        """Terminate the JSON array and close the file."""
        if self._file is not None:
            self._file.write("\n]")
            self._file.close()
            self._file = None

    def __enter__(self) -> "JsonOutputWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()