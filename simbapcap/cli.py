"""Command-line entry points: capture statistics and the full decoding pipeline."""

from __future__ import annotations

import sys
import threading
import time
from typing import List, Optional, Sequence

from .json_writer import JsonOutputWriter
from .packet_types import PacketInfo
from .pcap_parser import PcapFormatError, PcapParser
from .queues import RingBuffer
from .simba_decoder import SimbaDecoder
from .simba_types import OrderBookSnapshot, OrderExecution, OrderUpdate

QUEUE_CAPACITY = 65536


def _per_second(count: float, duration_ms: float) -> float:
    return count / duration_ms * 1000.0 if duration_ms > 0 else 0.0


def _percent(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole > 0 else 0.0


def _args(argv: Optional[Sequence[str]]) -> List[str]:
    return list(sys.argv[1:] if argv is None else argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse a capture file and print packet statistics."""
    args = _args(argv)
    if len(args) != 1:
        print("Usage: pcap_parser <pcap_file>", file=sys.stderr)
        print(
            "Example: pcap_parser ../pcap_files/2023-10-10.0845-0905.pcap",
            file=sys.stderr,
        )
        return 1

    try:
        with PcapParser(args[0]) as parser:
            packet_count = 0

            def count(_packet: PacketInfo) -> None:
                nonlocal packet_count
                packet_count += 1

            parser.set_packet_callback(count)
            start = time.perf_counter()
            try:
                stats = parser.parse_all()
            except PcapFormatError:
                print("Failed to parse PCAP file", file=sys.stderr)
                return 1
            duration_ms = (time.perf_counter() - start) * 1000.0
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("\n=== PARSING STATISTICS ===")
    print(f"Total packets: {stats.total_packets}")
    print(f"Ethernet packets: {stats.ethernet_packets}")
    print(f"IP packets: {stats.ip_packets}")
    print(f"TCP packets: {stats.tcp_packets}")
    print(f"UDP packets: {stats.udp_packets}")
    print(f"Other packets: {stats.other_packets}")
    print(f"Parse errors: {stats.parse_errors}")
    print(f"Total bytes processed: {stats.total_bytes_processed}")
    print(f"Parse time: {duration_ms:g} ms")
    print(f"Processing rate: {_per_second(stats.total_packets, duration_ms):g} packets/sec")
    throughput = stats.total_bytes_processed / duration_ms / 1000.0 if duration_ms > 0 else 0.0
    print(f"Throughput: {throughput:g} MB/sec")
    return 0


def pipeline_main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the three-stage capture -> SIMBA decoding -> JSON pipeline."""
    args = _args(argv)
    if len(args) != 2:
        print("Usage: pcap_pipeline <input.pcap> <output.json>", file=sys.stderr)
        return 1
    input_path, output_path = args

    packet_queue: RingBuffer[PacketInfo] = RingBuffer(QUEUE_CAPACITY)
    update_queue: RingBuffer[OrderUpdate] = RingBuffer(QUEUE_CAPACITY)
    execution_queue: RingBuffer[OrderExecution] = RingBuffer(QUEUE_CAPACITY)
    snapshot_queue: RingBuffer[OrderBookSnapshot] = RingBuffer(QUEUE_CAPACITY)
    parsing_complete = threading.Event()
    decoding_complete = threading.Event()

    try:
        with PcapParser(input_path) as parser:
            decoder = SimbaDecoder(
                packet_queue, update_queue, execution_queue, snapshot_queue, parsing_complete
            )
            with JsonOutputWriter(
                update_queue, execution_queue, snapshot_queue, decoding_complete, output_path
            ) as writer:
                dropped_packets = 0

                def enqueue(packet: PacketInfo) -> None:
                    nonlocal dropped_packets
                    if not packet_queue.try_push(packet):
                        dropped_packets += 1

                parser.set_packet_callback(enqueue)

                def run_decoder() -> None:
                    print("SIMBA decoder thread started...")
                    decoder.run()
                    decoding_complete.set()
                    print("SIMBA decoder thread finished.")

                def run_writer() -> None:
                    print("JSON writer thread started...")
                    writer.run()
                    print("JSON writer thread finished.")

                decoder_thread = threading.Thread(target=run_decoder, name="simba-decoder")
                writer_thread = threading.Thread(target=run_writer, name="json-writer")
                decoder_thread.start()
                writer_thread.start()

                print("Starting 3-thread PCAP->SIMBA->JSON pipeline...")
                pipeline_start = time.perf_counter()
                parsing_start = time.perf_counter()
                success = False
                try:
                    stats = parser.parse_all()
                    success = True
                except PcapFormatError:
                    pass
                finally:
                    parsing_complete.set()
                    parsing_end = time.perf_counter()
                    decoder_thread.join()
                    decoding_complete.set()
                    writer_thread.join()
                pipeline_end = time.perf_counter()
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not success:
        return 0

    parsing_ms = (parsing_end - parsing_start) * 1000.0
    pipeline_ms = (pipeline_end - pipeline_start) * 1000.0
    decoding_ms = (pipeline_end - parsing_end) * 1000.0

    print("\n=== PIPELINE PERFORMANCE STATISTICS ===")
    print(f"Total packets: {stats.total_packets}")
    print(f"Processed packets: {decoder.processed_packets}")
    print(f"Decoded messages: {decoder.decoded_messages}")
    print(f"JSON messages written: {writer.messages_written}")
    print(f"Decode errors: {decoder.decode_errors}")
    print(f"JSON write errors: {writer.write_errors}")
    print(f"Dropped packets (backpressure): {dropped_packets}")

    print("\n=== TIMING BREAKDOWN ===")
    print(f"Parsing time: {parsing_ms:g} ms")
    print(f"Decoding + JSON writing time: {decoding_ms:g} ms")
    print(f"Total pipeline time: {pipeline_ms:g} ms")

    print("\n=== THROUGHPUT METRICS ===")
    print(f"Parsing throughput: {_per_second(stats.total_packets, parsing_ms):g} packets/sec")
    print(
        "Complete pipeline throughput: "
        f"{_per_second(stats.total_packets, pipeline_ms):g} packets/sec"
    )
    print(
        "End-to-end decoding rate: "
        f"{_per_second(decoder.decoded_messages, pipeline_ms):g} messages/sec"
    )
    print(f"JSON writing rate: {_per_second(writer.messages_written, pipeline_ms):g} messages/sec")

    print("\n=== EFFICIENCY METRICS ===")
    success_rate = _percent(decoder.decoded_messages, decoder.processed_packets)
    efficiency = _percent(parsing_ms, pipeline_ms)
    print(f"Decode success rate: {success_rate:g}%")
    print(f"Pipeline efficiency: {efficiency:g}% (parsing vs total time)")
    return 0