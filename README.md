# simbapcap

`simbapcap` reads classic libpcap capture files and picks out MOEX SIMBA
market-data traffic. It has no dependencies outside the standard library.

It works in three stages:

1. **Capture parsing.** Walks the records of a `.pcap` file. Files with the
   microsecond magic (`0xA1B2C3D4`) or the nanosecond magic (`0xA1B23C4D`)
   are accepted, as are their byte-swapped forms; record headers are always
   read as little-endian. Each packet is decoded into Ethernet, IPv4 and
   TCP/UDP fields, plus the payload. Parsing stops at the first record that
   runs past the end of the file or is too short for an Ethernet header.
2. **SIMBA decoding.** Takes UDP packets sent to ports 20081–20086 whose
   payload holds at least 8 bytes. It skips the 16-byte market-data packet
   header, reads the 8-byte SBE message header, checks that the message
   block fits, and sorts each message by template id:
   - templates 3, 4 and 5 become order updates;
   - templates 6, 8, 9, 11 and 16 become order executions;
   - template 7 becomes an order-book snapshot.

   Any other template, a short payload or a full output queue counts as a
   decode error.
3. **JSON output.** Writes the decoded messages as a single JSON array.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line use

### Capture statistics

```
simbapcap-parse capture.pcap
```

This parses the whole capture and prints:

- packet counts by layer: Ethernet, IP, TCP, UDP and other;
- parse errors;
- total bytes processed;
- parse time;
- packet rate and throughput.

It exits with status 1 if it is not given exactly one argument, if the file
cannot be opened or mapped (an empty file cannot be mapped), or if the file
does not start with a valid capture header.

### Full pipeline

```
simbapcap-pipeline capture.pcap messages.json
```

This runs three stages at the same time:

1. the capture parser, in the main thread, which feeds a bounded queue;
2. the SIMBA decoder, in its own thread;
3. the JSON writer, in its own thread.

If the packet queue is full, the packet is dropped and counted rather than
waiting for space.

At the end the command prints:

- packets processed;
- messages decoded and written;
- decode and write errors;
- packets dropped;
- a timing, throughput and efficiency breakdown.

It exits with status 1 if it is not given exactly two arguments, or if the
capture or the output file cannot be opened. If the capture header is not
valid, the output file is still written as an empty array, no statistics
are printed, and the exit status is 0.

### Output format

`messages.json` holds one object per message. Every object has these fields:

- `type`, which is `OrderUpdate`, `OrderExecution` or `OrderBookSnapshot`;
- the capture timestamp, `timestamp_us`;
- `src_ip` and `dest_ip`, in dotted-quad form;
- `src_port` and `dest_port`;
- `msg_seq_num`, `sending_time` and `security_id`.

Each type then adds its own fields:

| Type | Extra fields |
| --- | --- |
| `OrderUpdate` | `order_id`, `price`, `order_qty`, `side`, `ord_type` |
| `OrderExecution` | `order_id`, `exec_id`, `last_px`, `last_qty`, `side`, `exec_type` |
| `OrderBookSnapshot` | `last_msg_seq_num_processed`, `rpt_seq`, `no_md_entries` |

## What it does not do

The decoder fills in only the network fields from the packet. It does not
decode the SBE message bodies, so every message-specific field, from
`msg_seq_num` on, is written as `0`. Only the first message after each
SBE header is looked at; there is no handling of several messages per
packet, of TCP recovery feeds, or of sequence gaps.

## Library use

```python
from simbapcap.pcap_parser import PcapParser

with PcapParser("capture.pcap") as parser:
    parser.set_packet_callback(
        lambda packet: print(packet.src_ip_str(), "->", packet.dest_ip_str())
    )
    stats = parser.parse_all()
    print(stats.total_packets, stats.parse_errors)
```

`parse_all()` returns the `ParseStats` and raises `PcapFormatError` (a
`ValueError`) if the capture header is not valid. `parse_next_packet()`
returns one `PacketInfo` at a time, or `None` at the end of the data or on a
bad record; `reset()` rewinds to the first packet and clears the counters.

A packet is a `PacketInfo`. It carries:

- `timestamp_us`, `packet_length` and `captured_length`;
- MAC addresses, with `src_mac_str()` and `dest_mac_str()`;
- IP addresses and ports, with `src_ip_str()` and `dest_ip_str()`;
- TCP sequence, acknowledgement and flags, and `is_tcp`;
- the `payload` bytes and `payload_size`.

These modules cover the other parts:

- `simbapcap.packet_types`: `PacketInfo`, the `ParseStats` counters, and the
  `ip_to_string` and `mac_to_string` helpers.
- `simbapcap.simba_types`: `SimbaMessageHeader` and `MarketDataPacketHeader`
  with their `unpack()` class methods, and the `OrderUpdate`,
  `OrderExecution` and `OrderBookSnapshot` records.
- `simbapcap.simba_decoder`: `SimbaDecoder` (`run()`, `process_packet()`,
  `stop()`, with `processed_packets`, `decoded_messages` and
  `decode_errors` counters) and the `is_simba_packet` filter.
- `simbapcap.json_writer`: `JsonOutputWriter` (`run()`, `stop()`, `close()`,
  with `messages_written` and `write_errors` counters), and the
  `format_order_update`, `format_order_execution` and
  `format_order_book_snapshot` serialisers.
- `simbapcap.queues`: the bounded, non-blocking `RingBuffer` and the
  blocking `ThreadSafeQueue` that connect the stages.
- `simbapcap.mapper`: `MemoryMapper`, a read-only memory map of a file with
  bounds-checked `read_at()` and access hints.