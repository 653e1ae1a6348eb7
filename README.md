# shardsim

Building blocks for the supervisor side of a sharded blockchain emulator. The
package has no dependencies outside the standard library.

## What is in the package

- `shardsim.message` has the message types and payloads:
  - `MessageType` and `RequestType` enums.
  - Dataclasses such as `BlockInfoMsg`, `InjectTxs`, `PartitionModifiedMap`,
    `BrokerRawMsg`, `Relay` and `ViewChangeMsg`.
  - `merge_message(msg_type, content)`, which puts the type tag in front of a
    payload. The tag is zero-padded to a fixed 30-byte prefix.
  - `split_message(message)`, which reverses `merge_message`. A tag it does not
    know comes back as a plain string.
- `shardsim.graph` holds the transaction graph. `Vertex` is an account and
  `Graph` is an undirected multigraph of accounts.
- `shardsim.clpa.CLPAState(weight_penalty, max_iterations, shard_num)` runs
  constrained label propagation:
  - `add_edge` adds transactions to the graph.
  - `partition()` moves accounts between shards. It returns the moved accounts
    with their new shards, and the resulting number of cross-shard edges.
  - `init_partition` places accounts by address.
  - `stable_init_partition` places accounts round-robin.
  - `encode` and `hash` give a canonical JSON form of the state and its
    SHA-256 digest.
- `shardsim.utils` has two helpers:
  - `addr_to_shard(addr, shard_num)` gives the default shard of an address,
    from its last eight hex digits.
  - `mod_bytes(data, mod)` reads big-endian bytes as an integer and reduces it
    modulo `mod`.
- `shardsim.ratelimit` provides bandwidth limiting:
  - `RateLimiter` is a token bucket.
  - `RateLimitedReader` and `RateLimitedWriter` wrap file-like objects so their
    reads and writes obey a limiter.
- `shardsim.nodes.Node` identifies a consensus node.
- `shardsim.stopsignal.StopSignal` counts consecutive empty blocks.
  `gap_enough()` tells when the run may stop.
- `shardsim.supervisor_log.new_supervisor_logger(log_dir)` returns a logger. It
  writes to stdout and to `<log_dir>/Supervisor.log`.
- `shardsim.measure` holds the metrics. Each one is a `MeasureModule` that is fed
  `BlockInfoMsg` objects:
  - `tps.AvgTPSBroker` and `tps.AvgTPSRelay` measure average throughput.
  - `tcl.TCLBroker` and `tcl.TCLRelay` measure transaction confirmation latency.
  - `tx_detail.TxDetail` records per-transaction timestamps.

  `output_record()` appends the details to
  `<output_dir>/supervisor_measureOutput/<metric name>.csv` and returns the
  per-epoch values together with the overall value.

## Installation

```
pip install .
```

## Examples

Partitioning accounts:

```python
from shardsim.clpa import CLPAState
from shardsim.graph import Vertex

state = CLPAState(0.5, 100, 4)
state.add_edge(Vertex("00000000000000000000000000000000000000a1"),
               Vertex("00000000000000000000000000000000000000b2"))
moved, cross_edges = state.partition()
```

Framing a message:

```python
from shardsim.message import MessageType, merge_message, split_message

framed = merge_message(MessageType.BLOCK_INFO, b'{"BlockBodyLength": 0}')
msg_type, content = split_message(framed)   # MessageType.BLOCK_INFO, b'{...}'
```

Measuring throughput. Transactions only need `tx_hash`, `raw_tx_hash` and
`time` attributes:

```python
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from shardsim.measure.tps import AvgTPSRelay
from shardsim.message import BlockInfoMsg

t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
tx = SimpleNamespace(tx_hash=b"\x01", raw_tx_hash=b"", time=t0)
block = BlockInfoMsg(block_body_length=1, inner_shard_txs=[tx], epoch=0,
                     propose_time=t0, commit_time=t0 + timedelta(seconds=2))

meter = AvgTPSRelay("expTest/result")
meter.update_measure_record(block)
per_epoch, total = meter.output_record()   # [0.5], 0.5
```

## What the package does not do

The package is a library only. It has no command to start a supervisor or a
node. It does not:

- load experiment settings from a configuration file;
- read transaction datasets;
- open TCP connections or send messages over a network.

The code that uses it must do those things and feed the parts above.

## Running the tests

```
pip install .[test]
pytest
```