"""Per-transaction timestamps collected over the whole run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from shardsim.measure.base import MeasureModule, write_metrics_to_csv
from shardsim.message import BlockInfoMsg

_METRIC_NAME = "Tx_Details"

# Timestamps that were never set stand for the earliest representable instant.
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_MICROSECOND = timedelta(microseconds=1)
_MILLISECOND = timedelta(milliseconds=1)


def _aware(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return _ZERO_TIME
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


def _elapsed_ns(end: Optional[datetime], start: Optional[datetime]) -> int:
    """Nanoseconds from ``start`` to ``end``, saturated to the signed 64-bit range."""
    delta = _aware(end) - _aware(start)
    ns = (delta // _MICROSECOND) * 1000
    return max(_INT64_MIN, min(_INT64_MAX, ns))


def _elapsed_seconds(end: Optional[datetime], start: Optional[datetime]) -> float:
    return _elapsed_ns(end, start) / 1e9


def _elapsed_millis(end: Optional[datetime], start: Optional[datetime]) -> int:
    """Whole milliseconds from ``start`` to ``end``, truncated toward zero."""
    ns = _elapsed_ns(end, start)
    return ns // 1_000_000 if ns >= 0 else -((-ns) // 1_000_000)


def timestamp_to_string(moment: Optional[datetime]) -> str:
    """Unix time in milliseconds as text; an unset timestamp gives an empty string."""
    if moment is None:
        return ""
    return str((_aware(moment) - _UNIX_EPOCH) // _MILLISECOND)


@dataclass
class _DetailTimes:
    tx_propose: Optional[datetime] = None
    block_propose: Optional[datetime] = None
    tx_commit: Optional[datetime] = None
    relay1_commit: Optional[datetime] = None
    relay2_commit: Optional[datetime] = None
    broker1_commit: Optional[datetime] = None
    broker2_commit: Optional[datetime] = None


_HEADER = [
    "TxHash (Byte -> Big Int)",
    "Tx propose timestamp",
    "Block propose timestamp",
    "Tx finally commit timestamp",
    "Relay1 Tx commit timestamp (not a relay tx -> nil)",
    "Relay2 Tx commit timestamp (not a relay tx -> nil)",
    "Broker1 Tx commit timestamp (not a broker tx -> nil)",
    "Broker2 Tx commit timestamp (not a broker tx -> nil)",
    "Confirmed latency of this tx (ms)",
]


class TxDetail(MeasureModule):
    """Records, for every transaction, when it was proposed and committed.

    Transactions are expected to carry ``tx_hash``, ``raw_tx_hash`` and ``time``.
    """

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self._details: dict[bytes, _DetailTimes] = {}

    def output_metric_name(self) -> str:
        return _METRIC_NAME

    def _entry(self, key: Any) -> _DetailTimes:
        return self._details.setdefault(bytes(key), _DetailTimes())

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        for tx in b.inner_shard_txs:
            entry = self._entry(tx.tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = b.propose_time
            entry.tx_commit = b.commit_time
        for tx in b.relay1_txs:
            entry = self._entry(tx.tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = b.propose_time
            entry.relay1_commit = b.commit_time
        for tx in b.relay2_txs:
            entry = self._entry(tx.tx_hash)
            entry.relay2_commit = b.commit_time
            entry.tx_commit = b.commit_time
        for tx in b.broker1_txs:
            entry = self._entry(tx.raw_tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = b.propose_time
            entry.broker1_commit = b.commit_time
        for tx in b.broker2_txs:
            entry = self._entry(tx.raw_tx_hash)
            entry.broker2_commit = b.commit_time
            entry.tx_commit = b.commit_time

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing this metric needs."""
        return None

    def _rows(self) -> list[list[str]]:
        return [
            [
                str(int.from_bytes(key, "big")),
                timestamp_to_string(val.tx_propose),
                timestamp_to_string(val.block_propose),
                timestamp_to_string(val.tx_commit),
                timestamp_to_string(val.relay1_commit),
                timestamp_to_string(val.relay2_commit),
                timestamp_to_string(val.broker1_commit),
                timestamp_to_string(val.broker2_commit),
                str(_elapsed_millis(val.tx_commit, val.tx_propose)),
            ]
            for key, val in self._details.items()
        ]

    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV; this metric has no summary values."""
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), _HEADER, self._rows())
        return [], 0.0