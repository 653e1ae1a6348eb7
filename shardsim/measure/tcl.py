"""Transaction confirmation latency per epoch, for broker and relay schemes."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime

from shardsim.measure.base import (
    MeasureModule,
    _divide,
    _epoch_record,
    format_float,
    write_metrics_to_csv,
)
from shardsim.measure.tx_detail import _elapsed_millis, _elapsed_seconds
from shardsim.message import BlockInfoMsg

logger = logging.getLogger(__name__)

_METRIC_NAME = "Transaction_Confirm_Latency"


@dataclass
class _EpochLatency:
    tx_num: float = 0.0
    total_latency: float = 0.0
    first_ms: int = 0
    second_ms: int = 0
    normal_ms: int = 0
    ctx_ms: int = 0
    normal: int = 0
    first: int = 0
    second: int = 0


class _LatencyTally:
    def __init__(self) -> None:
        self.epochs: list[_EpochLatency] = []

    def epoch(self, epoch: int, normal: int, first: int, second: int) -> _EpochLatency:
        record = _epoch_record(self.epochs, epoch, _EpochLatency)
        record.normal += normal
        record.first += first
        record.second += second
        record.tx_num += float(normal) + (first + second) / 2
        return record

    def summary(self) -> tuple[list[float], float]:
        per_epoch = [_divide(e.total_latency, e.tx_num) for e in self.epochs]
        latency = sum(e.total_latency for e in self.epochs)
        tx_num = sum(e.tx_num for e in self.epochs)
        return per_epoch, _divide(latency, tx_num)

    def rows(self) -> list[list[str]]:
        return [
            [
                str(eid),
                format_float(e.tx_num),
                str(e.normal),
                str(e.first),
                str(e.second),
                str(e.first_ms),
                str(e.second_ms),
                str(e.normal_ms),
                str(e.ctx_ms),
                format_float(e.total_latency),
            ]
            for eid, e in enumerate(self.epochs)
        ]


def _header(kind: str) -> list[str]:
    return [
        "EpochID",
        "Total tx # in this epoch",
        "Normal tx # in this epoch",
        f"{kind}1 tx # in this epoch",
        f"{kind}2 tx # in this epoch",
        f"Sum of {kind}1 TCL (ms) (Duration: {kind}1 Tx Propose -> {kind}1 Tx Commit)",
        f"Sum of {kind}2 TCL (ms) (Duration: {kind}2 Tx Propose -> {kind}2 Tx Commit)",
        "Sum of innerShardTx TCL (ms)",
        f"Sum of CTX TCL (ms) (Duration: {kind}1 Tx Propose -> {kind}2 Tx Commit)",
        "Sum of All Tx TCL (sec.)",
    ]


class TCLBroker(MeasureModule):
    """Average confirmation latency when cross-shard transfers go through brokers.

    A cross-shard transfer is confirmed from its broker1 proposal to its broker2 commit.
    """

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self._tally = _LatencyTally()
        self._broker1_propose: dict[bytes, datetime] = {}

    def output_metric_name(self) -> str:
        return _METRIC_NAME

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        record = self._tally.epoch(b.epoch, len(b.inner_shard_txs), len(b.broker1_txs), len(b.broker2_txs))
        commit = b.commit_time

        for tx in b.inner_shard_txs:
            record.total_latency += _elapsed_seconds(commit, tx.time)
            record.normal_ms += _elapsed_millis(commit, tx.time)
        for tx in b.broker1_txs:
            self._broker1_propose[bytes(tx.raw_tx_hash)] = tx.time
            record.first_ms += _elapsed_millis(commit, tx.time)
        for tx in b.broker2_txs:
            proposed = self._broker1_propose.get(bytes(tx.raw_tx_hash))
            if proposed is not None:
                record.total_latency += _elapsed_seconds(commit, proposed)
                record.ctx_ms += _elapsed_millis(commit, proposed)
            else:
                logger.warning("Missing a broker1 tx. ")
            record.second_ms += _elapsed_millis(commit, tx.time)

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing this metric needs."""
        return None

    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV; return the average latency (seconds) per epoch and overall."""
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), _header("Broker"), self._tally.rows())
        return self._tally.summary()


class TCLRelay(MeasureModule):
    """Average confirmation latency when cross-shard transfers are relayed."""

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self._tally = _LatencyTally()
        self._relay1_commit: dict[bytes, datetime] = {}

    def output_metric_name(self) -> str:
        return _METRIC_NAME

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        record = self._tally.epoch(b.epoch, len(b.inner_shard_txs), len(b.relay1_txs), len(b.relay2_txs))
        commit = b.commit_time

        for tx in b.relay1_txs:
            self._relay1_commit[bytes(tx.tx_hash)] = commit
            record.first_ms += _elapsed_millis(commit, tx.time)
        for tx in b.relay2_txs:
            record.total_latency += _elapsed_seconds(commit, tx.time)
            relay1_commit = self._relay1_commit.get(bytes(tx.tx_hash))
            if relay1_commit is not None:
                record.second_ms += _elapsed_millis(commit, relay1_commit)
                record.ctx_ms += _elapsed_millis(commit, tx.time)
        for tx in b.inner_shard_txs:
            record.total_latency += _elapsed_seconds(commit, tx.time)
            record.normal_ms += _elapsed_millis(commit, tx.time)

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing this metric needs."""
        return None

    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV; return the average latency (seconds) per epoch and overall."""
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), _header("Relay"), self._tally.rows())
        return self._tally.summary()