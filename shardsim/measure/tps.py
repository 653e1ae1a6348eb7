"""Average throughput (transactions per second) per epoch, for broker and relay schemes."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from shardsim.measure.base import (
    MeasureModule,
    _divide,
    _epoch_record,
    format_float,
    write_metrics_to_csv,
)
from shardsim.measure.tx_detail import _MILLISECOND, _UNIX_EPOCH, _aware, _elapsed_seconds
from shardsim.message import BlockInfoMsg

_METRIC_NAME = "Average_TPS"


def _unix_millis(moment: Optional[datetime]) -> int:
    """Unix time in milliseconds; an unset moment is the earliest representable instant."""
    return (_aware(moment) - _UNIX_EPOCH) // _MILLISECOND


@dataclass
class _EpochThroughput:
    executed: float = 0.0
    normal: int = 0
    first: int = 0
    second: int = 0
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def tps(self) -> float:
        return _divide(self.executed, _elapsed_seconds(self.end, self.start))


class _ThroughputTally:
    """Per-epoch executed transactions and the span between the first proposal and last commit."""

    def __init__(self) -> None:
        self.epochs: list[_EpochThroughput] = []

    def record(
        self,
        epoch: int,
        normal: int,
        first: int,
        second: int,
        proposed: Optional[datetime],
        committed: Optional[datetime],
    ) -> None:
        record = _epoch_record(self.epochs, epoch, _EpochThroughput)
        record.executed += float(normal) + (first + second) / 2
        record.normal += normal
        record.first += first
        record.second += second
        if record.start is None or _aware(record.start) > _aware(proposed):
            record.start = proposed
        if record.end is None or _aware(committed) > _aware(record.end):
            record.end = committed

    def summary(self) -> tuple[list[float], float]:
        per_epoch = [e.tps for e in self.epochs]
        total = sum(e.executed for e in self.epochs)
        earliest = datetime.now(timezone.utc)
        latest = _aware(None)
        for e in self.epochs:
            start, end = _aware(e.start), _aware(e.end)
            if earliest > start:
                earliest = start
            if end > latest:
                latest = end
        return per_epoch, _divide(total, _elapsed_seconds(latest, earliest))

    def rows(self) -> list[list[str]]:
        return [
            [
                str(eid),
                format_float(e.executed),
                str(e.normal),
                str(e.first),
                str(e.second),
                str(_unix_millis(e.start)),
                str(_unix_millis(e.end)),
                format_float(e.tps),
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
        "Epoch start time",
        "Epoch end time",
        "Avg. TPS of this epoch",
    ]


class AvgTPSBroker(MeasureModule):
    """Average TPS when cross-shard transfers go through brokers; each broker part counts half."""

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self._tally = _ThroughputTally()

    def output_metric_name(self) -> str:
        return _METRIC_NAME

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        self._tally.record(
            b.epoch,
            len(b.inner_shard_txs),
            len(b.broker1_txs),
            len(b.broker2_txs),
            b.propose_time,
            b.commit_time,
        )

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing this metric needs."""
        return None

    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV; return the TPS of each epoch and over the whole run."""
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), _header("Broker"), self._tally.rows())
        return self._tally.summary()


class AvgTPSRelay(MeasureModule):
    """Average TPS when cross-shard transfers are relayed; each relay part counts half."""

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self._tally = _ThroughputTally()

    def output_metric_name(self) -> str:
        return _METRIC_NAME

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        self._tally.record(
            b.epoch,
            len(b.inner_shard_txs),
            len(b.relay1_txs),
            len(b.relay2_txs),
            b.propose_time,
            b.commit_time,
        )

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing this metric needs."""
        return None

    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV; return the TPS of each epoch and over the whole run."""
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), _header("Relay"), self._tally.rows())
        return self._tally.summary()