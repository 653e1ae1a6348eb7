"""Common interface of measurement modules and CSV output helpers."""

from __future__ import annotations

import csv
import math
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TypeVar

from shardsim.message import BlockInfoMsg

OUTPUT_SUBDIR = "supervisor_measureOutput"

# Float columns carry 56 fractional digits.
_FLOAT_DIGITS = ord("8")

_T = TypeVar("_T")

# The two halves of a cross-shard transaction, per scheme.
_CROSS_PARTS: dict[str, Callable[[BlockInfoMsg], tuple[list[Any], list[Any]]]] = {
    "Broker": lambda b: (b.broker1_txs, b.broker2_txs),
    "Relay": lambda b: (b.relay1_txs, b.relay2_txs),
}


def _divide(a: float, b: float) -> float:
    """IEEE division: dividing by zero gives an infinity or NaN instead of raising."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


def _epoch_record(records: list[_T], epoch: int, factory: Callable[[], _T]) -> _T:
    """Grow ``records`` with fresh entries until ``epoch`` exists, then return that entry."""
    if epoch < 0:
        raise IndexError(f"epoch {epoch} is negative")
    while len(records) <= epoch:
        records.append(factory())
    return records[epoch]


def _part_columns(kind: str) -> list[str]:
    return [f"{kind}{part} tx # in this epoch" for part in (1, 2)]


def format_float(value: float) -> str:
    """Fixed-point text with 56 fractional digits; NaN and infinities spelt out."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.{_FLOAT_DIGITS}f}"


def write_metrics_to_csv(
    output_dir: str | os.PathLike[str],
    file_name: str,
    col_names: Sequence[str],
    rows: Iterable[Sequence[str]],
) -> Path:
    """Append ``rows`` to ``<output_dir>/supervisor_measureOutput/<file_name>.csv``.

    The header is written only when the file is empty. Returns the file path.
    """
    directory = Path(output_dir) / OUTPUT_SUBDIR
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{file_name}.csv"
    with open(target, "a+", newline="", encoding="utf-8") as handle:
        handle.seek(0, os.SEEK_END)
        writer = csv.writer(handle, lineterminator="\n")
        if handle.tell() == 0:
            writer.writerow(col_names)
        writer.writerows(rows)
    return target


class MeasureModule(ABC):
    """A metric collected by the supervisor from block information messages."""

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        self.output_dir = Path(output_dir)
        self.extra_messages = 0

    @abstractmethod
    def update_measure_record(self, b: BlockInfoMsg) -> None:
        """Account for one block reported by a shard."""

    def handle_extra_message(self, msg: bytes) -> None:
        """Count a message other than block information; its content feeds no metric."""
        self.extra_messages += 1

    @abstractmethod
    def output_metric_name(self) -> str:
        """Name of the metric, also used as the CSV file name."""

    @abstractmethod
    def output_record(self) -> tuple[list[float], float]:
        """Write the detailed CSV and return per-epoch values and the overall value."""


@dataclass
class _EpochCounts:
    """Transactions of one epoch; each half of a cross-shard transaction counts 0.5."""

    total: float = 0.0
    cross: float = 0.0
    normal: int = 0
    first: int = 0
    second: int = 0

    def add(self, normal: int, first: int, second: int) -> None:
        half = (first + second) / 2
        self.normal += normal
        self.first += first
        self.second += second
        self.cross += half
        self.total += float(normal) + half


class _EpochCountingModule(MeasureModule):
    """Metric built from per-epoch transaction counts of one cross-shard scheme."""

    kind = "Broker"

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        super().__init__(output_dir)
        self.epochs: list[_EpochCounts] = []

    def update_measure_record(self, b: BlockInfoMsg) -> None:
        if b.block_body_length == 0:
            return
        first, second = _CROSS_PARTS[self.kind](b)
        _epoch_record(self.epochs, b.epoch, _EpochCounts).add(
            len(b.inner_shard_txs), len(first), len(second)
        )

    def output_record(self) -> tuple[list[float], float]:
        write_metrics_to_csv(self.output_dir, self.output_metric_name(), self._header(), self._rows())
        return self._summary()

    @abstractmethod
    def _header(self) -> list[str]:
        """CSV column names."""

    @abstractmethod
    def _rows(self) -> list[list[str]]:
        """One CSV row per epoch."""

    @abstractmethod
    def _summary(self) -> tuple[list[float], float]:
        """Per-epoch values and the overall value."""