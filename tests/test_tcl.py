import csv
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from shardsim.measure.tcl import TCLBroker, TCLRelay
from shardsim.message import BlockInfoMsg

BASE = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class FakeTx:
    tx_hash: bytes
    time: datetime
    raw_tx_hash: bytes = b""


def read_rows(tmp_path):
    path = tmp_path / "supervisor_measureOutput" / "Transaction_Confirm_Latency.csv"
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


@pytest.mark.parametrize("cls", [TCLBroker, TCLRelay])
def test_metric_name(cls, tmp_path):
    assert cls(tmp_path).output_metric_name() == "Transaction_Confirm_Latency"


@pytest.mark.parametrize("cls", [TCLBroker, TCLRelay])
def test_empty_block_ignored(cls, tmp_path):
    module = cls(tmp_path)
    module.update_measure_record(BlockInfoMsg(block_body_length=0, inner_shard_txs=[FakeTx(b"\x01", BASE)]))
    per_epoch, total = module.output_record()
    assert per_epoch == []
    assert math.isnan(total)
    assert len(read_rows(tmp_path)) == 1


@pytest.mark.parametrize("cls", [TCLBroker, TCLRelay])
def test_inner_latency_equals_common_delay(cls, tmp_path):
    module = cls(tmp_path)
    commit = BASE + timedelta(seconds=2)
    txs = [FakeTx(b"\x01", BASE), FakeTx(b"\x02", BASE)]
    module.update_measure_record(BlockInfoMsg(block_body_length=2, inner_shard_txs=txs, commit_time=commit))
    per_epoch, total = module.output_record()
    assert per_epoch == [pytest.approx(2.0)]
    assert total == pytest.approx(2.0)
    row = read_rows(tmp_path)[1]
    assert row[0] == "0"
    assert row[2] == "2"
    assert row[7] == "4000"


@pytest.mark.parametrize("cls", [TCLBroker, TCLRelay])
def test_epoch_gaps_are_filled(cls, tmp_path):
    module = cls(tmp_path)
    txs = [FakeTx(b"\x01", BASE)]
    module.update_measure_record(
        BlockInfoMsg(block_body_length=1, epoch=2, inner_shard_txs=txs, commit_time=BASE + timedelta(seconds=1))
    )
    per_epoch, total = module.output_record()
    assert len(per_epoch) == 3
    assert math.isnan(per_epoch[0]) and math.isnan(per_epoch[1])
    assert per_epoch[2] == pytest.approx(total)
    assert [row[0] for row in read_rows(tmp_path)[1:]] == ["0", "1", "2"]


@pytest.mark.parametrize("cls", [TCLBroker, TCLRelay])
def test_negative_epoch_rejected(cls, tmp_path):
    module = cls(tmp_path)
    with pytest.raises(IndexError):
        module.update_measure_record(
            BlockInfoMsg(block_body_length=1, epoch=-1, inner_shard_txs=[FakeTx(b"\x01", BASE)], commit_time=BASE)
        )


def test_broker_header(tmp_path):
    TCLBroker(tmp_path).output_record()
    header = read_rows(tmp_path)[0]
    assert header[5] == "Sum of Broker1 TCL (ms) (Duration: Broker1 Tx Propose -> Broker1 Tx Commit)"
    assert header[8] == "Sum of CTX TCL (ms) (Duration: Broker1 Tx Propose -> Broker2 Tx Commit)"
    assert header[9] == "Sum of All Tx TCL (sec.)"


def test_relay_header(tmp_path):
    TCLRelay(tmp_path).output_record()
    header = read_rows(tmp_path)[0]
    assert header[3] == "Relay1 tx # in this epoch"
    assert header[6] == "Sum of Relay2 TCL (ms) (Duration: Relay2 Tx Propose -> Relay2 Tx Commit)"


def test_broker_cross_tx_latency_spans_both_halves(tmp_path):
    module = TCLBroker(tmp_path)
    b1 = FakeTx(b"\x11", BASE, raw_tx_hash=b"\x01")
    c1 = BASE + timedelta(seconds=1)
    b2 = FakeTx(b"\x22", c1, raw_tx_hash=b"\x01")
    c2 = BASE + timedelta(seconds=3)
    module.update_measure_record(BlockInfoMsg(block_body_length=1, broker1_txs=[b1], commit_time=c1))
    module.update_measure_record(BlockInfoMsg(block_body_length=1, broker2_txs=[b2], commit_time=c2))
    per_epoch, total = module.output_record()
    # one whole transaction, confirmed from the broker1 proposal to the broker2 commit
    assert per_epoch == [pytest.approx(3.0)]
    assert total == pytest.approx(3.0)
    row = read_rows(tmp_path)[1]
    assert row[3] == "1" and row[4] == "1"
    assert row[5] == "1000"
    assert row[6] == "2000"
    assert row[8] == "3000"


def test_broker_missing_first_half(tmp_path):
    module = TCLBroker(tmp_path)
    b2 = FakeTx(b"\x22", BASE, raw_tx_hash=b"\x09")
    module.update_measure_record(
        BlockInfoMsg(block_body_length=1, broker2_txs=[b2], commit_time=BASE + timedelta(seconds=1))
    )
    per_epoch, total = module.output_record()
    assert per_epoch == [0.0]
    assert total == 0.0
    row = read_rows(tmp_path)[1]
    assert row[8] == "0"
    assert row[6] == "1000"


def test_relay_cross_tx(tmp_path):
    module = TCLRelay(tmp_path)
    tx = FakeTx(b"\x33", BASE)
    c1 = BASE + timedelta(seconds=1)
    c2 = BASE + timedelta(seconds=3)
    module.update_measure_record(BlockInfoMsg(block_body_length=1, relay1_txs=[tx], commit_time=c1))
    module.update_measure_record(BlockInfoMsg(block_body_length=1, relay2_txs=[tx], commit_time=c2))
    per_epoch, total = module.output_record()
    assert per_epoch == [pytest.approx(3.0)]
    assert total == pytest.approx(per_epoch[0])
    row = read_rows(tmp_path)[1]
    assert row[5] == "1000"
    assert row[6] == "2000"
    assert row[8] == "3000"


def test_relay2_without_relay1_still_counts_latency(tmp_path):
    module = TCLRelay(tmp_path)
    tx = FakeTx(b"\x44", BASE)
    module.update_measure_record(
        BlockInfoMsg(block_body_length=1, relay2_txs=[tx], commit_time=BASE + timedelta(seconds=1))
    )
    per_epoch, _ = module.output_record()
    assert per_epoch == [pytest.approx(2.0)]
    row = read_rows(tmp_path)[1]
    assert row[6] == "0" and row[8] == "0"