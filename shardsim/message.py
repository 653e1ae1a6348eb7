"""Message types and payloads exchanged between nodes and the supervisor."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from shardsim.nodes import Node

PREFIX_MSG_TYPE_LEN = 30


def _list() -> Any:
    return field(default_factory=list)


def _dict() -> Any:
    return field(default_factory=dict)


class _Tag(str, Enum):
    """String enum whose text form is its value."""

    def __str__(self) -> str:
        return self.value


class MessageType(_Tag):
    """Wire tag carried in the fixed-size prefix of every message."""

    PRE_PREPARE = "preprepare"
    PREPARE = "prepare"
    COMMIT = "commit"
    REQUEST_OLD_REQUEST = "requestOldrequest"
    SEND_OLD_REQUEST = "sendOldrequest"
    STOP = "stop"

    RELAY = "relay"
    RELAY_WITH_PROOF = "CRelay&Proof"
    INJECT = "inject"

    BLOCK_INFO = "BlockInfo"
    SEQ_ID_INFO = "SequenceID"

    ACCOUNT_STATE_AND_TX = "AccountState&txs"
    PARTITION_MSG = "PartitionModifiedMap"
    PARTITION_READY = "ready for partition"

    BROKER_RAW_TX = "brokerRawTx"
    BROKER_CONFIRM1 = "brokerConfirm1"
    BROKER_CONFIRM2 = "brokerConfirm2"
    BROKER_TYPE1 = "brokerType1"
    BROKER_TYPE2 = "brokerType2"
    INJECT_BROKER = "InjectTx_Broker"
    BROKER_TX_MAP = "BrokerTxMap"
    ACCOUNT_TRANSFER_BROKER = "BrokerAS_transfer"
    INNER_TO_CROSS_TX = "innerShardTx_be_crossShard"

    VIEW_CHANGE_PROPOSE = "ViewChangePropose"
    NEW_CHANGE = "NewChange"


class RequestType(_Tag):
    BLOCK = "Block"
    PARTITION_REQ = "PartitionReq"


@dataclass
class RawMessage:
    content: bytes = b""


@dataclass
class Request:
    request_type: RequestType = RequestType.BLOCK
    msg: RawMessage = field(default_factory=RawMessage)
    req_time: Optional[datetime] = None


@dataclass
class PrePrepare:
    request_msg: Optional[Request] = None
    digest: bytes = b""
    seq_id: int = 0


@dataclass
class Prepare:
    digest: bytes = b""
    seq_id: int = 0
    sender_node: Optional[Node] = None


@dataclass
class Commit(Prepare):
    """Commit vote; it carries the same fields as a prepare vote."""


@dataclass
class Reply:
    message_id: int = 0
    sender_node: Optional[Node] = None
    result: bool = False


@dataclass
class RequestOldMessage:
    seq_start_height: int = 0
    seq_end_height: int = 0
    server_node: Optional[Node] = None
    sender_node: Optional[Node] = None


@dataclass
class SendOldMessage:
    seq_start_height: int = 0
    seq_end_height: int = 0
    old_request: list[Request] = _list()
    sender_node: Optional[Node] = None


@dataclass
class InjectTxs:
    txs: list[Any] = _list()
    to_shard_id: int = 0


@dataclass
class BlockInfoMsg:
    """Summary of a committed block, sent by shard leaders to the supervisor."""

    block_body_length: int = 0
    inner_shard_txs: list[Any] = _list()
    epoch: int = 0

    propose_time: Optional[datetime] = None
    commit_time: Optional[datetime] = None
    sender_shard_id: int = 0

    relay1_txs: list[Any] = _list()
    relay2_txs: list[Any] = _list()

    broker1_txs: list[Any] = _list()
    broker2_txs: list[Any] = _list()


@dataclass
class SeqIDInfo:
    sender_shard_id: int = 0
    sender_seq: int = 0


@dataclass
class PartitionModifiedMap:
    partition_modified: dict[str, int] = _dict()


@dataclass
class AccountTransferMsg:
    modified_map: dict[str, int] = _dict()
    addrs: list[str] = _list()
    account_state: list[Any] = _list()
    at_id: int = 0


@dataclass
class PartitionReady:
    from_shard: int = 0
    now_seq_id: int = 0


@dataclass
class AccountStateAndTx:
    """Account states and pending transactions moved between shard leaders."""

    addrs: list[str] = _list()
    account_state: list[Any] = _list()
    txs: list[Any] = _list()
    from_shard: int = 0


@dataclass
class BrokerRawMsg:
    tx: Any = None
    broker: str = ""
    hlock: int = 0
    snonce: int = 0
    bnonce: int = 0
    signature: bytes = b""


@dataclass
class BrokerType1Msg:
    raw_msg: Optional[BrokerRawMsg] = None
    hcurrent: int = 0
    broker: str = ""


@dataclass
class Mag1Confirm:
    tx1_hash: bytes = b""
    raw_msg: Optional[BrokerRawMsg] = None


@dataclass
class BrokerType2Msg:
    raw_msg: Optional[BrokerRawMsg] = None
    broker: str = ""


@dataclass
class Mag2Confirm:
    tx2_hash: bytes = b""
    raw_msg: Optional[BrokerRawMsg] = None


@dataclass
class BrokerTxMap:
    broker_tx_to_broker12: dict[str, list[str]] = _dict()


@dataclass
class InnerTx2CrossTx:
    txs: list[Any] = _list()


@dataclass
class Relay:
    txs: list[Any] = _list()
    sender_shard_id: int = 0
    sender_seq: int = 0


@dataclass
class RelayWithProof:
    txs: list[Any] = _list()
    tx_proofs: list[Any] = _list()
    sender_shard_id: int = 0
    sender_seq: int = 0


@dataclass
class ViewChangeMsg:
    cur_view: int = 0
    next_view: int = 0
    seq_id: int = 0
    from_node: int = 0


@dataclass
class NewViewMsg:
    cur_view: int = 0
    next_view: int = 0
    new_seq_id: int = 0
    from_node: int = 0


def _type_bytes(msg_type: MessageType | str) -> bytes:
    text = msg_type.value if isinstance(msg_type, Enum) else msg_type
    return text.encode("utf-8")


def merge_message(msg_type: MessageType | str, content: bytes) -> bytes:
    """Prefix ``content`` with the type tag, zero-padded to the fixed prefix length."""
    tag = _type_bytes(msg_type)
    if len(tag) > PREFIX_MSG_TYPE_LEN:
        raise ValueError(f"message type {tag!r} exceeds {PREFIX_MSG_TYPE_LEN} bytes")
    return tag.ljust(PREFIX_MSG_TYPE_LEN, b"\x00") + bytes(content)


def split_message(message: bytes) -> tuple[MessageType | str, bytes]:
    """Split a wire message into its type tag and content.

    Every zero byte of the prefix is dropped; an unknown tag comes back as a plain string.
    """
    if len(message) < PREFIX_MSG_TYPE_LEN:
        raise ValueError(f"message shorter than the {PREFIX_MSG_TYPE_LEN}-byte type prefix")
    tag = message[:PREFIX_MSG_TYPE_LEN].replace(b"\x00", b"").decode("utf-8", errors="replace")
    content = message[PREFIX_MSG_TYPE_LEN:]
    try:
        return MessageType(tag), content
    except ValueError:
        return tag, content