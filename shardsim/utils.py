"""Address helpers: default shard assignment and byte arithmetic."""

from __future__ import annotations

import re

Address = str

_HEX = re.compile(r"[0-9a-fA-F]+")


def addr_to_shard(addr: Address, shard_num: int) -> int:
    """Assign an address to a shard by the value of its last eight hex digits."""
    tail = addr[-8:] if len(addr) > 8 else addr
    if not _HEX.fullmatch(tail):
        raise ValueError(f"address tail {tail!r} is not hexadecimal")
    return int(tail, 16) % shard_num


def mod_bytes(data: bytes, mod: int) -> int:
    """Interpret ``data`` as a big-endian unsigned integer and reduce it modulo ``mod``."""
    if mod == 0:
        raise ZeroDivisionError("modulus must not be zero")
    return int.from_bytes(data, "big") % mod