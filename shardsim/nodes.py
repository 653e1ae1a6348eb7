"""Node identity within a shard."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Node:
    """A consensus node, identified by its shard, its index and its address."""

    node_id: int
    shard_id: int
    ip_addr: str

    def describe(self) -> str:
        """Return ``[node_id shard_id ip_addr]``."""
        return f"[{self.node_id} {self.shard_id} {self.ip_addr}]"