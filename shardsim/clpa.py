"""Constrained label propagation (CLPA) for account-to-shard partitioning."""

from __future__ import annotations

import hashlib
import json
import logging
import math
import sys

from shardsim.graph import Graph, Vertex
from shardsim.utils import addr_to_shard

logger = logging.getLogger(__name__)

_MAX_UPDATES_PER_VERTEX = 50


def _divide(a: float, b: float) -> float:
    """IEEE division: dividing by zero gives an infinity or NaN instead of raising."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


class CLPAState:
    """State of the constrained label propagation algorithm."""

    def __init__(self, weight_penalty: float, max_iterations: int, shard_num: int) -> None:
        self.graph = Graph()
        self.weight_penalty = weight_penalty
        self.max_iterations = max_iterations
        self.shard_num = shard_num
        self.partition_map: dict[Vertex, int] = {}
        self.vertex_num_in_shard: list[int] = [0] * shard_num
        self.edges_to_shard: list[int] = []
        self.min_edges_to_shard = 0
        self.cross_shard_edge_num = 0
        self.graph_hash = b""

    def add_vertex(self, v: Vertex) -> None:
        """Add a vertex, placing it by its address unless it already has a shard."""
        self.graph.add_vertex(v)
        if v not in self.partition_map:
            self.partition_map[v] = addr_to_shard(v.addr, self.shard_num)
        self.vertex_num_in_shard[self.partition_map[v]] += 1

    def add_edge(self, u: Vertex, v: Vertex) -> None:
        """Add an edge, registering endpoints that are not yet in the graph."""
        if u not in self.graph.vertex_set:
            self.add_vertex(u)
        if v not in self.graph.vertex_set:
            self.add_vertex(v)
        self.graph.add_edge(u, v)

    def copy(self) -> CLPAState:
        """Return an independent copy of this state."""
        clone = CLPAState(self.weight_penalty, self.max_iterations, self.shard_num)
        clone.graph = self.graph.copy()
        clone.partition_map = dict(self.partition_map)
        clone.edges_to_shard = (list(self.edges_to_shard) + [0] * self.shard_num)[: self.shard_num]
        clone.vertex_num_in_shard = list(self.vertex_num_in_shard)
        clone.min_edges_to_shard = self.min_edges_to_shard
        clone.cross_shard_edge_num = self.cross_shard_edge_num
        return clone

    def render(self) -> str:
        """Return the graph, the minimum shard weight, the partition and the shard weights."""
        return (
            self.graph.render()
            + f"{self.min_edges_to_shard}\n"
            + "".join(f"{v.addr} {shard}\t" for v, shard in self.partition_map.items())
            + "".join(f"{weight} " for weight in self.edges_to_shard)
            + "\n"
        )

    def _shard_of(self, v: Vertex) -> int:
        return self.partition_map.get(v, 0)

    def _refresh_min(self) -> None:
        self.min_edges_to_shard = min(self.edges_to_shard, default=sys.maxsize)

    def compute_edges_to_shard(self) -> None:
        """Recompute each shard's edge weight, the cross-shard edge count and the minimum."""
        edges = [0] * self.shard_num
        inner = [0] * self.shard_num
        for v, neighbours in self.graph.edge_set.items():
            v_shard = self._shard_of(v)
            for u in neighbours:
                u_shard = self._shard_of(u)
                if v_shard != u_shard:
                    edges[u_shard] += 1
                else:
                    inner[u_shard] += 1
        self.cross_shard_edge_num = sum(edges) // 2
        self.edges_to_shard = [e + i // 2 for e, i in zip(edges, inner)]
        self._refresh_min()

    def _change_shard_recompute(self, v: Vertex, old: int) -> None:
        new = self._shard_of(v)
        for u in self.graph.edge_set.get(v, ()):
            neighbour_shard = self._shard_of(u)
            if neighbour_shard != new and neighbour_shard != old:
                self.edges_to_shard[new] += 1
                self.edges_to_shard[old] -= 1
            elif neighbour_shard == new:
                self.edges_to_shard[old] -= 1
                self.cross_shard_edge_num -= 1
            else:
                self.edges_to_shard[new] += 1
                self.cross_shard_edge_num += 1
        self._refresh_min()

    def init_partition(self) -> None:
        """Place every vertex by the last eight hex digits of its address."""
        self.vertex_num_in_shard = [0] * self.shard_num
        self.partition_map = {}
        for v in self.graph.vertex_set:
            if len(v.addr) < 8:
                raise ValueError(f"address {v.addr!r} is shorter than eight characters")
            shard = addr_to_shard(v.addr[-8:], self.shard_num)
            self.partition_map[v] = shard
            self.vertex_num_in_shard[shard] += 1
        self.compute_edges_to_shard()

    def stable_init_partition(self) -> None:
        """Place vertices round-robin so that no shard starts empty."""
        if self.shard_num > len(self.graph.vertex_set):
            raise ValueError("too many shards, number of shards should be less than nodes. ")
        self.vertex_num_in_shard = [0] * self.shard_num
        self.partition_map = {}
        for count, v in enumerate(self.graph.vertex_set):
            shard = count % self.shard_num
            self.partition_map[v] = shard
            self.vertex_num_in_shard[shard] += 1
        self.compute_edges_to_shard()

    def _shard_score(self, v: Vertex, u_shard: int) -> float:
        neighbours = self.graph.edge_set.get(v, [])
        linked = sum(1 for item in neighbours if self._shard_of(item) == u_shard)
        ratio = _divide(float(self.edges_to_shard[u_shard]), float(self.min_edges_to_shard))
        return _divide(float(linked), float(len(neighbours))) * (1 - self.weight_penalty * ratio)

    def partition(self) -> tuple[dict[str, int], int]:
        """Run the algorithm; return the moved accounts with their new shards
        and the resulting number of cross-shard edges."""
        self.compute_edges_to_shard()
        logger.info("Before running CLPA, cross-shard edge number: %d", self.cross_shard_edge_num)
        moved: dict[str, int] = {}
        updates: dict[str, int] = {}
        for _ in range(self.max_iterations):
            for v in self.graph.vertex_set:
                if updates.get(v.addr, 0) >= _MAX_UPDATES_PER_VERTEX:
                    continue
                scores: dict[int, float] = {}
                max_score = -9999.0
                now_shard = best_shard = self._shard_of(v)
                for u in self.graph.edge_set.get(v, ()):
                    u_shard = self._shard_of(u)
                    if u_shard in scores:
                        continue
                    score = self._shard_score(v, u_shard)
                    scores[u_shard] = score
                    if max_score < score:
                        max_score = score
                        best_shard = u_shard
                if best_shard != now_shard and self.vertex_num_in_shard[now_shard] > 1:
                    self.partition_map[v] = best_shard
                    moved[v.addr] = best_shard
                    updates[v.addr] = updates.get(v.addr, 0) + 1
                    self.vertex_num_in_shard[now_shard] -= 1
                    self.vertex_num_in_shard[best_shard] += 1
                    self._change_shard_recompute(v, now_shard)
        for shard, count in enumerate(self.vertex_num_in_shard):
            logger.info("%d has vertexs: %d", shard, count)
        self.compute_edges_to_shard()
        logger.info("After running CLPA, cross-shard edge number: %d", self.cross_shard_edge_num)
        return moved, self.cross_shard_edge_num

    def erase_edges(self) -> None:
        """Drop every edge, keeping the vertices and the partition."""
        self.graph.edge_set = {}

    def encode(self) -> bytes:
        """Serialise the state canonically as JSON bytes."""
        state = {
            "NetGraph": {
                "VertexSet": sorted(v.addr for v in self.graph.vertex_set),
                "EdgeSet": {v.addr: [u.addr for u in lst] for v, lst in self.graph.edge_set.items()},
            },
            "PartitionMap": {v.addr: shard for v, shard in self.partition_map.items()},
            "Edges2Shard": self.edges_to_shard,
            "VertexsNumInShard": self.vertex_num_in_shard,
            "WeightPenalty": self.weight_penalty,
            "MinEdges2Shard": self.min_edges_to_shard,
            "MaxIterations": self.max_iterations,
            "CrossShardEdgeNum": self.cross_shard_edge_num,
            "ShardNum": self.shard_num,
            "GraphHash": self.graph_hash.hex(),
        }
        return json.dumps(state, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def hash(self) -> bytes:
        """SHA-256 digest of the encoded state."""
        return hashlib.sha256(self.encode()).digest()