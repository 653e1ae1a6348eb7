"""Undirected transaction graph whose vertices are accounts."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class Vertex:
    """An account taking part in transactions."""

    addr: str


@dataclass
class Graph:
    """Undirected multigraph kept as an ordered vertex set and adjacency lists.

    ``vertex_set`` is a dict used as an insertion-ordered set.
    """

    vertex_set: dict[Vertex, None] = field(default_factory=dict)
    edge_set: dict[Vertex, list[Vertex]] = field(default_factory=dict)

    def add_vertex(self, v: Vertex) -> None:
        """Add ``v`` to the vertex set; adding it again changes nothing."""
        self.vertex_set.setdefault(v, None)

    def add_edge(self, u: Vertex, v: Vertex) -> None:
        """Add an edge of weight one, creating missing endpoints."""
        self.add_vertex(u)
        self.add_vertex(v)
        self.edge_set.setdefault(u, []).append(v)
        self.edge_set.setdefault(v, []).append(u)

    def copy(self) -> Graph:
        """Return an independent copy of the graph."""
        if self.edge_set:
            edges = {v: list(self.edge_set.get(v, ())) for v in self.vertex_set}
        else:
            edges = {}
        return Graph(dict(self.vertex_set), edges)

    def render(self) -> str:
        """Return one line per vertex listing its neighbours, then a blank line."""
        lines = [
            f"{v.addr} edge:" + "".join(f" {u.addr}\t" for u in self.edge_set.get(v, ()))
            for v in self.vertex_set
        ]
        return "".join(line + "\n" for line in lines) + "\n"