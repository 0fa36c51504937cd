"""
graph.py — Immutable Adjacency Graph
=====================================
The read-only graph a traversal runs over.  Algorithms and the playback
engine both talk to this object, and nothing they do can change it.

Responsibilities:
  1. Adjacency queries                      (neighbours, has_node, …)
  2. Builders                               (edge list, adjacency text, dict)
  3. Serialisation round-trip               (to_dict / from_dict)

Design decisions:
  - Neighbour order is the tie-break for discovery order, so adjacency
    is stored as `{node_id: (nbr, nbr, …)}` tuples in insertion order.
  - The constructor takes a defensive copy.  Whatever the caller does to
    its own dict afterwards, a configured run keeps seeing the same graph.
  - A neighbour that never appears as a key still becomes a node with
    no outgoing neighbours.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


class UnknownNode(KeyError):
    """Raised when a node id is not part of the graph."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown node: {self.node_id!r}"


class Graph:
    """
    Attributes:
        _adj  : {node_id: (neighbour_id, …)} — ordered, duplicate-free
    """

    __slots__ = ("_adj",)

    def __init__(self, adjacency: Optional[Mapping[str, Iterable[str]]] = None):
        adj: Dict[str, List[str]] = {}
        for node_id, nbrs in (adjacency or {}).items():
            row = adj.setdefault(str(node_id), [])
            for nbr in nbrs:
                nbr = str(nbr)
                if nbr not in row:
                    row.append(nbr)
                adj.setdefault(nbr, [])
        self._adj: Dict[str, Tuple[str, ...]] = {n: tuple(row) for n, row in adj.items()}

    # ==================================================================
    # ADJACENCY QUERIES
    # ==================================================================
    def neighbours(self, node_id: str) -> Tuple[str, ...]:
        """Ordered neighbour ids of `node_id`.  Raises UnknownNode."""
        try:
            return self._adj[node_id]
        except KeyError:
            raise UnknownNode(node_id) from None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._adj

    def degree(self, node_id: str) -> int:
        return len(self.neighbours(node_id))

    def node_ids(self) -> List[str]:
        return list(self._adj.keys())

    def node_count(self) -> int:
        return len(self._adj)

    def edge_count(self) -> int:
        """Number of adjacency entries (an undirected edge counts twice)."""
        return sum(len(nbrs) for nbrs in self._adj.values())

    # ==================================================================
    # BUILDERS
    # ==================================================================
    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Sequence[str]],
        directed: bool = False,
        nodes: Iterable[str] = (),
    ) -> "Graph":
        """
        Build from (from, to) pairs.  Undirected edges are mirrored, and
        self-loops and repeated edges are dropped.  `nodes` fixes the
        order (and presence) of isolated nodes.
        """
        adj: Dict[str, List[str]] = {str(n): [] for n in nodes}
        for pair in edges:
            if len(pair) != 2:
                raise ValueError(f"Edge must be a (from, to) pair, got {pair!r}")
            a, b = str(pair[0]), str(pair[1])
            if a == b:
                continue
            adj.setdefault(a, [])
            adj.setdefault(b, [])
            if b not in adj[a]:
                adj[a].append(b)
            if not directed and a not in adj[b]:
                adj[b].append(a)
        return cls(adj)

    @classmethod
    def from_adjacency_list(cls, text: str) -> "Graph":
        """
        Parse a simple text adjacency list.

        Supported formats (one node per line):
            A: B C D            → A connects to B, C, D
            0 → 1,2,3           → alternate arrow syntax
            0 -> 1, 2           → ASCII arrow, comma-separated

        Lines starting with '#' and blank lines are ignored.  Edges are
        taken as written (directed); list both directions for an
        undirected graph.
        """
        adjacency: Dict[str, List[str]] = {}

        for lineno, line in enumerate(text.strip().splitlines(), start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            # split on ':' or '→'
            if ":" in line:
                parts = line.split(":", 1)
            elif "→" in line:
                parts = line.split("→", 1)
            elif "->" in line:
                parts = line.split("->", 1)
            else:
                raise ValueError(f"Line {lineno}: expected 'node: neighbours', got {line!r}")

            src = parts[0].strip()
            if not src:
                raise ValueError(f"Line {lineno}: missing node id")
            row = adjacency.setdefault(src, [])

            for token in parts[1].replace(",", " ").split():
                row.append(token)

        return cls(adjacency)

    @classmethod
    def default(cls) -> "Graph":
        """The nine-node sample graph the BFS / DFS labs open with."""
        return cls.from_edges([
            ("A", "B"), ("A", "C"),
            ("B", "D"), ("B", "E"),
            ("C", "F"), ("C", "G"),
            ("D", "H"), ("E", "H"),
            ("F", "I"), ("G", "I"),
        ])

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def to_dict(self) -> dict:
        return {
            "nodes":     self.node_ids(),
            "adjacency": {n: list(nbrs) for n, nbrs in self._adj.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Graph":
        """
        Accepts any one of:
            {"adjacency": {"A": ["B"], …}}
            {"edges": [["A", "B"], …], "directed": false, "nodes": [...]}
            {"text": "A: B C\\nB: D"}
        """
        if not isinstance(data, Mapping):
            raise ValueError("Graph payload must be an object")
        if "adjacency" in data:
            adjacency = data["adjacency"]
            if not isinstance(adjacency, Mapping):
                raise ValueError("'adjacency' must map node id → list of neighbours")
            for node_id, nbrs in adjacency.items():
                if isinstance(nbrs, (str, bytes)) or not isinstance(nbrs, Iterable):
                    raise ValueError(f"Neighbours of {node_id!r} must be a list")
            # listed nodes come first so isolated ones keep their position
            merged: Dict[str, Iterable[str]] = {str(n): () for n in data.get("nodes", [])}
            merged.update({str(k): v for k, v in adjacency.items()})
            return cls(merged)
        if "edges" in data:
            return cls.from_edges(
                data["edges"],
                directed=bool(data.get("directed", False)),
                nodes=data.get("nodes", ()),
            )
        if "text" in data:
            return cls.from_adjacency_list(str(data["text"]))
        raise ValueError("Graph payload needs one of 'adjacency', 'edges' or 'text'")

    # ==================================================================
    # DUNDER
    # ==================================================================
    def __contains__(self, node_id: object) -> bool:
        return node_id in self._adj

    def __eq__(self, other) -> bool:
        return isinstance(other, Graph) and self._adj == other._adj

    def __hash__(self) -> int:
        return hash(tuple(self._adj.items()))

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count()}, edges={self.edge_count()})"
