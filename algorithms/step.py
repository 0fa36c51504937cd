"""
step.py — Traversal Snapshot
=============================
A Snapshot is a frozen-in-time picture of the whole traversal after
exactly one discrete step:

    • The frontier (queue / stack), with the parent that pushed each entry
    • The visited set, in the order nodes were claimed
    • The finalisation order (what the UI lists as "order discovered")
    • The (parent, child) discovery edges
    • Node levels (breadth-first runs only)
    • The node being expanded and whether the run has finished

Design decisions:
  - Snapshot is a frozen dataclass of tuples.  History replay hands the
    very same object back, so nothing downstream may be able to mutate it.
  - Collections keep insertion order even where the public view is a set;
    that keeps replays and serialised output deterministic.
  - SnapshotBuilder is the mutable scratch-pad the step function works
    on.  It is seeded from the previous Snapshot and frozen with build().
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Set, Tuple


FrontierEntry = Tuple[str, Optional[str]]      # (node_id, parent_id)
EdgePair      = Tuple[str, str]                # (parent_id, child_id)


@dataclass(frozen=True)
class Snapshot:
    """
    Attributes:
        step_number      : 0-based index of this step in the run.
        frontier_entries : Pending (node_id, parent_id) pairs; the dequeue end
                           is the front for FIFO and the back for LIFO.
        visited          : Node ids claimed so far, in claim order.
        order            : Node ids in the order they were finalised.
        traversed_edges  : (parent, child) discovery edges, one per child.
        levels           : ((node_id, level), …) in discovery order, or None
                           when the run does not track levels.
        current_node     : Node being expanded at this step (None once done).
        is_complete      : True once no live frontier entries remain.
    """

    step_number:      int                                = 0
    frontier_entries: Tuple[FrontierEntry, ...]          = ()
    visited:          Tuple[str, ...]                    = ()
    order:            Tuple[str, ...]                    = ()
    traversed_edges:  Tuple[EdgePair, ...]               = ()
    levels:           Optional[Tuple[Tuple[str, int], ...]] = None
    current_node:     Optional[str]                      = None
    is_complete:      bool                               = False

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    @property
    def frontier(self) -> Tuple[str, ...]:
        return tuple(node_id for node_id, _ in self.frontier_entries)

    @property
    def visited_set(self) -> FrozenSet[str]:
        return frozenset(self.visited)

    @property
    def edge_set(self) -> FrozenSet[EdgePair]:
        return frozenset(self.traversed_edges)

    def level_map(self) -> Optional[Dict[str, int]]:
        if self.levels is None:
            return None
        return dict(self.levels)

    def level_nodes(self) -> Optional[Dict[int, Tuple[str, ...]]]:
        """{level: (node_id, …)} grouped in discovery order."""
        if self.levels is None:
            return None
        grouped: Dict[int, List[str]] = {}
        for node_id, level in self.levels:
            grouped.setdefault(level, []).append(node_id)
        return {level: tuple(nodes) for level, nodes in grouped.items()}

    @property
    def current_level(self) -> Optional[int]:
        if self.levels is None or self.current_node is None:
            return None
        return dict(self.levels).get(self.current_node)


# ---------------------------------------------------------------------------
# Convenience builder so the step function doesn't juggle tuples
# ---------------------------------------------------------------------------
class SnapshotBuilder:
    """
    Mutable scratch-pad used to construct the next Snapshot.

    Usage inside a step function:
        sb = SnapshotBuilder.from_snapshot(prev)
        node, parent = sb.pop_back()
        sb.finalise(node)
        sb.push(child, parent=node)
        return sb.build(step_number=prev.step_number + 1)
    """

    def __init__(self, track_levels: bool = False):
        self.frontier:        List[FrontierEntry]       = []
        self.visited:         List[str]                 = []
        self.order:           List[str]                 = []
        self.traversed_edges: List[EdgePair]            = []
        self.levels:          Optional[Dict[str, int]]  = {} if track_levels else None
        self.current_node:    Optional[str]             = None
        self._visited_lookup: Set[str]                  = set()

    @classmethod
    def from_snapshot(cls, snap: Snapshot) -> "SnapshotBuilder":
        sb = cls(track_levels=snap.levels is not None)
        sb.frontier        = list(snap.frontier_entries)
        sb.visited         = list(snap.visited)
        sb.order           = list(snap.order)
        sb.traversed_edges = list(snap.traversed_edges)
        if snap.levels is not None:
            sb.levels = dict(snap.levels)
        sb.current_node    = snap.current_node
        sb._visited_lookup = set(snap.visited)
        return sb

    # -- helpers --
    def is_visited(self, node_id: str) -> bool:
        return node_id in self._visited_lookup

    def is_pending(self, node_id: str) -> bool:
        return any(n == node_id for n, _ in self.frontier)

    def visit(self, node_id: str) -> None:
        if node_id not in self._visited_lookup:
            self._visited_lookup.add(node_id)
            self.visited.append(node_id)

    def finalise(self, node_id: str) -> None:
        self.order.append(node_id)
        self.current_node = node_id

    def record_edge(self, parent: str, child: str) -> None:
        self.traversed_edges.append((parent, child))

    def set_level(self, node_id: str, level: int) -> None:
        if self.levels is not None:
            self.levels[node_id] = level

    def level_of(self, node_id: str) -> int:
        if self.levels is None:
            return 0
        return self.levels.get(node_id, 0)

    def push(self, node_id: str, parent: Optional[str] = None) -> None:
        self.frontier.append((node_id, parent))

    def pop_front(self) -> FrontierEntry:
        return self.frontier.pop(0)

    def pop_back(self) -> FrontierEntry:
        return self.frontier.pop()

    def build(self, step_number: int, is_complete: bool = False) -> Snapshot:
        return Snapshot(
            step_number=step_number,
            frontier_entries=tuple(self.frontier),
            visited=tuple(self.visited),
            order=tuple(self.order),
            traversed_edges=tuple(self.traversed_edges),
            levels=tuple(self.levels.items()) if self.levels is not None else None,
            current_node=self.current_node,
            is_complete=is_complete,
        )
