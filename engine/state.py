"""
state.py — Observable Traversal State
======================================
What subscribers (the renderer, the JSON API) actually see.  Built from
the Snapshot under the history cursor plus the controller's playback
flags; never handed out mutable.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple

from algorithms.step import Snapshot


@dataclass(frozen=True)
class TraversalState:
    visited_nodes:   FrozenSet[str]                         = frozenset()
    current_node:    Optional[str]                          = None
    frontier:        Tuple[str, ...]                        = ()
    order:           Tuple[str, ...]                        = ()
    traversed_edges: FrozenSet[Tuple[str, str]]             = frozenset()
    is_running:      bool                                   = False
    is_complete:     bool                                   = False
    current_level:   Optional[int]                          = None
    level_nodes:     Optional[Dict[int, Tuple[str, ...]]]   = None
    step:            int                                    = 0     # history cursor
    total_steps:     int                                    = 0     # history length

    @classmethod
    def from_snapshot(
        cls,
        snap: Snapshot,
        is_running: bool,
        step: int,
        total_steps: int,
    ) -> "TraversalState":
        return cls(
            visited_nodes=snap.visited_set,
            current_node=snap.current_node,
            frontier=snap.frontier,
            order=snap.order,
            traversed_edges=snap.edge_set,
            is_running=is_running,
            is_complete=snap.is_complete,
            current_level=snap.current_level,
            level_nodes=snap.level_nodes(),
            step=step,
            total_steps=total_steps,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; sets come out sorted so payloads are stable."""
        return {
            "visited_nodes":   sorted(self.visited_nodes),
            "current_node":    self.current_node,
            "frontier":        list(self.frontier),
            "order":           list(self.order),
            "traversed_edges": [list(edge) for edge in sorted(self.traversed_edges)],
            "is_running":      self.is_running,
            "is_complete":     self.is_complete,
            "current_level":   self.current_level,
            "level_nodes":     (
                {str(level): list(nodes) for level, nodes in self.level_nodes.items()}
                if self.level_nodes is not None else None
            ),
            "step":            self.step,
            "total_steps":     self.total_steps,
        }


EMPTY_STATE = TraversalState()
