"""
algorithms/__init__.py — Algorithm Registry
=============================================
Single source of truth for every traversal the engine knows about.

    from algorithms import REGISTRY, get_algorithm

REGISTRY is a dict:
    {
        "bfs": AlgoInfo(key, label, fn, pseudocode, discipline, default_policy, …),
        …
    }

Both entries drive the same step function; the card just pins down the
frontier discipline and the discovery-marking policy each one uses by
default.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from algorithms.bfs import bfs as _bfs, PSEUDOCODE as _bfs_pc
from algorithms.dfs import dfs as _dfs, PSEUDOCODE as _dfs_pc
from algorithms.step import Snapshot, SnapshotBuilder
from algorithms.traversal import (
    Discipline,
    DiscoveryPolicy,
    default_policy,
    seed,
    step_once,
    walk,
)


# ---------------------------------------------------------------------------
# AlgoInfo — metadata card for each algorithm
# ---------------------------------------------------------------------------
@dataclass
class AlgoInfo:
    key:              str                    # registry key, e.g. "bfs"
    label:            str                    # human label, e.g. "Breadth-First Search"
    fn:               Callable               # the generator function
    pseudocode:       List[str]              # lines for the side-panel
    discipline:       Discipline
    default_policy:   DiscoveryPolicy
    tags:             List[str] = field(default_factory=list)
    complexity_time:  str      = ""          # e.g. "O(V + E)"
    complexity_space: str      = ""          # e.g. "O(V)"
    description:      str      = ""          # one-liner for the UI card

    def to_dict(self) -> dict:
        return {
            "key":              self.key,
            "label":            self.label,
            "pseudocode":       list(self.pseudocode),
            "discipline":       self.discipline.value,
            "default_policy":   self.default_policy.value,
            "tags":             list(self.tags),
            "complexity_time":  self.complexity_time,
            "complexity_space": self.complexity_space,
            "description":      self.description,
        }


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[str, AlgoInfo] = {

    "bfs": AlgoInfo(
        key="bfs", label="Breadth-First Search", fn=_bfs, pseudocode=_bfs_pc,
        discipline=Discipline.FIFO, default_policy=DiscoveryPolicy.ON_ENQUEUE,
        tags=["unweighted", "shortest-path", "traversal", "levels"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Explores layer-by-layer. Levels are hop counts from the source.",
    ),

    "dfs": AlgoInfo(
        key="dfs", label="Depth-First Search", fn=_dfs, pseudocode=_dfs_pc,
        discipline=Discipline.LIFO, default_policy=DiscoveryPolicy.ON_DEQUEUE,
        tags=["unweighted", "traversal"],
        complexity_time="O(V + E)", complexity_space="O(E)",
        description="Dives deep before backtracking. Does NOT guarantee shortest path.",
    ),
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(key: str) -> Optional[AlgoInfo]:
    """Return AlgoInfo by key, or None."""
    return REGISTRY.get(key)


def list_algorithms() -> List[AlgoInfo]:
    """Return all registered algorithms in insertion order."""
    return list(REGISTRY.values())


def algorithm_for(discipline: Discipline) -> AlgoInfo:
    """The registry card whose frontier discipline matches."""
    for info in REGISTRY.values():
        if info.discipline is discipline:
            return info
    raise LookupError(f"No algorithm registered for {discipline}")


__all__ = [
    "AlgoInfo",
    "REGISTRY",
    "get_algorithm",
    "list_algorithms",
    "algorithm_for",
    "Discipline",
    "DiscoveryPolicy",
    "default_policy",
    "Snapshot",
    "SnapshotBuilder",
    "seed",
    "step_once",
    "walk",
]
