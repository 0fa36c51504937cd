"""
recorder.py — Run Recorder & Analytics
========================================
Records a complete traversal (all Snapshots) without any timers, then
computes the analytics the UI shows for a run and for Comparison Mode.

Usage:
    rec = Recorder()
    rec.start(algo_key="bfs", source="A", graph=g)
    rec.run_to_completion()          # exhausts the generator
    metrics = rec.get_metrics()      # the analytics card
    rec.export()                     # serialisable snapshot list

Comparison Mode:
    Two Recorders (one per algorithm) run to completion on the SAME
    graph, then compare(rec1, rec2) → ComparisonResult.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generator, List, Optional

from graph import Graph, UnknownNode
from algorithms import AlgoInfo, get_algorithm
from algorithms.step import Snapshot
from algorithms.traversal import DiscoveryPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metrics dataclass — what the Analytics panel renders
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    algo_key:        str   = ""
    algo_label:      str   = ""
    policy:          str   = ""
    source:          str   = ""
    nodes_visited:   int   = 0
    edges_traversed: int   = 0
    total_steps:     int   = 0          # snapshots after the seed
    max_frontier:    int   = 0          # peak queue / stack length
    max_depth:       int   = 0          # deepest node in the discovery tree
    wall_time_ms:    float = 0.0
    order:           List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# ComparisonResult — side-by-side analytics
# ---------------------------------------------------------------------------
@dataclass
class ComparisonResult:
    left:  RunMetrics = field(default_factory=RunMetrics)
    right: RunMetrics = field(default_factory=RunMetrics)
    # derived
    winner_frontier: str = ""   # which run needed the smaller frontier
    winner_depth:    str = ""   # which run built the shallower tree
    same_order:      bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------
class Recorder:
    """
    Attributes:
        snapshots : Full list of Snapshots from the run (seed first).
        metrics   : Computed RunMetrics (available after run_to_completion).
    """

    def __init__(self):
        self.snapshots: List[Snapshot]       = []
        self.metrics:   Optional[RunMetrics] = None

        self._generator: Optional[Generator[Snapshot, None, None]] = None
        self._algo_info: Optional[AlgoInfo]        = None
        self._policy:    Optional[DiscoveryPolicy] = None
        self._source:    str                       = ""
        self._graph:     Optional[Graph]           = None

    # ------------------------------------------------------------------
    # Setup & run
    # ------------------------------------------------------------------
    def start(
        self,
        algo_key: str,
        source: str,
        graph: Graph,
        policy: Optional[DiscoveryPolicy] = None,
    ) -> None:
        """Initialise the generator for this run."""
        info = get_algorithm(algo_key)
        if info is None:
            raise ValueError(f"Unknown algorithm: {algo_key}")
        if not graph.has_node(source):
            raise UnknownNode(source)

        self._algo_info = info
        self._policy    = policy or info.default_policy
        self._source    = source
        self._graph     = graph
        self.snapshots  = []
        self.metrics    = None

        self._generator = info.fn(graph, source, policy=self._policy)

    def run_to_completion(self) -> RunMetrics:
        """Exhaust the generator, record every snapshot, compute metrics."""
        if self._generator is None:
            raise RuntimeError("Call start() first.")

        started = time.monotonic()
        self.snapshots = list(self._generator)
        self._generator = None
        wall_ms = (time.monotonic() - started) * 1000

        self.metrics = self._compute_metrics(wall_ms)
        logger.debug(
            "Recorded %s from %r: %d snapshots",
            self.metrics.algo_key, self._source, len(self.snapshots),
        )
        return self.metrics

    def get_metrics(self) -> Optional[RunMetrics]:
        return self.metrics

    # ------------------------------------------------------------------
    # Export (serialisable)
    # ------------------------------------------------------------------
    def export(self) -> Dict[str, Any]:
        return {
            "algo_key": self._algo_info.key if self._algo_info else "",
            "policy":   self._policy.value if self._policy else "",
            "source":   self._source,
            "graph":    self._graph.to_dict() if self._graph else {},
            "metrics":  asdict(self.metrics) if self.metrics else {},
            "snapshots": [
                {
                    "step_number":     s.step_number,
                    "current_node":    s.current_node,
                    "frontier":        list(s.frontier),
                    "visited":         list(s.visited),
                    "order":           list(s.order),
                    "traversed_edges": [list(e) for e in s.traversed_edges],
                    "levels":          dict(s.levels) if s.levels is not None else None,
                    "is_complete":     s.is_complete,
                }
                for s in self.snapshots
            ],
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _compute_metrics(self, wall_ms: float) -> RunMetrics:
        info = self._algo_info
        last = self.snapshots[-1] if self.snapshots else None

        return RunMetrics(
            algo_key=info.key if info else "",
            algo_label=info.label if info else "",
            policy=self._policy.value if self._policy else "",
            source=self._source,
            nodes_visited=len(last.visited) if last else 0,
            edges_traversed=len(last.traversed_edges) if last else 0,
            total_steps=max(len(self.snapshots) - 1, 0),
            max_frontier=max((len(s.frontier_entries) for s in self.snapshots), default=0),
            max_depth=_tree_depth(last) if last else 0,
            wall_time_ms=round(wall_ms, 2),
            order=list(last.order) if last else [],
        )


def _tree_depth(snap: Snapshot) -> int:
    """Depth of the discovery tree spanned by the snapshot's edges."""
    depth: Dict[str, int] = {}
    for parent, child in snap.traversed_edges:
        depth[child] = depth.get(parent, 0) + 1
    return max(depth.values(), default=0)


# ---------------------------------------------------------------------------
# Comparison helper
# ---------------------------------------------------------------------------
def compare(left: Recorder, right: Recorder) -> ComparisonResult:
    """Given two completed Recorders, produce a ComparisonResult."""
    l = left.metrics or RunMetrics()
    r = right.metrics or RunMetrics()

    def winner(l_val, r_val, l_key, r_key):
        if l_val == r_val:
            return "tie"
        return l_key if l_val < r_val else r_key

    return ComparisonResult(
        left=l,
        right=r,
        winner_frontier=winner(l.max_frontier, r.max_frontier, l.algo_label, r.algo_label),
        winner_depth=winner(l.max_depth, r.max_depth, l.algo_label, r.algo_label),
        same_order=l.order == r.order,
    )
