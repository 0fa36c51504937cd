"""
traversal.py — The Step Function
=================================
One pure function, `step_once`, computes one discrete transition of a
breadth-first or depth-first traversal.  The two algorithms differ in
exactly two parameters:

    Discipline       FIFO  → remove from the front   (BFS)
                     LIFO  → remove from the back    (DFS)

    DiscoveryPolicy  ON_ENQUEUE → a node is claimed the moment it is
                                  pushed, so it enters the frontier once
                     ON_DEQUEUE → a node is claimed when it is popped;
                                  duplicate entries may pile up and are
                                  thrown away later as stale

The policy decides which parent "owns" a child reached from several
parents: ON_ENQUEUE keeps the first pusher, ON_DEQUEUE keeps the pusher
whose entry gets popped first.  BFS defaults to ON_ENQUEUE, DFS to
ON_DEQUEUE; either can be overridden per run.

No randomness, no clock — the same graph, start and parameters always
produce the same sequence of Snapshots.
"""

from enum import Enum
from typing import Generator, Optional, Tuple, Union

from graph import Graph, UnknownNode
from algorithms.step import Snapshot, SnapshotBuilder


class Discipline(Enum):
    FIFO = "fifo"   # queue — breadth-first
    LIFO = "lifo"   # stack — depth-first

    @classmethod
    def parse(cls, value: Union["Discipline", str]) -> "Discipline":
        """Accepts a Discipline, 'fifo' / 'lifo' or an algorithm key 'bfs' / 'dfs'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {"bfs": cls.FIFO, "dfs": cls.LIFO}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown traversal discipline: {value!r}") from None


class DiscoveryPolicy(Enum):
    ON_ENQUEUE = "on_enqueue"
    ON_DEQUEUE = "on_dequeue"

    @classmethod
    def parse(cls, value: Union["DiscoveryPolicy", str]) -> "DiscoveryPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown discovery policy: {value!r}") from None


def default_policy(discipline: Discipline) -> DiscoveryPolicy:
    if discipline is Discipline.FIFO:
        return DiscoveryPolicy.ON_ENQUEUE
    return DiscoveryPolicy.ON_DEQUEUE


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------
def seed(
    graph: Graph,
    start: str,
    discipline: Discipline,
    policy: Optional[DiscoveryPolicy] = None,
) -> Snapshot:
    """Step 0: the start node alone in the frontier.  Raises UnknownNode."""
    if not graph.has_node(start):
        raise UnknownNode(start)
    policy = policy or default_policy(discipline)

    sb = SnapshotBuilder(track_levels=discipline is Discipline.FIFO)
    sb.push(start)
    if policy is DiscoveryPolicy.ON_ENQUEUE:
        sb.visit(start)
    sb.set_level(start, 0)
    sb.current_node = start
    return sb.build(step_number=0)


# ---------------------------------------------------------------------------
# One step
# ---------------------------------------------------------------------------
def step_once(
    graph: Graph,
    snap: Snapshot,
    discipline: Discipline,
    policy: Optional[DiscoveryPolicy] = None,
) -> Tuple[Snapshot, bool]:
    """
    Compute the Snapshot that follows `snap`.

    Returns:
        (next_snapshot, did_work) — did_work is False when there was nothing
        left to expand.  A snapshot that is already complete comes back as
        the very same object.
    """
    if snap.is_complete:
        return snap, False
    policy = policy or default_policy(discipline)

    sb = SnapshotBuilder.from_snapshot(snap)
    _drop_stale(sb, discipline, policy)

    if not sb.frontier:
        sb.current_node = None
        return sb.build(step_number=snap.step_number + 1, is_complete=True), False

    node, parent = sb.pop_front() if discipline is Discipline.FIFO else sb.pop_back()
    if policy is DiscoveryPolicy.ON_DEQUEUE:
        sb.visit(node)
        if parent is not None:
            sb.record_edge(parent, node)
    sb.finalise(node)

    child_level = sb.level_of(node) + 1
    for nbr in graph.neighbours(node):
        if sb.is_visited(nbr):
            continue
        if discipline is Discipline.FIFO and sb.is_pending(nbr):
            continue
        if policy is DiscoveryPolicy.ON_ENQUEUE:
            sb.visit(nbr)
            sb.record_edge(node, nbr)
        sb.set_level(nbr, child_level)
        sb.push(nbr, parent=node)

    complete = not any(_is_live(sb, n, policy) for n, _ in sb.frontier)
    if complete:
        # only stale duplicates can be left over here
        sb.frontier.clear()
    return sb.build(step_number=snap.step_number + 1, is_complete=complete), True


def walk(
    graph: Graph,
    start: str,
    discipline: Discipline,
    policy: Optional[DiscoveryPolicy] = None,
) -> Generator[Snapshot, None, None]:
    """Yield the seed Snapshot, then one Snapshot per step until complete."""
    snap = seed(graph, start, discipline, policy)
    yield snap
    while not snap.is_complete:
        snap, _ = step_once(graph, snap, discipline, policy)
        yield snap


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _is_live(sb: SnapshotBuilder, node_id: str, policy: DiscoveryPolicy) -> bool:
    if policy is DiscoveryPolicy.ON_ENQUEUE:
        return True
    return not sb.is_visited(node_id)


def _drop_stale(sb: SnapshotBuilder, discipline: Discipline, policy: DiscoveryPolicy) -> None:
    """Pop already-claimed entries off the removal end of the frontier."""
    if policy is DiscoveryPolicy.ON_ENQUEUE:
        return
    idx = 0 if discipline is Discipline.FIFO else -1
    while sb.frontier and sb.is_visited(sb.frontier[idx][0]):
        sb.frontier.pop(idx)
