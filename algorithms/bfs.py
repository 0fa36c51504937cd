"""
bfs.py — Breadth-First Search
==============================
Generator-based BFS.  Yields one Snapshot per discrete step:
  1. Seed  →  source alone in the queue, already marked visited
  2. Dequeue a node  →  it becomes CURRENT and joins the order
  3. Every unseen neighbour is marked visited, given level + 1,
     recorded with its discovery edge and enqueued
  4. The step that empties the queue is flagged complete

Nodes are claimed on enqueue, so each enters the queue exactly once and
level(child) == level(parent) + 1 for every discovery edge.

Pseudocode lines match the PSEUDOCODE constant exported alongside the
generator so the UI can show them in the side-panel.
"""

from typing import Generator, List

from graph import Graph
from algorithms.step import Snapshot
from algorithms.traversal import Discipline, DiscoveryPolicy, walk


# ---------------------------------------------------------------------------
# Pseudocode — each string is one displayed line
# ---------------------------------------------------------------------------
PSEUDOCODE: List[str] = [
    "def BFS(graph, source):",                  # 0
    "    queue ← [source]",                     # 1
    "    visited ← {source}",                   # 2
    "    level[source] ← 0",                    # 3
    "    while queue is not empty:",            # 4
    "        node ← queue.dequeue()",           # 5
    "        order.append(node)",               # 6
    "        for neighbour in adj(node):",      # 7
    "            if neighbour not visited:",    # 8
    "                visited.add(neighbour)",   # 9
    "                level[neighbour] ← level[node] + 1",  # 10
    "                queue.enqueue(neighbour)", # 11
    "    return order",                         # 12
]


def bfs(
    graph: Graph,
    source: str,
    policy: DiscoveryPolicy = DiscoveryPolicy.ON_ENQUEUE,
) -> Generator[Snapshot, None, None]:
    """
    Yields Snapshots for a full breadth-first run from `source`.

    Args:
        graph  : The graph to traverse.
        source : Starting node id.
        policy : ON_DEQUEUE claims nodes when dequeued instead; a pending
                 node is still never enqueued twice.

    Raises:
        UnknownNode – if `source` is not in the graph (on first next()).
    """
    yield from walk(graph, source, Discipline.FIFO, policy)
