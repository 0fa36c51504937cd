"""
dfs.py — Depth-First Search
=============================
Generator-based DFS using an explicit stack (no Python recursion limit issues).

Yields a Snapshot at:
  1. Seed  →  source on the stack
  2. Every pop of a fresh node  →  CURRENT, appended to the order
  3. The step that leaves no fresh entries on the stack  →  complete

Note: iterative DFS with a simple stack visits nodes in a different
order than recursive DFS when a node is pushed multiple times before
being popped.  The default here is the "mark on pop" strategy: a node can
sit on the stack more than once, and the copies that surface after it was
already visited are discarded without costing a step.  Pass
DiscoveryPolicy.ON_ENQUEUE to claim nodes as they are pushed instead.
"""

from typing import Generator, List

from graph import Graph
from algorithms.step import Snapshot
from algorithms.traversal import Discipline, DiscoveryPolicy, walk


# ---------------------------------------------------------------------------
# Pseudocode
# ---------------------------------------------------------------------------
PSEUDOCODE: List[str] = [
    "def DFS(graph, source):",                  # 0
    "    stack ← [source]",                     # 1
    "    visited ← {}",                         # 2
    "    while stack is not empty:",            # 3
    "        node ← stack.pop()",               # 4
    "        if node in visited: continue",     # 5
    "        visited.add(node)",                # 6
    "        order.append(node)",               # 7
    "        for neighbour in adj(node):",      # 8
    "            if neighbour not visited:",    # 9
    "                stack.push(neighbour)",    # 10
    "    return order",                         # 11
]


def dfs(
    graph: Graph,
    source: str,
    policy: DiscoveryPolicy = DiscoveryPolicy.ON_DEQUEUE,
) -> Generator[Snapshot, None, None]:
    """Iterative DFS, one Snapshot per pop of a fresh node."""
    yield from walk(graph, source, Discipline.LIFO, policy)
