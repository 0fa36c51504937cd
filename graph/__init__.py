"""
graph/
-----
Core data layer.  Public API:

    from graph import Graph, UnknownNode
"""

from graph.graph import Graph, UnknownNode

__all__ = [
    "Graph",
    "UnknownNode",
]
