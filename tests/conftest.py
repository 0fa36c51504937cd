"""Shared test fixtures."""

from typing import List

import pytest

from graph import Graph
from engine import ManualScheduler, PlaybackController, TraversalState


SCENARIO_ADJACENCY = {"A": ["B", "C"], "B": ["D"], "C": [], "D": []}


@pytest.fixture()
def scenario_graph() -> Graph:
    return Graph(SCENARIO_ADJACENCY)


@pytest.fixture()
def sample_graph() -> Graph:
    return Graph.default()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def controller(scheduler: ManualScheduler) -> PlaybackController:
    return PlaybackController(scheduler, speed=1.0)


@pytest.fixture()
def published(controller: PlaybackController) -> List[TraversalState]:
    """Every state the controller publishes, in order."""
    seen: List[TraversalState] = []
    controller.subscribe(seen.append)
    return seen
