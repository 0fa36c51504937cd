"""
engine/
-------
Playback & recording layer.

    from engine import PlaybackController, ManualScheduler, Recorder, compare
"""

from engine.history    import HistoryLog
from engine.scheduler  import AsyncioScheduler, ManualScheduler, Scheduler
from engine.state      import TraversalState
from engine.controller import InvalidGraph, PlaybackController, PlaybackState, resolve_speed
from engine.recorder   import Recorder, RunMetrics, ComparisonResult, compare

__all__ = [
    "HistoryLog",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "TraversalState",
    "PlaybackController",
    "PlaybackState",
    "InvalidGraph",
    "resolve_speed",
    "Recorder",
    "RunMetrics",
    "ComparisonResult",
    "compare",
]
