"""
controller.py — Playback Controller
====================================
The PlaybackController is the ONLY object a caller drives during a run.
It owns the history log, the pending tick and the subscriber list, and
exposes start / pause / resume / reset / step_forward / step_backward.

State machine:
    IDLE     →  start()            →  RUNNING
    RUNNING  →  pause()            →  PAUSED
    PAUSED   →  resume()           →  RUNNING
    RUNNING  →  (last step taken)  →  COMPLETE
    COMPLETE →  step_backward()    →  PAUSED  (IDLE if never started)
    any      →  reset()            →  IDLE

Every other call is a silent no-op (logged at DEBUG).  The one call that
can fail is configure(), with InvalidGraph for an unknown start node.

Timing:
  Ticks go through an injected scheduler (see scheduler.py).  Each tick
  carries the generation number current when it was scheduled; pause(),
  reset() and configure() bump the generation, so a tick that was already
  queued finds a mismatch and does nothing.

Thread safety:
  This class is NOT thread-safe.  All calls, and the scheduler's
  callbacks, must come from one thread (or one asyncio loop).
"""

import functools
import logging
from enum import Enum
from typing import Callable, List, Mapping, Optional, Union

from config import Config, SPEED_PRESETS
from graph import Graph, UnknownNode
from algorithms.step import Snapshot
from algorithms.traversal import Discipline, DiscoveryPolicy, default_policy, seed, step_once
from engine.history import HistoryLog
from engine.scheduler import Cancellable, Scheduler
from engine.state import EMPTY_STATE, TraversalState

logger = logging.getLogger(__name__)

Subscriber = Callable[[TraversalState], None]


class PlaybackState(Enum):
    IDLE     = "idle"
    RUNNING  = "running"
    PAUSED   = "paused"
    COMPLETE = "complete"


class InvalidGraph(ValueError):
    """The start node is not part of the graph."""

    def __init__(self, start_node_id: str):
        super().__init__(f"Start node {start_node_id!r} is not in the graph")
        self.start_node_id = start_node_id


def resolve_speed(speed: Union[float, str]) -> float:
    """Preset name or steps-per-second number → clamped steps per second."""
    if isinstance(speed, str):
        if speed in SPEED_PRESETS:
            value = SPEED_PRESETS[speed]
        else:
            try:
                value = float(speed)
            except ValueError:
                raise ValueError(f"Unknown speed preset: {speed!r}") from None
    else:
        value = float(speed)
    if value != value:  # NaN
        raise ValueError("Speed must be a number")
    return max(Config.MIN_SPEED, min(Config.MAX_SPEED, value))


class PlaybackController:
    """
    Attributes:
        _scheduler   : Where ticks are scheduled.
        _history     : Snapshots of the configured run, with the display cursor.
        _playback    : Current PlaybackState.
        _generation  : Bumped on every cancellation; stale ticks compare against it.
        _pending     : Handle of the scheduled tick, if any.
        _busy        : True while a step is being computed / published.
        _finished_from : State the run was in when it reached COMPLETE.
    """

    def __init__(self, scheduler: Scheduler, speed: Union[float, str, None] = None):
        self._scheduler:   Scheduler                 = scheduler
        self._speed:       float                     = resolve_speed(speed if speed is not None else Config.DEFAULT_SPEED)
        self._graph:       Optional[Graph]           = None
        self._discipline:  Optional[Discipline]      = None
        self._policy:      Optional[DiscoveryPolicy] = None
        self._history:     HistoryLog                = HistoryLog()
        self._playback:    PlaybackState             = PlaybackState.IDLE
        self._generation:  int                       = 0
        self._pending:     Optional[Cancellable]     = None
        self._subscribers: List[Subscriber]          = []
        self._busy:        bool                      = False
        self._finished_from: PlaybackState           = PlaybackState.IDLE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def configure(
        self,
        graph: Union[Graph, Mapping],
        start_node_id: str,
        discipline: Union[Discipline, str] = Config.DEFAULT_ALGORITHM,
        speed: Union[float, str, None] = None,
        policy: Union[DiscoveryPolicy, str, None] = None,
    ) -> None:
        """
        Load a graph and seed step 0.  Any run in progress is dropped.

        `graph` may be a Graph or a plain {node: [neighbours]} mapping,
        which is copied.  `discipline` takes a Discipline, 'fifo' / 'lifo'
        or 'bfs' / 'dfs'; `policy` defaults to the discipline's own.

        Raises:
            InvalidGraph – start_node_id is not a node; nothing is changed.
        """
        if not isinstance(graph, Graph):
            graph = Graph(graph)
        discipline = Discipline.parse(discipline)
        policy = DiscoveryPolicy.parse(policy) if policy is not None else default_policy(discipline)
        new_speed = resolve_speed(speed) if speed is not None else self._speed

        try:
            first = seed(graph, start_node_id, discipline, policy)
        except UnknownNode as exc:
            logger.info("configure rejected: unknown start node %r", start_node_id)
            raise InvalidGraph(start_node_id) from exc

        self._cancel_tick()
        self._graph      = graph
        self._discipline = discipline
        self._policy     = policy
        self._speed      = new_speed
        self._history.clear()
        self._history.append(first)
        self._playback   = PlaybackState.IDLE
        logger.info(
            "Configured %s run from %r (%s, %d nodes, %.2f steps/s)",
            discipline.value, start_node_id, policy.value, graph.node_count(), self._speed,
        )
        self._publish()

    def start(self) -> None:
        if not self.is_configured or self._playback is not PlaybackState.IDLE:
            logger.debug("start() ignored in state %s", self._playback.value)
            return
        self._playback = PlaybackState.RUNNING
        self._schedule_tick()
        logger.info("Run started")
        self._publish()

    def pause(self) -> None:
        if self._playback is not PlaybackState.RUNNING:
            logger.debug("pause() ignored in state %s", self._playback.value)
            return
        self._cancel_tick()
        self._playback = PlaybackState.PAUSED
        self._publish()

    def resume(self) -> None:
        if self._playback is not PlaybackState.PAUSED:
            logger.debug("resume() ignored in state %s", self._playback.value)
            return
        self._playback = PlaybackState.RUNNING
        self._schedule_tick()
        self._publish()

    def reset(self) -> None:
        """Back to IDLE with nothing configured — call configure() again."""
        self._cancel_tick()
        self._graph      = None
        self._discipline = None
        self._policy     = None
        self._history.clear()
        self._playback   = PlaybackState.IDLE
        logger.info("Run reset")
        self._publish()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def step_forward(self) -> None:
        """Replay the next stored step, or compute a new one at the tip."""
        if self._busy or not self.is_configured:
            logger.debug("step_forward() ignored")
            return
        if not self._history.at_tip:
            snap = self._history.restore(self._history.cursor + 1)
            if snap.is_complete:
                self._finish()
            self._publish()
            return
        if self._history.current.is_complete:
            logger.debug("step_forward() ignored: run complete")
            return
        if self._compute_step():
            self._publish()

    def step_backward(self) -> None:
        if self._busy or not self.is_configured or self._history.cursor <= 0:
            logger.debug("step_backward() ignored")
            return
        snap = self._history.restore(self._history.cursor - 1)
        if self._playback is PlaybackState.COMPLETE and not snap.is_complete:
            # a run that was only ever stepped by hand was never started
            if self._finished_from is PlaybackState.IDLE:
                self._playback = PlaybackState.IDLE
            else:
                self._playback = PlaybackState.PAUSED
        self._publish()

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------
    def set_speed(self, speed: Union[float, str]) -> None:
        """Steps per second, or a preset name.  A pending tick is re-timed."""
        self._speed = resolve_speed(speed)
        if self._playback is PlaybackState.RUNNING:
            self._cancel_tick()
            self._schedule_tick()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, on_change: Subscriber) -> Callable[[], None]:
        """Call `on_change(state)` after every change.  Returns an unsubscribe function."""
        self._subscribers.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._subscribers:
                self._subscribers.remove(on_change)

        return unsubscribe

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> TraversalState:
        snap = self._history.current
        if snap is None:
            return EMPTY_STATE
        return TraversalState.from_snapshot(
            snap,
            is_running=self._playback is PlaybackState.RUNNING,
            step=self._history.cursor,
            total_steps=len(self._history),
        )

    @property
    def playback_state(self) -> PlaybackState:
        return self._playback

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._history.current

    @property
    def cursor(self) -> int:
        return self._history.cursor

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def interval(self) -> float:
        """Seconds between automatic ticks."""
        return 1.0 / self._speed

    @property
    def discipline(self) -> Optional[Discipline]:
        return self._discipline

    @property
    def policy(self) -> Optional[DiscoveryPolicy]:
        return self._policy

    @property
    def is_configured(self) -> bool:
        return self._graph is not None and self._history.current is not None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _compute_step(self) -> bool:
        """Step from the snapshot under the cursor and append the result."""
        current = self._history.current
        nxt, did_work = step_once(self._graph, current, self._discipline, self._policy)
        if nxt is current:
            return False
        self._history.append(nxt)
        if not did_work:
            logger.debug("Frontier exhausted at step %d", nxt.step_number)
        if nxt.is_complete:
            self._finish()
        return True

    def _finish(self) -> None:
        self._cancel_tick()
        if self._playback is not PlaybackState.COMPLETE:
            self._finished_from = self._playback
            logger.info("Run complete after %d step(s)", len(self._history) - 1)
        self._playback = PlaybackState.COMPLETE

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Stale tick (generation %d, now %d) dropped", generation, self._generation)
            return
        self._pending = None
        if self._playback is not PlaybackState.RUNNING or self._busy:
            return
        if self._compute_step():
            self._publish()
        # a subscriber may have cancelled or rescheduled during publish
        if (
            self._playback is PlaybackState.RUNNING
            and self._generation == generation
            and self._pending is None
        ):
            self._schedule_tick()

    def _schedule_tick(self) -> None:
        callback = functools.partial(self._on_tick, self._generation)
        self._pending = self._scheduler.call_later(self.interval, callback)

    def _cancel_tick(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _publish(self) -> None:
        state = self.state
        was_busy, self._busy = self._busy, True
        try:
            for on_change in list(self._subscribers):
                on_change(state)
        finally:
            self._busy = was_busy

    def __repr__(self) -> str:
        return (
            f"PlaybackController(state={self._playback.value}, "
            f"cursor={self._history.cursor}, length={len(self._history)})"
        )
