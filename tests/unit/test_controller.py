"""Tests for engine.controller.PlaybackController driven by virtual time."""

import asyncio
import math
from typing import List

import pytest

from graph import Graph
from engine import (
    AsyncioScheduler,
    InvalidGraph,
    ManualScheduler,
    PlaybackController,
    PlaybackState,
    TraversalState,
    resolve_speed,
)
from engine.state import EMPTY_STATE


class _StickyHandle:
    def __init__(self, inner):
        self.inner = inner

    def cancel(self) -> None:
        pass


class UncancellableScheduler(ManualScheduler):
    """Hands out handles whose cancel() does nothing, so every queued tick fires."""

    def call_later(self, delay, callback):
        return _StickyHandle(super().call_later(delay, callback))


def _run_to_end(controller: PlaybackController) -> None:
    while controller.playback_state is not PlaybackState.COMPLETE:
        before = controller.cursor
        controller.step_forward()
        assert controller.cursor == before + 1


class TestConfigure:
    def test_seeds_step_zero(self, controller, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A", "bfs")

        assert controller.playback_state is PlaybackState.IDLE
        assert controller.is_configured
        assert controller.history_length == 1
        assert len(published) == 1
        state = published[0]
        assert state.step == 0
        assert state.total_steps == 1
        assert state.frontier == ("A",)
        assert state.visited_nodes == {"A"}
        assert not state.is_running

    def test_unknown_start_rejected(self, controller, published) -> None:
        with pytest.raises(InvalidGraph) as exc:
            controller.configure({"A": []}, "Z")

        assert exc.value.start_node_id == "Z"
        assert isinstance(exc.value, ValueError)
        assert controller.playback_state is PlaybackState.IDLE
        assert not controller.is_configured
        assert controller.state == EMPTY_STATE
        assert published == []

    def test_failed_configure_leaves_run_untouched(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(1.0)

        with pytest.raises(InvalidGraph):
            controller.configure(scenario_graph, "Z")

        assert controller.playback_state is PlaybackState.RUNNING
        assert controller.history_length == 2
        assert scheduler.pending == 1

    def test_reconfigure_drops_running_run(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(2.0)

        controller.configure(scenario_graph, "B", "dfs")

        assert controller.playback_state is PlaybackState.IDLE
        assert controller.history_length == 1
        assert controller.state.frontier == ("B",)
        assert scheduler.pending == 0

    def test_accepts_plain_mapping(self, controller) -> None:
        adjacency = {"A": ["B", "C"], "B": ["D"], "C": [], "D": []}
        controller.configure(adjacency, "A", "dfs", policy="on_enqueue")
        adjacency["A"].append("Z")
        _run_to_end(controller)

        assert controller.state.order == ("A", "C", "B", "D")
        assert "Z" not in controller.state.visited_nodes


class TestPlayback:
    def test_runs_to_completion(self, controller, scheduler, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A", "bfs")
        controller.start()
        assert controller.playback_state is PlaybackState.RUNNING
        assert published[-1].is_running

        scheduler.advance(10.0)

        assert controller.playback_state is PlaybackState.COMPLETE
        assert controller.history_length == 5
        assert scheduler.pending == 0
        last = published[-1]
        assert last.is_complete
        assert not last.is_running
        assert last.order == ("A", "B", "C", "D")
        assert last.level_nodes == {0: ("A",), 1: ("B", "C"), 2: ("D",)}
        assert [s.step for s in published] == [0, 0, 1, 2, 3, 4]

    def test_one_step_per_interval(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()

        scheduler.advance(0.5)
        assert controller.cursor == 0
        scheduler.advance(0.5)
        assert controller.cursor == 1
        scheduler.advance(2.0)
        assert controller.cursor == 3

    def test_pause_and_resume_are_idempotent(self, controller, scheduler, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(1.0)

        controller.pause()
        seen = len(published)
        controller.pause()
        assert len(published) == seen
        assert controller.playback_state is PlaybackState.PAUSED

        scheduler.advance(5.0)
        assert controller.cursor == 1

        controller.resume()
        controller.resume()
        assert controller.playback_state is PlaybackState.RUNNING
        assert scheduler.pending == 1
        scheduler.advance(1.0)
        assert controller.cursor == 2

    def test_queued_tick_after_pause_does_nothing(self, scenario_graph) -> None:
        sched = UncancellableScheduler()
        controller = PlaybackController(sched, speed=1.0)
        controller.configure(scenario_graph, "A")
        controller.start()
        controller.pause()
        controller.resume()

        # both the pre-pause tick and the post-resume tick fire at t=1.0
        sched.advance(1.0)
        assert controller.cursor == 1

    def test_queued_tick_after_reset_does_nothing(self, scenario_graph) -> None:
        sched = UncancellableScheduler()
        controller = PlaybackController(sched, speed=1.0)
        controller.configure(scenario_graph, "A")
        controller.start()
        controller.configure(scenario_graph, "A")

        sched.advance(3.0)
        assert controller.cursor == 0
        assert controller.playback_state is PlaybackState.IDLE

    def test_start_only_from_idle(self, controller, scheduler, scenario_graph) -> None:
        controller.start()
        assert controller.playback_state is PlaybackState.IDLE
        assert scheduler.pending == 0

        controller.configure(scenario_graph, "A")
        controller.start()
        controller.pause()
        controller.start()
        assert controller.playback_state is PlaybackState.PAUSED

    def test_no_ops_when_idle(self, controller, published) -> None:
        controller.pause()
        controller.resume()
        controller.step_forward()
        controller.step_backward()
        assert published == []
        assert controller.state == EMPTY_STATE

    def test_reset_clears_configuration(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(2.0)

        controller.reset()

        assert controller.playback_state is PlaybackState.IDLE
        assert not controller.is_configured
        assert controller.discipline is None
        assert controller.state == EMPTY_STATE
        assert scheduler.pending == 0
        scheduler.advance(5.0)
        assert controller.history_length == 0


class TestManualStepping:
    def test_replay_returns_stored_snapshots(self, controller, scenario_graph) -> None:
        controller.configure(scenario_graph, "A", "dfs")
        recorded = [controller.snapshot]
        while controller.playback_state is not PlaybackState.COMPLETE:
            controller.step_forward()
            recorded.append(controller.snapshot)

        for index in range(len(recorded) - 2, -1, -1):
            controller.step_backward()
            assert controller.snapshot is recorded[index]
        for index in range(1, len(recorded)):
            controller.step_forward()
            assert controller.snapshot is recorded[index]
        assert controller.history_length == len(recorded)

    def test_step_past_end_is_noop(self, controller, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A")
        _run_to_end(controller)
        seen = len(published)

        controller.step_forward()

        assert len(published) == seen
        assert controller.history_length == 5

    def test_step_before_start_is_noop(self, controller, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A")
        controller.step_backward()
        assert controller.cursor == 0
        assert len(published) == 1

    def test_step_back_from_complete_pauses(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(10.0)
        assert controller.playback_state is PlaybackState.COMPLETE

        controller.step_backward()
        assert controller.playback_state is PlaybackState.PAUSED
        assert not controller.state.is_complete

        controller.step_forward()
        assert controller.playback_state is PlaybackState.COMPLETE
        controller.step_backward()
        assert controller.playback_state is PlaybackState.PAUSED

    def test_hand_stepped_run_stays_unstarted(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        _run_to_end(controller)

        controller.step_backward()
        assert controller.playback_state is PlaybackState.IDLE
        assert not controller.state.is_complete

        controller.resume()
        assert controller.playback_state is PlaybackState.IDLE
        assert scheduler.pending == 0

        controller.step_forward()
        assert controller.playback_state is PlaybackState.COMPLETE
        controller.step_backward()
        assert controller.playback_state is PlaybackState.IDLE

        controller.start()
        assert controller.playback_state is PlaybackState.RUNNING
        scheduler.advance(1.0)
        assert controller.playback_state is PlaybackState.COMPLETE

    def test_tick_after_rewind_truncates(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(2.0)
        original_step_2 = controller.snapshot
        scheduler.advance(1.0)

        controller.pause()
        controller.step_backward()
        controller.step_backward()
        assert controller.cursor == 1
        assert controller.history_length == 4

        controller.resume()
        scheduler.advance(1.0)

        assert controller.history_length == controller.cursor + 1 == 3
        assert controller.snapshot == original_step_2
        assert controller.snapshot is not original_step_2

    def test_manual_step_while_running(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        controller.step_forward()
        assert controller.cursor == 1
        scheduler.advance(1.0)
        assert controller.cursor == 2


class TestSubscriptions:
    def test_restart_from_subscriber_keeps_one_tick(self, controller, scheduler, scenario_graph) -> None:
        restarted = []

        def restart_when_done(state: TraversalState) -> None:
            if state.is_complete and not restarted:
                restarted.append(state.step)
                controller.configure(scenario_graph, "A", "bfs")
                controller.start()

        controller.subscribe(restart_when_done)
        controller.configure(scenario_graph, "A", "bfs")
        controller.start()
        scheduler.advance(4.0)

        assert restarted == [4]
        assert controller.playback_state is PlaybackState.RUNNING
        assert controller.cursor == 0
        assert scheduler.pending == 1
        scheduler.advance(1.0)
        assert controller.cursor == 1
        scheduler.advance(1.0)
        assert controller.cursor == 2

    def test_pause_resume_from_subscriber_keeps_one_tick(self, controller, scheduler, scenario_graph) -> None:
        toggled = []

        def toggle_on_first_step(state: TraversalState) -> None:
            if state.step == 1 and not toggled:
                toggled.append(state.step)
                controller.pause()
                controller.resume()

        controller.subscribe(toggle_on_first_step)
        controller.configure(scenario_graph, "A")
        controller.start()
        scheduler.advance(1.0)

        assert toggled == [1]
        assert controller.cursor == 1
        assert scheduler.pending == 1
        scheduler.advance(1.0)
        assert controller.cursor == 2
        assert scheduler.pending == 1

    def test_nested_publish_keeps_reentrancy_guard(self, controller, scenario_graph) -> None:
        def restart_then_step(state: TraversalState) -> None:
            if state.step == 1:
                controller.configure(scenario_graph, "A")
                controller.step_forward()

        controller.subscribe(restart_then_step)
        controller.configure(scenario_graph, "A")
        controller.step_forward()

        assert controller.cursor == 0
        assert controller.history_length == 1

    def test_unsubscribe(self, controller, scenario_graph) -> None:
        seen: List[TraversalState] = []
        unsubscribe = controller.subscribe(seen.append)
        controller.configure(scenario_graph, "A")
        unsubscribe()
        unsubscribe()
        controller.step_forward()
        assert len(seen) == 1

    def test_reentrant_step_ignored(self, controller, scenario_graph) -> None:
        controller.subscribe(lambda state: controller.step_forward())
        controller.configure(scenario_graph, "A")
        assert controller.cursor == 0

        controller.step_forward()
        assert controller.cursor == 1

    def test_published_states_are_frozen(self, controller, scenario_graph, published) -> None:
        controller.configure(scenario_graph, "A")
        controller.step_forward()
        with pytest.raises(AttributeError):
            published[-1].order = ()
        assert published[0].order == ()
        assert published[1].order == ("A",)


class TestSpeed:
    def test_presets_and_clamping(self) -> None:
        assert resolve_speed("fast") == 6.0
        assert resolve_speed("3") == 3.0
        assert resolve_speed(1000) == 50.0
        assert resolve_speed(0) == 0.1

    @pytest.mark.parametrize("bad", ["warp", math.nan])
    def test_bad_speed(self, bad) -> None:
        with pytest.raises(ValueError):
            resolve_speed(bad)

    def test_interval(self, controller) -> None:
        controller.set_speed(4)
        assert controller.speed == 4.0
        assert controller.interval == 0.25

    def test_speed_change_retimes_tick(self, controller, scheduler, scenario_graph) -> None:
        controller.configure(scenario_graph, "A")
        controller.start()
        assert scheduler.next_due == 1.0

        controller.set_speed(4.0)
        assert scheduler.pending == 1
        assert scheduler.next_due == 0.25

        scheduler.advance(0.5)
        assert controller.cursor == 2


class TestAsyncioScheduler:
    def test_runs_on_event_loop(self, sample_graph: Graph) -> None:
        async def play() -> PlaybackController:
            controller = PlaybackController(AsyncioScheduler(), speed=50.0)
            controller.configure(sample_graph, "A", "bfs")
            controller.start()
            for _ in range(200):
                if controller.playback_state is PlaybackState.COMPLETE:
                    break
                await asyncio.sleep(0.02)
            return controller

        controller = asyncio.run(play())
        assert controller.playback_state is PlaybackState.COMPLETE
        assert controller.state.order == ("A", "B", "C", "D", "E", "F", "G", "H", "I")
