"""
main.py — Traversal Stepper Flask App
======================================
JSON API over the playback engine, for a browser front-end that does
its own drawing.

Routes:
  GET    /api/algorithms             – registry cards (label, pseudocode, …)
  POST   /api/runs                   – configure a new run
  GET    /api/runs/<id>              – current state (poll this)
  POST   /api/runs/<id>/start        – IDLE → RUNNING
  POST   /api/runs/<id>/pause        – RUNNING → PAUSED
  POST   /api/runs/<id>/resume       – PAUSED → RUNNING
  POST   /api/runs/<id>/reset        – back to step 0, IDLE
  POST   /api/runs/<id>/step/next    – one step forward (replay or compute)
  POST   /api/runs/<id>/step/prev    – one step back
  POST   /api/runs/<id>/speed        – change steps per second
  DELETE /api/runs/<id>              – drop the run
  POST   /api/compare                – BFS vs DFS analytics on one graph

State management:
  Runs live in memory on the app (`app.extensions["traversal_runs"]`),
  one PlaybackController per run.  There is no background thread: each
  run's ManualScheduler follows time.monotonic and is caught up at the
  start of every request that touches the run, so ticks that fell due
  between two polls are applied in order before the response is built.
  The controller is not thread-safe, so each request holds its run's
  lock (`RunRegistry.checkout`) for as long as it touches the run.
"""

import logging
import secrets
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional

from flask import Flask, current_app, jsonify, request

from config import Config
from graph import Graph, UnknownNode
from algorithms import get_algorithm, list_algorithms
from engine import ManualScheduler, PlaybackController, Recorder, compare

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Run registry
# ---------------------------------------------------------------------------
@dataclass
class Run:
    controller: PlaybackController
    scheduler:  ManualScheduler
    graph:      Graph
    start:      str
    algorithm:  str
    policy:     Optional[str]
    lock:       threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def reconfigure(self) -> None:
        self.controller.configure(
            self.graph, self.start, self.algorithm,
            speed=self.controller.speed, policy=self.policy,
        )

    def to_dict(self, run_id: str) -> Dict[str, Any]:
        ctl = self.controller
        return {
            "run_id":    run_id,
            "algorithm": self.algorithm,
            "policy":    ctl.policy.value if ctl.policy else None,
            "playback":  ctl.playback_state.value,
            "speed":     ctl.speed,
            "state":     ctl.state.to_dict(),
        }


class RunRegistry:
    """In-memory runs, oldest evicted first once `max_runs` is reached."""

    def __init__(self, max_runs: int):
        self.max_runs = max_runs
        self._runs: "OrderedDict[str, Run]" = OrderedDict()
        self._lock = threading.Lock()

    def add(self, run: Run) -> str:
        with self._lock:
            while len(self._runs) >= self.max_runs:
                evicted_id, evicted = self._runs.popitem(last=False)
                with evicted.lock:
                    evicted.controller.reset()
                logger.info("Evicted run %s", evicted_id)
            run_id = secrets.token_hex(8)
            self._runs[run_id] = run
        return run_id

    def get(self, run_id: str) -> Optional[Run]:
        with self._lock:
            return self._runs.get(run_id)

    @contextmanager
    def checkout(self, run_id: str) -> Iterator[Optional[Run]]:
        """Hold the run's lock for one request, caught up with the clock first."""
        run = self.get(run_id)
        if run is None:
            yield None
            return
        with run.lock:
            run.scheduler.tick()
            yield run

    def remove(self, run_id: str) -> bool:
        with self._lock:
            run = self._runs.pop(run_id, None)
        if run is None:
            return False
        with run.lock:
            run.controller.reset()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)


def get_registry() -> RunRegistry:
    return current_app.extensions["traversal_runs"]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _not_found(run_id: str):
    return jsonify({"error": f"Unknown run: {run_id}"}), 404


def _graph_from(data: Dict[str, Any]) -> Graph:
    """The request's graph payload, or the sample graph when none is sent."""
    payload = data.get("graph")
    if payload is None:
        return Graph.default()
    return Graph.from_dict(payload)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    app.config.from_prefixed_env("TRAVERSAL")
    if overrides:
        app.config.update(overrides)

    app.extensions["traversal_runs"] = RunRegistry(int(app.config["MAX_RUNS"]))

    # -----------------------------------------------------------------------
    # API: Algorithms
    # -----------------------------------------------------------------------
    @app.route("/api/algorithms", methods=["GET"])
    def api_algorithms():
        return jsonify({"algorithms": [info.to_dict() for info in list_algorithms()]})

    # -----------------------------------------------------------------------
    # API: Runs
    # -----------------------------------------------------------------------
    @app.route("/api/runs", methods=["POST"])
    def api_run_create():
        data = _body()
        algo_key = data.get("algorithm", app.config["DEFAULT_ALGORITHM"])
        if get_algorithm(algo_key) is None:
            return jsonify({"error": f"Unknown algorithm: {algo_key}"}), 400

        start = data.get("start")
        if not isinstance(start, str) or not start:
            return jsonify({"error": "Set a start node first"}), 400

        try:
            graph = _graph_from(data)
        except (ValueError, TypeError) as e:
            return jsonify({"error": f"Bad graph: {e}"}), 400

        scheduler  = ManualScheduler(clock=app.config.get("CLOCK", time.monotonic))
        controller = PlaybackController(scheduler, speed=app.config["DEFAULT_SPEED"])
        policy     = data.get("policy")
        try:
            controller.configure(graph, start, algo_key, speed=data.get("speed"), policy=policy)
        except (ValueError, TypeError) as e:     # InvalidGraph, bad policy or speed
            return jsonify({"error": str(e)}), 400

        run = Run(controller, scheduler, graph, start, algo_key, policy)
        run_id = get_registry().add(run)
        logger.info("Created run %s (%s from %r)", run_id, algo_key, start)
        return jsonify(run.to_dict(run_id)), 201

    @app.route("/api/runs/<run_id>", methods=["GET"])
    def api_run_state(run_id: str):
        with get_registry().checkout(run_id) as run:
            if run is None:
                return _not_found(run_id)
            return jsonify(run.to_dict(run_id))

    @app.route("/api/runs/<run_id>", methods=["DELETE"])
    def api_run_delete(run_id: str):
        if not get_registry().remove(run_id):
            return _not_found(run_id)
        return "", 204

    # -----------------------------------------------------------------------
    # API: Playback
    # -----------------------------------------------------------------------
    def _apply(run_id: str, action):
        with get_registry().checkout(run_id) as run:
            if run is None:
                return _not_found(run_id)
            action(run)
            return jsonify(run.to_dict(run_id))

    @app.route("/api/runs/<run_id>/start", methods=["POST"])
    def api_run_start(run_id: str):
        return _apply(run_id, lambda run: run.controller.start())

    @app.route("/api/runs/<run_id>/pause", methods=["POST"])
    def api_run_pause(run_id: str):
        return _apply(run_id, lambda run: run.controller.pause())

    @app.route("/api/runs/<run_id>/resume", methods=["POST"])
    def api_run_resume(run_id: str):
        return _apply(run_id, lambda run: run.controller.resume())

    @app.route("/api/runs/<run_id>/reset", methods=["POST"])
    def api_run_reset(run_id: str):
        return _apply(run_id, lambda run: run.reconfigure())

    @app.route("/api/runs/<run_id>/step/next", methods=["POST"])
    def api_step_next(run_id: str):
        return _apply(run_id, lambda run: run.controller.step_forward())

    @app.route("/api/runs/<run_id>/step/prev", methods=["POST"])
    def api_step_prev(run_id: str):
        return _apply(run_id, lambda run: run.controller.step_backward())

    @app.route("/api/runs/<run_id>/speed", methods=["POST"])
    def api_run_speed(run_id: str):
        speed = _body().get("speed")
        with get_registry().checkout(run_id) as run:
            if run is None:
                return _not_found(run_id)
            if speed is None:
                return jsonify({"error": "Missing 'speed'"}), 400
            try:
                run.controller.set_speed(speed)
            except (ValueError, TypeError) as e:
                return jsonify({"error": str(e)}), 400
            return jsonify(run.to_dict(run_id))

    # -----------------------------------------------------------------------
    # API: Comparison Mode
    # -----------------------------------------------------------------------
    @app.route("/api/compare", methods=["POST"])
    def api_compare():
        data = _body()
        start = data.get("start")
        if not isinstance(start, str) or not start:
            return jsonify({"error": "Set a start node first"}), 400
        try:
            graph = _graph_from(data)
        except (ValueError, TypeError) as e:
            return jsonify({"error": f"Bad graph: {e}"}), 400

        left, right = Recorder(), Recorder()
        try:
            left.start("bfs", start, graph)
            right.start("dfs", start, graph)
        except UnknownNode as e:
            return jsonify({"error": str(e)}), 400
        left.run_to_completion()
        right.run_to_completion()
        return jsonify(compare(left, right).to_dict())

    return app


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("=" * 60)
    print("  Graph Traversal Stepper")
    print("  Starting Flask server...")
    print("  Open http://localhost:5000/api/algorithms")
    print("=" * 60)
    create_app().run(debug=False, port=5000)
