"""
Sokobot — Flask job API.

Levels are validated synchronously; solving runs in a background thread and
is polled by job id.  This module only calls level.parse_level(),
solver.build_level() and solver.solve_level(); it never touches search
internals.
"""

import threading
import uuid

from flask import Flask, jsonify, request

from level import parse_level
from puzzles import PUZZLES, get_puzzle_names
from solver import DEFAULT_MODE, ORDERINGS, build_level, solve_level

app = Flask(__name__)

SOLVE_TIMEOUT = 60          # seconds
MAX_STATES_LIMIT = 1_000_000
PROGRESS_INTERVAL = 5_000

# In-memory job store: job_id -> job dict
jobs: dict[str, dict] = {}


# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

@app.route("/api/levels", methods=["GET"])
def get_levels():
    """Return the built-in puzzle catalog."""
    levels = []
    for name in get_puzzle_names():
        text = PUZZLES[name]
        layout = parse_level(text)
        levels.append({
            "name": name,
            "text": text,
            "boxes": len(layout.boxes()),
        })
    return jsonify(levels)


@app.route("/api/solve", methods=["POST"])
def start_solve():
    """Validate a level synchronously, then solve in a background thread."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify(status="error",
                       message="Request body must be JSON."), 400

    level_text = data.get("level", "")
    if not isinstance(level_text, str) or not level_text.strip():
        return jsonify(status="error",
                       message="Missing 'level' field."), 400

    mode = data.get("mode", DEFAULT_MODE)
    if mode not in ORDERINGS:
        return jsonify(status="error",
                       message=f"Unknown mode '{mode}'."), 400

    max_states = data.get("max_states", MAX_STATES_LIMIT)
    if not isinstance(max_states, int) or isinstance(max_states, bool) \
            or max_states < 0:
        return jsonify(status="error",
                       message="'max_states' must be a non-negative integer."), 400
    max_states = min(max_states, MAX_STATES_LIMIT)

    try:
        layout = parse_level(level_text.strip("\n"))
    except ValueError as e:
        return jsonify(status="error", message=str(e)), 400

    job_id = uuid.uuid4().hex
    job: dict = {
        "status": "searching",
        "mode": mode,
        "states_explored": 0,
        "pushes": None,
        "moves": None,
    }
    jobs[job_id] = job

    thread = threading.Thread(
        target=_run_solver,
        args=(job, build_level(*layout), mode, max_states),
        daemon=True,
    )
    thread.start()

    return jsonify(status="ok", job_id=job_id)


@app.route("/api/solve/<job_id>", methods=["GET"])
def poll_solve(job_id):
    """Poll for the result of a solve job."""
    job = jobs.get(job_id)
    if job is None:
        return jsonify(status="error", message="Job not found."), 404
    if job["status"] != "searching":
        # Finished jobs are reported once, then forgotten.
        jobs.pop(job_id, None)
    return jsonify(job)


def _run_solver(job: dict, level, mode: str, max_states: int) -> None:
    """Run one solve with a wall-clock timeout and record the outcome."""
    def on_progress(n: int) -> None:
        job["states_explored"] = n

    result = [None]
    error = [None]

    def do_solve() -> None:
        try:
            result[0] = solve_level(
                level, mode=mode, max_states=max_states,
                progress_callback=on_progress,
                progress_interval=PROGRESS_INTERVAL,
            )
        except Exception as e:
            error[0] = str(e)

    thread = threading.Thread(target=do_solve, daemon=True)
    thread.start()
    thread.join(timeout=SOLVE_TIMEOUT)

    if thread.is_alive():
        job["status"] = "error"
        job["message"] = "Solver timed out."
    elif error[0]:
        job["status"] = "error"
        job["message"] = error[0]
    elif result[0] is None:
        job["status"] = "no_solution"
    else:
        solution = result[0]
        job["status"] = "solved"
        job["states_explored"] = solution.states_explored
        job["pushes"] = solution.pushes
        job["moves"] = solution.moves


if __name__ == "__main__":
    app.run(debug=True, use_reloader=False, port=5000)
