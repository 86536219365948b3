import threading
import time

import pytest

import gridmaze.controller as controller_module
from gridmaze import (CellType, Maze, SolveInProgressError, SolverAlgorithm, SolverState,
                      SolverStatus)


def _slow_maze():
    # At speed 0 every iteration pauses, so a solve takes several seconds.
    maze = Maze(41, 41, seed=7)
    maze.set_animation_speed(0)
    return maze


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.005)
    return True


def _visited(maze):
    return sum(1 for cell in maze.cells()
               if cell.type in (CellType.PATH_VISITED, CellType.PATH_HEAD))


def test_sync_solve_records_results(maze):
    assert maze.state == SolverState.IDLE
    status = maze.solve()

    assert status == SolverStatus.SOLVED
    assert maze.state == SolverState.IDLE
    assert not maze.solver_running()
    assert maze.get_path_length() > 0
    assert maze.get_solve_time() >= 0.0


def test_async_solve_reports_solved_once(maze):
    events = []
    handle = maze.solve_async(events.append)
    status = handle.wait(poll_interval=0.01, timeout=10)

    assert status == SolverStatus.SOLVED
    assert events[-1] == SolverStatus.SOLVED
    assert events.count(SolverStatus.SOLVED) == 1
    assert SolverStatus.CANCELED not in events
    assert not handle.thread.is_alive()
    assert maze.state == SolverState.IDLE

    # Later polls repeat the result without notifying again.
    assert handle.poll() == SolverStatus.SOLVED
    assert events.count(SolverStatus.SOLVED) == 1


def test_async_and_sync_give_same_length(maze):
    maze.solve()
    expected = maze.get_path_length()

    handle = maze.solve_async()
    handle.wait(poll_interval=0.01, timeout=10)
    assert maze.get_path_length() == expected


def test_poll_reports_running_while_busy():
    maze = _slow_maze()
    events = []
    handle = maze.solve_async(events.append)
    try:
        assert handle.poll() == SolverStatus.RUNNING
        assert events == [SolverStatus.RUNNING]
        assert maze.solver_running()
        assert maze.state == SolverState.RUNNING
    finally:
        maze.cancel()


def test_cancel_reports_canceled_and_joins():
    maze = _slow_maze()
    events = []
    handle = maze.solve_async(events.append)
    assert _wait_until(lambda: _visited(maze) > 0)

    maze.cancel()

    assert not handle.thread.is_alive()
    assert handle.poll() == SolverStatus.CANCELED
    assert events[-1] == SolverStatus.CANCELED
    assert SolverStatus.SOLVED not in events
    assert maze.state == SolverState.IDLE


def test_canceled_board_keeps_partial_search():
    maze = _slow_maze()
    handle = maze.solve_async()
    assert _wait_until(lambda: _visited(maze) > 2)

    maze.cancel()
    handle.poll()

    assert _visited(maze) > 0
    assert maze.get_path_length() == 0
    assert sum(1 for cell in maze.cells() if cell.type == CellType.PATH_SOLUTION) == 0


@pytest.mark.parametrize("algorithm", list(SolverAlgorithm))
def test_every_strategy_honours_cancel(algorithm):
    maze = _slow_maze()
    maze.set_algorithm(algorithm)
    handle = maze.solve_async()
    assert _wait_until(lambda: _visited(maze) > 0)

    started = time.monotonic()
    maze.cancel()
    assert time.monotonic() - started < 2.0
    assert handle.poll() == SolverStatus.CANCELED


def test_cancel_from_another_thread_stops_sync_solve():
    maze = _slow_maze()
    timer = threading.Timer(0.1, maze.cancel)
    timer.start()
    try:
        status = maze.solve()
    finally:
        timer.join()

    assert status == SolverStatus.CANCELED
    assert maze.state == SolverState.IDLE


def test_cancel_when_idle_is_a_no_op(maze):
    maze.cancel()
    assert maze.state == SolverState.IDLE
    assert maze.solve() == SolverStatus.SOLVED


def test_requests_are_rejected_while_running():
    maze = _slow_maze()
    start = maze.start_cell
    handle = maze.solve_async()
    try:
        with pytest.raises(SolveInProgressError):
            maze.solve()
        with pytest.raises(SolveInProgressError):
            maze.solve_async()
        with pytest.raises(SolveInProgressError):
            maze.create(21, 21)
        with pytest.raises(SolveInProgressError):
            maze.set_start_cell(1, 1)
        with pytest.raises(SolveInProgressError):
            maze.set_end_cell(1, 1)
    finally:
        maze.cancel()

    assert handle.poll() == SolverStatus.CANCELED
    assert maze.start_cell is start
    assert maze.get_num_rows() == 41


def test_solve_after_cancel_matches_clean_run():
    maze = _slow_maze()
    handle = maze.solve_async()
    assert _wait_until(lambda: _visited(maze) > 0)
    maze.cancel()
    handle.poll()

    maze.set_animation_speed(100)
    assert maze.solve() == SolverStatus.SOLVED
    after_cancel = maze.get_path_length()

    fresh = Maze(41, 41, seed=7)
    fresh.solve()
    assert after_cancel == fresh.get_path_length()


def test_back_to_back_async_runs(maze):
    lengths = []
    for algorithm in (SolverAlgorithm.BFS, SolverAlgorithm.ASTAR, SolverAlgorithm.BFS):
        maze.set_algorithm(algorithm)
        handle = maze.solve_async()
        assert handle.wait(poll_interval=0.01, timeout=10) == SolverStatus.SOLVED
        lengths.append(maze.get_path_length())
    assert len(set(lengths)) == 1


def test_new_solve_reaps_finished_worker(maze):
    first = maze.solve_async()
    assert _wait_until(lambda: not maze.solver_running())
    assert maze.state == SolverState.DONE

    # No poll in between: starting again joins the finished worker.
    second = maze.solve_async()
    assert not first.thread.is_alive()
    assert second.wait(poll_interval=0.01, timeout=10) == SolverStatus.SOLVED


def test_animation_speed_slows_the_run(maze):
    maze.solve()
    fast = maze.get_solve_time()

    maze.set_animation_speed(90)
    maze.solve()
    # Every iteration waits 10 * ANIM_DELAY_UNIT at this speed.
    assert maze.get_solve_time() > fast
    assert maze.get_solve_time() >= 10 * controller_module.ANIM_DELAY_UNIT


def test_worker_error_is_raised_on_poll(maze, monkeypatch):
    class Broken:
        def solve(self, maze, run):
            raise RuntimeError("boom")

    monkeypatch.setattr(controller_module, "get_solver", lambda algorithm: Broken())
    handle = maze.solve_async()

    with pytest.raises(RuntimeError):
        handle.wait(poll_interval=0.01, timeout=10)

    assert maze.state == SolverState.IDLE
    assert not handle.thread.is_alive()


def test_sync_error_leaves_controller_idle(maze, monkeypatch):
    class Broken:
        def solve(self, maze, run):
            raise RuntimeError("boom")

    monkeypatch.setattr(controller_module, "get_solver", lambda algorithm: Broken())
    with pytest.raises(RuntimeError):
        maze.solve()
    assert maze.state == SolverState.IDLE


def test_cancel_waits_for_sync_solve_on_another_thread():
    maze = _slow_maze()
    results = []
    solver_thread = threading.Thread(target=lambda: results.append(maze.solve()))
    solver_thread.start()
    try:
        assert _wait_until(lambda: _visited(maze) > 0)
        maze.cancel()

        assert not maze.solver_running()
        # The board is free again as soon as cancel() returns.
        maze.create(21, 21)
        assert maze.get_num_rows() == 21
    finally:
        maze.cancel()
        solver_thread.join(timeout=5)

    assert results == [SolverStatus.CANCELED]
