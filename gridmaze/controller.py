import contextlib
import enum
import queue
import threading
import time

from .errors import SolveInProgressError
from .solvers import get_solver

# --- Configuration ---
ANIM_DELAY_UNIT = 0.0005  # seconds of pause per point below anim_speed 100
POLL_INTERVAL = 0.2       # seconds between status polls of a background solve


class SolverState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLING = "cancelling"
    DONE = "done"


class SolverStatus(enum.Enum):
    """Progress notifications delivered to the host of a background solve."""
    RUNNING = "running"
    SOLVED = "solved"
    CANCELED = "canceled"


class SolveRun:
    """What a strategy sees of the current run: the cancel flag and the pacing."""
    def __init__(self, maze, cancel_event):
        self.maze = maze
        self._cancel = cancel_event

    def cancelled(self):
        return self._cancel.is_set()

    def pause(self):
        # anim_speed is re-read every time so it can be changed mid-run.
        speed = self.maze.anim_speed
        if speed >= 100:
            return
        # Waiting on the cancel event keeps a slow animation from delaying a cancel.
        self._cancel.wait((100 - speed) * ANIM_DELAY_UNIT)


class SolveHandle:
    """
    Handle on a background solve.

    The worker pushes SolverStatus messages onto self.events: RUNNING when it
    starts, then SOLVED or CANCELED. The host calls poll() from its own timer
    (the way a Tk app calls root.after(200, ...)); each call reports RUNNING
    while the worker is busy, and the terminal status exactly once, after the
    worker thread has been joined.
    """
    def __init__(self, controller, on_progress=None):
        self.controller = controller
        self.on_progress = on_progress
        self.events = queue.Queue()
        self.thread = None
        self.status = SolverStatus.RUNNING
        self.error = None
        self._delivered = False

    @property
    def done(self):
        return self._delivered

    def poll(self):
        """Drains the event channel and notifies on_progress. Returns the status."""
        if self._delivered:
            return self.status

        terminal = None
        try:
            while True:
                msg = self.events.get_nowait()
                if msg != SolverStatus.RUNNING:
                    terminal = msg
        except queue.Empty:
            pass

        if terminal is None:
            self._notify(SolverStatus.RUNNING)
            return SolverStatus.RUNNING

        # The thread handle must not outlive delivery of its result.
        self.join()
        self.status = terminal
        self._delivered = True
        if self.error is not None:
            raise self.error
        self._notify(terminal)
        return terminal

    def wait(self, poll_interval=POLL_INTERVAL, timeout=None):
        """Polls at a fixed cadence until the run finishes. Returns the final status."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            status = self.poll()
            if status != SolverStatus.RUNNING:
                return status
            if deadline is not None and time.monotonic() >= deadline:
                return status
            time.sleep(poll_interval)

    def join(self, timeout=None):
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout)
            if self.thread.is_alive():
                return
        self.controller._release(self)

    def cancel(self):
        self.controller.cancel()

    def _notify(self, status):
        if self.on_progress is not None:
            self.on_progress(status)


class SolveController:
    """
    Runs the selected strategy against a maze, synchronously or on a worker
    thread, and owns the run state.

    States: IDLE -> RUNNING -> (CANCELLING ->) DONE -> IDLE. Every transition
    is made under self._lock. A new solve, a new maze or an endpoint move is
    refused with SolveInProgressError while RUNNING or CANCELLING.
    """
    def __init__(self, maze):
        self.maze = maze
        self.state = SolverState.IDLE
        self.path_len = 0
        self.solve_time = 0.0
        self._lock = threading.Lock()
        self._stopped = threading.Condition(self._lock)
        self._cancel = threading.Event()
        self._handle = None

    @property
    def running(self):
        return self.state in (SolverState.RUNNING, SolverState.CANCELLING)

    @contextlib.contextmanager
    def exclusive(self, action):
        """Holds off solves for the duration of a board mutation."""
        with self._lock:
            if self.running:
                raise SolveInProgressError(action)
            yield

    # --- Entry points ---
    def solve(self):
        """Runs the solve on the caller's thread and blocks until it is done."""
        self._begin()
        try:
            return self._execute()
        finally:
            with self._lock:
                self.state = SolverState.IDLE

    def solve_async(self, on_progress=None):
        """Starts the solve on a worker thread and returns its SolveHandle at once."""
        self._begin()
        handle = SolveHandle(self, on_progress)
        handle.thread = threading.Thread(target=self._worker_run, args=(handle,), daemon=True)
        with self._lock:
            self._handle = handle
        handle.thread.start()
        return handle

    def cancel(self):
        """Requests cooperative cancellation and returns once the run has stopped.

        A background run is joined. A synchronous solve blocking another thread
        is waited for until it leaves RUNNING/CANCELLING.
        """
        with self._lock:
            if self.state == SolverState.RUNNING:
                self.state = SolverState.CANCELLING
            if self.running:
                self._cancel.set()
            handle = self._handle
            if handle is None:
                self._stopped.wait_for(lambda: not self.running)

        if handle is not None:
            handle.join()

    # --- Internals ---
    def _begin(self):
        with self._lock:
            if self.running:
                raise SolveInProgressError("a new solve")
            previous = self._handle

        # A previous worker in DONE is only returning; reap it first.
        if previous is not None:
            previous.join()

        with self._lock:
            if self.running:
                raise SolveInProgressError("a new solve")
            self._cancel.clear()
            self.state = SolverState.RUNNING

    def _execute(self):
        maze = self.maze
        solver = get_solver(maze.algorithm)
        path_len = 0
        cancelled = False
        t0 = time.perf_counter()
        try:
            maze.clear_board()
            path_len = solver.solve(maze, SolveRun(maze, self._cancel))
        finally:
            elapsed = time.perf_counter() - t0
            with self._lock:
                # A cancel requested at any point of the run wins over a late finish.
                cancelled = self._cancel.is_set()
                self.path_len = path_len
                self.solve_time = elapsed
                self.state = SolverState.DONE
                self._stopped.notify_all()

        return SolverStatus.CANCELED if cancelled else SolverStatus.SOLVED

    def _worker_run(self, handle):
        handle.events.put(SolverStatus.RUNNING)
        try:
            status = self._execute()
        except Exception as exc:
            # Re-raised on the host thread by SolveHandle.poll().
            handle.error = exc
            status = SolverStatus.CANCELED
        handle.events.put(status)

    def _release(self, handle):
        with self._lock:
            if self._handle is handle:
                self._handle = None
            if self.state == SolverState.DONE:
                self.state = SolverState.IDLE
