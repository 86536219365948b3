import collections
import enum
import heapq
import itertools

from .cell import CellType, DIRECTIONS, manhattan, turn_left, turn_right


class SolverAlgorithm(enum.Enum):
    """The interchangeable solving strategies, keyed by their display names."""
    BFS = "BFS"
    DFS = "Depth-First Search"
    ASTAR = "A*"
    TURN_LEFT = "Wall Follower (Left)"
    TURN_RIGHT = "Wall Follower (Right)"


# Start and End are never re-classified by a solver.
_ENDPOINTS = (CellType.START, CellType.END)


def _mark(cell, cell_type):
    if cell.type not in _ENDPOINTS:
        cell.type = cell_type


def _open_neighbors(maze, cell):
    """Yields the non-wall orthogonal neighbours of a cell, N/E/S/W order."""
    for drow, dcol in DIRECTIONS:
        neighbor = maze.get_cell(cell.row + drow, cell.col + dcol)
        if neighbor is not None and not neighbor.is_wall:
            yield neighbor


def set_solution_path(maze):
    """Marks the solution path by walking the value gradient down from the end.

    Starting at the end cell, we repeatedly step to the orthogonal neighbour
    holding the lowest non-zero value strictly below the current one, until
    the start cell is reached. Every intermediate cell becomes PATH_SOLUTION.

    If a cell has no such neighbour the walk stops there and the returned
    length only covers the part found. BFS always leaves a complete gradient;
    DFS and the wall followers do in practice, but the truncated case is kept
    observable rather than patched over.

    Returns:
      int: number of cells on the marked path, both endpoints included.
    """
    cell = maze.end_cell
    start = maze.start_cell
    path_len = 1

    while cell is not start:
        best = None
        for neighbor in _open_neighbors(maze, cell):
            if 0 < neighbor.value < cell.value:
                if best is None or neighbor.value < best.value:
                    best = neighbor
        if best is None:
            break

        _mark(best, CellType.PATH_SOLUTION)
        path_len += 1
        cell = best

    return path_len


class Solver:
    """Base class for a solving strategy.

    A strategy owns only the transient frontier it needs during one call of
    solve(); nothing outlives the call. The board must already be cleared.

    solve() returns the path length (0 when the frontier is exhausted or the
    run was cancelled). The run object passed in is the controller's view of
    the current run: run.cancelled() is polled once per iteration and
    run.pause() provides the optional animation delay.
    """
    algorithm = None

    def solve(self, maze, run):
        raise NotImplementedError


class BreadthFirstSolver(Solver):
    """Queue-based level expansion. Shortest path in hop count."""
    algorithm = SolverAlgorithm.BFS

    def solve(self, maze, run):
        start = maze.start_cell
        end = maze.end_cell

        with maze.lock:
            start.value = 1
        queue = collections.deque([start])

        while queue:
            if run.cancelled():
                return 0

            with maze.lock:
                cell = queue.popleft()
                if cell is end:
                    return set_solution_path(maze)

                _mark(cell, CellType.PATH_VISITED)

                # First time a cell is reached fixes its distance.
                for neighbor in _open_neighbors(maze, cell):
                    if neighbor.value == 0:
                        neighbor.value = cell.value + 1
                        neighbor.parent = cell.pos
                        _mark(neighbor, CellType.PATH_HEAD)
                        queue.append(neighbor)

            run.pause()

        return 0


class DepthFirstSolver(Solver):
    """Stack-based eager exploration.

    A cell may sit on the stack several times; its value is assigned on the
    first pop (parent value + 1) and later pops are skipped. The path is not
    guaranteed to be the shortest one.
    """
    algorithm = SolverAlgorithm.DFS

    def solve(self, maze, run):
        end = maze.end_cell
        stack = [(maze.start_cell, None)]

        while stack:
            if run.cancelled():
                return 0

            with maze.lock:
                cell, parent = stack.pop()
                if cell.value != 0:
                    continue

                cell.value = parent.value + 1 if parent is not None else 1
                cell.parent = parent.pos if parent is not None else None
                _mark(cell, CellType.PATH_HEAD)

                if cell is end:
                    return set_solution_path(maze)

                for neighbor in _open_neighbors(maze, cell):
                    if neighbor.value == 0:
                        _mark(neighbor, CellType.PATH_VISITED)
                        stack.append((neighbor, cell))

            run.pause()

        return 0


class AStarSolver(Solver):
    """
    A* with g = steps from start (value) and f = g + Manhattan distance to the
    end (heuristic).

    Open set:
      - heap of (heuristic, insertion order, value, position, parent) entries,
        so equal heuristics come out in the order they went in.
      - open_best[position] holds the lowest value among open entries for that
        position. A candidate is discarded when an open entry with an equal or
        lower value already exists.
    Closed set:
      - positions already finalised. Their grid cells carry the final value,
        heuristic and parent.

    A* is the only strategy that rebuilds the path from parent links instead of
    the value gradient.
    """
    algorithm = SolverAlgorithm.ASTAR

    def solve(self, maze, run):
        start = maze.start_cell
        end = maze.end_cell
        counter = itertools.count()

        open_heap = []
        open_best = {start.pos: 0}
        closed = set()
        heapq.heappush(open_heap, (manhattan(start, end), next(counter), 0, start.pos, None))

        while open_heap:
            if run.cancelled():
                return 0

            with maze.lock:
                heuristic, _, value, pos, parent = heapq.heappop(open_heap)
                if pos in closed:
                    # Stale entry, the position was finalised with a lower cost.
                    continue

                closed.add(pos)
                open_best.pop(pos, None)

                cell = maze.get_cell(*pos)
                cell.value = value
                cell.heuristic = heuristic
                cell.parent = parent

                if cell is end:
                    return self._follow_parents(maze)

                _mark(cell, CellType.PATH_VISITED)

                for neighbor in _open_neighbors(maze, cell):
                    if neighbor.pos in closed:
                        continue

                    n_value = value + 1
                    best = open_best.get(neighbor.pos)
                    if best is not None and best <= n_value:
                        continue

                    open_best[neighbor.pos] = n_value
                    n_heuristic = n_value + manhattan(neighbor, end)
                    heapq.heappush(open_heap, (n_heuristic, next(counter), n_value, neighbor.pos, pos))
                    _mark(neighbor, CellType.PATH_HEAD)

            run.pause()

        return 0

    def _follow_parents(self, maze):
        cell = maze.end_cell
        path_len = 1
        while cell.parent is not None:
            cell = maze.get_cell(*cell.parent)
            _mark(cell, CellType.PATH_SOLUTION)
            path_len += 1
        return path_len


class WallFollowerSolver(Solver):
    """
    Walks the corridors keeping one hand on the wall.

    At each step the walker tries, relative to its facing: turn toward its
    side, straight ahead, turn away, then back. The first open cell wins.
    In a tree-shaped maze this always reaches the goal, usually with detours,
    so a second pass (set_solution_path) extracts the path actually needed.

    The walk is a deterministic function of (cell, facing), so after
    4 * rows * cols steps every state has been seen and the goal is
    unreachable by this rule (possible once a difficult maze has islands).
    """
    follow_left = True

    def solve(self, maze, run):
        start = maze.start_cell
        end = maze.end_cell

        orientation = self._initial_orientation(maze, start)
        if orientation is None:
            return 0

        if self.follow_left:
            turns = (turn_left, lambda d: d, turn_right, lambda d: (d + 2) % 4)
        else:
            turns = (turn_right, lambda d: d, turn_left, lambda d: (d + 2) % 4)

        with maze.lock:
            start.value = 1
        cell = start
        max_steps = 4 * maze.num_rows * maze.num_cols

        for step in range(1, max_steps + 1):
            if run.cancelled():
                return 0

            with maze.lock:
                for turn in turns:
                    direction = turn(orientation)
                    nxt = maze.neighbor(cell, direction)
                    if nxt is not None and not nxt.is_wall:
                        break
                else:
                    return 0

                orientation = direction
                _mark(cell, CellType.PATH_VISITED)

                # Only the first visit numbers a cell, so values increase along
                # the route actually taken and the gradient leads back to start.
                if nxt.value == 0:
                    nxt.value = step + 1
                    nxt.parent = cell.pos
                cell = nxt

                if cell is end:
                    return set_solution_path(maze)

                _mark(cell, CellType.PATH_HEAD)

            run.pause()

        return 0

    def _initial_orientation(self, maze, start):
        # Face the first open corridor (N, E, S, W order).
        for direction in range(4):
            cell = maze.neighbor(start, direction)
            if cell is not None and not cell.is_wall:
                return direction
        return None


class TurnLeftSolver(WallFollowerSolver):
    algorithm = SolverAlgorithm.TURN_LEFT
    follow_left = True


class TurnRightSolver(WallFollowerSolver):
    algorithm = SolverAlgorithm.TURN_RIGHT
    follow_left = False


SOLVERS = {
    SolverAlgorithm.BFS: BreadthFirstSolver,
    SolverAlgorithm.DFS: DepthFirstSolver,
    SolverAlgorithm.ASTAR: AStarSolver,
    SolverAlgorithm.TURN_LEFT: TurnLeftSolver,
    SolverAlgorithm.TURN_RIGHT: TurnRightSolver,
}


def get_solver(algorithm):
    """Returns a fresh strategy instance for an algorithm (enum or display name)."""
    return SOLVERS[SolverAlgorithm(algorithm)]()
