import random
import threading

from .cell import CELL_COLORS, DIRECTIONS, Cell, CellType
from .controller import SolveController
from .errors import InvalidSeedError, OutOfMemoryError
from .solvers import SolverAlgorithm

# --- Configuration ---
MIN_ROWS = 21
MIN_COLS = 21
MAX_ROWS = 499
MAX_COLS = 499
DEFAULT_ROWS = 121
DEFAULT_COLS = 121

# Carving works on odd cells two steps apart; the wall between two of them
# sits one step away in the same direction.
CARVE_OFFSETS = [(2 * drow, 2 * dcol) for drow, dcol in DIRECTIONS]


def clamp_dimension(value, minimum, maximum):
    """Clamps a requested row/column count to [minimum, maximum], forcing it odd."""
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    if value % 2 == 0:
        return value + 1
    return value


def _initial_type(row, col):
    # Both coordinates odd -> room, anything else -> wall.
    return CellType.EMPTY if (row & 1) and (col & 1) else CellType.WALL


class Maze:
    """
    A rectangular grid maze and the run state of its solver.

    Grid Representation:
      - self._board is a flat, row-major list of Cell objects. Its length is
        the allocated capacity; only the first num_rows * num_cols entries
        belong to the current maze. A new maze that fits reuses the list.
      - Rooms sit on odd (row, col) coordinates; every other cell starts as a
        wall. Carving a passage clears the wall cell between two rooms.
      - start_cell / end_cell are references into the board.

    Concurrency:
      - self.lock guards every cell mutation and every accessor read, so the
        fields of one cell always change together as seen by a reader.
      - self.controller owns the solver state machine. Creating a maze or
        moving an endpoint is refused while a solve is running.

    Coordinates: (row, col), origin (0, 0) top-left.
    """
    def __init__(self, num_rows=DEFAULT_ROWS, num_cols=DEFAULT_COLS, difficult=False,
                 seed=None, create=True):
        self.num_rows = 0
        self.num_cols = 0
        self.start_cell = None
        self.end_cell = None
        self.difficult = difficult
        self.anim_speed = 100
        self.algorithm = SolverAlgorithm.BFS

        self.rng = random.Random(seed)
        self.lock = threading.RLock()
        self.controller = SolveController(self)
        self._board = []

        if create:
            self.create(num_rows, num_cols, difficult)

    # --- Grid/Cell model ---
    def get_cell(self, row, col):
        """Returns the cell at (row, col), or None when out of bounds."""
        if row < 0 or row >= self.num_rows or col < 0 or col >= self.num_cols:
            return None
        return self._board[row * self.num_cols + col]

    def is_wall(self, row, col):
        # A missing cell is not a wall cell: callers bounds-check separately.
        cell = self.get_cell(row, col)
        return cell is not None and cell.is_wall

    def neighbor(self, cell, direction, offset=1):
        drow, dcol = DIRECTIONS[direction]
        return self.get_cell(cell.row + drow * offset, cell.col + dcol * offset)

    def neighbors(self, cell):
        for direction in range(4):
            neighbor = self.neighbor(cell, direction)
            if neighbor is not None:
                yield neighbor

    def is_perimeter(self, cell):
        return (cell.row == 0 or cell.row == self.num_rows - 1 or
                cell.col == 0 or cell.col == self.num_cols - 1)

    def cells(self):
        """Iterates the cells of the current maze in row-major order."""
        return iter(self._board[:self.num_rows * self.num_cols])

    # --- Generation ---
    def create(self, num_rows, num_cols, difficult=None):
        """
        Builds a new maze in place.

        Pipeline:
          1. Clamp both dimensions to [21, 499] and make them odd.
          2. Pick the carving seed and validate it before touching the board,
             so a failure leaves the previous maze intact.
          3. Reuse the cell list if the new grid fits, otherwise reallocate.
          4. Carve a spanning tree over the odd cells (_carve).
          5. Place start at (1, 0) and end at (rows - 2, cols - 2).
          6. If difficult, open extra mid-corridor walls (_add_loops).

        Raises:
          SolveInProgressError: a solve is running.
          InvalidSeedError: the seed is a wall under the parity rule.
          OutOfMemoryError: the grid could not be allocated.
        """
        if difficult is None:
            difficult = self.difficult

        num_rows = clamp_dimension(num_rows, MIN_ROWS, MAX_ROWS)
        num_cols = clamp_dimension(num_cols, MIN_COLS, MAX_COLS)

        with self.controller.exclusive("maze creation"), self.lock:
            seed_row, seed_col = self._pick_seed(num_rows, num_cols)
            if _initial_type(seed_row, seed_col) == CellType.WALL:
                raise InvalidSeedError(seed_row, seed_col)

            board = self._board
            if num_rows * num_cols > len(board):
                try:
                    board = [Cell(0, 0) for _ in range(num_rows * num_cols)]
                except MemoryError as err:
                    raise OutOfMemoryError(num_rows, num_cols) from err

            # Nothing can fail past this point.
            self._board = board
            self.num_rows = num_rows
            self.num_cols = num_cols
            self.difficult = difficult
            self.controller.path_len = 0
            self.controller.solve_time = 0.0

            for row in range(num_rows):
                for col in range(num_cols):
                    cell = board[row * num_cols + col]
                    cell.row = row
                    cell.col = col
                    cell.reset(_initial_type(row, col))

            self._carve(self.get_cell(seed_row, seed_col))

            self.start_cell = self.get_cell(1, 0)
            self.start_cell.type = CellType.START
            self.end_cell = self.get_cell(num_rows - 2, num_cols - 2)
            self.end_cell.type = CellType.END

            if difficult:
                self._add_loops(max(num_rows, num_cols))

            # The visited markers are generation-only.
            for cell in self.cells():
                cell.value = 0

    def _pick_seed(self, num_rows, num_cols):
        row = self.rng.randrange(num_rows - 2) // 2 * 2 + 1
        col = self.rng.randrange(num_cols - 2) // 2 * 2 + 1
        return row, col

    def _carve(self, seed):
        """Carves a perfect maze with randomized iterative depth-first search.

        The top of the stack is inspected, not popped. Its four 2-cell
        neighbours are scanned starting from a fresh random offset each time;
        the first unvisited one is marked, pushed, and the wall between the
        two is cleared. A cell with no unvisited neighbour is popped. Picking
        a new rotation at every inspection gives windy rather than straight
        corridors.

        Result: a spanning tree over the odd cells, so exactly one path links
        any two open cells.
        """
        seed.value = 1
        stack = [seed]

        while stack:
            cell = stack[-1]
            rotation = self.rng.randrange(4)

            for i in range(4):
                direction = (rotation + i) % 4
                drow, dcol = CARVE_OFFSETS[direction]
                neighbor = self.get_cell(cell.row + drow, cell.col + dcol)
                if neighbor is None or neighbor.value != 0:
                    continue

                neighbor.value = 1
                stack.append(neighbor)
                # Remove wall between cells
                self.neighbor(cell, direction).type = CellType.EMPTY
                break
            else:
                stack.pop()

    def _add_loops(self, count):
        """
        Opens `count` extra walls so the maze has more than one route.

        A candidate is a random interior wall whose orthogonal wall neighbours
        are exactly the two above/below it or exactly the two left/right of
        it: a wall in the middle of a corridor side. Wall ends and T
        junctions are rejected. Rejected picks are retried without a cap.
        """
        for _ in range(count):
            while True:
                row = self.rng.randrange(self.num_rows - 2) + 1
                col = self.rng.randrange(self.num_cols - 2) + 1
                if not self.is_wall(row, col):
                    continue

                vertical = self.is_wall(row - 1, col) + self.is_wall(row + 1, col)
                # One wall up or down means a wall end or the top of a T.
                if vertical == 1:
                    continue

                horizontal = self.is_wall(row, col - 1) + self.is_wall(row, col + 1)
                if vertical + horizontal == 2:
                    break

            self.get_cell(row, col).type = CellType.EMPTY

    # --- Solving ---
    def clear_board(self):
        """Resets every non-wall cell for a new run. Walls, Start and End keep their type."""
        with self.lock:
            for cell in self.cells():
                if cell.type == CellType.WALL:
                    continue
                if cell.type not in (CellType.START, CellType.END):
                    cell.type = CellType.EMPTY
                cell.value = 0
                cell.heuristic = 0
                cell.parent = None

    def solve(self):
        """Solves on the calling thread. Returns SolverStatus.SOLVED or CANCELED."""
        return self.controller.solve()

    def solve_async(self, on_progress=None):
        """Solves on a worker thread. Returns a SolveHandle to poll or join."""
        return self.controller.solve_async(on_progress)

    def cancel(self):
        self.controller.cancel()

    def solver_running(self):
        return self.controller.running

    @property
    def state(self):
        return self.controller.state

    # --- Settings ---
    def set_algorithm(self, algorithm):
        """Selects the strategy for the next solve (SolverAlgorithm or its display name)."""
        self.algorithm = SolverAlgorithm(algorithm)

    def set_animation_speed(self, percent):
        # 100 means no delay at all.
        self.anim_speed = max(0, min(100, int(percent)))

    def set_difficult(self, difficult):
        self.difficult = bool(difficult)

    def set_start_cell(self, row, col):
        """Moves the start cell. Returns False (and changes nothing) if the spot is invalid."""
        return self._move_endpoint("start_cell", CellType.START, row, col)

    def set_end_cell(self, row, col):
        """Moves the end cell. Returns False (and changes nothing) if the spot is invalid."""
        return self._move_endpoint("end_cell", CellType.END, row, col)

    def _move_endpoint(self, attr, cell_type, row, col):
        with self.controller.exclusive("moving the " + attr.replace("_", " ")), self.lock:
            cell = self.get_cell(row, col)
            if cell is None or cell is self.start_cell or cell is self.end_cell:
                return False

            previous = getattr(self, attr)
            previous_type = CellType.WALL if self.is_perimeter(previous) else CellType.EMPTY

            if cell.is_wall:
                # Interior walls never; perimeter walls only next to an opening
                # that is still open once the old endpoint has reverted.
                if not self.is_perimeter(cell):
                    return False
                if not any(not n.is_wall and not (n is previous and previous_type == CellType.WALL)
                           for n in self.neighbors(cell)):
                    return False

            previous.reset(previous_type)
            cell.reset(cell_type)
            setattr(self, attr, cell)
            return True

    # --- Read-only accessors ---
    def get_num_rows(self):
        return self.num_rows

    def get_num_cols(self):
        return self.num_cols

    def get_path_length(self):
        return self.controller.path_len

    def get_solve_time(self):
        """Elapsed wall-clock seconds of the last solve."""
        return self.controller.solve_time

    def get_cell_type(self, row, col):
        with self.lock:
            cell = self.get_cell(row, col)
            return cell.type if cell is not None else None

    def get_cell_color(self, row, col):
        cell_type = self.get_cell_type(row, col)
        return CELL_COLORS[cell_type] if cell_type is not None else None

    def snapshot(self):
        """Copy-on-read view of the board: a list of rows of CellType."""
        with self.lock:
            return [[self._board[row * self.num_cols + col].type for col in range(self.num_cols)]
                    for row in range(self.num_rows)]

    def __repr__(self):
        return (f"Maze({self.num_rows}x{self.num_cols}, difficult={self.difficult}, "
                f"algorithm={self.algorithm.value!r}, state={self.state.name})")
