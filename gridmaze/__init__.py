"""Grid maze generation and interchangeable, cancellable maze solvers."""

from .cell import Cell, CellColor, CellType
from .controller import SolveHandle, SolverState, SolverStatus
from .errors import InvalidSeedError, MazeError, OutOfMemoryError, SolveInProgressError
from .maze import MAX_COLS, MAX_ROWS, MIN_COLS, MIN_ROWS, Maze, clamp_dimension
from .solvers import SolverAlgorithm, set_solution_path

__version__ = "0.1.0"
