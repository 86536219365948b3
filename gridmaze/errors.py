class MazeError(Exception):
    """Base class for every error raised by gridmaze."""


class InvalidSeedError(MazeError):
    """The carving seed landed on a wall cell.

    The grid initialisation makes this impossible, so seeing it means an
    internal invariant was broken.
    """
    def __init__(self, row, col):
        super().__init__(f"Carving seed ({row}, {col}) is a wall cell")
        self.row = row
        self.col = col


class SolveInProgressError(MazeError):
    """A mutating request arrived while a solve is running."""
    def __init__(self, action="this operation"):
        super().__init__(f"Cannot perform {action} while the solver is running")
        self.action = action


class OutOfMemoryError(MazeError):
    """The cell grid could not be allocated."""
    def __init__(self, num_rows, num_cols):
        super().__init__(f"Failed to allocate a {num_rows}x{num_cols} maze")
        self.num_rows = num_rows
        self.num_cols = num_cols
