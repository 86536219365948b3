import enum


class CellType(enum.Enum):
    """Classification of a single grid cell. Exactly one holds at any time."""
    EMPTY = 0
    WALL = 1
    START = 2
    END = 3
    PATH_HEAD = 4
    PATH_VISITED = 5
    PATH_SOLUTION = 6


class CellColor(enum.Enum):
    BLACK = 0
    WHITE = 1
    RED = 2
    GREEN = 3
    LIGHTGRAY = 4
    DARKGRAY = 5


# Renderers only need the color; the solver state stays internal.
CELL_COLORS = {
    CellType.WALL: CellColor.BLACK,
    CellType.EMPTY: CellColor.WHITE,
    CellType.START: CellColor.GREEN,
    CellType.END: CellColor.GREEN,
    CellType.PATH_SOLUTION: CellColor.RED,
    CellType.PATH_VISITED: CellColor.LIGHTGRAY,
    CellType.PATH_HEAD: CellColor.DARKGRAY,
}

# --- Directions ---
# (drow, dcol) offsets in clockwise order. Turning left from index i gives
# (i - 1) % 4, turning right gives (i + 1) % 4.
NORTH, EAST, SOUTH, WEST = range(4)
DIRECTIONS = [(-1, 0), (0, 1), (1, 0), (0, -1)]
DIRECTION_NAMES = ['N', 'E', 'S', 'W']


def turn_left(direction):
    return (direction - 1) % 4


def turn_right(direction):
    return (direction + 1) % 4


def manhattan(a, b):
    """Manhattan distance between two cells (or two (row, col) tuples)."""
    (r1, c1) = a.pos if isinstance(a, Cell) else a
    (r2, c2) = b.pos if isinstance(b, Cell) else b
    return abs(r1 - r2) + abs(c1 - c2)


class Cell:
    """
    A single addressable unit of the maze grid.

    Fields:
      - type: the CellType classification.
      - value: generic counter. The generator uses it as a visited marker,
        solvers store distances or step counts in it. Reset between runs.
      - heuristic: A* f-cost (value + distance to the end cell). Only
        meaningful while A* runs.
      - parent: (row, col) of the predecessor on the current search tree,
        or None. Cells live in the maze's fixed list, so a coordinate is
        enough to find the parent again.
    """
    def __init__(self, row, col, cell_type=CellType.WALL):
        self.row = row
        self.col = col
        self.type = cell_type
        self.value = 0
        self.heuristic = 0
        self.parent = None

    @property
    def pos(self):
        return (self.row, self.col)

    @property
    def is_wall(self):
        return self.type == CellType.WALL

    def reset(self, cell_type):
        self.type = cell_type
        self.value = 0
        self.heuristic = 0
        self.parent = None

    def __repr__(self):
        return f"Cell({self.row}, {self.col}, {self.type.name}, value={self.value})"
