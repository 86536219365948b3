import collections

import matplotlib
import pytest

# Charts are only written to files in the tests.
matplotlib.use("Agg")

from gridmaze import CellType, Maze  # noqa: E402


def open_graph(maze):
    """Returns (nodes, edges) of the graph formed by the non-wall cells."""
    nodes = {cell.pos for cell in maze.cells() if not cell.is_wall}
    edges = set()
    for (row, col) in nodes:
        for nb in ((row + 1, col), (row, col + 1)):
            if nb in nodes:
                edges.add(((row, col), nb))
    return nodes, edges


def reachable(maze, origin):
    """Set of non-wall positions reachable from origin."""
    nodes, _ = open_graph(maze)
    seen = {origin}
    queue = collections.deque([origin])
    while queue:
        row, col = queue.popleft()
        for nb in ((row - 1, col), (row + 1, col), (row, col - 1), (row, col + 1)):
            if nb in nodes and nb not in seen:
                seen.add(nb)
                queue.append(nb)
    return seen


def count_types(maze, cell_type):
    return sum(1 for cell in maze.cells() if cell.type == cell_type)


@pytest.fixture
def maze():
    return Maze(21, 21, seed=1234)


@pytest.fixture
def difficult_maze():
    return Maze(31, 41, difficult=True, seed=99)
