from graphviz import Digraph

from .cell import CellType

_FILL = {
    CellType.START: "#1abc9c",
    CellType.END: "#e74c3c",
    CellType.PATH_SOLUTION: "#f39c12",
}


def search_tree(maze, name="search_tree"):
    """Builds a graphviz Digraph of the tree left by the last solve.

    Every cell holding a parent link becomes an edge parent -> cell. Start,
    end and solution cells are filled so the chosen route stands out.
    """
    dot = Digraph(name)
    dot.attr("node", shape="box", style="filled", fillcolor="white")

    with maze.lock:
        edges = [(cell.parent, cell) for cell in maze.cells() if cell.parent is not None]
        for parent_pos, cell in edges:
            parent = maze.get_cell(*parent_pos)
            for node in (parent, cell):
                dot.node(str(node.pos), fillcolor=_FILL.get(node.type, "white"))
            dot.edge(str(parent.pos), str(cell.pos))

    return dot


def render_search_tree(maze, filename="search_tree", view=False):
    """Writes the search tree with the graphviz binaries; returns the output path."""
    return search_tree(maze).render(filename, view=view, cleanup=True)
