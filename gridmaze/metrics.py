import collections
import csv
import os
import statistics

import matplotlib.pyplot as plt

from .cell import CellType
from .controller import SolverStatus
from .maze import Maze
from .solvers import SolverAlgorithm

DEFAULT_ALGOS = [algorithm.value for algorithm in SolverAlgorithm]

METRICS = [
    "elapsed_sec",
    "path_length",
    "cells_explored",
]

_EXPLORED = (CellType.PATH_HEAD, CellType.PATH_VISITED, CellType.PATH_SOLUTION)


def _count_explored(maze):
    with maze.lock:
        return sum(1 for cell in maze.cells() if cell.type in _EXPLORED)


def solve_and_measure(maze, algorithm):
    """Solves an existing maze with one algorithm and returns a result row."""
    maze.set_algorithm(algorithm)
    status = maze.solve()
    return {
        "rows": maze.get_num_rows(),
        "cols": maze.get_num_cols(),
        "difficult": maze.difficult,
        "algorithm": maze.algorithm.value,
        "status": status.value,
        "elapsed_sec": maze.get_solve_time(),
        "path_length": maze.get_path_length(),
        "cells_explored": _count_explored(maze),
        "found": status == SolverStatus.SOLVED and maze.get_path_length() > 0,
    }


def run_single(rows, cols, algorithm, difficult=False, seed=None):
    maze = Maze(rows, cols, difficult=difficult, seed=seed)
    result = solve_and_measure(maze, algorithm)
    result["seed"] = seed
    return result


def run_batch(rows, cols, runs=10, algorithms=None, difficult=False, seed_base=0):
    """Runs every algorithm on the same maze for each seed.

    Sharing the maze per seed keeps the comparison fair: BFS and A* must
    agree on the length, the others may only be longer.
    """
    if algorithms is None:
        algorithms = DEFAULT_ALGOS

    all_rows = []
    for i in range(runs):
        seed = seed_base + i
        maze = Maze(rows, cols, difficult=difficult, seed=seed)
        for algo in algorithms:
            res = solve_and_measure(maze, algo)
            res["seed"] = seed
            all_rows.append(res)
    return all_rows


def _spread(values):
    """avg/min/max/stdev of one metric column; a single run has no spread."""
    if not values:
        return {"avg": 0, "min": 0, "max": 0, "stdev": 0}
    return {
        "avg": statistics.mean(values),
        "min": min(values),
        "max": max(values),
        "stdev": statistics.pstdev(values) if len(values) > 1 else 0,
    }


def aggregate_results(rows, group_by=("algorithm",)):
    """Summarises result rows per group (by default one group per algorithm).

    Each summary row carries the group key tuple, the number of runs, the
    spread of every column in METRICS as `<metric>_<stat>`, and the share
    of runs that reached the end cell as found_rate.
    """
    runs_by_group = collections.defaultdict(list)
    for row in rows:
        runs_by_group[tuple(row[key] for key in group_by)].append(row)

    summary = []
    for group, runs in runs_by_group.items():
        entry = {"group": group, "count": len(runs)}
        for metric in METRICS:
            spread = _spread([run[metric] for run in runs])
            entry.update((f"{metric}_{stat}", value) for stat, value in spread.items())
        entry["found_rate"] = sum(1 for run in runs if run["found"]) / len(runs)
        summary.append(entry)
    return summary


def expand_groups(summary, group_by=("algorithm",)):
    """Replaces the 'group' tuple of each summary row by one column per key, for CSV."""
    expanded = []
    for row in summary:
        new_row = {k: v for k, v in row.items() if k != "group"}
        new_row.update(zip(group_by, row["group"]))
        expanded.append(new_row)
    return expanded


def _ensure_parent(path):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def write_csv(path, rows):
    """Dumps result or summary rows; the first row fixes the columns. No rows, no file."""
    if not rows:
        return
    _ensure_parent(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)


def plot_metric(summary, metric_key, out_path):
    """One bar per summary group for a single aggregated column, e.g. path_length_avg."""
    labels = [" / ".join(str(part) for part in row["group"]) if "group" in row
              else row.get("algorithm", "") for row in summary]
    heights = [row.get(metric_key, 0) for row in summary]
    positions = range(len(heights))

    fig, ax = plt.subplots(figsize=(max(8, len(labels) * 0.6), 5))
    ax.bar(positions, heights)
    ax.set_xticks(list(positions))
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_ylabel(metric_key)
    ax.set_title(f"{metric_key} per group")
    fig.tight_layout()
    _ensure_parent(out_path)
    fig.savefig(out_path)
    plt.close(fig)


def save_report(rows, out_dir, plots=True):
    """Writes raw_results.csv, summary.csv and one chart per averaged metric."""
    write_csv(os.path.join(out_dir, "raw_results.csv"), rows)
    summary = aggregate_results(rows)
    write_csv(os.path.join(out_dir, "summary.csv"), expand_groups(summary))

    if plots:
        for metric in METRICS:
            plot_metric(summary, f"{metric}_avg", os.path.join(out_dir, f"{metric}_avg.png"))

    print(f"Wrote results to {out_dir}")
    return summary
