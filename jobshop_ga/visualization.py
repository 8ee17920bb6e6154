import logging
import os
from pathlib import Path
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")  # Must be set before importing pyplot
import matplotlib.pyplot as plt  # noqa: E402

from jobshop_ga.models import Schedule  # noqa: E402

logger = logging.getLogger("jobshop_ga.visualization")


def _ensure_dir(path: str):
    if path:
        os.makedirs(path, exist_ok=True)


def plot_gantt(
    schedule: Schedule,
    save_path: str,
    algo_name: str = "ga",
    show_legend: Optional[bool] = None,
) -> str:
    """Draw one bar per operation on its machine row and save the figure.

    Bars are coloured by job. Figure size grows with the number of machines
    and jobs; the legend is hidden above 40 jobs unless ``show_legend`` is set.
    """
    machines = sorted({row.machine for row in schedule.operations})
    jobs = sorted({row.job for row in schedule.operations})
    m = len(machines)
    n = len(jobs)
    row_of = {machine: i for i, machine in enumerate(machines)}

    base_w, base_h = 10, 0.5 * m + 2
    fig, ax = plt.subplots(
        figsize=(min(base_w + n * 0.05, 18), min(base_h, 16)),
        constrained_layout=True,
    )
    cmap = matplotlib.colormaps["tab20"]
    colors = {job: cmap(i % 20) for i, job in enumerate(jobs)}
    for row in schedule.operations:
        ax.barh(
            row_of[row.machine],
            row.processing_time,
            left=row.start,
            height=0.8,
            color=colors[row.job],
            alpha=0.85,
            edgecolor="black",
            linewidth=0.6,
        )
    ax.set_xlabel("Time", fontsize=12)
    ax.set_ylabel("Machine", fontsize=12)
    ax.set_title(f"Gantt Chart ({algo_name}) - Cmax = {schedule.cmax}", fontsize=14, fontweight="bold")
    ax.set_yticks(range(m))
    ax.set_yticklabels([f"M{machine}" for machine in machines])
    ax.grid(True, alpha=0.25, axis="x", linestyle="--", linewidth=0.7)
    ax.set_ylim(-0.5, m - 0.5)

    if show_legend is None:
        # auto policy: only show when jobs <= 40
        show_legend = n <= 40
    if show_legend:
        legend_elements = [
            plt.Rectangle(
                (0, 0), 1, 1, facecolor=colors[job], alpha=0.85, edgecolor="black", label=f"Job {job}"
            )
            for job in jobs
        ]
        ax.legend(
            handles=legend_elements,
            bbox_to_anchor=(1.02, 1),
            loc="upper left",
            borderaxespad=0.0,
            fontsize=8,
            frameon=False,
            ncol=1 if n <= 25 else 2 if n <= 50 else 3,
        )

    _ensure_dir(os.path.dirname(save_path))
    fig.savefig(save_path, dpi=180)
    plt.close(fig)
    logger.info("Gantt chart saved as: %s", save_path)
    return save_path


def plot_fitness_progress(
    values: List[float],
    save_path: str,
    ylabel: str = "Best fitness",
) -> str:
    """Save a per-generation progress plot (fitness or makespan)."""
    fig, ax = plt.subplots(figsize=(10, 6))
    generations = list(range(len(values)))
    ax.plot(
        generations,
        values,
        "b-o",
        linewidth=2,
        markersize=4,
        markerfacecolor="white",
        markeredgecolor="blue",
        markeredgewidth=1.5,
    )
    ax.set_xlabel("Generation", fontsize=12)
    ax.set_ylabel(ylabel, fontsize=12)
    ax.set_title("Convergence", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3)

    if len(values) > 1:
        ax.annotate(
            f"Start: {values[0]:.4g}",
            xy=(generations[0], values[0]),
            xytext=(10, 10),
            textcoords="offset points",
            bbox=dict(boxstyle="round,pad=0.3", facecolor="yellow", alpha=0.7),
            arrowprops=dict(arrowstyle="->", connectionstyle="arc3,rad=0"),
        )
        ax.annotate(
            f"Best: {values[-1]:.4g}",
            xy=(generations[-1], values[-1]),
            xytext=(10, -20),
            textcoords="offset points",
            bbox=dict(boxstyle="round,pad=0.3", facecolor="lightgreen", alpha=0.7),
            arrowprops=dict(arrowstyle="->", connectionstyle="arc3,rad=0"),
        )

    fig.tight_layout()
    _ensure_dir(os.path.dirname(save_path))
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info("Progress plot saved as: %s", save_path)
    return save_path


def next_unique_path(path: str | Path) -> str:
    """If the file exists, append _1, _2 ... until a free name is found."""
    p = Path(path)
    if not p.exists():
        return str(p)
    stem = p.stem
    suffix = p.suffix
    parent = p.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return str(candidate)
        counter += 1
