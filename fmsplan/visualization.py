"""Matplotlib renderings of schedules and resource networks (Agg backend, PNG output)."""

import logging
import os
from collections import defaultdict
from typing import Optional

import matplotlib

matplotlib.use("Agg")  # Must be set before importing pyplot
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.lines import Line2D  # noqa: E402

from .models import Schedule  # noqa: E402
from .network import PositionClass, ResourceNetwork  # noqa: E402

logger = logging.getLogger("fmsplan.visualization")


def plot_schedule_gantt(
    schedule: Schedule,
    save_path: str,
    show_legend: Optional[bool] = None,
    title: Optional[str] = None,
) -> str:
    """Draw one bar per interval, one row per resource, coloured per workpiece.

    - Stations are drawn first (top), transport units below them.
    - Legend is shown automatically only for at most 40 workpieces.
    - Figure size adapts to the number of resources and intervals.
    """
    rows = schedule.resource_count
    n = schedule.plan_data.workpiece_count
    bars = sum(len(t) for t in schedule.timelines)

    base_w, base_h = 10, 0.5 * rows + 2
    fig, ax = plt.subplots(
        figsize=(min(base_w + bars * 0.05, 18), min(base_h, 16)),
        constrained_layout=True,
    )
    cmap = matplotlib.colormaps["tab20"]
    colors = [cmap(i % 20) for i in range(max(n, 1))]
    for resource, iv in schedule.intervals():
        y = rows - 1 - resource
        ax.barh(
            y,
            iv.duration,
            left=iv.start,
            height=0.8,
            color=colors[iv.workpiece],
            alpha=0.85,
            edgecolor="black",
            linewidth=0.6,
            hatch=None if schedule.is_station(resource) else "//",
        )
    ax.set_xlabel("Time", fontsize=12)
    ax.set_ylabel("Resource", fontsize=12)
    if title is None:
        title = f"Gantt Chart ({schedule.mode.value}) - cycle time = {schedule.cycle_time}"
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_yticks(range(rows))
    ax.set_yticklabels([schedule.resource_name(r) for r in reversed(range(rows))])
    ax.grid(True, alpha=0.25, axis="x", linestyle="--", linewidth=0.7)
    ax.set_ylim(-0.5, rows - 0.5)

    if show_legend is None:
        show_legend = n <= 40
    if show_legend and n:
        legend_elements = [
            plt.Rectangle(
                (0, 0),
                1,
                1,
                facecolor=colors[i],
                alpha=0.85,
                edgecolor="black",
                label=f"Workpiece {i + 1}",
            )
            for i in range(n)
        ]
        ax.legend(
            handles=legend_elements,
            bbox_to_anchor=(1.02, 1),
            loc="upper left",
            borderaxespad=0.0,
            fontsize=8,
            frameon=False,
            ncol=1 if n <= 25 else 2,
        )

    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(save_path, dpi=180)
    plt.close(fig)
    logger.info("Gantt chart saved as: %s", save_path)
    return save_path


POSITION_COLORS = {
    PositionClass.STATION: "tab:blue",
    PositionClass.TRANSPORT: "tab:orange",
    PositionClass.WORKPIECE: "tab:gray",
}


def _network_layout(network: ResourceNetwork):
    """Place transitions and ready positions on resource rows, workpiece positions below them.

    Returns ``(transition_xy, position_xy)`` keyed by transition / arena index.
    """
    rows = network.schedule.resource_count
    rings = network.station_ready + network.transport_ready
    transition_xy: dict[int, tuple[float, float]] = {}
    position_xy: dict[int, tuple[float, float]] = {}
    for resource, indices in enumerate(network.resource_transitions):
        y = 2.0 * (rows - 1 - resource)
        for i, t_index in enumerate(indices):
            transition_xy[t_index] = (2.0 * i + 1, y)
        for i, p_index in enumerate(rings[resource]):
            position_xy[p_index] = (2.0 * i, y)

    # workpiece positions sit under the mean of the transitions they connect to
    touching: dict[int, list[tuple[float, float]]] = defaultdict(list)
    for t in network.transitions:
        for p_index in t.inputs + t.outputs:
            if p_index not in position_xy:
                touching[p_index].append(transition_xy[t.index])
    for p_index, points in touching.items():
        x = sum(px for px, _ in points) / len(points)
        y = sum(py for _, py in points) / len(points)
        position_xy[p_index] = (x, y - 0.8)
    return transition_xy, position_xy


def _arc(ax, start, end) -> None:
    ax.annotate(
        "",
        xy=end,
        xytext=start,
        arrowprops=dict(arrowstyle="->", color="0.45", lw=0.6, shrinkA=6, shrinkB=4),
        zorder=2,
    )


def _position_handle(kind: PositionClass, label: str) -> Line2D:
    return Line2D(
        [],
        [],
        marker="o",
        linestyle="",
        markerfacecolor="white",
        markeredgecolor=POSITION_COLORS[kind],
        label=label,
    )


def plot_network(
    network: ResourceNetwork,
    save_path: str,
    show_labels: Optional[bool] = None,
    title: Optional[str] = None,
) -> str:
    """Draw the resource network: one row per resource.

    - Transitions are black bars placed in firing order along their resource row.
    - Ready positions sit between the transitions of their ring; workpiece
      positions hang below the transitions they feed.
    - Exclusion arcs are dotted red lines ending in an open circle.
    - Positions of the initial marking carry a black token.
    - Names are printed automatically only for at most 60 transitions.
    """
    schedule = network.schedule
    rows = schedule.resource_count
    cols = max((len(indices) for indices in network.resource_transitions), default=0)
    transition_xy, position_xy = _network_layout(network)

    fig, ax = plt.subplots(
        figsize=(min(6 + cols * 0.8, 24), min(1.5 * rows + 2, 16)),
        constrained_layout=True,
    )
    for t in network.transitions:
        tx, ty = transition_xy[t.index]
        for p_index in t.inputs:
            if p_index in position_xy:
                _arc(ax, position_xy[p_index], (tx, ty))
        for p_index in t.outputs:
            if p_index in position_xy:
                _arc(ax, (tx, ty), position_xy[p_index])
        for p_index in t.exclusions:
            if p_index not in position_xy:
                continue
            px, py = position_xy[p_index]
            ax.plot([px, tx], [py, ty], linestyle=":", color="tab:red", linewidth=0.8, zorder=2)
            ax.plot(
                px + 0.85 * (tx - px),
                py + 0.85 * (ty - py),
                marker="o",
                markersize=5,
                markerfacecolor="white",
                markeredgecolor="tab:red",
                zorder=3,
            )
        ax.bar(tx, 0.9, width=0.15, bottom=ty - 0.45, color="black", zorder=3)

    referenced = [i for i in network.positions if i in position_xy]
    for kind, color in POSITION_COLORS.items():
        points = [position_xy[i] for i in referenced if network.position(i).kind is kind]
        if points:
            ax.scatter(
                [x for x, _ in points],
                [y for _, y in points],
                s=160,
                facecolors="white",
                edgecolors=color,
                linewidths=1.2,
                zorder=4,
            )
    tokens = [position_xy[i] for i in network.initial_marking if i in position_xy]
    if tokens:
        ax.scatter([x for x, _ in tokens], [y for _, y in tokens], s=25, color="black", zorder=5)

    if show_labels is None:
        show_labels = len(network.transitions) <= 60
    if show_labels:
        for t in network.transitions:
            tx, ty = transition_xy[t.index]
            ax.text(tx, ty + 0.55, t.name, ha="center", fontsize=6)
        for i in referenced:
            px, py = position_xy[i]
            ax.text(px, py - 0.45, network.position(i).name, ha="center", fontsize=6)

    ax.set_yticks([2.0 * (rows - 1 - r) for r in range(rows)])
    ax.set_yticklabels([schedule.resource_name(r) for r in range(rows)])
    ax.set_xticks([])
    ax.set_xlim(-1.0, max(2.0 * cols, 1.0) + 0.5)
    ax.set_ylim(-2.0, 2.0 * (rows - 1) + 1.0)
    if title is None:
        title = (
            f"Resource network - {len(network.transitions)} transitions, "
            f"{len(network.positions)} positions"
        )
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(
        handles=[
            Line2D([], [], color="black", linewidth=4, label="Transition"),
            _position_handle(PositionClass.STATION, "Station ready"),
            _position_handle(PositionClass.TRANSPORT, "Transport ready"),
            _position_handle(PositionClass.WORKPIECE, "Workpiece"),
            Line2D([], [], color="tab:red", linestyle=":", label="Exclusion"),
        ],
        bbox_to_anchor=(1.02, 1),
        loc="upper left",
        borderaxespad=0.0,
        fontsize=8,
        frameon=False,
    )

    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(save_path, dpi=180)
    plt.close(fig)
    logger.info("Network diagram saved as: %s", save_path)
    return save_path
