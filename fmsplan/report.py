"""Tabular and serialized views of schedules and networks.

Tables are plain lists of string rows so they can be printed, written to CSV
or compared in tests without any UI toolkit.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from enum import Enum
from typing import Any

from .models import Schedule
from .network import PositionClass, ResourceNetwork

logger = logging.getLogger("fmsplan.report")


class CellView(Enum):
    WORKPIECE = "workpiece"
    DURATION = "duration"
    SPAN = "span"


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def timeline_table(schedule: Schedule, show: CellView = CellView.WORKPIECE) -> list[list[str]]:
    """One row per resource: its name followed by one cell per interval.

    Cells hold the 1-based workpiece number, ``"w [duration]"`` or
    ``"w [start-end]"`` depending on ``show``.
    """
    rows: list[list[str]] = []
    for resource, timeline in enumerate(schedule.timelines):
        row = [schedule.resource_name(resource)]
        for iv in timeline:
            w = iv.workpiece + 1
            if show is CellView.DURATION:
                row.append(f"{w} [{_number(iv.duration)}]")
            elif show is CellView.SPAN:
                row.append(f"{w} [{_number(iv.start)}-{_number(iv.end)}]")
            else:
                row.append(str(w))
        rows.append(row)
    return rows


def transition_rows(network: ResourceNetwork) -> list[list[str]]:
    """``[name, label]`` for every transition."""
    return [[t.name, t.label] for t in network.transitions]


def arc_rows(network: ResourceNetwork) -> list[list[str]]:
    """``[transition, kind, position, label]`` for every arc.

    Exclusion positions get a trailing ``" (*)"`` on their name.
    """
    rows: list[list[str]] = []
    for t in network.transitions:
        for index in t.inputs:
            p = network.position(index)
            rows.append([t.name, "input", p.name, p.label])
        for index in t.exclusions:
            p = network.position(index)
            rows.append([t.name, "exclusion", f"{p.name} (*)", p.label])
        for index in t.outputs:
            p = network.position(index)
            rows.append([t.name, "output", p.name, p.label])
    return rows


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    resources = []
    for resource, timeline in enumerate(schedule.timelines):
        resources.append(
            {
                "name": schedule.resource_name(resource),
                "kind": "station" if schedule.is_station(resource) else "transport",
                "intervals": [
                    {
                        "workpiece": iv.workpiece + 1,
                        "step": iv.step_index + 1,
                        "start": iv.start,
                        "end": iv.end,
                        "label": iv.label,
                    }
                    for iv in timeline
                ],
            }
        )
    return {
        "mode": schedule.mode.value,
        "production_policy": schedule.production_policy.value,
        "transport_policy": schedule.transport_policy.value,
        "cycle_time": schedule.cycle_time,
        "resources": resources,
    }


def network_to_dict(network: ResourceNetwork) -> dict[str, Any]:
    def _names(indices: list[int]) -> list[str]:
        return [network.position(i).name for i in indices]

    positions = []
    for p in network.referenced_positions():
        item: dict[str, Any] = {"name": p.name, "kind": p.kind.value, "label": p.label}
        if p.kind is PositionClass.WORKPIECE:
            item["slot"] = p.slot.value if p.slot else None
        positions.append(item)
    return {
        "positions": positions,
        "transitions": [
            {
                "name": t.name,
                "label": t.label,
                "inputs": _names(t.inputs),
                "outputs": _names(t.outputs),
                "exclusions": _names(t.exclusions),
            }
            for t in network.transitions
        ],
        "initial_marking": _names(network.initial_marking),
        "final_positions": _names(network.final_positions),
    }


def write_json(data: dict[str, Any], path: str) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info("Saved %s", path)
    return path


def write_arc_csv(network: ResourceNetwork, path: str) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["transition", "arc", "position", "label"])
        writer.writerows(arc_rows(network))
    logger.info("Saved %s", path)
    return path
