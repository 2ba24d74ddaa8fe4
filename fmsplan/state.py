"""Mutable state owned by a single scheduling run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .models import STORAGE, Interval, Operation, PlanData


class WorkpieceState(Enum):
    FREE = "free"
    BUSY = "busy"
    DONE = "done"


@dataclass(frozen=True)
class Candidate:
    """A workpiece whose next operation waits for a resource."""

    workpiece: int
    operation: Operation


@dataclass
class SimulationState:
    """Cursors, occupancy and timelines of one scheduling run.

    A fresh instance is created for every run and passed explicitly to each
    step of the event loop, so Standard and Extended runs never share state.
    ``busy_until[r]`` is ``None`` while resource ``r`` is free.
    """

    plan_data: PlanData
    plans: list[list[Operation]]
    extended_plans: list[list[Operation]] = field(default_factory=list)
    cursor: list[int] = field(default_factory=list)
    extended_cursor: list[int] = field(default_factory=list)
    workpieces: list[WorkpieceState] = field(default_factory=list)
    busy_until: list[Optional[float]] = field(default_factory=list)
    timelines: list[list[Interval]] = field(default_factory=list)
    clock: float = 0.0

    @classmethod
    def start(
        cls,
        plan_data: PlanData,
        plans: list[list[Operation]],
        extended_plans: Optional[list[list[Operation]]] = None,
    ) -> "SimulationState":
        resources = plan_data.station_count + plan_data.transport_count
        count = len(plans)
        return cls(
            plan_data=plan_data,
            plans=plans,
            extended_plans=extended_plans or [],
            cursor=[0] * count,
            extended_cursor=[0] * count,
            workpieces=[WorkpieceState.FREE] * count,
            busy_until=[None] * resources,
            timelines=[[] for _ in range(resources)],
        )

    @property
    def station_count(self) -> int:
        return self.plan_data.station_count

    def transport_resource(self, unit: int) -> int:
        """Resource index of a 0-based transport unit."""
        return self.station_count + unit

    def is_free(self, resource: int) -> bool:
        return self.busy_until[resource] is None

    def free_transport_units(self) -> list[int]:
        return [
            unit
            for unit in range(self.plan_data.transport_count)
            if self.is_free(self.transport_resource(unit))
        ]

    def remaining_work(self, workpiece: int) -> float:
        """Sum of the durations of the not yet scheduled processing steps."""
        plan = self.plans[workpiece]
        return sum(op.duration for op in plan[self.cursor[workpiece]:])

    def next_station_after(self, workpiece: int) -> int:
        """Station of the step following the current one, 0 when none."""
        following = self.cursor[workpiece] + 1
        plan = self.plans[workpiece]
        if following < len(plan):
            return plan[following].station
        return STORAGE

    def resource_load(self, resource: int) -> float:
        """Accumulated duration already scheduled on a resource."""
        return sum(iv.duration for iv in self.timelines[resource])

    def last_visited(self, unit: int) -> int:
        """Drop-off point of the last leg served by a transport unit."""
        timeline = self.timelines[self.transport_resource(unit)]
        return timeline[-1].to_station if timeline else STORAGE

    def occupy(self, resource: int, interval: Interval) -> None:
        self.timelines[resource].append(interval)
        self.busy_until[resource] = interval.end
        self.workpieces[interval.workpiece] = WorkpieceState.BUSY
