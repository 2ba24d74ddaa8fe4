"""Core data structures for flexible manufacturing schedules.

This module defines:
    PlanData    -- immutable process plan: operations, buffers, transport timing.
    Operation   -- one planned step of a workpiece (processing or transport leg).
    Interval    -- one scheduled occupation of a resource.
    Schedule    -- timelines per station / transport unit plus the cycle time.

Stations are numbered from 1; station 0 is the central storage. Resources of a
Schedule are indexed from 0: stations first, then transport units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

Matrix = list[list[float]]
STORAGE = 0


class SchedulingMode(Enum):
    STANDARD = "standard"
    EXTENDED = "extended"


class ProductionPolicy(Enum):
    SHORTEST_OPERATION = "shortest_operation"
    LONGEST_OPERATION = "longest_operation"
    MIN_REMAINING_WORK = "min_remaining_work"
    MAX_REMAINING_WORK = "max_remaining_work"
    BALANCED_LOAD = "balanced_load"


class TransportPolicy(Enum):
    MAXIMIZE_LOAD = "maximize_load"
    MINIMIZE_LOAD = "minimize_load"
    NEAREST_TRANSPORT = "nearest_transport"


def compute_travel_times(
    distance: Matrix,
    speed: float,
    load_time: float,
    unload_time: float,
    give_take_time: float,
) -> Matrix:
    """Derive the transport time matrix from distances and handling times.

    ``travel[i][j] = distance[i][j] / speed + 2 * give_take``, plus the unload
    time when leaving a station (``i != 0``) and the load time when arriving
    at one (``j != 0``).
    """
    size = len(distance)
    travel: Matrix = []
    for i in range(size):
        row = []
        for j in range(size):
            value = distance[i][j] / speed + 2 * give_take_time
            if i != STORAGE:
                value += unload_time
            if j != STORAGE:
                value += load_time
            row.append(value)
        travel.append(row)
    return travel


@dataclass(frozen=True)
class PlanData:
    """Immutable description of a production system and its process plan.

    Attributes:
        workpiece_count: Number of workpieces.
        station_count: Number of processing stations.
        transport_count: Number of transport units.
        step_count: Maximum number of operations per workpiece.
        load_time: Time to load a workpiece into a station.
        unload_time: Time to unload a workpiece from a station.
        give_take_time: Hand-over time, paid twice per transport leg.
        speed: Average speed of the transport units.
        operation_station: ``[workpiece][step]`` -> station (1-based, <= 0 ends
            the plan of that workpiece).
        operation_time: ``[workpiece][step]`` -> processing duration.
        distance: ``(stations + 1) x (stations + 1)`` distances, index 0 being
            the central storage.
        buffer_capacity: Per-station buffer slots (1 shared, 2 entry+exit).
        travel_time: Derived transport durations, same shape as ``distance``.
    """

    workpiece_count: int
    station_count: int
    transport_count: int
    step_count: int
    load_time: float
    unload_time: float
    give_take_time: float
    speed: float
    operation_station: list[list[int]]
    operation_time: Matrix
    distance: Matrix
    buffer_capacity: list[int]
    travel_time: Matrix

    @classmethod
    def create(
        cls,
        operation_station: list[list[int]],
        operation_time: Matrix,
        station_count: int,
        transport_count: int = 0,
        distance: Optional[Matrix] = None,
        buffer_capacity: Optional[list[int]] = None,
        load_time: float = 0.0,
        unload_time: float = 0.0,
        give_take_time: float = 0.0,
        speed: float = 1.0,
        travel_time: Optional[Matrix] = None,
    ) -> "PlanData":
        """Build a plan, filling in defaults and deriving travel times.

        Missing distances default to an all-zero matrix, missing buffer
        capacities to 2 (separate entry and exit slots) and missing travel
        times are derived with :func:`compute_travel_times`.
        """
        if distance is None:
            distance = [[0.0] * (station_count + 1) for _ in range(station_count + 1)]
        if buffer_capacity is None:
            buffer_capacity = [2] * station_count
        if travel_time is None:
            travel_time = compute_travel_times(
                distance, speed, load_time, unload_time, give_take_time
            )
        step_count = max((len(row) for row in operation_station), default=0)
        return cls(
            workpiece_count=len(operation_station),
            station_count=station_count,
            transport_count=transport_count,
            step_count=step_count,
            load_time=load_time,
            unload_time=unload_time,
            give_take_time=give_take_time,
            speed=speed,
            operation_station=operation_station,
            operation_time=operation_time,
            distance=distance,
            buffer_capacity=buffer_capacity,
            travel_time=travel_time,
        )

    def workpiece_operations(self, workpiece: int) -> list[tuple[int, float]]:
        """Return ``(station, duration)`` pairs up to the first station <= 0."""
        ops: list[tuple[int, float]] = []
        stations = self.operation_station[workpiece]
        times = self.operation_time[workpiece]
        for step in range(min(self.step_count, len(stations))):
            if stations[step] <= 0:
                break
            ops.append((stations[step], times[step]))
        return ops


@dataclass(frozen=True)
class Operation:
    """A planned step of a workpiece.

    Processing operations carry their station; transport legs have
    ``station == 0`` and describe the move with ``from_station`` and
    ``to_station``. For legs ``step_index`` is the index of the processing
    step they deliver to (or the plan length for the final leg to storage).
    """

    station: int
    step_index: int
    duration: float
    label: str
    from_station: int = STORAGE
    to_station: int = STORAGE

    @property
    def is_transport(self) -> bool:
        return self.station == STORAGE


@dataclass(frozen=True)
class Interval:
    """Single scheduled occupation of a resource.

    Fields:
        workpiece: Workpiece index (0-based).
        step_index: Step index of the operation inside the workpiece plan.
        start: Start time.
        end: Completion time (start + duration).
        label: Human readable description.
        from_station: Pickup point of a transport leg (0 = storage).
        to_station: Drop-off point of a transport leg (0 = storage).
    """

    workpiece: int
    step_index: int
    start: float
    end: float
    label: str
    from_station: int = STORAGE
    to_station: int = STORAGE

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class Schedule:
    """Result of a scheduling run.

    ``timelines`` holds one list per resource: indices ``0..station_count-1``
    are stations 1..N, the following ones are transport units 1..M.
    ``cycle_time`` stays ``None`` until the run has completed.
    """

    plan_data: PlanData
    mode: SchedulingMode
    production_policy: ProductionPolicy
    transport_policy: TransportPolicy
    plans: list[list[Operation]]
    extended_plans: list[list[Operation]] = field(default_factory=list)
    timelines: list[list[Interval]] = field(default_factory=list)
    cycle_time: Optional[float] = None

    @property
    def is_computed(self) -> bool:
        return self.cycle_time is not None

    @property
    def resource_count(self) -> int:
        return len(self.timelines)

    def is_station(self, resource: int) -> bool:
        return resource < self.plan_data.station_count

    def station_timeline(self, station: int) -> list[Interval]:
        """Timeline of a station given its 1-based number."""
        return self.timelines[station - 1]

    def transport_timeline(self, unit: int) -> list[Interval]:
        """Timeline of a transport unit given its 1-based number."""
        return self.timelines[self.plan_data.station_count + unit - 1]

    def resource_name(self, resource: int) -> str:
        if self.is_station(resource):
            return f"Station {resource + 1}"
        return f"Transport {resource - self.plan_data.station_count + 1}"

    def intervals(self) -> Iterator[tuple[int, Interval]]:
        """Yield ``(resource, interval)`` in resource then chronological order."""
        for resource, timeline in enumerate(self.timelines):
            for interval in timeline:
                yield resource, interval

    def makespan(self) -> float:
        return max((iv.end for _, iv in self.intervals()), default=0.0)
