"""Input-shape validation for PlanData.

The scheduler assumes validated input and never re-checks it; callers run
:func:`validate_plan` after loading a plan and before computing a schedule.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import PlanValidationError
from .models import PlanData

VALID_BUFFER_CAPACITIES = (1, 2)


@dataclass(frozen=True)
class PlanLimits:
    """Inclusive bounds for the four counts of a plan."""

    min_workpieces: int = 1
    max_workpieces: int = 21
    min_steps: int = 1
    max_steps: int = 14
    min_stations: int = 1
    max_stations: int = 10
    min_transports: int = 0
    max_transports: int = 10


def _check_range(field: str, value: int, low: int, high: int) -> None:
    if not (low <= value <= high):
        raise PlanValidationError(field, value, f"must be between {low} and {high}")


def _check_matrix(field: str, matrix: list, rows: int, width: int) -> None:
    if len(matrix) != rows:
        raise PlanValidationError(field, len(matrix), f"expected {rows} rows")
    for r, row in enumerate(matrix):
        if len(row) != width:
            raise PlanValidationError(
                f"{field}[{r}]", len(row), f"expected {width} values (ragged matrix)"
            )


def validate_plan(plan: PlanData, limits: PlanLimits = PlanLimits()) -> bool:
    """Validate counts, timing parameters and matrix shapes of a plan.

    Args:
        plan: Plan to check.
        limits: Allowed ranges for the counts.

    Returns:
        True if the plan is valid (handy inside assertions).

    Raises:
        PlanValidationError: On the first problem found, naming the field.
    """
    _check_range(
        "workpiece_count", plan.workpiece_count, limits.min_workpieces, limits.max_workpieces
    )
    _check_range("step_count", plan.step_count, limits.min_steps, limits.max_steps)
    _check_range("station_count", plan.station_count, limits.min_stations, limits.max_stations)
    _check_range(
        "transport_count", plan.transport_count, limits.min_transports, limits.max_transports
    )

    if plan.speed <= 0:
        raise PlanValidationError("speed", plan.speed, "must be positive")
    for name in ("load_time", "unload_time", "give_take_time"):
        value = getattr(plan, name)
        if value < 0:
            raise PlanValidationError(name, value, "must not be negative")

    points = plan.station_count + 1
    _check_matrix(
        "operation_station", plan.operation_station, plan.workpiece_count, plan.step_count
    )
    _check_matrix("operation_time", plan.operation_time, plan.workpiece_count, plan.step_count)
    _check_matrix("distance", plan.distance, points, points)
    _check_matrix("travel_time", plan.travel_time, points, points)

    if len(plan.buffer_capacity) != plan.station_count:
        raise PlanValidationError(
            "buffer_capacity", len(plan.buffer_capacity), f"expected {plan.station_count} values"
        )
    for s, capacity in enumerate(plan.buffer_capacity):
        if capacity not in VALID_BUFFER_CAPACITIES:
            raise PlanValidationError(f"buffer_capacity[{s}]", capacity, "must be 1 or 2")

    for w in range(plan.workpiece_count):
        for step, station in enumerate(plan.operation_station[w]):
            if station > plan.station_count:
                raise PlanValidationError(
                    f"operation_station[{w}][{step}]",
                    station,
                    f"station index exceeds station count {plan.station_count}",
                )
        for step, (station, duration) in enumerate(plan.workpiece_operations(w)):
            if duration < 0:
                raise PlanValidationError(
                    f"operation_time[{w}][{step}]", duration, "must not be negative"
                )

    for i, row in enumerate(plan.distance):
        for j, value in enumerate(row):
            if value < 0:
                raise PlanValidationError(f"distance[{i}][{j}]", value, "must not be negative")
    return True
