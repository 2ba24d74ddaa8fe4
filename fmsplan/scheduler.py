"""Discrete-event scheduler for stations and transport units.

The engine turns a static :class:`PlanData` into a conflict-free timeline.
Every run owns a fresh :class:`SimulationState` and repeats four steps until
no resource is busy any more:

1. collect candidates -- free workpieces whose next operation can start on a
   free resource;
2. dispatch -- every free station with candidates starts the one picked by
   the production rule; at most one transport leg starts per event (the first
   queued candidate on the first free unit);
3. advance time -- the clock jumps to the earliest end of a busy resource;
4. release -- resources ending at the new clock become free, as do their
   workpieces unless the plan of the workpiece is exhausted.

Standard mode only schedules stations. Extended mode interleaves transport
legs (storage -> first station -> ... -> last station -> storage).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from .models import (
    STORAGE,
    Interval,
    Operation,
    PlanData,
    ProductionPolicy,
    Schedule,
    SchedulingMode,
    TransportPolicy,
)
from .policies import choose_transport_unit, select_production_candidate
from .state import Candidate, SimulationState, WorkpieceState

logger = logging.getLogger("fmsplan.scheduler")


@dataclass(frozen=True)
class SchedulerConfig:
    """Optional knobs of the event loop.

    Attributes:
        honor_transport_policy: When True the configured transport rule picks
            the unit that serves the leg started at an event. Off by default:
            the first free unit takes its first queued candidate.
        min_transport_leg: Lower bound for the duration of legs that end at a
            station (0 keeps the plain travel time).
    """

    honor_transport_policy: bool = False
    min_transport_leg: float = 0.0


def point_name(point: int) -> str:
    return "storage" if point == STORAGE else f"station {point}"


def _production_label(station: int, workpiece: int, step: int) -> str:
    return f"Station {station} processes workpiece {workpiece + 1} at operation {step + 1}"


def _transport_label(workpiece: int, origin: int, target: int, unit: Optional[int] = None) -> str:
    carrier = "Transport" if unit is None else f"Transport {unit + 1}"
    return (
        f"{carrier} moves workpiece {workpiece + 1} "
        f"from {point_name(origin)} to {point_name(target)}"
    )


def build_plans(plan_data: PlanData) -> list[list[Operation]]:
    """Build the per-workpiece processing plans (Standard mode)."""
    plans: list[list[Operation]] = []
    for w in range(plan_data.workpiece_count):
        plans.append(
            [
                Operation(station, step, duration, _production_label(station, w, step))
                for step, (station, duration) in enumerate(plan_data.workpiece_operations(w))
            ]
        )
    return plans


def build_extended_plans(
    plan_data: PlanData, plans: list[list[Operation]]
) -> list[list[Operation]]:
    """Insert transport legs before, between and after the processing steps."""
    travel = plan_data.travel_time
    extended: list[list[Operation]] = []
    for w, plan in enumerate(plans):
        ops: list[Operation] = []
        previous = STORAGE
        for op in plan:
            ops.append(_leg(w, op.step_index, previous, op.station, travel[previous][op.station]))
            ops.append(op)
            previous = op.station
        if plan:
            ops.append(_leg(w, len(plan), previous, STORAGE, travel[previous][STORAGE]))
        extended.append(ops)
    return extended


def _leg(workpiece: int, step: int, origin: int, target: int, duration: float) -> Operation:
    label = _transport_label(workpiece, origin, target)
    return Operation(STORAGE, step, duration, label, origin, target)


def collect_candidates(state: SimulationState) -> list[list[Candidate]]:
    """Queue every free workpiece at the free station of its next step."""
    queues: list[list[Candidate]] = [[] for _ in range(state.station_count)]
    for w, plan in enumerate(state.plans):
        if state.workpieces[w] is not WorkpieceState.FREE:
            continue
        if state.cursor[w] >= len(plan):
            continue
        op = plan[state.cursor[w]]
        if op.station > STORAGE and state.is_free(op.station - 1):
            queues[op.station - 1].append(Candidate(w, op))
    return queues


def collect_candidates_extended(
    state: SimulationState,
) -> tuple[list[list[Candidate]], list[list[Candidate]]]:
    """Queue production candidates per station and transport candidates per unit.

    A transport candidate is replicated into the queue of every free unit.
    """
    station_queues: list[list[Candidate]] = [[] for _ in range(state.station_count)]
    transport_queues: list[list[Candidate]] = [
        [] for _ in range(state.plan_data.transport_count)
    ]
    free_units = state.free_transport_units()
    for w, plan in enumerate(state.extended_plans):
        if state.workpieces[w] is not WorkpieceState.FREE:
            continue
        position = state.extended_cursor[w]
        if position >= len(plan):
            continue
        op = plan[position]
        if op.is_transport:
            for unit in free_units:
                transport_queues[unit].append(Candidate(w, op))
        elif state.is_free(op.station - 1):
            station_queues[op.station - 1].append(Candidate(w, op))
    return station_queues, transport_queues


def dispatch_production(
    state: SimulationState,
    queues: list[list[Candidate]],
    policy: ProductionPolicy,
    extended: bool = False,
) -> int:
    """Start one candidate on every free station that has any; return the count."""
    started = 0
    for station_index, queue in enumerate(queues):
        if not queue or not state.is_free(station_index):
            continue
        chosen = queue[select_production_candidate(policy, queue, state)]
        op = chosen.operation
        interval = Interval(
            chosen.workpiece, op.step_index, state.clock, state.clock + op.duration, op.label
        )
        state.occupy(station_index, interval)
        state.cursor[chosen.workpiece] += 1
        if extended:
            state.extended_cursor[chosen.workpiece] += 1
        logger.debug(
            "t=%s station %d <- workpiece %d step %d (%s)",
            state.clock,
            station_index + 1,
            chosen.workpiece + 1,
            op.step_index + 1,
            policy.name,
        )
        started += 1
    return started


def _leg_key(candidate: Candidate) -> tuple[int, int, int, int]:
    op = candidate.operation
    return candidate.workpiece, op.step_index, op.from_station, op.to_station


def _start_leg(
    state: SimulationState, unit: int, candidate: Candidate, config: SchedulerConfig
) -> None:
    op = candidate.operation
    duration = op.duration
    if op.to_station != STORAGE:
        duration = max(duration, config.min_transport_leg)
    interval = Interval(
        candidate.workpiece,
        op.step_index,
        state.clock,
        state.clock + duration,
        _transport_label(candidate.workpiece, op.from_station, op.to_station, unit),
        op.from_station,
        op.to_station,
    )
    state.occupy(state.transport_resource(unit), interval)
    state.extended_cursor[candidate.workpiece] += 1
    logger.debug(
        "t=%s transport %d <- workpiece %d %s -> %s",
        state.clock,
        unit + 1,
        candidate.workpiece + 1,
        point_name(op.from_station),
        point_name(op.to_station),
    )


def dispatch_transport(
    state: SimulationState,
    queues: list[list[Candidate]],
    policy: TransportPolicy,
    config: SchedulerConfig,
) -> int:
    """Start at most one transport leg; return 1 if one was started, else 0.

    The first free unit with a non-empty queue takes the first candidate of
    that queue. Remaining candidates wait for the next event, even when other
    units are free.
    """
    for unit, queue in enumerate(queues):
        if not queue or not state.is_free(state.transport_resource(unit)):
            continue
        chosen = queue[0]
        if config.honor_transport_policy:
            unit = choose_transport_unit(policy, chosen, state.free_transport_units(), state)
        _start_leg(state, unit, chosen, config)
        chosen_key = _leg_key(chosen)
        for other in queues:
            other[:] = [c for c in other if _leg_key(c) != chosen_key]
        return 1
    return 0


def advance_time(state: SimulationState) -> bool:
    """Move the clock to the earliest end of a busy resource.

    Returns:
        False when no resource is busy, i.e. the run is over.
    """
    ends = [until for until in state.busy_until if until is not None]
    if not ends:
        return False
    state.clock = min(ends)
    return True


def release(state: SimulationState, extended: bool = False) -> None:
    """Free resources ending at the current clock and their workpieces.

    A workpiece whose plan is exhausted is marked DONE instead of FREE so it
    never becomes a candidate again.
    """
    for resource, until in enumerate(state.busy_until):
        if until is None or until != state.clock:
            continue
        state.busy_until[resource] = None
        w = state.timelines[resource][-1].workpiece
        if extended:
            finished = state.extended_cursor[w] >= len(state.extended_plans[w])
        else:
            finished = state.cursor[w] >= len(state.plans[w])
        state.workpieces[w] = WorkpieceState.DONE if finished else WorkpieceState.FREE


def _run_standard(state: SimulationState, production_policy: ProductionPolicy) -> int:
    events = 0
    while True:
        dispatch_production(state, collect_candidates(state), production_policy)
        if not advance_time(state):
            return events
        release(state)
        events += 1


def _run_extended(
    state: SimulationState,
    production_policy: ProductionPolicy,
    transport_policy: TransportPolicy,
    config: SchedulerConfig,
) -> int:
    events = 0
    while True:
        station_queues, transport_queues = collect_candidates_extended(state)
        dispatch_production(state, station_queues, production_policy, extended=True)
        dispatch_transport(state, transport_queues, transport_policy, config)
        if not advance_time(state):
            return events
        release(state, extended=True)
        events += 1


def compute_schedule(
    plan_data: PlanData,
    production_policy: ProductionPolicy = ProductionPolicy.SHORTEST_OPERATION,
    transport_policy: TransportPolicy = TransportPolicy.MAXIMIZE_LOAD,
    mode: SchedulingMode = SchedulingMode.STANDARD,
    config: Optional[SchedulerConfig] = None,
) -> Schedule:
    """Compute a Gantt schedule for a validated plan.

    Args:
        plan_data: Validated process plan.
        production_policy: Rule choosing among candidates for a station.
        transport_policy: Transport rule; recorded on the schedule and only
            applied when ``config.honor_transport_policy`` is set.
        mode: STANDARD (stations only) or EXTENDED (stations + transport).
        config: Optional event loop knobs.

    Returns:
        Schedule with one timeline per station and per transport unit and
        ``cycle_time`` set to the final clock value.
    """
    if config is None:
        config = SchedulerConfig()
    plans = build_plans(plan_data)
    extended_plans: list[list[Operation]] = []
    if mode is SchedulingMode.EXTENDED:
        extended_plans = build_extended_plans(plan_data, plans)
    state = SimulationState.start(plan_data, plans, extended_plans)
    for w, plan in enumerate(plans):
        if not plan:
            state.workpieces[w] = WorkpieceState.DONE

    if mode is SchedulingMode.EXTENDED:
        events = _run_extended(state, production_policy, transport_policy, config)
    else:
        events = _run_standard(state, production_policy)

    schedule = Schedule(
        plan_data=plan_data,
        mode=mode,
        production_policy=production_policy,
        transport_policy=transport_policy,
        plans=plans,
        extended_plans=extended_plans,
        timelines=state.timelines,
        cycle_time=state.clock,
    )
    unfinished = [w + 1 for w, s in enumerate(state.workpieces) if s is not WorkpieceState.DONE]
    if unfinished:
        logger.warning("Workpieces left unfinished (no resource can serve them): %s", unfinished)
    logger.info(
        "Scheduled %s mode policy=%s events=%d intervals=%d cycle_time=%s",
        mode.value,
        production_policy.name,
        events,
        sum(len(t) for t in state.timelines),
        schedule.cycle_time,
    )
    return schedule


def check_no_resource_overlap(schedule: Schedule) -> bool:
    """Ensure intervals on every resource are time-ordered and disjoint.

    Raises:
        AssertionError: On the first overlap found.
    """
    for resource, timeline in enumerate(schedule.timelines):
        prev_end = None
        for iv in timeline:
            if prev_end is not None and iv.start < prev_end:
                raise AssertionError(
                    f"Overlap on {schedule.resource_name(resource)} "
                    f"between end {prev_end} and start {iv.start}"
                )
            prev_end = iv.end
    return True


def check_plan_order(schedule: Schedule) -> bool:
    """Ensure each workpiece runs its steps in plan order without overlap.

    Transport legs delivering to step ``k`` precede the processing of step
    ``k``; the final leg to storage comes last.

    Raises:
        AssertionError: On the first out-of-order or overlapping step.
    """
    by_workpiece: dict[int, list[tuple[float, float, tuple[int, int]]]] = defaultdict(list)
    for resource, iv in schedule.intervals():
        order = (iv.step_index, 1 if schedule.is_station(resource) else 0)
        by_workpiece[iv.workpiece].append((iv.start, iv.end, order))
    for workpiece, rows in by_workpiece.items():
        rows.sort()
        prev_end = None
        prev_order = None
        for start, end, order in rows:
            if prev_order is not None and order <= prev_order:
                raise AssertionError(f"Workpiece {workpiece + 1} steps out of plan order")
            if prev_end is not None and start < prev_end:
                raise AssertionError(
                    f"Workpiece {workpiece + 1} starts at {start} before previous end {prev_end}"
                )
            prev_end = end
            prev_order = order
    return True
