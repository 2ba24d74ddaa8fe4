"""Dispatch rules.

Production rules pick one of the candidates competing for a station. Transport
rules pick which free transport unit should serve a transport candidate.
Every rule is deterministic: on ties the earliest candidate (or the lowest
unit) wins, which is exactly what ``min``/``max`` over indices give us.
"""

from __future__ import annotations

from typing import Callable, Sequence

from .models import STORAGE, ProductionPolicy, TransportPolicy
from .state import Candidate, SimulationState

ProductionRule = Callable[[Sequence[Candidate], SimulationState], int]
TransportRule = Callable[[Candidate, Sequence[int], SimulationState], int]


def _shortest_operation(candidates: Sequence[Candidate], state: SimulationState) -> int:
    return min(range(len(candidates)), key=lambda i: candidates[i].operation.duration)


def _longest_operation(candidates: Sequence[Candidate], state: SimulationState) -> int:
    return max(range(len(candidates)), key=lambda i: candidates[i].operation.duration)


def _min_remaining_work(candidates: Sequence[Candidate], state: SimulationState) -> int:
    return min(
        range(len(candidates)), key=lambda i: state.remaining_work(candidates[i].workpiece)
    )


def _max_remaining_work(candidates: Sequence[Candidate], state: SimulationState) -> int:
    return max(
        range(len(candidates)), key=lambda i: state.remaining_work(candidates[i].workpiece)
    )


def _balanced_load(candidates: Sequence[Candidate], state: SimulationState) -> int:
    # candidates leaving for storage afterwards take no part in the comparison
    best_index = 0
    best_load = None
    for i, candidate in enumerate(candidates):
        following = state.next_station_after(candidate.workpiece)
        if following == STORAGE:
            continue
        load = state.resource_load(following - 1)
        if best_load is None or load < best_load:
            best_load = load
            best_index = i
    return best_index


PRODUCTION_RULES: dict[ProductionPolicy, ProductionRule] = {
    ProductionPolicy.SHORTEST_OPERATION: _shortest_operation,
    ProductionPolicy.LONGEST_OPERATION: _longest_operation,
    ProductionPolicy.MIN_REMAINING_WORK: _min_remaining_work,
    ProductionPolicy.MAX_REMAINING_WORK: _max_remaining_work,
    ProductionPolicy.BALANCED_LOAD: _balanced_load,
}


def select_production_candidate(
    policy: ProductionPolicy,
    candidates: Sequence[Candidate],
    state: SimulationState,
) -> int:
    """Return the index of the candidate a station should process next.

    Args:
        policy: Active production rule.
        candidates: Non-empty candidates in collection order.
        state: Current simulation state (read only).
    """
    if len(candidates) == 1:
        return 0
    return PRODUCTION_RULES[policy](candidates, state)


def _maximize_load(candidate: Candidate, units: Sequence[int], state: SimulationState) -> int:
    return max(units, key=lambda u: state.resource_load(state.transport_resource(u)))


def _minimize_load(candidate: Candidate, units: Sequence[int], state: SimulationState) -> int:
    return min(units, key=lambda u: state.resource_load(state.transport_resource(u)))


def _nearest_transport(candidate: Candidate, units: Sequence[int], state: SimulationState) -> int:
    distance = state.plan_data.distance
    pickup = candidate.operation.from_station
    return min(units, key=lambda u: distance[state.last_visited(u)][pickup])


TRANSPORT_RULES: dict[TransportPolicy, TransportRule] = {
    TransportPolicy.MAXIMIZE_LOAD: _maximize_load,
    TransportPolicy.MINIMIZE_LOAD: _minimize_load,
    TransportPolicy.NEAREST_TRANSPORT: _nearest_transport,
}


def choose_transport_unit(
    policy: TransportPolicy,
    candidate: Candidate,
    free_units: Sequence[int],
    state: SimulationState,
) -> int:
    """Return the 0-based transport unit that should serve ``candidate``.

    ``free_units`` must be non-empty and sorted ascending.
    """
    return TRANSPORT_RULES[policy](candidate, free_units, state)
