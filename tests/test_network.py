import pytest

from fmsplan.generator import generate_plan
from fmsplan.models import PlanData, ProductionPolicy, SchedulingMode
from fmsplan.network import BufferSlot, PositionClass, synthesize_network
from fmsplan.scheduler import compute_schedule


def names(network, indices):
    return [network.position(i).name for i in indices]


def back_to_back_network(capacity: int):
    """Two workpieces on one station: workpiece 2 runs first, then workpiece 1."""
    plan = PlanData.create([[1], [1]], [[5.0], [3.0]], station_count=1, buffer_capacity=[capacity])
    return synthesize_network(compute_schedule(plan))


def single_trip_network():
    plan = PlanData.create(
        [[1]],
        [[10.0]],
        station_count=1,
        transport_count=1,
        distance=[[0.0, 5.0], [5.0, 0.0]],
        buffer_capacity=[1],
    )
    return synthesize_network(compute_schedule(plan, mode=SchedulingMode.EXTENDED))


def test_single_interval_has_no_exclusion():
    network = single_trip_network()
    production = [t for t in network.transitions if not t.is_transport]
    assert len(production) == 1
    assert production[0].exclusions == []


def test_transitions_are_numbered_per_resource():
    network = single_trip_network()
    assert [t.name for t in network.transitions] == ["T1", "T2", "T3"]
    assert [t.is_transport for t in network.transitions] == [False, True, True]
    assert network.transitions[0].label == "Station 1 processes workpiece 1 at operation 1"


def test_workpiece_positions_and_marking():
    network = single_trip_network()
    assert names(network, network.workpiece_positions[0]) == ["W1_1", "W1_2", "W1_3", "W1_4"]
    slots = [network.position(i).slot for i in network.workpiece_positions[0]]
    assert slots == [BufferSlot.EXIT, BufferSlot.ENTRY, BufferSlot.EXIT, BufferSlot.EXIT]
    assert names(network, network.initial_marking) == ["W1_1", "S1_1", "A1_1"]
    assert names(network, network.final_positions) == ["W1_4"]


def test_station_transition_wiring():
    network = single_trip_network()
    t1 = network.transitions[0]
    # single-interval ring loops back onto itself
    assert names(network, t1.inputs) == ["S1_1", "W1_2"]
    assert names(network, t1.outputs) == ["W1_3", "S1_1"]


def test_transport_transition_wiring():
    network = single_trip_network()
    t2, t3 = network.transitions[1:]
    assert names(network, t2.inputs) == ["A1_1", "W1_1"]
    assert names(network, t2.outputs) == ["W1_2", "A1_2"]
    assert names(network, t3.inputs) == ["A1_2", "W1_3"]
    assert names(network, t3.outputs) == ["W1_4", "A1_1"]


def test_positions_collected_in_first_seen_order():
    network = single_trip_network()
    assert names(network, network.positions) == [
        "S1_1",
        "W1_2",
        "W1_3",
        "A1_1",
        "W1_1",
        "A1_2",
        "W1_4",
    ]
    kinds = {p.kind for p in network.referenced_positions()}
    assert kinds == set(PositionClass)


def test_capacity_two_excludes_previous_exit_slot():
    network = back_to_back_network(2)
    first, second = network.transitions
    assert first.workpiece == 1 and second.workpiece == 0
    assert first.exclusions == []
    assert names(network, second.exclusions) == ["W2_3"]


def test_capacity_one_excludes_both_slots_and_wraps():
    network = back_to_back_network(1)
    first, second = network.transitions
    # first occupant is guarded by the last one of the cycle
    assert names(network, first.exclusions) == ["W1_2", "W1_3"]
    assert names(network, second.exclusions) == ["W2_2", "W2_3"]


def test_station_ring_advances():
    network = back_to_back_network(2)
    first, second = network.transitions
    assert names(network, first.inputs)[0] == "S1_1"
    assert names(network, first.outputs)[-1] == "S1_2"
    assert names(network, second.inputs)[0] == "S1_2"
    assert names(network, second.outputs)[-1] == "S1_1"


def test_workpiece_without_operations_gets_one_position():
    plan = PlanData.create([[0], [1]], [[0.0], [2.0]], station_count=1)
    network = synthesize_network(compute_schedule(plan))
    assert names(network, network.workpiece_positions[0]) == ["W1_1"]
    assert len(network.workpiece_positions[1]) == 4
    assert names(network, network.final_positions) == ["W2_4"]


@pytest.mark.parametrize("mode", list(SchedulingMode))
def test_generated_networks_are_complete(mode):
    plan = generate_plan(8, 4, 2, 4, seed=3)
    schedule = compute_schedule(plan, ProductionPolicy.MIN_REMAINING_WORK, mode=mode)
    network = synthesize_network(schedule)
    assert len(network.transitions) == sum(1 for _ in schedule.intervals())
    assert network.incomplete_transitions() == []
    ready = {PositionClass.STATION, PositionClass.TRANSPORT}
    for t in network.transitions:
        assert network.position(t.inputs[0]).kind in ready
        assert network.position(t.outputs[-1]).kind in ready
        for index in t.exclusions:
            assert network.position(index).kind is PositionClass.WORKPIECE


def test_synthesis_is_idempotent_and_read_only():
    plan = generate_plan(6, 3, 2, 3, seed=5)
    schedule = compute_schedule(plan, mode=SchedulingMode.EXTENDED)
    before = [list(t) for t in schedule.timelines]
    first = synthesize_network(schedule)
    second = synthesize_network(schedule)
    assert schedule.timelines == before
    assert first.transitions == second.transitions
    assert first.arena == second.arena
    assert first.positions == second.positions
    assert first.schedule is schedule
