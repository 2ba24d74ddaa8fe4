"""Place/transition network derived from a computed Schedule.

Every scheduled interval becomes a transition. Positions come in three
classes:

* station-ready -- one per interval on a station, forming a ring: firing the
  i-th transition consumes ready-position ``i`` and produces ``(i + 1) % N``;
* transport-ready -- the same ring per transport unit;
* workpiece -- where a workpiece sits: at storage before its first step, in
  the entry or exit buffer of a station, at storage after its last step.

Buffer capacity is expressed with exclusion (inhibitor) arcs: a production
transition may not fire while the previous occupant of the station still
holds the buffer (exit slot for capacity 2, entry and exit for capacity 1).

All positions live in one arena and are referenced by index. Workpiece
positions are looked up by ``(workpiece, station, step, slot)``; a lookup
miss drops the arc instead of failing the synthesis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .models import STORAGE, Interval, Schedule
from .scheduler import point_name

logger = logging.getLogger("fmsplan.network")


class PositionClass(Enum):
    STATION = "station"
    TRANSPORT = "transport"
    WORKPIECE = "workpiece"


class BufferSlot(Enum):
    ENTRY = "entry"
    EXIT = "exit"


PositionKey = tuple[int, int, int, BufferSlot]  # (workpiece, station, step, slot)


@dataclass(frozen=True)
class Position:
    """A place of the network.

    Fields:
        index: Stable index in the network's arena.
        name: Short name (``W1_2``, ``S3_1``, ``A1_4``).
        label: Human readable description.
        kind: Position class.
        workpiece: Workpiece index the position refers to.
        step_index: Step index the position refers to.
        station: Station (0 = storage) for workpiece and station-ready
            positions, 0 for transport-ready ones.
        transport_unit: 1-based unit for transport-ready positions, else 0.
        slot: Buffer slot for workpiece positions, None otherwise.
    """

    index: int
    name: str
    label: str
    kind: PositionClass
    workpiece: int
    step_index: int
    station: int = STORAGE
    transport_unit: int = 0
    slot: Optional[BufferSlot] = None
    from_station: int = STORAGE
    to_station: int = STORAGE


@dataclass
class Transition:
    """A transition with its arcs given as position indices."""

    index: int
    name: str
    label: str
    resource: int
    workpiece: int
    step_index: int
    station: int = STORAGE
    transport_unit: int = 0
    from_station: int = STORAGE
    to_station: int = STORAGE
    inputs: list[int] = field(default_factory=list)
    outputs: list[int] = field(default_factory=list)
    exclusions: list[int] = field(default_factory=list)

    @property
    def is_transport(self) -> bool:
        return self.transport_unit > 0


@dataclass
class ResourceNetwork:
    """Read-only network synthesized from ``schedule``.

    ``arena`` holds every position created; ``positions`` lists the indices
    actually referenced by some arc, in first-seen order.
    """

    schedule: Schedule = field(repr=False, compare=False)
    transitions: list[Transition] = field(default_factory=list)
    arena: list[Position] = field(default_factory=list)
    positions: list[int] = field(default_factory=list)
    resource_transitions: list[list[int]] = field(default_factory=list)
    station_ready: list[list[int]] = field(default_factory=list)
    transport_ready: list[list[int]] = field(default_factory=list)
    workpiece_positions: list[list[int]] = field(default_factory=list)
    initial_marking: list[int] = field(default_factory=list)
    final_positions: list[int] = field(default_factory=list)

    def position(self, index: int) -> Position:
        return self.arena[index]

    def referenced_positions(self) -> list[Position]:
        return [self.arena[i] for i in self.positions]

    def incomplete_transitions(self) -> list[Transition]:
        """Transitions that lost a workpiece input or output to a lookup miss."""
        incomplete = []
        for t in self.transitions:
            has_input = any(self.arena[i].kind is PositionClass.WORKPIECE for i in t.inputs)
            has_output = any(self.arena[i].kind is PositionClass.WORKPIECE for i in t.outputs)
            if not (has_input and has_output):
                incomplete.append(t)
        return incomplete


def _buffer_name(capacity: int, slot: BufferSlot) -> str:
    if capacity == 1:
        return "buffer"
    return "entry buffer" if slot is BufferSlot.ENTRY else "exit buffer"


class _NetworkBuilder:
    def __init__(self, schedule: Schedule) -> None:
        self.schedule = schedule
        self.data = schedule.plan_data
        self.network = ResourceNetwork(schedule=schedule)
        self.cache: dict[PositionKey, int] = {}
        self.dropped = 0

    def _add_position(self, factory: Callable[[int], Position]) -> int:
        index = len(self.network.arena)
        self.network.arena.append(factory(index))
        return index

    def _workpiece_position(self, key: PositionKey, name: str, label: str) -> int:
        if key in self.cache:
            return self.cache[key]
        workpiece, station, step, slot = key
        index = self._add_position(
            lambda i: Position(
                index=i,
                name=name,
                label=label,
                kind=PositionClass.WORKPIECE,
                workpiece=workpiece,
                step_index=step,
                station=station,
                slot=slot,
            )
        )
        self.cache[key] = index
        return index

    def _lookup(self, key: PositionKey, transition: Transition) -> Optional[int]:
        index = self.cache.get(key)
        if index is None:
            self.dropped += 1
            logger.debug("No position for %s; arc of %s dropped", key, transition.name)
        return index

    def build(self) -> ResourceNetwork:
        self._transitions()
        self._workpiece_positions()
        self._ready_positions()
        self._wire_stations()
        self._wire_transports()
        self._collect()
        return self.network

    def _transitions(self) -> None:
        number = 1
        station_count = self.data.station_count
        for resource, timeline in enumerate(self.schedule.timelines):
            indices = []
            for iv in timeline:
                transition = Transition(
                    index=number - 1,
                    name=f"T{number}",
                    label=iv.label,
                    resource=resource,
                    workpiece=iv.workpiece,
                    step_index=iv.step_index,
                    from_station=iv.from_station,
                    to_station=iv.to_station,
                )
                if resource < station_count:
                    transition.station = resource + 1
                else:
                    transition.transport_unit = resource - station_count + 1
                self.network.transitions.append(transition)
                indices.append(transition.index)
                number += 1
            self.network.resource_transitions.append(indices)

    def _workpiece_positions(self) -> None:
        capacity = self.data.buffer_capacity
        for w, plan in enumerate(self.schedule.plans):
            indices = []
            number = 1

            def add(key: PositionKey, label: str) -> None:
                nonlocal number
                index = self._workpiece_position(key, f"W{w + 1}_{number}", label)
                if index not in indices:
                    indices.append(index)
                    number += 1

            add(
                (w, STORAGE, 0, BufferSlot.EXIT),
                f"Workpiece {w + 1} at storage before operation 1",
            )
            for op in plan:
                station = op.station
                step = op.step_index
                add(
                    (w, station, step, BufferSlot.ENTRY),
                    f"Workpiece {w + 1} in {_buffer_name(capacity[station - 1], BufferSlot.ENTRY)}"
                    f" of station {station} (before operation {step + 1})",
                )
                add(
                    (w, station, step, BufferSlot.EXIT),
                    f"Workpiece {w + 1} in {_buffer_name(capacity[station - 1], BufferSlot.EXIT)}"
                    f" of station {station} (after operation {step + 1})",
                )
            add(
                (w, STORAGE, len(plan), BufferSlot.EXIT),
                f"Workpiece {w + 1} at storage after processing",
            )
            self.network.workpiece_positions.append(indices)
            if plan:
                self.network.initial_marking.append(indices[0])
                self.network.final_positions.append(indices[-1])

    def _ready_ring(
        self, resource: int, make: Callable[[int, int, Interval], Position]
    ) -> list[int]:
        ring = []
        for i, iv in enumerate(self.schedule.timelines[resource]):
            ring.append(self._add_position(lambda index: make(index, i, iv)))
        if ring:
            self.network.initial_marking.append(ring[0])
        return ring

    def _ready_positions(self) -> None:
        for s in range(self.data.station_count):
            self.network.station_ready.append(
                self._ready_ring(
                    s,
                    lambda index, i, iv: Position(
                        index=index,
                        name=f"S{s + 1}_{i + 1}",
                        label=(
                            f"Station {s + 1} ready to process workpiece {iv.workpiece + 1}"
                            f" (operation {iv.step_index + 1})"
                        ),
                        kind=PositionClass.STATION,
                        workpiece=iv.workpiece,
                        step_index=iv.step_index,
                        station=s + 1,
                    ),
                )
            )
        for t in range(self.data.transport_count):
            self.network.transport_ready.append(
                self._ready_ring(
                    self.data.station_count + t,
                    lambda index, i, iv: Position(
                        index=index,
                        name=f"A{t + 1}_{i + 1}",
                        label=(
                            f"Transport {t + 1} ready to move workpiece {iv.workpiece + 1}"
                            f" from {point_name(iv.from_station)} to {point_name(iv.to_station)}"
                        ),
                        kind=PositionClass.TRANSPORT,
                        workpiece=iv.workpiece,
                        step_index=iv.step_index,
                        transport_unit=t + 1,
                        from_station=iv.from_station,
                        to_station=iv.to_station,
                    ),
                )
            )

    def _exclusions(self, transition: Transition, previous: Interval, capacity: int) -> None:
        station = transition.station
        slots = (BufferSlot.EXIT,) if capacity == 2 else (BufferSlot.ENTRY, BufferSlot.EXIT)
        for slot in slots:
            key = (previous.workpiece, station, previous.step_index, slot)
            index = self._lookup(key, transition)
            if index is not None:
                transition.exclusions.append(index)

    def _wire_stations(self) -> None:
        for s in range(self.data.station_count):
            timeline = self.schedule.timelines[s]
            ring = self.network.station_ready[s]
            capacity = self.data.buffer_capacity[s]
            size = len(ring)
            for i, t_index in enumerate(self.network.resource_transitions[s]):
                transition = self.network.transitions[t_index]
                iv = timeline[i]
                transition.inputs.append(ring[i])
                if i > 0:
                    self._exclusions(transition, timeline[i - 1], capacity)
                elif capacity == 1 and size > 1:
                    # single shared slot: the ring wraps to the last occupant
                    self._exclusions(transition, timeline[-1], capacity)
                entry = self._lookup(
                    (iv.workpiece, s + 1, iv.step_index, BufferSlot.ENTRY), transition
                )
                if entry is not None:
                    transition.inputs.append(entry)
                exit_ = self._lookup(
                    (iv.workpiece, s + 1, iv.step_index, BufferSlot.EXIT), transition
                )
                if exit_ is not None:
                    transition.outputs.append(exit_)
                transition.outputs.append(ring[(i + 1) % size])

    def _wire_transports(self) -> None:
        plans = self.schedule.plans
        for t in range(self.data.transport_count):
            resource = self.data.station_count + t
            timeline = self.schedule.timelines[resource]
            ring = self.network.transport_ready[t]
            size = len(ring)
            for i, t_index in enumerate(self.network.resource_transitions[resource]):
                transition = self.network.transitions[t_index]
                iv = timeline[i]
                transition.inputs.append(ring[i])
                if iv.from_station == STORAGE:
                    pickup = (iv.workpiece, STORAGE, 0, BufferSlot.EXIT)
                else:
                    pickup = (iv.workpiece, iv.from_station, iv.step_index - 1, BufferSlot.EXIT)
                if iv.to_station == STORAGE:
                    drop = (iv.workpiece, STORAGE, len(plans[iv.workpiece]), BufferSlot.EXIT)
                else:
                    drop = (iv.workpiece, iv.to_station, iv.step_index, BufferSlot.ENTRY)
                source = self._lookup(pickup, transition)
                if source is not None:
                    transition.inputs.append(source)
                target = self._lookup(drop, transition)
                if target is not None:
                    transition.outputs.append(target)
                transition.outputs.append(ring[(i + 1) % size])

    def _collect(self) -> None:
        seen: set[int] = set()
        for transition in self.network.transitions:
            for index in transition.inputs + transition.outputs + transition.exclusions:
                if index not in seen:
                    seen.add(index)
                    self.network.positions.append(index)


def synthesize_network(schedule: Schedule) -> ResourceNetwork:
    """Convert a computed schedule into a resource network.

    The schedule is only read. Missing workpiece positions drop the affected
    arc; check :meth:`ResourceNetwork.incomplete_transitions` to find them.

    Args:
        schedule: Schedule with ``cycle_time`` set.

    Returns:
        The synthesized network, holding a back-reference to ``schedule``.
    """
    builder = _NetworkBuilder(schedule)
    network = builder.build()
    logger.info(
        "Synthesized network: transitions=%d positions=%d exclusion_arcs=%d dropped_arcs=%d",
        len(network.transitions),
        len(network.positions),
        sum(len(t.exclusions) for t in network.transitions),
        builder.dropped,
    )
    return network
