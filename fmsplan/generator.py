"""Seeded random plans for experiments and tests."""

import random
from typing import Optional

from .models import PlanData


def generate_plan(
    workpieces: int,
    stations: int,
    transports: int = 1,
    steps: int = 3,
    seed: int = 0,
    max_duration: int = 20,
    max_distance: int = 30,
    capacities: Optional[list[int]] = None,
) -> PlanData:
    """Generate a reproducible random plan.

    Every workpiece gets between 1 and ``steps`` operations on random
    stations (unused trailing steps hold station 0). Distances are symmetric
    with a zero diagonal.
    """
    rng = random.Random(seed)
    operation_station: list[list[int]] = []
    operation_time: list[list[float]] = []
    for _ in range(workpieces):
        length = rng.randint(1, steps)
        row = [rng.randint(1, stations) for _ in range(length)] + [0] * (steps - length)
        operation_station.append(row)
        operation_time.append(
            [float(rng.randint(1, max_duration)) if s else 0.0 for s in row]
        )
    size = stations + 1
    distance = [[0.0] * size for _ in range(size)]
    for i in range(size):
        for j in range(i + 1, size):
            distance[i][j] = distance[j][i] = float(rng.randint(1, max_distance))
    if capacities is None:
        capacities = [rng.choice((1, 2)) for _ in range(stations)]
    return PlanData.create(
        operation_station,
        operation_time,
        station_count=stations,
        transport_count=transports,
        distance=distance,
        buffer_capacity=capacities,
        load_time=1.0,
        unload_time=1.0,
        give_take_time=0.5,
        speed=1.0,
    )
