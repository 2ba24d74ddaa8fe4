"""Plain-text codec for PlanData files.

Layout (one value or matrix row per line, whitespace separated, no headers)::

    workpieces
    stations
    transport units
    steps
    load time
    unload time
    give-take time
    speed
    workpieces x steps station matrix (int)
    workpieces x steps duration matrix
    (stations+1) x (stations+1) distance matrix
    stations buffer capacities (int)
    (stations+1) x (stations+1) travel time matrix
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, Union

from .errors import PlanFormatError
from .models import PlanData

logger = logging.getLogger("fmsplan.parser")


class _Lines:
    """Iterator over non-blank lines that remembers the current line number."""

    def __init__(self, text: str) -> None:
        self._lines: Iterator[tuple[int, str]] = (
            (number, line.strip())
            for number, line in enumerate(text.splitlines(), start=1)
            if line.strip()
        )
        self.number = 0

    def next_tokens(self, what: str) -> list[str]:
        try:
            self.number, line = next(self._lines)
        except StopIteration:
            raise PlanFormatError(f"unexpected end of file while reading {what}") from None
        return line.split()


def _convert(token: str, cast: Callable, what: str, line: int):
    try:
        return cast(token)
    except ValueError:
        raise PlanFormatError(f"invalid value {token!r} for {what}", line) from None


def _read_scalar(lines: _Lines, cast: Callable, what: str):
    tokens = lines.next_tokens(what)
    if len(tokens) != 1:
        raise PlanFormatError(f"expected a single value for {what}", lines.number)
    return _convert(tokens[0], cast, what, lines.number)


def _read_row(lines: _Lines, width: int, cast: Callable, what: str) -> list:
    if width == 0:
        # empty rows are written as blank lines, which are skipped on read
        return []
    tokens = lines.next_tokens(what)
    if len(tokens) != width:
        raise PlanFormatError(
            f"expected {width} values for {what}, found {len(tokens)}", lines.number
        )
    return [_convert(t, cast, what, lines.number) for t in tokens]


def _read_matrix(lines: _Lines, rows: int, width: int, cast: Callable, what: str) -> list:
    return [_read_row(lines, width, cast, f"{what} row {r + 1}") for r in range(rows)]


def parse_plan(text: str) -> PlanData:
    """Decode a PlanData from its text representation.

    Raises:
        PlanFormatError: If the text is truncated, contains a non-numeric
            token, a negative count, or a row with the wrong number of values.
    """
    lines = _Lines(text)
    workpieces = _read_scalar(lines, int, "workpiece count")
    stations = _read_scalar(lines, int, "station count")
    transports = _read_scalar(lines, int, "transport count")
    steps = _read_scalar(lines, int, "step count")
    for name, value in (
        ("workpiece count", workpieces),
        ("station count", stations),
        ("transport count", transports),
        ("step count", steps),
    ):
        if value < 0:
            raise PlanFormatError(f"{name} must not be negative")
    load_time = _read_scalar(lines, float, "load time")
    unload_time = _read_scalar(lines, float, "unload time")
    give_take_time = _read_scalar(lines, float, "give-take time")
    speed = _read_scalar(lines, float, "speed")

    operation_station = _read_matrix(lines, workpieces, steps, int, "station matrix")
    operation_time = _read_matrix(lines, workpieces, steps, float, "duration matrix")
    distance = _read_matrix(lines, stations + 1, stations + 1, float, "distance matrix")
    buffer_capacity = _read_row(lines, stations, int, "buffer capacity")
    travel_time = _read_matrix(lines, stations + 1, stations + 1, float, "travel time matrix")

    return PlanData(
        workpiece_count=workpieces,
        station_count=stations,
        transport_count=transports,
        step_count=steps,
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


def load_plan(file_path: Union[str, Path]) -> PlanData:
    """Read a plan file from disk."""
    with open(file_path, "r", encoding="utf-8") as f:
        plan = parse_plan(f.read())
    logger.info(
        "Loaded plan %s: workpieces=%d stations=%d transports=%d steps=%d",
        file_path,
        plan.workpiece_count,
        plan.station_count,
        plan.transport_count,
        plan.step_count,
    )
    return plan


def format_number(value: float) -> str:
    """Render a decimal without a trailing ``.0`` for whole numbers."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_plan(plan: PlanData) -> str:
    """Encode a PlanData using the line-oriented layout described above."""
    out: list[str] = [
        str(plan.workpiece_count),
        str(plan.station_count),
        str(plan.transport_count),
        str(plan.step_count),
        format_number(plan.load_time),
        format_number(plan.unload_time),
        format_number(plan.give_take_time),
        format_number(plan.speed),
    ]
    out.extend(" ".join(str(int(v)) for v in row) for row in plan.operation_station)
    out.extend(" ".join(format_number(v) for v in row) for row in plan.operation_time)
    out.extend(" ".join(format_number(v) for v in row) for row in plan.distance)
    out.append(" ".join(str(int(v)) for v in plan.buffer_capacity))
    out.extend(" ".join(format_number(v) for v in row) for row in plan.travel_time)
    return "\n".join(out) + "\n"


def save_plan(plan: PlanData, file_path: Union[str, Path]) -> None:
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(format_plan(plan))
    logger.info("Saved plan to %s", file_path)
