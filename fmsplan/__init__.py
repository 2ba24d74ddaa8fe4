"""Scheduling and resource-network synthesis for flexible manufacturing systems.

Exports the data structures, the plan codec and the two engines.
"""

from fmsplan.errors import PlanFormatError, PlanValidationError  # noqa: F401
from fmsplan.models import (  # noqa: F401
    PlanData,
    ProductionPolicy,
    Schedule,
    SchedulingMode,
    TransportPolicy,
)
from fmsplan.network import ResourceNetwork, synthesize_network  # noqa: F401
from fmsplan.parser import load_plan, parse_plan  # noqa: F401
from fmsplan.scheduler import SchedulerConfig, compute_schedule  # noqa: F401
from fmsplan.validation import validate_plan  # noqa: F401

__all__ = [
    "PlanData",
    "PlanFormatError",
    "PlanValidationError",
    "ProductionPolicy",
    "ResourceNetwork",
    "Schedule",
    "SchedulerConfig",
    "SchedulingMode",
    "TransportPolicy",
    "compute_schedule",
    "load_plan",
    "parse_plan",
    "synthesize_network",
    "validate_plan",
]
