"""Run configuration loaded from a YAML or JSON file.

Example (YAML)::

    log_level: INFO
    plan:
      path: data/plan_small.txt      # or a `generate:` block
    scheduler:
      mode: extended
      production_policy: shortest_operation
      transport_policy: maximize_load
      honor_transport_policy: false
      min_transport_leg: 0.0
    output:
      dir: results
      gantt: true
      json: true
      csv: true
      network_png: false
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, TypeVar

import yaml

from .models import ProductionPolicy, SchedulingMode, TransportPolicy
from .scheduler import SchedulerConfig

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class GenerateConfig:
    workpieces: int = 5
    stations: int = 3
    transports: int = 1
    steps: int = 3
    seed: int = 0


@dataclass(frozen=True)
class OutputConfig:
    dir: str = "results"
    gantt: bool = True
    json: bool = True
    csv: bool = True
    network_png: bool = False


@dataclass(frozen=True)
class RunConfig:
    plan_path: Optional[str] = None
    generate: Optional[GenerateConfig] = None
    mode: SchedulingMode = SchedulingMode.STANDARD
    production_policy: ProductionPolicy = ProductionPolicy.SHORTEST_OPERATION
    transport_policy: TransportPolicy = TransportPolicy.MAXIMIZE_LOAD
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"


def parse_enum(enum_cls: type[E], value: Any) -> E:
    """Accept an enum member, its value or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value, member.name.lower()):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Unknown {enum_cls.__name__} '{value}' (choose from: {choices})")


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    value = cfg.get(name, {})
    return value if isinstance(value, dict) else {}


def config_from_dict(cfg: dict[str, Any], base_dir: str = "") -> RunConfig:
    """Build a RunConfig from parsed YAML/JSON; relative plan paths use ``base_dir``."""
    plan_cfg = _section(cfg, "plan")
    sched_cfg = _section(cfg, "scheduler")
    out_cfg = _section(cfg, "output")

    plan_path = plan_cfg.get("path")
    if plan_path and base_dir and not os.path.isabs(plan_path):
        plan_path = os.path.join(base_dir, plan_path)
    generate = None
    if isinstance(plan_cfg.get("generate"), dict):
        generate = GenerateConfig(**plan_cfg["generate"])
    if not plan_path and generate is None:
        raise ValueError("Config must define plan.path or plan.generate")

    return RunConfig(
        plan_path=plan_path,
        generate=generate,
        mode=parse_enum(SchedulingMode, sched_cfg.get("mode", "standard")),
        production_policy=parse_enum(
            ProductionPolicy, sched_cfg.get("production_policy", "shortest_operation")
        ),
        transport_policy=parse_enum(
            TransportPolicy, sched_cfg.get("transport_policy", "maximize_load")
        ),
        scheduler=SchedulerConfig(
            honor_transport_policy=bool(sched_cfg.get("honor_transport_policy", False)),
            min_transport_leg=float(sched_cfg.get("min_transport_leg", 0.0)),
        ),
        output=OutputConfig(
            dir=str(out_cfg.get("dir", "results")),
            gantt=bool(out_cfg.get("gantt", True)),
            json=bool(out_cfg.get("json", True)),
            csv=bool(out_cfg.get("csv", True)),
            network_png=bool(out_cfg.get("network_png", False)),
        ),
        log_level=str(cfg.get("log_level", "INFO")),
    )


def load_config(path: str) -> RunConfig:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    if path.endswith((".yml", ".yaml")):
        cfg: dict[str, Any] = yaml.safe_load(text) or {}
    else:
        cfg = json.loads(text)
    return config_from_dict(cfg, base_dir=os.path.dirname(os.path.abspath(path)))
