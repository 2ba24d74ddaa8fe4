import json
from pathlib import Path

import pytest

from fmsplan.config import GenerateConfig, config_from_dict, load_config, parse_enum
from fmsplan.generator import generate_plan
from fmsplan.main import cli, run
from fmsplan.models import ProductionPolicy, SchedulingMode, TransportPolicy


def test_parse_enum_accepts_values_and_names():
    assert parse_enum(ProductionPolicy, "balanced_load") is ProductionPolicy.BALANCED_LOAD
    assert parse_enum(ProductionPolicy, "LONGEST_OPERATION") is ProductionPolicy.LONGEST_OPERATION
    assert parse_enum(SchedulingMode, SchedulingMode.EXTENDED) is SchedulingMode.EXTENDED
    with pytest.raises(ValueError, match="TransportPolicy"):
        parse_enum(TransportPolicy, "teleport")


def test_config_defaults():
    config = config_from_dict({"plan": {"generate": {"workpieces": 3}}})
    assert config.plan_path is None
    assert config.generate == GenerateConfig(workpieces=3)
    assert config.mode is SchedulingMode.STANDARD
    assert config.production_policy is ProductionPolicy.SHORTEST_OPERATION
    assert config.scheduler.honor_transport_policy is False
    assert config.scheduler.min_transport_leg == 0.0
    assert config.output.dir == "results"
    assert config.log_level == "INFO"


def test_config_requires_plan():
    with pytest.raises(ValueError):
        config_from_dict({"scheduler": {"mode": "extended"}})


def test_sample_yaml_config_loads(sample_config_path, sample_plan_path):
    config = load_config(str(sample_config_path))
    assert config.mode is SchedulingMode.EXTENDED
    assert config.output.network_png is True
    assert Path(config.plan_path).resolve() == sample_plan_path.resolve()


def test_json_config_and_missing_file(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(
        json.dumps(
            {
                "plan": {"path": "plan.txt"},
                "scheduler": {"mode": "extended", "min_transport_leg": 5},
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.plan_path == str(tmp_path / "plan.txt")
    assert config.scheduler.min_transport_leg == 5.0
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_generator_is_reproducible():
    first = generate_plan(5, 3, 1, 4, seed=11)
    assert first == generate_plan(5, 3, 1, 4, seed=11)
    assert first.step_count == 4
    assert all(1 <= len(first.workpiece_operations(w)) <= 4 for w in range(5))


def test_run_writes_outputs(tmp_path):
    config = config_from_dict(
        {
            "plan": {"generate": {"workpieces": 4, "stations": 3, "transports": 2, "seed": 2}},
            "scheduler": {"mode": "extended", "production_policy": "max_remaining_work"},
            "output": {"dir": str(tmp_path / "results")},
        }
    )
    written = run(config)
    assert set(written) == {"gantt", "schedule", "network", "arcs"}
    for path in written.values():
        assert Path(path).is_file()
    assert Path(written["gantt"]).stat().st_size > 0


def test_run_draws_network_when_enabled(tmp_path):
    config = config_from_dict(
        {
            "plan": {"generate": {"workpieces": 3, "stations": 2, "seed": 4}},
            "scheduler": {"mode": "extended"},
            "output": {
                "dir": str(tmp_path),
                "gantt": False,
                "json": False,
                "csv": False,
                "network_png": True,
            },
        }
    )
    assert config.output.network_png is True
    written = run(config)
    assert set(written) == {"network_png"}
    assert Path(written["network_png"]).name == "network_extended_shortest_operation.png"
    assert Path(written["network_png"]).stat().st_size > 0


def test_cli_with_sample_plan(tmp_path, sample_plan_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "plan:\n"
        f"  path: {sample_plan_path}\n"
        "scheduler:\n"
        "  mode: standard\n"
        "output:\n"
        f"  dir: {tmp_path / 'out'}\n"
        "  gantt: false\n"
        "  csv: false\n",
        encoding="utf-8",
    )
    cli(["--config", str(cfg)])
    out = tmp_path / "out" / "schedule_standard_shortest_operation.json"
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["mode"] == "standard"
    assert not (tmp_path / "out" / "arcs_standard_shortest_operation.csv").exists()
