"""Command line entry point: load a config, schedule, synthesize the network, write outputs."""

import argparse
import logging
import os
from typing import Optional, Sequence

from .config import RunConfig, load_config
from .generator import generate_plan
from .models import PlanData
from .network import synthesize_network
from .parser import load_plan
from .report import network_to_dict, schedule_to_dict, write_arc_csv, write_json
from .scheduler import check_no_resource_overlap, check_plan_order, compute_schedule
from .validation import validate_plan
from .visualization import plot_network, plot_schedule_gantt

logger = logging.getLogger("fmsplan")


def load_run_plan(config: RunConfig) -> PlanData:
    if config.plan_path:
        return load_plan(config.plan_path)
    gen = config.generate
    logger.info(
        "Generating plan: workpieces=%d stations=%d transports=%d steps=%d seed=%d",
        gen.workpieces,
        gen.stations,
        gen.transports,
        gen.steps,
        gen.seed,
    )
    return generate_plan(gen.workpieces, gen.stations, gen.transports, gen.steps, gen.seed)


def run(config: RunConfig) -> dict[str, str]:
    """Load, validate, schedule and synthesize; write the requested outputs.

    Returns:
        Mapping of output kind to the written file path.
    """
    plan = load_run_plan(config)
    validate_plan(plan)
    schedule = compute_schedule(
        plan,
        production_policy=config.production_policy,
        transport_policy=config.transport_policy,
        mode=config.mode,
        config=config.scheduler,
    )
    check_no_resource_overlap(schedule)
    check_plan_order(schedule)
    network = synthesize_network(schedule)
    incomplete = network.incomplete_transitions()
    if incomplete:
        logger.warning("Incomplete transitions: %s", [t.name for t in incomplete])

    out = config.output
    stem = f"{config.mode.value}_{config.production_policy.value}"
    written: dict[str, str] = {}
    if out.gantt:
        written["gantt"] = plot_schedule_gantt(
            schedule, os.path.join(out.dir, f"gantt_{stem}.png")
        )
    if out.json:
        written["schedule"] = write_json(
            schedule_to_dict(schedule), os.path.join(out.dir, f"schedule_{stem}.json")
        )
        written["network"] = write_json(
            network_to_dict(network), os.path.join(out.dir, f"network_{stem}.json")
        )
    if out.csv:
        written["arcs"] = write_arc_csv(network, os.path.join(out.dir, f"arcs_{stem}.csv"))
    if out.network_png:
        written["network_png"] = plot_network(
            network, os.path.join(out.dir, f"network_{stem}.png")
        )
    logger.info("Cycle time: %s", schedule.cycle_time)
    return written


def cli(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="FMS scheduling and network synthesis")
    parser.add_argument(
        "--config",
        required=True,
        help="Path to a YAML/JSON configuration file",
    )
    args = parser.parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run(config)


if __name__ == "__main__":
    cli()
