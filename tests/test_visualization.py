from fmsplan.generator import generate_plan
from fmsplan.models import PlanData, SchedulingMode
from fmsplan.network import synthesize_network
from fmsplan.scheduler import compute_schedule
from fmsplan.visualization import plot_network, plot_schedule_gantt


def test_gantt_chart_saved(tmp_path):
    schedule = compute_schedule(generate_plan(5, 3, 2, 3, seed=4), mode=SchedulingMode.EXTENDED)
    path = plot_schedule_gantt(schedule, str(tmp_path / "charts" / "gantt.png"))
    with open(path, "rb") as f:
        assert f.read(8) == b"\x89PNG\r\n\x1a\n"


def test_gantt_chart_without_legend(tmp_path):
    schedule = compute_schedule(generate_plan(3, 2, 0, 2, seed=1))
    path = plot_schedule_gantt(schedule, str(tmp_path / "g.png"), show_legend=False, title="x")
    assert (tmp_path / "g.png").is_file()
    assert path.endswith("g.png")


def test_network_diagram_saved(tmp_path):
    plan = PlanData.create(
        [[1, 2], [2, 1]],
        [[4.0, 3.0], [2.0, 5.0]],
        station_count=2,
        transport_count=1,
        distance=[[0.0, 4.0, 6.0], [4.0, 0.0, 3.0], [6.0, 3.0, 0.0]],
        buffer_capacity=[1, 2],
    )
    network = synthesize_network(compute_schedule(plan, mode=SchedulingMode.EXTENDED))
    assert any(t.exclusions for t in network.transitions)
    path = plot_network(network, str(tmp_path / "net" / "network.png"))
    with open(path, "rb") as f:
        assert f.read(8) == b"\x89PNG\r\n\x1a\n"


def test_network_diagram_of_larger_plan_without_labels(tmp_path):
    schedule = compute_schedule(generate_plan(21, 4, 2, 4, seed=9), mode=SchedulingMode.EXTENDED)
    network = synthesize_network(schedule)
    assert len(network.transitions) > 60
    path = plot_network(network, str(tmp_path / "big.png"))
    assert (tmp_path / "big.png").is_file()
    assert path.endswith("big.png")
