import csv
import json

from flocksim.app.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def _write_config(tmp_path):
    path = tmp_path / "sim.yaml"
    path.write_text(
        "agent_count: 12\n"
        "world_size: 400.0\n"
        "total_steps: 8\n"
        "config_version: v2\n"
        "predator_releases:\n"
        "  - tick: 3\n"
        "    offsets: [[-16, -16], [16, 16]]\n"
    )
    return path


def test_headless_count_log_has_one_row_per_tick(tmp_path):
    log_path = tmp_path / "counts.csv"
    run_headless(steps=None, seed=1, log_path=log_path, config_path=_write_config(tmp_path), deterministic_log=True)

    rows = _read_csv(log_path)
    assert rows[0] == ["tick", "agents", "predators", "kills", "released", "tick_ms"]
    assert len(rows) == 9
    assert [int(row[0]) for row in rows[1:]] == list(range(8))
    assert int(rows[1][1]) == 12
    assert all(row[5] == "0.000" for row in rows[1:])
    released = {int(row[0]): int(row[4]) for row in rows[1:]}
    assert released[3] == 2
    assert int(rows[4][2]) == 2


def test_headless_steps_and_seed_override_config(tmp_path):
    simulation = run_headless(steps=4, seed=99, log_path=None, config_path=_write_config(tmp_path))

    assert simulation.frames.completed == 4
    assert simulation.config.seed == 99


def test_headless_writes_frames_and_summary(tmp_path):
    frames_path = tmp_path / "frames.jsonl"
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=None,
        seed=3,
        log_path=None,
        config_path=_write_config(tmp_path),
        frames_path=frames_path,
        summary_path=summary_path,
    )

    lines = frames_path.read_text().splitlines()
    assert len(lines) == 8
    first = json.loads(lines[0])
    assert first["step"] == 0
    assert len(first["agents"]) == 12
    assert first["predators"] == []

    summary = json.loads(summary_path.read_text())
    assert summary["steps"] == 8
    assert summary["seed"] == 3
    assert summary["config_version"] == "v2"
    assert summary["initial_agents"] == 12
    assert summary["predators"] == 2
    assert summary["final_agents"] == 12 - summary["total_kills"]
