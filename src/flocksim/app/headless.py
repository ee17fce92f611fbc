from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.simulation import Simulation

logger = logging.getLogger(__name__)

_LOG_HEADER = ["tick", "agents", "predators", "kills", "released", "tick_ms"]


def _load_config(config_path: Optional[Path], steps: Optional[int], seed: Optional[int]) -> SimulationConfig:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if steps is not None:
        config.total_steps = steps
    if seed is not None:
        config.seed = seed
    return config.validate()


def _summary(simulation: Simulation) -> dict:
    kills = [m for m in simulation.metrics if m.kills > 0]
    first_frame = simulation.frames.get(0)
    last_frame = simulation.frames.latest()
    return {
        "steps": simulation.frames.completed,
        "seed": simulation.config.seed,
        "update_mode": simulation.config.update_mode,
        "config_version": simulation.config.config_version,
        "initial_agents": len(first_frame.agents),
        "final_agents": 0 if last_frame is None else len(last_frame.agents),
        "predators": 0 if last_frame is None else len(last_frame.predators),
        "total_kills": sum(m.kills for m in simulation.metrics),
        "first_kill_tick": kills[0].tick if kills else None,
    }


def run_headless(
    steps: Optional[int],
    seed: Optional[int],
    log_path: Optional[Path],
    config_path: Optional[Path] = None,
    frames_path: Optional[Path] = None,
    summary_path: Optional[Path] = None,
    deterministic_log: bool = False,
) -> Simulation:
    config = _load_config(config_path, steps, seed)
    simulation = Simulation(config)
    simulation.run()

    if log_path:
        with Path(log_path).open("w", newline="") as csv_file:
            writer = csv.writer(csv_file)
            writer.writerow(_LOG_HEADER)
            seeded = simulation.frames.get(0)
            writer.writerow([seeded.step, len(seeded.agents), len(seeded.predators), 0, 0, "0.000"])
            for metrics in simulation.metrics:
                tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
                writer.writerow(
                    [
                        metrics.tick,
                        metrics.agents,
                        metrics.predators,
                        metrics.kills,
                        metrics.released,
                        f"{tick_ms:.3f}",
                    ]
                )
        logger.info("wrote %d count rows to %s", simulation.frames.completed, log_path)

    if frames_path:
        with Path(frames_path).open("w") as handle:
            for frame in simulation.frames:
                handle.write(json.dumps(frame.to_dict()))
                handle.write("\n")
        logger.info("wrote %d frames to %s", simulation.frames.completed, frames_path)

    if summary_path:
        Path(summary_path).write_text(json.dumps(_summary(simulation), indent=2))

    return simulation


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--steps", type=int, default=None, help="Override total_steps")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick counts")
    parser.add_argument("--frames", type=Path, default=None, help="JSON lines file to write every frame")
    parser.add_argument("--summary", type=Path, default=None, help="JSON file to write run summary")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        config_path=args.config,
        frames_path=args.frames,
        summary_path=args.summary,
        deterministic_log=args.deterministic_log,
    )


if __name__ == "__main__":
    main()
