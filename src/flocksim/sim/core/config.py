from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

UPDATE_MODES = ("sequential", "simultaneous")


class ConfigError(ValueError):
    """Raised when a simulation configuration cannot be run as given."""


@dataclass
class AgentConfig:
    speed: float = 5.0
    separation_distance: float = 16.0
    separation_weight: float = 3.0
    alignment_distance: float = 64.0
    alignment_weight: float = 1.0
    cohesion_min_distance: float = 16.0
    cohesion_max_distance: float = 64.0
    cohesion_weight: float = 1.0
    obstacle_range_factor: float = 1.5
    obstacle_weight: float = 3.0
    predator_avoidance_distance: float = 64.0
    predator_avoidance_weight: float = 3.0
    # Fraction of the arena edge; restraint kicks in at this distance from the centre.
    boundary_threshold_fraction: float = 1.0 / 3.0
    boundary_restraint: float = 0.3


@dataclass
class PredatorConfig:
    speed: float = 7.0
    kill_distance: Optional[float] = None
    separation_distance: float = 16.0
    separation_weight: float = 3.0
    flocking: bool = False
    alignment_distance: float = 64.0
    alignment_weight: float = 1.0
    cohesion_min_distance: float = 16.0
    cohesion_max_distance: float = 64.0
    cohesion_weight: float = 1.0
    pursuit_weight: float = 2.0
    field_of_view_degrees: float = 140.0
    boundary_threshold_fraction: float = 0.5
    boundary_restraint_per_unit: float = 0.01

    @property
    def effective_kill_distance(self) -> float:
        return self.speed if self.kill_distance is None else self.kill_distance


@dataclass
class ObstacleConfig:
    position: tuple[float, float] = (0.0, 0.0)
    radius: float = 20.0


def _default_release_offsets() -> List[tuple[float, float]]:
    d = 16.0
    return [(-d, -d), (d, -d), (-d, d), (d, d)]


@dataclass
class PredatorReleaseConfig:
    tick: int = 1000
    offsets: List[tuple[float, float]] = field(default_factory=_default_release_offsets)

    @property
    def count(self) -> int:
        return len(self.offsets)


@dataclass
class SimulationConfig:
    agent_count: int = 42
    world_size: float = 2048.0
    total_steps: int = 5000
    seed: int = 766104113
    update_mode: str = "sequential"
    initial_predator_count: int = 0
    config_version: str = "v1"
    obstacles: List[ObstacleConfig] = field(default_factory=list)
    predator_releases: List[PredatorReleaseConfig] = field(
        default_factory=lambda: [PredatorReleaseConfig()]
    )
    agent: AgentConfig = field(default_factory=AgentConfig)
    predator: PredatorConfig = field(default_factory=PredatorConfig)

    @property
    def center(self) -> tuple[float, float]:
        half = self.world_size / 2.0
        return (half, half)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> "SimulationConfig":
        for name in ("agent_count", "total_steps", "seed", "initial_predator_count"):
            _require_int("simulation", name, getattr(self, name))
        _require_number("simulation", "world_size", self.world_size)
        if self.agent_count <= 0:
            raise ConfigError(f"agent_count must be positive, got {self.agent_count}")
        if self.total_steps <= 0:
            raise ConfigError(f"total_steps must be positive, got {self.total_steps}")
        if self.world_size <= 0:
            raise ConfigError(f"world_size must be positive, got {self.world_size}")
        if self.initial_predator_count < 0:
            raise ConfigError(f"initial_predator_count must not be negative, got {self.initial_predator_count}")
        if self.update_mode not in UPDATE_MODES:
            raise ConfigError(f"Unknown update mode: {self.update_mode}")
        for obstacle in self.obstacles:
            _require_positive("obstacle", "radius", obstacle.radius)
        for release in self.predator_releases:
            _require_int("predator_release", "tick", release.tick)
            if release.tick < 1:
                raise ConfigError(f"predator release tick must be >= 1, got {release.tick}")
        _validate_agent(self.agent)
        _validate_predator(self.predator)
        return self


def _require_int(section: str, name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{section}.{name} must be an integer, got {value!r}")


def _require_number(section: str, name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{section}.{name} must be a number, got {value!r}")


def _require_positive(section: str, name: str, value: float) -> None:
    _require_number(section, name, value)
    if value <= 0:
        raise ConfigError(f"{section}.{name} must be positive, got {value}")


def _require_non_negative(section: str, name: str, value: float) -> None:
    _require_number(section, name, value)
    if value < 0:
        raise ConfigError(f"{section}.{name} must not be negative, got {value}")


def _validate_agent(agent: AgentConfig) -> None:
    _require_positive("agent", "speed", agent.speed)
    for name in ("separation_distance", "alignment_distance", "cohesion_max_distance", "predator_avoidance_distance"):
        _require_positive("agent", name, getattr(agent, name))
    for name in (
        "separation_weight",
        "alignment_weight",
        "cohesion_weight",
        "obstacle_weight",
        "predator_avoidance_weight",
        "boundary_restraint",
        "cohesion_min_distance",
        "obstacle_range_factor",
        "boundary_threshold_fraction",
    ):
        _require_non_negative("agent", name, getattr(agent, name))
    if agent.cohesion_min_distance > agent.cohesion_max_distance:
        raise ConfigError("agent.cohesion_min_distance must not exceed agent.cohesion_max_distance")


def _validate_predator(predator: PredatorConfig) -> None:
    _require_positive("predator", "speed", predator.speed)
    _require_positive("predator", "effective_kill_distance", predator.effective_kill_distance)
    for name in ("separation_distance", "alignment_distance", "cohesion_max_distance"):
        _require_positive("predator", name, getattr(predator, name))
    for name in (
        "separation_weight",
        "alignment_weight",
        "cohesion_weight",
        "pursuit_weight",
        "cohesion_min_distance",
        "boundary_threshold_fraction",
        "boundary_restraint_per_unit",
    ):
        _require_non_negative("predator", name, getattr(predator, name))
    _require_number("predator", "field_of_view_degrees", predator.field_of_view_degrees)
    if not 0.0 < predator.field_of_view_degrees <= 360.0:
        raise ConfigError(f"predator.field_of_view_degrees must be in (0, 360], got {predator.field_of_view_degrees}")
    if predator.cohesion_min_distance > predator.cohesion_max_distance:
        raise ConfigError("predator.cohesion_min_distance must not exceed predator.cohesion_max_distance")


def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
    if value is None:
        return default
    if isinstance(value, (tuple, list)) and len(value) == 2:
        try:
            return (float(value[0]), float(value[1]))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Expected an [x, y] pair of numbers, got {value!r}") from exc
    raise ConfigError(f"Expected an [x, y] pair, got {value!r}")


def _build(cls, raw: dict | None, section: str):
    if raw is not None and not isinstance(raw, dict):
        raise ConfigError(f"{section} section must be a mapping, got {raw!r}")
    try:
        return cls(**(raw or {}))
    except TypeError as exc:
        raise ConfigError(f"Invalid {section} section: {exc}") from exc


def _items(raw: dict, key: str) -> list[dict]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list, got {value!r}")
    for item in value:
        if not isinstance(item, dict):
            raise ConfigError(f"each entry of {key} must be a mapping, got {item!r}")
    return value


def _obstacle(item: dict) -> ObstacleConfig:
    unknown = set(item) - {"position", "radius"}
    if unknown:
        raise ConfigError(f"Invalid obstacle entry: unknown keys {sorted(unknown)}")
    return ObstacleConfig(position=_pair(item.get("position"), (0.0, 0.0)), radius=item.get("radius", 20.0))


def _release(item: dict) -> PredatorReleaseConfig:
    unknown = set(item) - {"tick", "offsets"}
    if unknown:
        raise ConfigError(f"Invalid predator release entry: unknown keys {sorted(unknown)}")
    offsets = item.get("offsets", _default_release_offsets())
    if not isinstance(offsets, list):
        raise ConfigError(f"predator release offsets must be a list, got {offsets!r}")
    return PredatorReleaseConfig(
        tick=item.get("tick", 1000),
        offsets=[_pair(offset, (0.0, 0.0)) for offset in offsets],
    )


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"configuration must be a mapping, got {raw!r}")
    agent = _build(AgentConfig, raw.get("agent"), "agent")
    predator = _build(PredatorConfig, raw.get("predator"), "predator")
    obstacles = [_obstacle(item) for item in _items(raw, "obstacles")]
    if "predator_releases" in raw:
        releases = [_release(item) for item in _items(raw, "predator_releases")]
    else:
        releases = [PredatorReleaseConfig()]
    sim_values = {
        k: v for k, v in raw.items() if k not in {"agent", "predator", "obstacles", "predator_releases"}
    }
    try:
        config = SimulationConfig(
            agent=agent, predator=predator, obstacles=obstacles, predator_releases=releases, **sim_values
        )
    except TypeError as exc:
        raise ConfigError(f"Invalid simulation section: {exc}") from exc
    return config.validate()
