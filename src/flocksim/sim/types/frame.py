from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from pygame.math import Vector2

from ..utils.math2d import angle


@dataclass(frozen=True, slots=True)
class Pose:
    x: float
    y: float
    angle: float = 0.0

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)

    @staticmethod
    def of(position: Vector2, heading: Vector2 | None = None) -> "Pose":
        return Pose(float(position.x), float(position.y), 0.0 if heading is None else angle(heading))


@dataclass(frozen=True, slots=True)
class Frame:
    step: int
    agents: Tuple[Pose, ...]
    predators: Tuple[Pose, ...]
    obstacles: Tuple[Pose, ...]

    @staticmethod
    def capture(step: int, agents: Iterable[Any], predators: Iterable[Any], obstacles: Iterable[Any]) -> "Frame":
        return Frame(
            step=step,
            agents=tuple(Pose.of(agent.position, agent.heading) for agent in agents if agent.alive),
            predators=tuple(Pose.of(predator.position, predator.heading) for predator in predators),
            obstacles=tuple(Pose(float(obstacle.x), float(obstacle.y)) for obstacle in obstacles),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "agents": [[pose.x, pose.y, pose.angle] for pose in self.agents],
            "predators": [[pose.x, pose.y, pose.angle] for pose in self.predators],
            "obstacles": [[pose.x, pose.y] for pose in self.obstacles],
        }
