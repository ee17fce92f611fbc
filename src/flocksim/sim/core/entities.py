from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    heading: Vector2 = field(default_factory=Vector2)
    alive: bool = True

    def copy(self) -> "Agent":
        return Agent(id=self.id, position=Vector2(self.position), heading=Vector2(self.heading), alive=self.alive)


@dataclass(slots=True)
class Predator:
    id: int
    position: Vector2
    heading: Vector2 = field(default_factory=Vector2)

    def copy(self) -> "Predator":
        return Predator(id=self.id, position=Vector2(self.position), heading=Vector2(self.heading))


@dataclass(frozen=True, slots=True)
class Obstacle:
    x: float
    y: float
    radius: float

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)
