from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Sequence

from pygame.math import Vector2

from .config import PredatorReleaseConfig, SimulationConfig
from .entities import Agent, Obstacle, Predator
from .rng import DeterministicRng
from .spatial_grid import SpatialGrid
from ..systems import flocking, predation
from ..systems import metrics as metrics_system
from ..types.frame import Frame
from ..types.metrics import TickMetrics
from ..utils.math2d import safe_normalize

logger = logging.getLogger(__name__)

_DEFAULT_HEADING = Vector2(1.0, 0.0)


class World:
    """Owns every entity and advances them one tick at a time.

    Force functions only ever receive read-only views of the collections
    held here; the world is the only place entities are mutated.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._agents: List[Agent] = []
        self._predators: List[Predator] = []
        self._obstacles: List[Obstacle] = []
        self._grid = SpatialGrid(self._neighbor_radius())
        self._tick = 0
        self._next_agent_id = 0
        self._next_predator_id = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def predators(self) -> List[Predator]:
        return self._predators

    @property
    def obstacles(self) -> Sequence[Obstacle]:
        return tuple(self._obstacles)

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def center(self) -> Vector2:
        return Vector2(self._config.center)

    def reset(self) -> None:
        self._agents.clear()
        self._predators.clear()
        self._obstacles.clear()
        self._grid.clear()
        self._rng.reset()
        self._tick = 0
        self._next_agent_id = 0
        self._next_predator_id = 0
        self._metrics = None
        self._bootstrap()

    def step(self) -> TickMetrics:
        start = perf_counter()
        tick = self._tick + 1
        released = self._apply_releases(tick)
        if self._config.update_mode == "simultaneous":
            self._update_simultaneous()
        else:
            self._update_sequential()
        killed = predation.resolve_kills(
            self._predators, self._agents, self._config.predator.effective_kill_distance
        )
        if killed:
            logger.debug("tick %d: %d agent(s) killed", tick, len(killed))
        self._remove_dead()
        self._tick = tick
        elapsed_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(self, len(killed), released, elapsed_ms)
        return self._metrics

    def frame(self) -> Frame:
        return Frame.capture(self._tick, self._agents, self._predators, self._obstacles)

    def add_agent(self, position: Vector2, heading: Vector2) -> Agent:
        agent = Agent(id=self._next_agent_id, position=Vector2(position), heading=safe_normalize(heading))
        self._next_agent_id += 1
        self._agents.append(agent)
        return agent

    def add_predator(self, position: Vector2, heading: Vector2) -> Predator:
        predator = Predator(id=self._next_predator_id, position=Vector2(position), heading=safe_normalize(heading))
        self._next_predator_id += 1
        self._predators.append(predator)
        return predator

    def _bootstrap(self) -> None:
        config = self._config
        size = config.world_size
        for obstacle in config.obstacles:
            self._obstacles.append(Obstacle(float(obstacle.position[0]), float(obstacle.position[1]), float(obstacle.radius)))
        for _ in range(config.agent_count):
            position = Vector2(self._rng.next_range(0.0, size), self._rng.next_range(0.0, size))
            self.add_agent(position, self._rng.next_unit_circle())
        for _ in range(config.initial_predator_count):
            position = Vector2(self._rng.next_range(0.0, size), self._rng.next_range(0.0, size))
            self.add_predator(position, self._rng.next_unit_circle())

    def _apply_releases(self, tick: int) -> int:
        released = 0
        for release in self._config.predator_releases:
            if release.tick == tick:
                released += self._release(release)
        return released

    def _release(self, release: PredatorReleaseConfig) -> int:
        center = self.center
        for offset_x, offset_y in release.offsets:
            offset = Vector2(offset_x, offset_y)
            heading = offset if offset.length_squared() > 0.0 else _DEFAULT_HEADING
            self.add_predator(center + offset, heading)
        logger.info("tick %d: released %d predator(s)", release.tick, release.count)
        return release.count

    def _update_sequential(self) -> None:
        # Later entities observe the already-updated state of earlier ones.
        config = self._config
        agents = self._agents
        for agent in agents:
            resultant = flocking.compute_heading(
                agent, agents, self._obstacles, self._predators, config.agent, config.world_size
            )
            agent.position, agent.heading = flocking.advance(
                agent.position, agent.heading, resultant, config.agent.speed
            )
        for predator in self._predators:
            resultant = predation.compute_heading(
                predator, self._predators, agents, config.predator, config.world_size
            )
            predator.position, predator.heading = flocking.advance(
                predator.position, predator.heading, resultant, config.predator.speed
            )

    def _update_simultaneous(self) -> None:
        config = self._config
        prior_agents = [agent.copy() for agent in self._agents]
        prior_predators = [predator.copy() for predator in self._predators]
        self._grid.rebuild([agent.position for agent in prior_agents])
        radius = self._neighbor_radius()

        agent_updates = []
        for prior in prior_agents:
            neighbors = [prior_agents[index] for index in self._grid.query(prior.position, radius)]
            resultant = flocking.compute_heading(
                prior, neighbors, self._obstacles, prior_predators, config.agent, config.world_size
            )
            agent_updates.append(flocking.advance(prior.position, prior.heading, resultant, config.agent.speed))

        predator_updates = []
        for prior in prior_predators:
            resultant = predation.compute_heading(
                prior, prior_predators, prior_agents, config.predator, config.world_size
            )
            predator_updates.append(
                flocking.advance(prior.position, prior.heading, resultant, config.predator.speed)
            )

        for agent, (position, heading) in zip(self._agents, agent_updates):
            agent.position = position
            agent.heading = heading
        for predator, (position, heading) in zip(self._predators, predator_updates):
            predator.position = position
            predator.heading = heading

    def _remove_dead(self) -> int:
        before = len(self._agents)
        self._agents[:] = [agent for agent in self._agents if agent.alive]
        return before - len(self._agents)

    def _neighbor_radius(self) -> float:
        agent = self._config.agent
        return max(agent.separation_distance, agent.alignment_distance, agent.cohesion_max_distance)

