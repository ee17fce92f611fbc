from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2

from ..core.config import AgentConfig
from ..core.entities import Agent, Obstacle, Predator
from ..utils.math2d import rotate, safe_normalize, safe_normalize_xy

_QUARTER_TURN = -math.pi / 2


def compute_heading(
    agent: Agent,
    neighbors: Sequence[Agent],
    obstacles: Sequence[Obstacle],
    predators: Sequence[Predator],
    config: AgentConfig,
    world_size: float,
) -> Vector2:
    """Resultant (unnormalised) steering vector for one agent.

    ``neighbors`` may contain ``agent`` itself; it is skipped by identity.
    Nothing passed in is mutated.
    """
    resultant = Vector2(agent.heading)
    resultant += separation(agent, neighbors, config.separation_distance) * config.separation_weight
    resultant += alignment(agent, neighbors, config.alignment_distance) * config.alignment_weight
    resultant += (
        cohesion(agent, neighbors, config.cohesion_min_distance, config.cohesion_max_distance)
        * config.cohesion_weight
    )
    if obstacles:
        resultant += obstacle_avoidance(agent.position, obstacles, config.obstacle_range_factor) * config.obstacle_weight
    if predators:
        resultant += (
            predator_avoidance(agent.position, predators, config.predator_avoidance_distance)
            * config.predator_avoidance_weight
        )
    resultant += boundary_restraint(
        agent.position, world_size, config.boundary_threshold_fraction, config.boundary_restraint
    )
    return resultant


def separation(agent: Agent, neighbors: Sequence[Agent], max_distance: float) -> Vector2:
    pos_x = agent.position.x
    pos_y = agent.position.y
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for other in neighbors:
        if other is agent or not other.alive:
            continue
        dx = pos_x - other.position.x
        dy = pos_y - other.position.y
        if dx * dx + dy * dy <= max_sq:
            sum_x += dx
            sum_y += dy
    return safe_normalize_xy(sum_x, sum_y)


def alignment(agent: Agent, neighbors: Sequence[Agent], max_distance: float) -> Vector2:
    pos_x = agent.position.x
    pos_y = agent.position.y
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    count = 0
    for other in neighbors:
        if other is agent or not other.alive:
            continue
        dx = other.position.x - pos_x
        dy = other.position.y - pos_y
        if dx * dx + dy * dy <= max_sq:
            sum_x += other.heading.x
            sum_y += other.heading.y
            count += 1
    if count == 0:
        return Vector2()
    inv = 1.0 / count
    return safe_normalize_xy(sum_x * inv, sum_y * inv)


def cohesion(agent: Agent, neighbors: Sequence[Agent], min_distance: float, max_distance: float) -> Vector2:
    pos_x = agent.position.x
    pos_y = agent.position.y
    min_sq = min_distance * min_distance
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for other in neighbors:
        if other is agent or not other.alive:
            continue
        dx = other.position.x - pos_x
        dy = other.position.y - pos_y
        dist_sq = dx * dx + dy * dy
        if min_sq <= dist_sq <= max_sq:
            sum_x += dx
            sum_y += dy
    return safe_normalize_xy(sum_x, sum_y)


def obstacle_avoidance(position: Vector2, obstacles: Sequence[Obstacle], range_factor: float) -> Vector2:
    """Tangential deflection around every obstacle closer than ``range_factor * radius``."""
    sum_x = 0.0
    sum_y = 0.0
    for obstacle in obstacles:
        reach = obstacle.radius * range_factor
        dx = position.x - obstacle.x
        dy = position.y - obstacle.y
        if dx * dx + dy * dy > reach * reach:
            continue
        deflection = rotate(safe_normalize_xy(dx, dy), _QUARTER_TURN) * reach
        sum_x += deflection.x
        sum_y += deflection.y
    return safe_normalize_xy(sum_x, sum_y)


def predator_avoidance(position: Vector2, predators: Sequence[Predator], max_distance: float) -> Vector2:
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for predator in predators:
        dx = position.x - predator.position.x
        dy = position.y - predator.position.y
        if dx * dx + dy * dy <= max_sq:
            sum_x += dx
            sum_y += dy
    return safe_normalize_xy(sum_x, sum_y)


def boundary_restraint(position: Vector2, world_size: float, threshold_fraction: float, strength: float) -> Vector2:
    half = world_size / 2.0
    to_center = Vector2(half - position.x, half - position.y)
    if to_center.length() < world_size * threshold_fraction:
        return Vector2()
    return safe_normalize(to_center) * strength


def advance(position: Vector2, heading: Vector2, resultant: Vector2, speed: float) -> tuple[Vector2, Vector2]:
    """New ``(position, heading)`` after moving ``speed`` units along ``resultant``.

    A zero resultant keeps both unchanged.
    """
    direction = safe_normalize(resultant)
    if direction.x == 0.0 and direction.y == 0.0:
        return Vector2(position), Vector2(heading)
    displacement = direction * speed
    return position + displacement, safe_normalize(displacement)
