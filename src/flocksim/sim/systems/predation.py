from __future__ import annotations

import math
from typing import List, Optional, Sequence

from pygame.math import Vector2

from ..core.config import PredatorConfig
from ..core.entities import Agent, Predator
from ..utils.math2d import safe_normalize, safe_normalize_xy


def compute_heading(
    predator: Predator,
    predators: Sequence[Predator],
    agents: Sequence[Agent],
    config: PredatorConfig,
    world_size: float,
) -> Vector2:
    resultant = Vector2(predator.heading)
    resultant += separation(predator, predators, config.separation_distance) * config.separation_weight
    if config.flocking:
        resultant += alignment(predator, predators, config.alignment_distance) * config.alignment_weight
        resultant += (
            cohesion(predator, predators, config.cohesion_min_distance, config.cohesion_max_distance)
            * config.cohesion_weight
        )
    resultant += progressive_restraint(
        predator.position, world_size, config.boundary_threshold_fraction, config.boundary_restraint_per_unit
    )
    resultant += pursuit(predator, agents, config.field_of_view_degrees) * config.pursuit_weight
    return resultant


def separation(predator: Predator, predators: Sequence[Predator], max_distance: float) -> Vector2:
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for other in predators:
        if other is predator:
            continue
        dx = predator.position.x - other.position.x
        dy = predator.position.y - other.position.y
        if dx * dx + dy * dy <= max_sq:
            sum_x += dx
            sum_y += dy
    return safe_normalize_xy(sum_x, sum_y)


def alignment(predator: Predator, predators: Sequence[Predator], max_distance: float) -> Vector2:
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for other in predators:
        if other is predator:
            continue
        if (other.position - predator.position).length_squared() <= max_sq:
            sum_x += other.heading.x
            sum_y += other.heading.y
    return safe_normalize_xy(sum_x, sum_y)


def cohesion(predator: Predator, predators: Sequence[Predator], min_distance: float, max_distance: float) -> Vector2:
    min_sq = min_distance * min_distance
    max_sq = max_distance * max_distance
    sum_x = 0.0
    sum_y = 0.0
    for other in predators:
        if other is predator:
            continue
        dx = other.position.x - predator.position.x
        dy = other.position.y - predator.position.y
        if min_sq <= dx * dx + dy * dy <= max_sq:
            sum_x += dx
            sum_y += dy
    return safe_normalize_xy(sum_x, sum_y)


def progressive_restraint(
    position: Vector2, world_size: float, threshold_fraction: float, strength_per_unit: float
) -> Vector2:
    """Pull toward the centre that grows linearly with the distance past the threshold."""
    half = world_size / 2.0
    to_center = Vector2(half - position.x, half - position.y)
    overshoot = to_center.length() - world_size * threshold_fraction
    if overshoot < 0.0:
        return Vector2()
    return safe_normalize(to_center) * (overshoot * strength_per_unit)


def visible_prey(predator: Predator, agents: Sequence[Agent], field_of_view_degrees: float) -> Optional[Agent]:
    """Nearest living agent inside the field of view centred on the predator's heading."""
    heading = safe_normalize(predator.heading)
    blind = heading.x == 0.0 and heading.y == 0.0
    min_cos = math.cos(math.radians(min(field_of_view_degrees, 360.0) / 2.0))
    pos_x = predator.position.x
    pos_y = predator.position.y
    closest: Optional[Agent] = None
    closest_sq = math.inf
    for agent in agents:
        if not agent.alive:
            continue
        dx = agent.position.x - pos_x
        dy = agent.position.y - pos_y
        dist_sq = dx * dx + dy * dy
        if dist_sq >= closest_sq:
            continue
        if not blind and dist_sq > 0.0:
            cos_angle = (heading.x * dx + heading.y * dy) / math.sqrt(dist_sq)
            if cos_angle < min_cos:
                continue
        closest = agent
        closest_sq = dist_sq
    return closest


def pursuit(predator: Predator, agents: Sequence[Agent], field_of_view_degrees: float) -> Vector2:
    target = visible_prey(predator, agents, field_of_view_degrees)
    if target is None:
        return Vector2()
    return safe_normalize(target.position - predator.position)


def nearest_living(position: Vector2, agents: Sequence[Agent]) -> Optional[Agent]:
    closest: Optional[Agent] = None
    closest_sq = math.inf
    for agent in agents:
        if not agent.alive:
            continue
        dist_sq = (agent.position - position).length_squared()
        if dist_sq < closest_sq:
            closest = agent
            closest_sq = dist_sq
    return closest


def resolve_kills(predators: Sequence[Predator], agents: Sequence[Agent], kill_distance: float) -> List[Agent]:
    """Each predator, in order, kills its nearest living agent closer than ``kill_distance``."""
    killed: List[Agent] = []
    kill_sq = kill_distance * kill_distance
    for predator in predators:
        victim = nearest_living(predator.position, agents)
        if victim is None:
            continue
        if (victim.position - predator.position).length_squared() < kill_sq:
            victim.alive = False
            killed.append(victim)
    return killed
