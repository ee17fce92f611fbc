from __future__ import annotations

from typing import TYPE_CHECKING

from ..types.metrics import TickMetrics

if TYPE_CHECKING:
    from ..core.world import World


def create_metrics(world: World, kills: int, released: int, duration_ms: float) -> TickMetrics:
    return TickMetrics(
        tick=world.tick,
        agents=len(world.agents),
        predators=len(world.predators),
        kills=kills,
        released=released,
        tick_duration_ms=duration_ms,
    )
