from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    agents: int
    predators: int
    kills: int
    released: int
    tick_duration_ms: float = 0.0
