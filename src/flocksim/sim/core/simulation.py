from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from .config import SimulationConfig
from .frames import FrameStore
from .world import World
from ..types.frame import Frame
from ..types.metrics import TickMetrics

logger = logging.getLogger(__name__)


class SimulationState(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    FINISHED = "Finished"


class Simulation:
    """Drives a world through ``total_steps`` ticks and records one frame per tick.

    Frame 0 is the seeded world; frame ``i`` is the world after ``i`` ticks.
    ``run`` is safe to call from a worker thread; ``progress`` and ``frames``
    can be read from any thread while it runs.
    """

    def __init__(self, config: SimulationConfig, on_frame: Optional[Callable[[Frame], None]] = None):
        self.config = config.validate()
        self.world = World(config)
        self.frames = FrameStore(config.total_steps)
        self.metrics: List[TickMetrics] = []
        self.progress = 0.0
        self._state = SimulationState.IDLE
        self._run_lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._on_frame = on_frame

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def total_steps(self) -> int:
        return self.config.total_steps

    @property
    def finished(self) -> bool:
        return self._state == SimulationState.FINISHED

    def get_frame(self, index: int) -> Frame:
        return self.frames.get(index)

    def run(self) -> bool:
        """Run to completion; returns False when already running or finished."""
        if self._state == SimulationState.FINISHED:
            return False
        if not self._run_lock.acquire(blocking=False):
            return False
        try:
            if self._state == SimulationState.FINISHED:
                return False
            self._state = SimulationState.RUNNING
            logger.info(
                "starting run: %d agents, %d steps, seed %d",
                self.config.agent_count,
                self.total_steps,
                self.config.seed,
            )
            while self.frames.completed < self.total_steps:
                if self._cancel.is_set():
                    logger.info("run cancelled after %d frames", self.frames.completed)
                    break
                self._advance()
            self._finish()
            return True
        finally:
            self._run_lock.release()

    def step_once(self) -> Optional[Frame]:
        """Advance a single tick; returns the new frame, or None once finished or while running."""
        if self._state == SimulationState.FINISHED:
            return None
        if not self._run_lock.acquire(blocking=False):
            return None
        try:
            frame = self._advance()
            if self.frames.completed >= self.total_steps:
                self._finish()
            return frame
        finally:
            self._run_lock.release()

    def start_background(self) -> threading.Thread:
        if self._thread is None:
            self._thread = threading.Thread(target=self.run, name="flocksim-run", daemon=True)
            self._thread.start()
        return self._thread

    def cancel(self) -> None:
        """Stop at the next tick boundary."""
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _advance(self) -> Frame:
        step = self.frames.completed
        if step > 0:
            self.metrics.append(self.world.step())
        frame = self.world.frame()
        self.frames.append(frame)
        self.progress = step / self.total_steps
        if self._on_frame is not None:
            self._on_frame(frame)
        return frame

    def _finish(self) -> None:
        self._state = SimulationState.FINISHED
        if self.frames.completed >= self.total_steps:
            self.progress = 1.0
        logger.info(
            "run finished: %d frames, %d agents remaining", self.frames.completed, len(self.world.agents)
        )
