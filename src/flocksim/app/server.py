from __future__ import annotations

import asyncio
import json
import logging

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.frames import FrameIndexError
from ..sim.core.simulation import Simulation

logger = logging.getLogger(__name__)


class SimulationController:
    """Runs one simulation on a worker thread and serves its frames."""

    def __init__(self, config: SimulationConfig, poll_interval: float = 0.05, seek_timeout: float = 0.5):
        self.config = config
        self.simulation = Simulation(config)
        self.poll_interval = poll_interval
        self.seek_timeout = seek_timeout

    def start(self) -> bool:
        if self.simulation.finished:
            return False
        self.simulation.start_background()
        return True

    def cancel(self) -> None:
        self.simulation.cancel()

    def status(self) -> dict:
        return {
            "state": self.simulation.state.value,
            "progress": self.simulation.progress,
            "completed": self.simulation.frames.completed,
            "total_steps": self.simulation.total_steps,
            "agents": len(self.simulation.world.agents),
        }

    def serialize_frame(self, index: int) -> str:
        frame = self.simulation.get_frame(index)
        return json.dumps({"type": "frame", "payload": frame.to_dict()})

    async def stream(self, websocket: WebSocket, start: int = 0) -> None:
        """Send every completed frame from ``start`` on, waiting for new ones until the run ends."""
        next_index = start
        while True:
            completed = self.simulation.frames.completed
            while next_index < completed:
                await websocket.send_text(self.serialize_frame(next_index))
                next_index += 1
            if self.simulation.finished and next_index >= self.simulation.frames.completed:
                await websocket.send_text(json.dumps({"type": "done", "completed": next_index}))
                return
            await asyncio.sleep(self.poll_interval)


app = FastAPI(title="Flocking Simulation")
controller = SimulationController(SimulationConfig())


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(controller.status())


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    started = controller.start()
    return JSONResponse({"started": started, **controller.status()})


@app.post("/api/control/cancel")
async def cancel_simulation() -> JSONResponse:
    controller.cancel()
    return JSONResponse(controller.status())


@app.get("/api/frames/{index}")
async def get_frame(index: int) -> JSONResponse:
    try:
        frame = controller.simulation.get_frame(index)
    except FrameIndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return JSONResponse(frame.to_dict())


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        start = await _read_seek(websocket)
        await controller.stream(websocket, start)
    except WebSocketDisconnect:
        logger.debug("websocket client disconnected")


async def _read_seek(websocket: WebSocket) -> int:
    """Step requested by an opening ``{"type": "seek", "step": n}`` message; 0 when none arrives in time."""
    try:
        message = await asyncio.wait_for(websocket.receive_text(), timeout=controller.seek_timeout)
    except asyncio.TimeoutError:
        return 0
    try:
        payload = json.loads(message)
    except json.JSONDecodeError:
        return 0
    if not isinstance(payload, dict) or payload.get("type") != "seek":
        return 0
    step = payload.get("step")
    if isinstance(step, bool) or not isinstance(step, int):
        return 0
    return max(0, step)


__all__ = ["app", "controller", "SimulationController"]
