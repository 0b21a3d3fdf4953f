from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import AsyncIterator, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pygame.math import Vector2

from ..sim.core.clock import FixedTimestep
from ..sim.core.config import AppConfig, ConfigError, SimulationConfig
from ..sim.core.world import World

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


def _parse_attractor(payload: Optional[dict]) -> Optional[Vector2]:
    if payload is None:
        return None
    try:
        x, y = float(payload["x"]), float(payload["y"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Attractor needs numeric x and y, got {payload!r}") from exc
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Attractor coordinates must be finite, got {payload!r}")
    return Vector2(x, y)


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.world = World(config)
        self.clock = FixedTimestep(config.time_step, config.max_ticks_per_advance)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.ticks

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Simulation loop had already failed")
            self._loop_task = None

    async def restart(self, seed: Optional[int] = None) -> None:
        async with self._lock:
            self.world.restart(seed)
            self.clock.reset()
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def update_config(self, changes: dict) -> SimulationConfig:
        async with self._lock:
            config = self.world.update_config(**changes)
            self.clock.time_step = config.time_step
            self.clock.max_ticks = config.max_ticks_per_advance
        logger.info("Staged config update: %s", sorted(changes))
        return config

    async def set_attractor(self, target: Optional[Vector2]) -> None:
        async with self._lock:
            self.world.set_attractor(target)

    async def advance(self, elapsed: float) -> int:
        async with self._lock:
            ticks = self.clock.advance(elapsed)
            for _ in range(ticks):
                self.world.step()
        if ticks and self.tick % self.broadcast_interval < ticks:
            await self._broadcast_snapshot()
        return ticks

    async def _loop(self) -> None:
        last = perf_counter()
        while True:
            await asyncio.sleep(self.clock.time_step / self.speed_multiplier)
            now = perf_counter()
            elapsed = (now - last) * self.speed_multiplier
            last = now
            if not self.running:
                continue
            try:
                await self.advance(elapsed)
            except Exception:
                logger.exception("Simulation tick failed at tick %d; pausing", self.tick)
                self.running = False

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": asdict(snapshot),
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("Dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


def create_app(controller: SimulationController, autostart: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if autostart:
            await controller.start()
        yield
        await controller.shutdown()

    app = FastAPI(title="Boid Flock Simulation", lifespan=lifespan)
    app.state.controller = controller

    @app.get("/api/status")
    async def status() -> JSONResponse:
        metrics = controller.world.metrics
        return JSONResponse(
            {
                "running": controller.running,
                "tick": controller.tick,
                "agents": len(controller.world.store),
                "seed": controller.world.seed,
                "dropped_ticks": controller.clock.dropped_ticks,
                "metrics": None if metrics is None else asdict(metrics),
            }
        )

    @app.get("/api/config")
    async def get_config() -> JSONResponse:
        pending = controller.world.pending_config
        return JSONResponse(
            {
                "active": controller.world.config.to_dict(),
                "pending": None if pending is None else pending.to_dict(),
            }
        )

    @app.put("/api/config")
    async def put_config(payload: dict) -> JSONResponse:
        try:
            config = await controller.update_config(payload)
        except ConfigError as exc:
            logger.warning("Rejected config update: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse({"pending": config.to_dict()})

    @app.post("/api/control/start")
    async def start_simulation() -> JSONResponse:
        controller.running = True
        return JSONResponse({"running": True})

    @app.post("/api/control/stop")
    async def stop_simulation() -> JSONResponse:
        controller.running = False
        return JSONResponse({"running": False})

    @app.post("/api/control/restart")
    async def restart_simulation(payload: Optional[dict] = None) -> JSONResponse:
        seed = None if not payload else payload.get("seed")
        if seed is not None and not isinstance(seed, int):
            raise HTTPException(status_code=400, detail="seed must be an integer")
        await controller.restart(seed)
        return JSONResponse({"running": controller.running, "tick": controller.tick, "seed": controller.world.seed})

    @app.post("/api/control/speed")
    async def set_speed(payload: dict) -> JSONResponse:
        speed = float(payload.get("multiplier", 1.0))
        controller.speed_multiplier = max(0.1, min(5.0, speed))
        return JSONResponse({"multiplier": controller.speed_multiplier})

    @app.post("/api/attractor")
    async def set_attractor(payload: Optional[dict] = None) -> JSONResponse:
        try:
            target = _parse_attractor(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        await controller.set_attractor(target)
        return JSONResponse({"attractor": None if target is None else {"x": target.x, "y": target.y}})

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        controller.clients.add(websocket)
        controller._client_last_sent[websocket] = -1
        logger.info("Client connected (%d total)", len(controller.clients))
        await controller._send_pending_snapshots(websocket)
        try:
            while True:
                message = await websocket.receive_text()
                try:
                    payload = json.loads(message)
                except json.JSONDecodeError:
                    continue
                kind = payload.get("type")
                if kind == "ack":
                    tick = payload.get("tick")
                    if isinstance(tick, int):
                        await controller.acknowledge(tick)
                elif kind == "attractor":
                    try:
                        await controller.set_attractor(_parse_attractor(payload.get("target")))
                    except ValueError as exc:
                        logger.debug("Ignoring attractor message: %s", exc)
        except WebSocketDisconnect:
            controller.clients.discard(websocket)
            controller._client_last_sent.pop(websocket, None)
            logger.info("Client disconnected (%d remaining)", len(controller.clients))

    return app


app_config = AppConfig()
controller = SimulationController(app_config.simulation, broadcast_interval=app_config.broadcast_interval)
app = create_app(controller)


def main() -> None:
    import uvicorn

    parser = argparse.ArgumentParser(description="Serve the boid flock simulation")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


__all__ = ["app", "controller", "create_app", "SimulationController"]
