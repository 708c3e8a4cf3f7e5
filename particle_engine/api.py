"""FastAPI frame feed for scene particle previews."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.websockets import WebSocketState

from .appearance import resolve_scene
from .clock import SimulationClock
from .config import EngineConfig
from .emitter import Emitter, Scene, apply_preset, icon_for
from .logging_config import configure_logging
from .presets import DEFAULT_LIBRARY, ColorRange, Preset, Shape, SizeRange, ValueRange, get_preset
from .simulation import ParticleEngine

logger = logging.getLogger(__name__)

# ============================================================================
# Pydantic Models
# ============================================================================

class RangeModel(BaseModel):
    min: float
    max: float


class SizeModel(BaseModel):
    start: float = Field(ge=0.0)
    end: float = Field(ge=0.0)


class ColorModel(BaseModel):
    start: str
    end: str


class EmitterModel(BaseModel):
    """Emitter as sent by the editor. Emission fields left out come from ``preset``."""
    id: str
    name: str = "Particles"
    x: float = 0.0
    y: float = 0.0
    width: float = Field(default=50.0, ge=0.0)
    height: float = Field(default=50.0, ge=0.0)
    enabled: bool = True
    blend_mode: str = "normal"
    preset: Optional[str] = None

    emit_rate: Optional[float] = Field(default=None, ge=0.0)
    lifetime: Optional[RangeModel] = None
    speed: Optional[RangeModel] = None
    direction: Optional[RangeModel] = None
    gravity: Optional[float] = None
    size: Optional[SizeModel] = None
    color: Optional[ColorModel] = None
    shape: Optional[Shape] = None

    def to_emitter(self) -> Emitter:
        """Build an engine emitter, rejecting lifetimes that can't spawn."""
        emitter = Emitter(
            id=self.id,
            name=self.name,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            enabled=self.enabled,
            blend_mode=self.blend_mode,
        )
        if self.preset is not None and not apply_preset(emitter, self.preset):
            raise ValueError(f"Unknown preset '{self.preset}'")

        if self.emit_rate is not None:
            emitter.emit_rate = self.emit_rate
        if self.lifetime is not None:
            if not 0.0 < self.lifetime.min <= self.lifetime.max:
                raise ValueError(
                    f"Emitter '{self.id}': lifetime must satisfy 0 < min <= max"
                )
            emitter.lifetime = ValueRange(self.lifetime.min, self.lifetime.max)
        if self.speed is not None:
            emitter.speed = ValueRange(self.speed.min, self.speed.max)
        if self.direction is not None:
            emitter.direction = ValueRange(self.direction.min, self.direction.max)
        if self.gravity is not None:
            emitter.gravity = self.gravity
        if self.size is not None:
            emitter.size = SizeRange(self.size.start, self.size.end)
        if self.color is not None:
            emitter.color = ColorRange(self.color.start, self.color.end)
        if self.shape is not None:
            emitter.shape = self.shape
        return emitter


class SceneUpdate(BaseModel):
    """Replace the scene's emitters."""
    emitters: List[EmitterModel]


# ============================================================================
# FastAPI App with Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global _simulation_task
    logger.info("Starting frame driver")
    _simulation_task = asyncio.create_task(_simulation_loop())

    yield

    logger.info("Stopping frame driver")
    if _simulation_task:
        _simulation_task.cancel()
        try:
            await _simulation_task
        except asyncio.CancelledError:
            pass

app = FastAPI(title="Scene Particle Preview", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
_config = EngineConfig.from_env()
_engine = ParticleEngine(_config)
_scene = Scene()
_clock = SimulationClock(_engine, lambda: _scene)
_state_lock = asyncio.Lock()
_websocket_clients: set = set()
_simulation_task = None

LOG_EVERY_N_FRAMES = 300


# ============================================================================
# Background Frame Driver
# ============================================================================

async def _simulation_loop():
    """Background task that ticks the clock and broadcasts frames to all clients."""
    while True:
        try:
            async with _state_lock:
                dt = _clock.tick()
                payload = _frame_payload() if dt is not None else None

            if payload is not None:
                if _clock.frame % LOG_EVERY_N_FRAMES == 0:
                    logger.debug(
                        "Frame %d, t=%.2f, live=%d, clients=%d",
                        _clock.frame, _clock.elapsed,
                        sum(len(layer["particles"]) for layer in payload["layers"]),
                        len(_websocket_clients),
                    )
                await _broadcast({"type": "frame", "payload": payload})
        except Exception:
            logger.exception("Frame driver failed to produce a frame")

        await asyncio.sleep(_config.frame_interval)


async def _broadcast(message: Dict[str, Any]) -> None:
    dead_clients = set()

    # Clients may connect or disconnect while a send is awaited
    for client in list(_websocket_clients):
        try:
            # Check if client is still connected before sending
            if client.client_state == WebSocketState.CONNECTED:
                await client.send_json(message)
            else:
                dead_clients.add(client)
        except Exception as e:
            logger.warning("Error sending frame to client: %s: %s", type(e).__name__, e)
            dead_clients.add(client)

    if dead_clients:
        logger.debug("Removing %d dead clients", len(dead_clients))
    _websocket_clients.difference_update(dead_clients)


# ============================================================================
# Helper Functions
# ============================================================================

def _frame_payload() -> Dict[str, Any]:
    """Resolve every live particle for the renderer."""
    return {
        "frame": _clock.frame,
        "elapsed": _clock.elapsed,
        "state": _clock.state.value,
        "layers": [layer.to_dict() for layer in resolve_scene(_engine, _scene)],
    }


def _emitter_payload(emitter: Emitter) -> Dict[str, Any]:
    data = emitter.to_dict()
    data["icon"] = icon_for(emitter.preset)
    return data


def _preset_payload(key: str, preset: Preset) -> Dict[str, Any]:
    return {
        "key": key,
        "name": preset.name,
        "icon": preset.icon,
        "emit_rate": preset.emit_rate,
        "lifetime": {"min": preset.lifetime.min, "max": preset.lifetime.max},
        "speed": {"min": preset.speed.min, "max": preset.speed.max},
        "direction": {"min": preset.direction.min, "max": preset.direction.max},
        "gravity": preset.gravity,
        "size": {"start": preset.size.start, "end": preset.size.end},
        "color": {"start": preset.color.start, "end": preset.color.end},
        "shape": preset.shape.value,
    }


def _apply_preset_to(emitter_id: str, preset_name: str) -> Dict[str, Any]:
    emitter = _scene.get(emitter_id)
    if emitter is None:
        raise KeyError(emitter_id)
    applied = apply_preset(emitter, preset_name)
    return {"applied": applied, "emitter": _emitter_payload(emitter)}


def _status() -> Dict[str, Any]:
    return {"state": _clock.state.value, "frame": _clock.frame, "elapsed": _clock.elapsed}


# ============================================================================
# REST Endpoints
# ============================================================================

@app.get("/health")
async def health() -> Dict[str, str]:
    """Health check."""
    return {"status": "ok"}


@app.get("/presets")
async def get_presets() -> List[Dict[str, Any]]:
    """List available presets."""
    return [_preset_payload(key, preset) for key, preset in DEFAULT_LIBRARY.items()]


@app.get("/presets/{name}")
async def get_preset_by_name(name: str) -> Dict[str, Any]:
    """Get a single preset."""
    try:
        return _preset_payload(name, get_preset(name))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/scene")
async def get_scene() -> Dict[str, Any]:
    """Get the emitters being simulated, in step order."""
    async with _state_lock:
        return {"emitters": [_emitter_payload(e) for e in _scene]}


@app.put("/scene")
async def update_scene(scene_update: SceneUpdate) -> Dict[str, Any]:
    """Replace the scene's emitters. Pools of removed emitters are dropped."""
    async with _state_lock:
        try:
            new_scene = Scene()
            for model in scene_update.emitters:
                new_scene.add(model.to_emitter())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        _scene.emitters = new_scene.emitters
        _engine.prune(_scene.ids())
        return {"emitters": [_emitter_payload(e) for e in _scene]}


@app.post("/emitters/{emitter_id}/preset/{preset_name}")
async def apply_emitter_preset(emitter_id: str, preset_name: str) -> Dict[str, Any]:
    """Apply a preset to one emitter. Unknown presets leave it unchanged."""
    async with _state_lock:
        try:
            return _apply_preset_to(emitter_id, preset_name)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown emitter '{emitter_id}'")


@app.get("/frame")
async def get_frame() -> Dict[str, Any]:
    """Resolved particles of the latest step."""
    async with _state_lock:
        return _frame_payload()


@app.get("/stats")
async def get_stats() -> Dict[str, Any]:
    """Per-emitter particle counts."""
    async with _state_lock:
        return {**_status(), "emitters": _engine.stats()}


@app.post("/start")
async def start_simulation() -> Dict[str, Any]:
    async with _state_lock:
        _clock.start()
        return _status()


@app.post("/stop")
async def stop_simulation() -> Dict[str, Any]:
    async with _state_lock:
        _clock.stop()
        return _status()


@app.post("/reset")
async def reset_simulation() -> Dict[str, Any]:
    """Stop the clock and drop all live particles."""
    async with _state_lock:
        _clock.reset()
        return _status()


# ============================================================================
# WebSocket
# ============================================================================

async def _listener(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Listen for client messages."""
    try:
        while True:
            message = await websocket.receive_json()
            await queue.put(message)
    except WebSocketDisconnect:
        pass


async def _handle_message(message: Dict[str, Any]) -> Dict[str, Any]:
    """Handle client commands."""
    if not isinstance(message, dict):
        raise ValueError("Expected a JSON object")

    msg_type = message.get("type")

    if msg_type == "start":
        _clock.start()
        return _status()

    elif msg_type == "stop":
        _clock.stop()
        return _status()

    elif msg_type == "reset":
        _clock.reset()
        return _status()

    elif msg_type == "apply_preset":
        emitter_id = message.get("emitter_id")
        name = message.get("name")
        if emitter_id is None or name is None:
            raise ValueError("Message missing 'emitter_id' or 'name'")
        try:
            return _apply_preset_to(emitter_id, name)
        except KeyError:
            raise ValueError(f"Unknown emitter '{emitter_id}'")

    raise ValueError(f"Unknown message type '{msg_type}'")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint - clients receive a frame per step and may send commands."""
    await websocket.accept()
    _websocket_clients.add(websocket)
    logger.debug("WebSocket client connected, total clients: %d", len(_websocket_clients))

    queue: asyncio.Queue = asyncio.Queue()
    listener = asyncio.create_task(_listener(websocket, queue))

    try:
        async with _state_lock:
            initial = _frame_payload()
        await websocket.send_json({"type": "frame", "payload": initial})

        while True:
            # Handle pending messages
            while not queue.empty():
                message = await queue.get()
                try:
                    async with _state_lock:
                        result = await _handle_message(message)
                    await websocket.send_json(
                        {"type": "ack", "command": message.get("type"), "payload": result}
                    )
                except ValueError as exc:
                    await websocket.send_json({"type": "error", "detail": str(exc)})

            if listener.done():
                break

            await asyncio.sleep(0.05)  # Check for messages periodically

    except WebSocketDisconnect:
        logger.debug("WebSocket disconnected")
    finally:
        _websocket_clients.discard(websocket)
        logger.debug("WebSocket client removed, remaining clients: %d", len(_websocket_clients))
        listener.cancel()


def main() -> None:
    """Run the frame feed with uvicorn."""
    app_logger = configure_logging()
    for uvicorn_logger in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uvicorn_logger).setLevel(app_logger.level)
    uvicorn.run(app, host="127.0.0.1", port=8000, log_config=None)


if __name__ == "__main__":
    main()
