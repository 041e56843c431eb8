"""FastAPI server with REST API and WebSocket frame streaming.

Provides:
- WebSocket /ws/frames: Stream Frame objects at the target frame rate
- WebSocket /ws/control: Receive play/pause/set_speed/set_flags/reset commands
- REST API for scene state, fibers, carriers and render flags
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field, ValidationError

from photonflow.config import ConfigurationError, RenderFlags, SimulationSettings, get_settings
from photonflow.projection.projector import Frame, frame_to_dict, project
from photonflow.scenes.splice import create_scene

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from photonflow.scenes.splice import Scene

logger = logging.getLogger(__name__)


class SimulationState:
    """Thread-safe simulation state manager.

    Owns the scene and the render flags, and synchronizes the background
    simulation thread with WebSocket/REST endpoints.
    """

    def __init__(self, settings: SimulationSettings | None = None) -> None:
        """Initialize simulation state from settings (environment if None)."""
        self._settings = settings if settings is not None else get_settings()
        self._scene_name = "splice"
        self._scene = create_scene(self._scene_name, self._settings)
        self._flags = self._settings.render_flags()
        self._running = False
        self._speed = 1.0
        self._paused = True
        self._lock = threading.Lock()
        self._latest_frame: Frame | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def scene(self) -> Scene:
        with self._lock:
            return self._scene

    @property
    def flags(self) -> RenderFlags:
        """Snapshot of the current render flags."""
        with self._lock:
            return replace(self._flags)

    @property
    def target_fps(self) -> float:
        return self._settings.target_fps

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        with self._lock:
            self._paused = value

    @property
    def speed(self) -> float:
        """Simulation speed multiplier applied to the frame delta."""
        with self._lock:
            return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        """Set simulation speed (clamped to 0.1-10.0)."""
        with self._lock:
            self._speed = max(0.1, min(10.0, value))

    @property
    def latest_frame(self) -> Frame | None:
        with self._lock:
            return self._latest_frame

    def set_flags(
        self, noise_enabled: bool | None = None, colorful_mode: bool | None = None
    ) -> RenderFlags:
        """Update render flags; they take effect on the next tick.

        Returns:
            The flags now in effect.
        """
        with self._lock:
            if noise_enabled is not None:
                self._flags.noise_enabled = noise_enabled
            if colorful_mode is not None:
                self._flags.colorful_mode = colorful_mode
            flags = replace(self._flags)
        logger.info(
            "Render flags set: noise=%s, colorful=%s", flags.noise_enabled, flags.colorful_mode
        )
        return flags

    def tick(self) -> None:
        """Advance the scene one frame (thread-safe)."""
        with self._lock:
            delta = self._speed / self._settings.target_fps
            snapshot = self._scene.tick(delta, replace(self._flags))
            self._latest_frame = project(snapshot)

    def reset(self) -> None:
        """Rebuild the current scene from settings."""
        with self._lock:
            self._scene = create_scene(self._scene_name, self._settings)
            self._latest_frame = None

    def load_scene(self, scene_name: str) -> None:
        """Load a named scene.

        Raises:
            ValueError: If the scene name is not recognized.
        """
        scene = create_scene(scene_name, self._settings)
        with self._lock:
            self._scene_name = scene_name
            self._scene = scene
            self._latest_frame = None

    def start(self) -> None:
        """Start the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._simulation_loop, daemon=True)
        self._thread.start()
        logger.info("Simulation thread started at %.0f FPS", self.target_fps)

    def stop(self) -> None:
        """Stop the background simulation thread."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        logger.info("Simulation thread stopped")

    def _simulation_loop(self) -> None:
        interval = 1.0 / self.target_fps
        while self._running and not self._stop_event.is_set():
            if not self.paused:
                self.tick()
            self._stop_event.wait(timeout=interval)


_sim_state: SimulationState | None = None


def get_sim_state() -> SimulationState:
    """Get or create the global simulation state."""
    global _sim_state
    if _sim_state is None:
        _sim_state = SimulationState()
    return _sim_state


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager: start/stop simulation thread."""
    sim = get_sim_state()
    sim.start()
    yield
    sim.stop()


app = FastAPI(
    title="photonflow",
    description="Photon carrier flow through a fiber splice",
    version="0.1.0",
    lifespan=lifespan,
)


# Pydantic models for REST responses


class SceneResponse(BaseModel):
    """Response model for scene state summary."""

    name: str = Field(description="Scene name")
    frame: int = Field(description="Frames simulated since the scene was built")
    time: float = Field(description="Elapsed simulation time in seconds")
    speed: float = Field(description="Simulation speed multiplier")
    paused: bool = Field(description="Whether simulation is paused")
    fiber_count: int = Field(description="Number of fibers")
    carrier_count: int = Field(description="Number of carriers across all fibers")
    total_drops: int = Field(description="Carriers lost at the junction so far")


class FiberResponse(BaseModel):
    """Response model for one fiber and its driver statistics."""

    id: str = Field(description="Fiber ID")
    is_branch: bool = Field(description="Whether the fiber is a drop-exempt branch")
    carrier_count: int = Field(description="Carriers owned by this fiber")
    drop_count: int = Field(description="Drops on this fiber")
    respawn_count: int = Field(description="Respawns on this fiber")
    state_counts: dict[str, int] = Field(description="Carriers per lifecycle state")


class CarrierResponse(BaseModel):
    """Response model for one carrier's lifecycle state."""

    index: int
    state: str
    path_param: float
    speed: float
    start_delay: float
    fade_alpha: float
    is_branch: bool
    noise_enabled: bool


class FlagsRequest(BaseModel):
    """Partial update of the render flags."""

    noise_enabled: bool | None = Field(default=None, description="Interference noise toggle")
    colorful_mode: bool | None = Field(default=None, description="Rainbow color toggle")


class FlagsResponse(BaseModel):
    """Current render flags."""

    noise_enabled: bool
    colorful_mode: bool


class ControlCommandResponse(BaseModel):
    """Response for control commands."""

    success: bool = Field(description="Whether command succeeded")
    message: str = Field(description="Status message")


# REST endpoints


@app.get("/api/scene", response_model=SceneResponse, tags=["scene"])
async def get_scene() -> SceneResponse:
    """Get current scene state summary."""
    sim = get_sim_state()
    scene = sim.scene
    return SceneResponse(
        name=scene.name,
        frame=scene.frame,
        time=scene.elapsed,
        speed=sim.speed,
        paused=sim.paused,
        fiber_count=len(scene.fibers),
        carrier_count=scene.carrier_count,
        total_drops=scene.total_drops,
    )


@app.get("/api/frame", tags=["scene"])
async def get_frame() -> dict[str, Any]:
    """Get the most recent projected frame (empty marker before the first tick)."""
    frame = get_sim_state().latest_frame
    return frame_to_dict(frame) if frame is not None else _empty_frame()


@app.get("/api/fibers", response_model=list[FiberResponse], tags=["fibers"])
async def get_fibers() -> list[FiberResponse]:
    """Get all fibers with their driver statistics."""
    scene = get_sim_state().scene
    return [
        FiberResponse(
            id=fiber.id,
            is_branch=fiber.is_branch,
            carrier_count=fiber.driver.count,
            drop_count=fiber.driver.drop_count,
            respawn_count=fiber.driver.respawn_count,
            state_counts=fiber.driver.state_counts(),
        )
        for fiber in scene.fibers.values()
    ]


@app.get(
    "/api/fibers/{fiber_id}/carriers", response_model=list[CarrierResponse], tags=["fibers"]
)
async def get_carriers(fiber_id: str) -> list[CarrierResponse]:
    """Get the lifecycle state of every carrier on a fiber."""
    fiber = get_sim_state().scene.fibers.get(fiber_id)
    if fiber is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Fiber '{fiber_id}' not found",
        )
    return [
        CarrierResponse(
            index=index,
            state=carrier.state.value,
            path_param=carrier.path_param,
            speed=carrier.speed,
            start_delay=carrier.start_delay,
            fade_alpha=carrier.fade_alpha,
            is_branch=carrier.is_branch,
            noise_enabled=carrier.noise_enabled,
        )
        for index, carrier in enumerate(fiber.driver.carriers)
    ]


@app.get("/api/flags", response_model=FlagsResponse, tags=["flags"])
async def get_flags() -> FlagsResponse:
    """Get the current render flags."""
    flags = get_sim_state().flags
    return FlagsResponse(noise_enabled=flags.noise_enabled, colorful_mode=flags.colorful_mode)


@app.post("/api/flags", response_model=FlagsResponse, tags=["flags"])
async def set_flags(request: FlagsRequest) -> FlagsResponse:
    """Toggle interference noise and/or colorful mode from the next frame on."""
    flags = get_sim_state().set_flags(
        noise_enabled=request.noise_enabled, colorful_mode=request.colorful_mode
    )
    return FlagsResponse(noise_enabled=flags.noise_enabled, colorful_mode=flags.colorful_mode)


@app.post("/api/scene/reset", response_model=ControlCommandResponse, tags=["scene"])
async def reset_scene() -> ControlCommandResponse:
    """Rebuild the current scene."""
    get_sim_state().reset()
    logger.info("Scene reset to initial state")
    return ControlCommandResponse(success=True, message="Scene reset to initial state")


@app.post("/api/scene/load", response_model=ControlCommandResponse, tags=["scene"])
async def load_scene(scene_name: str = "splice") -> ControlCommandResponse:
    """Load a named scene (splice or single)."""
    try:
        get_sim_state().load_scene(scene_name)
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    logger.info("Loaded scene: %s", scene_name)
    return ControlCommandResponse(success=True, message=f"Loaded scene: {scene_name}")


@app.post("/api/scene/pause", response_model=ControlCommandResponse, tags=["scene"])
async def pause_simulation() -> ControlCommandResponse:
    """Pause the simulation."""
    get_sim_state().paused = True
    return ControlCommandResponse(success=True, message="Simulation paused")


@app.post("/api/scene/play", response_model=ControlCommandResponse, tags=["scene"])
async def play_simulation() -> ControlCommandResponse:
    """Resume the simulation."""
    get_sim_state().paused = False
    return ControlCommandResponse(success=True, message="Simulation playing")


@app.post("/api/scene/speed", response_model=ControlCommandResponse, tags=["scene"])
async def set_speed(speed: float = 1.0) -> ControlCommandResponse:
    """Set simulation speed multiplier (0.1-10.0)."""
    sim = get_sim_state()
    sim.speed = speed
    return ControlCommandResponse(success=True, message=f"Speed set to {sim.speed}")


# WebSocket connections management


class ConnectionManager:
    """Track WebSocket clients by channel."""

    def __init__(self) -> None:
        self.connections: dict[str, list[WebSocket]] = {"frames": [], "control": []}

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections[channel].append(websocket)
        logger.info("%s client connected, total: %d", channel, len(self.connections[channel]))

    def disconnect(self, channel: str, websocket: WebSocket) -> None:
        if websocket in self.connections[channel]:
            self.connections[channel].remove(websocket)
        logger.info(
            "%s client disconnected, remaining: %d", channel, len(self.connections[channel])
        )


manager = ConnectionManager()


def _empty_frame() -> dict[str, Any]:
    return {
        "scene": "",
        "frame": -1,
        "time": 0.0,
        "glow_opacity": 0.0,
        "junction": None,
        "fibers": [],
    }


@app.websocket("/ws/frames")
async def websocket_frames(websocket: WebSocket) -> None:
    """Stream the latest frame at the target frame rate.

    Sends an empty frame marker until the first tick has been projected.
    """
    await manager.connect("frames", websocket)
    sim = get_sim_state()
    interval = 1.0 / sim.target_fps
    loop = asyncio.get_running_loop()

    try:
        while True:
            start = loop.time()
            frame = sim.latest_frame
            await websocket.send_json(frame_to_dict(frame) if frame is not None else _empty_frame())
            await asyncio.sleep(max(0.0, interval - (loop.time() - start)))
    except WebSocketDisconnect:
        manager.disconnect("frames", websocket)
    except Exception as e:
        logger.error("Frame streaming error: %s", str(e))
        manager.disconnect("frames", websocket)


def handle_control_command(sim: SimulationState, data: dict[str, Any]) -> dict[str, Any]:
    """Apply one control command and build its reply.

    Commands:
    - {"type": "play"} / {"type": "pause"}
    - {"type": "set_speed", "speed": 2.0}
    - {"type": "set_flags", "noise_enabled": true, "colorful_mode": false}
    - {"type": "reset"}
    """
    cmd_type = str(data.get("type", "")).lower()

    if cmd_type == "play":
        sim.paused = False
        return {"success": True, "message": "Simulation playing"}
    if cmd_type == "pause":
        sim.paused = True
        return {"success": True, "message": "Simulation paused"}
    if cmd_type == "set_speed":
        try:
            sim.speed = float(data.get("speed", 1.0))
        except (TypeError, ValueError):
            return {"success": False, "message": "Invalid speed value"}
        return {"success": True, "message": f"Speed set to {sim.speed}"}
    if cmd_type == "set_flags":
        try:
            request = FlagsRequest.model_validate(data)
        except ValidationError:
            return {"success": False, "message": "Invalid flag values"}
        flags = sim.set_flags(
            noise_enabled=request.noise_enabled, colorful_mode=request.colorful_mode
        )
        return {
            "success": True,
            "message": "Flags updated",
            "flags": {"noise_enabled": flags.noise_enabled, "colorful_mode": flags.colorful_mode},
        }
    if cmd_type == "reset":
        sim.reset()
        return {"success": True, "message": "Scene reset"}
    return {"success": False, "message": f"Unknown command: {cmd_type}"}


@app.websocket("/ws/control")
async def websocket_control(websocket: WebSocket) -> None:
    """Receive control commands and reply to each one."""
    await manager.connect("control", websocket)
    sim = get_sim_state()

    try:
        while True:
            data = await websocket.receive_json()
            await websocket.send_json(handle_control_command(sim, data))
    except WebSocketDisconnect:
        manager.disconnect("control", websocket)
    except Exception as e:
        logger.error("Control WebSocket error: %s", str(e))
        manager.disconnect("control", websocket)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
