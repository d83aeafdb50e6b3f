import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import List

from ecosignal.agents.factory import create_agent, save_agent
from ecosignal.domain.errors import InvalidConfigurationError
from ecosignal.domain.models import (
    DecisionTelemetry, IntersectionView, Metrics, SimulationSnapshot, SpawnRequest,
    SpawnResult, ToggleResult, Vehicle, WeatherUpdate
)
from ecosignal.kernel.commands import (
    ResetCommand, SetWeatherCommand, SpawnVehicleCommand, ToggleAutoSpawnCommand, TogglePauseCommand
)
from ecosignal.kernel.runtime import SimulationRuntime
from ecosignal.kernel.simulation_kernel import SimulationKernel
from ecosignal.logging_setup import setup_logging
from ecosignal.domain import config

SEED = int(os.environ.get("ECOSIGNAL_SEED", "42"))
WEATHER_MODE = os.environ.get("ECOSIGNAL_WEATHER", config.DEFAULT_WEATHER)
AGENT_KIND = os.environ.get("ECOSIGNAL_AGENT", "dqn")
LOG_LEVEL = os.environ.get("ECOSIGNAL_LOG_LEVEL", "INFO")
MODEL_PATH = os.environ.get("ECOSIGNAL_MODEL_PATH")

def create_app(kernel: SimulationKernel = None, start_runtime: bool = True) -> FastAPI:
    if kernel is None:
        kernel = SimulationKernel(agent=create_agent(AGENT_KIND, MODEL_PATH))
    runtime = SimulationRuntime(kernel)

    # Background tasks for the simulation loops
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: Initialize the kernel and start the loops
        if not kernel.initialized:
            kernel.initialize(seed=SEED, weather_mode=WEATHER_MODE)
        if start_runtime:
            runtime.start()
        yield
        # Shutdown
        await runtime.stop()
        save_agent(kernel.agent, MODEL_PATH)
        kernel.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.state.kernel = kernel
    app.state.runtime = runtime

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/state", response_model=SimulationSnapshot)
    async def get_state():
        """Returns a full snapshot of the simulation"""
        return kernel.get_snapshot()

    @app.get("/api/vehicles", response_model=List[Vehicle])
    async def get_vehicles():
        return kernel.get_vehicles()

    @app.get("/api/intersection", response_model=IntersectionView)
    async def get_intersection():
        """Returns the signal state; the timer never reads below zero"""
        return kernel.get_intersection()

    @app.get("/api/metrics", response_model=Metrics)
    async def get_metrics():
        return kernel.get_metrics()

    @app.get("/api/decision", response_model=DecisionTelemetry)
    async def get_decision():
        """Returns the latest controller decision"""
        return kernel.get_decision()

    @app.post("/api/vehicles/spawn", response_model=SpawnResult)
    async def spawn_vehicle(request: SpawnRequest):
        """Queues a spawn at the entry point of one approach"""
        kernel.queue_command(SpawnVehicleCommand(request.direction))
        return {"status": "Spawn queued", "direction": request.direction}

    @app.post("/api/pause", response_model=ToggleResult)
    async def toggle_pause():
        kernel.queue_command(TogglePauseCommand())
        return {"status": "Pause toggle queued", "enabled": not kernel.state.paused}

    @app.post("/api/autospawn", response_model=ToggleResult)
    async def toggle_auto_spawn():
        kernel.queue_command(ToggleAutoSpawnCommand())
        return {"status": "Autospawn toggle queued", "enabled": not kernel.state.auto_spawn}

    @app.post("/api/weather")
    async def set_weather(update: WeatherUpdate):
        """Changes the weather preset used for newly spawned vehicles"""
        try:
            kernel.validate_weather(update.mode)
        except InvalidConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        kernel.queue_command(SetWeatherCommand(update.mode))
        return {"status": "Weather update queued", "mode": update.mode}

    @app.post("/api/reset")
    async def reset():
        kernel.queue_command(ResetCommand())
        return {"status": "Reset queued"}

    @app.get("/")
    def read_root():
        return {"status": "EcoSignal RL Intersection Running"}

    return app

def main():
    import uvicorn
    setup_logging(LOG_LEVEL)
    uvicorn.run(create_app(), host=os.environ.get("ECOSIGNAL_HOST", "127.0.0.1"),
                port=int(os.environ.get("ECOSIGNAL_PORT", "8001")))

if __name__ == "__main__":
    main()
