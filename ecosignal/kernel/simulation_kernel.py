import logging
import random
from typing import List, Optional, Union

from ecosignal.agents.base import Agent
from ecosignal.controllers.base import Controller, DecisionOutcome
from ecosignal.controllers.decision_controller import DecisionController
from ecosignal.domain.errors import InvalidConfigurationError
from ecosignal.domain.models import (
    DecisionTelemetry, Direction, IntersectionView, Metrics, SimulationSnapshot, Vehicle
)
from ecosignal.domain.state import SimulationState
from ecosignal.kernel.command_queue import CommandQueue
from ecosignal.kernel.commands import Command
from ecosignal.kernel.snapshot_builder import SnapshotBuilder
from ecosignal.systems.signal_system import SignalSystem
from ecosignal.systems.vehicle_system import VehicleSystem
from ecosignal.domain import config

logger = logging.getLogger(__name__)

class SimulationKernel:
    """Sole owner of the simulation state.

    Two cadences drive it: run_frame() for kinematics (every rendered frame)
    and run_decision_tick() once per second for the signal timer and the
    controller. Each call applies a whole tick before returning, so callers
    never observe a half-applied frame.
    """

    def __init__(self, agent: Optional[Agent] = None, controller: Optional[Controller] = None):
        self.state = SimulationState()
        self.command_queue = CommandQueue()
        self.vehicle_system = VehicleSystem()
        self.signal_system = SignalSystem()
        self.controller = controller or DecisionController(agent, self.signal_system)
        self.snapshot_builder = SnapshotBuilder(self.signal_system)
        self.initialized = False

    @property
    def agent(self) -> Optional[Agent]:
        return getattr(self.controller, "agent", None)

    def initialize(self, seed: int = 42, weather_mode: str = config.DEFAULT_WEATHER):
        random.seed(seed)
        self.validate_weather(weather_mode)
        self.state = SimulationState(
            intersection=self.signal_system.initial_state(),
            weather_mode=weather_mode,
        )
        if self.agent is not None and not self.agent.is_disposed:
            self.state.metrics.epsilon = self.agent.epsilon
        self.command_queue.clear()
        self.initialized = True
        logger.info("Simulation kernel initialized (seed=%s, weather=%s)", seed, weather_mode)

    # Commands

    def queue_command(self, command: Command):
        self.command_queue.add(command)

    def process_commands(self):
        """Apply queued presentation-layer commands. Runs even while paused."""
        commands = self.command_queue.pop_all()
        while commands:
            cmd = commands.popleft()
            try:
                cmd.execute(self)
            except InvalidConfigurationError as e:
                logger.warning("Rejected %s: %s", type(cmd).__name__, e)

    # Ticks

    def run_tick(self, dt: float) -> float:
        if not self.initialized:
            self.initialize()
        self.process_commands()
        return self.run_frame(dt)

    def run_frame(self, dt: float) -> float:
        if not self.initialized:
            self.initialize()
        if self.state.paused:
            return 0.0
        emissions = self.vehicle_system.update(self.state, dt)
        self.state.frame_id += 1
        return emissions

    def run_decision_tick(self, learn: bool = True) -> Optional[DecisionOutcome]:
        if not self.initialized:
            self.initialize()
        if self.state.paused:
            return None
        if not self.signal_system.countdown(self.state.intersection):
            return None
        return self.controller.on_timer_expired(self.state, learn=learn)

    # Presentation-layer operations

    def spawn_vehicle(self, direction: Union[Direction, str]) -> Optional[Vehicle]:
        try:
            direction = Direction(direction)
        except ValueError:
            raise InvalidConfigurationError(f"Unknown direction '{direction}'") from None
        return self.vehicle_system.spawn(self.state, direction)

    def spawn_random_vehicle(self) -> Optional[Vehicle]:
        # A spawn queued before a pause toggle in the same frame is dropped
        if self.state.paused:
            return None
        return self.vehicle_system.spawn(self.state, random.choice(list(Direction)))

    def toggle_pause(self) -> bool:
        self.state.paused = not self.state.paused
        logger.info("Simulation %s", "paused" if self.state.paused else "resumed")
        return self.state.paused

    def toggle_auto_spawn(self) -> bool:
        self.state.auto_spawn = not self.state.auto_spawn
        return self.state.auto_spawn

    def validate_weather(self, mode: str) -> str:
        if mode not in config.WEATHER:
            raise InvalidConfigurationError(
                f"Unknown weather mode '{mode}', expected one of {sorted(config.WEATHER)}")
        return mode

    def set_weather(self, mode: str):
        self.state.weather_mode = self.validate_weather(mode)
        logger.info("Weather set to %s", mode)

    def reset(self):
        """Manual reset. Keeps the agent and the episode reward history."""
        self.signal_system.reset(self.state.intersection)
        self.state.vehicles = []
        self.controller.reset_episode(self.state)

        metrics = self.state.metrics
        metrics.total_emissions = 0.0
        metrics.vehicles_passed = 0
        metrics.episodes = 0
        metrics.episode_reward = 0.0
        metrics.avg_loss = 0.0
        if self.agent is not None and not self.agent.is_disposed:
            metrics.epsilon = self.agent.epsilon

        self.state.decision = DecisionTelemetry()
        self.state.decision_step = 0
        logger.info("Simulation reset")

    # Getters for API

    def get_snapshot(self) -> SimulationSnapshot:
        return self.snapshot_builder.build(self.state)

    def get_vehicles(self) -> List[Vehicle]:
        return self.snapshot_builder.vehicles(self.state)

    def get_intersection(self) -> IntersectionView:
        return self.snapshot_builder.intersection(self.state)

    def get_metrics(self) -> Metrics:
        return self.snapshot_builder.metrics(self.state)

    def get_decision(self) -> DecisionTelemetry:
        return self.snapshot_builder.decision(self.state)

    def shutdown(self):
        agent = self.agent
        if agent is not None and not agent.is_disposed:
            agent.shutdown()
