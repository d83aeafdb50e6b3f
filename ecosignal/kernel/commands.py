from abc import ABC, abstractmethod
from typing import Any
from ecosignal.domain.models import Direction

class Command(ABC):
    @abstractmethod
    def execute(self, kernel: Any):
        pass

class SpawnVehicleCommand(Command):
    def __init__(self, direction: Direction):
        self.direction = direction

    def execute(self, kernel: Any):
        return kernel.spawn_vehicle(self.direction)

class SpawnRandomVehicleCommand(Command):
    def execute(self, kernel: Any):
        return kernel.spawn_random_vehicle()

class TogglePauseCommand(Command):
    def execute(self, kernel: Any):
        return kernel.toggle_pause()

class ToggleAutoSpawnCommand(Command):
    def execute(self, kernel: Any):
        return kernel.toggle_auto_spawn()

class SetWeatherCommand(Command):
    def __init__(self, mode: str):
        self.mode = mode

    def execute(self, kernel: Any):
        kernel.set_weather(self.mode)

class ResetCommand(Command):
    def execute(self, kernel: Any):
        kernel.reset()
