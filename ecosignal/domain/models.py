from enum import Enum
from typing import Dict, List
from pydantic import BaseModel, Field

class Direction(str, Enum):
    N = "N"
    S = "S"
    E = "E"
    W = "W"

class TrafficSide(str, Enum):
    NS = "NS"
    EW = "EW"

class Phase(str, Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"

class SignalState(str, Enum):
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"

class VehicleClass(str, Enum):
    STANDARD = "standard"
    HEAVY = "heavy"

SIDE_OF = {
    Direction.N: TrafficSide.NS,
    Direction.S: TrafficSide.NS,
    Direction.E: TrafficSide.EW,
    Direction.W: TrafficSide.EW,
}

class WeatherPreset(BaseModel):
    label: str
    speed: float   # Base max speed before the per-vehicle factor
    factor: float  # Severity in [0, 1], fed to the observation

class Vehicle(BaseModel):
    id: str
    x: float
    y: float
    vx: float
    vy: float
    angle: float
    direction: Direction
    vehicle_class: VehicleClass = VehicleClass.STANDARD
    length: float
    max_speed: float
    current_speed: float = 0.0
    passed: bool = False
    waiting: float = 0.0
    is_stopping: bool = False
    color: str = "#64748b"

    @property
    def is_heavy(self) -> bool:
        return self.vehicle_class == VehicleClass.HEAVY

class Intersection(BaseModel):
    active_side: TrafficSide = TrafficSide.NS
    phase: Phase = Phase.GREEN
    timer: int = 0

class Metrics(BaseModel):
    total_emissions: float = 0.0
    vehicles_passed: int = 0
    episodes: int = 0
    episode_reward: float = 0.0
    epsilon: float = 0.0
    avg_loss: float = 0.0
    reward_history: List[float] = Field(default_factory=list)

class DecisionTelemetry(BaseModel):
    action: str = "Initializing..."
    q_values: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    confidence: str = "0"
    degraded: bool = False

# API/Response Models

class IntersectionView(BaseModel):
    activeSide: TrafficSide
    phase: Phase
    nsSignal: SignalState
    ewSignal: SignalState
    timer: int

class SimulationSnapshot(BaseModel):
    frame: int
    step: int
    paused: bool
    autoSpawn: bool
    weather: str
    intersection: IntersectionView
    vehicles: List[Vehicle]
    stats: Dict[Direction, int]
    metrics: Metrics
    decision: DecisionTelemetry

class SpawnRequest(BaseModel):
    direction: Direction

class WeatherUpdate(BaseModel):
    mode: str

class ToggleResult(BaseModel):
    status: str
    enabled: bool

class SpawnResult(BaseModel):
    status: str
    direction: Direction
