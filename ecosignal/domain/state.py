from typing import List, Optional, Set
from pydantic import BaseModel, Field
from ecosignal.domain.models import Intersection, Vehicle, Metrics, DecisionTelemetry
from ecosignal.domain import config

class EpisodeState(BaseModel):
    last_observation: Optional[List[float]] = None
    last_action: Optional[int] = None
    step_count: int = 0
    episode_reward: float = 0.0
    credited_ids: Set[str] = Field(default_factory=set)
    step_emissions: float = 0.0  # Emissions since the previous decision point

class SimulationState(BaseModel):
    frame_id: int = 0
    decision_step: int = 0
    intersection: Intersection = Field(default_factory=Intersection)
    vehicles: List[Vehicle] = Field(default_factory=list)
    episode: EpisodeState = Field(default_factory=EpisodeState)
    metrics: Metrics = Field(default_factory=Metrics)
    decision: DecisionTelemetry = Field(default_factory=DecisionTelemetry)
    weather_mode: str = config.DEFAULT_WEATHER
    paused: bool = False
    auto_spawn: bool = True

    @property
    def weather(self):
        return config.WEATHER[self.weather_mode]
