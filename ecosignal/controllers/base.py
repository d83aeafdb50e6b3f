from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel
from ecosignal.domain.state import SimulationState

class DecisionOutcome(BaseModel):
    action: int
    reward: float
    observation: List[float]
    transition_recorded: bool = False
    done: bool = False
    degraded: bool = False
    archived_reward: Optional[float] = None

class Controller(ABC):
    @abstractmethod
    def on_timer_expired(self, state: SimulationState, learn: bool = True) -> DecisionOutcome:
        pass

    @abstractmethod
    def reset_episode(self, state: SimulationState):
        pass

    def note_learning_failure(self):
        pass

    def note_learning_success(self):
        pass
