from abc import ABC, abstractmethod
from typing import List, Sequence
from ecosignal.domain.errors import AgentDisposedError

class Agent(ABC):
    """Capability the decision controller drives.

    Any implementation (neural, tabular, rule based) can be swapped in.
    After shutdown() every call raises AgentDisposedError.
    """

    def __init__(self, action_size: int):
        self.action_size = action_size
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    @abstractmethod
    def epsilon(self) -> float:
        pass

    @abstractmethod
    def select_action(self, observation: Sequence[float]) -> int:
        pass

    @abstractmethod
    def estimate_values(self, observation: Sequence[float]) -> List[float]:
        pass

    @abstractmethod
    def record_transition(self, prev_observation: Sequence[float], action: int, reward: float,
                          next_observation: Sequence[float], done: bool):
        pass

    @abstractmethod
    def learn_step(self):
        pass

    def average_loss(self) -> float:
        self._ensure_alive()
        return 0.0

    def shutdown(self):
        self._ensure_alive()
        self._disposed = True

    def _ensure_alive(self):
        if self._disposed:
            raise AgentDisposedError(f"{type(self).__name__} has been shut down")
