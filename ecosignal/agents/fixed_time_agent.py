from typing import List, Sequence
from ecosignal.agents.base import Agent
from ecosignal.domain import config

NS_QUEUE, EW_QUEUE, ACTIVE_NS = 0, 1, 4

class FixedTimeAgent(Agent):
    """Rule-based stand-in for the learning agent.

    Keeps green while the active axis holds the longer queue and switches
    otherwise. Never explores and never learns.
    """

    def __init__(self, action_size=len(config.ACTIONS), long_extension_margin=0.25):
        super().__init__(action_size)
        self.long_extension_margin = long_extension_margin
        self.transitions = 0

    @property
    def epsilon(self) -> float:
        self._ensure_alive()
        return 0.0

    def estimate_values(self, observation: Sequence[float]) -> List[float]:
        self._ensure_alive()
        active, other = self._queues(observation)
        surplus = active - other
        # Switch / extend-short / extend-long
        return [-surplus, surplus, 2 * surplus - self.long_extension_margin]

    def select_action(self, observation: Sequence[float]) -> int:
        self._ensure_alive()
        active, other = self._queues(observation)
        if active <= other:
            return 0
        if active - other > self.long_extension_margin:
            return 2
        return 1

    def record_transition(self, prev_observation, action, reward, next_observation, done):
        self._ensure_alive()
        self.transitions += 1

    def learn_step(self):
        self._ensure_alive()
        return None

    def _queues(self, observation: Sequence[float]):
        ns, ew = observation[NS_QUEUE], observation[EW_QUEUE]
        if observation[ACTIVE_NS] >= 0.5:
            return ns, ew
        return ew, ns
