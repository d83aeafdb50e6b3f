from typing import AbstractSet, List
from pydantic import BaseModel, Field
from ecosignal.domain.models import Vehicle
from ecosignal.domain import config

class RewardBreakdown(BaseModel):
    reward: float
    passed_reward: float
    queue_penalty: float
    emission_penalty: float
    newly_credited: List[str] = Field(default_factory=list)
    queue_length: int = 0

def evaluate_reward(vehicles: List[Vehicle], credited_ids: AbstractSet[str], step_emissions: float) -> RewardBreakdown:
    """Score the last decision interval.

    Pure: the caller is responsible for adding `newly_credited` to the
    episode's credit set and for zeroing the emission accumulator.
    """
    newly_credited = [v.id for v in vehicles if v.passed and v.id not in credited_ids]
    queue_length = sum(1 for v in vehicles if not v.passed)

    passed_reward = config.REWARD_VEHICLE_PASSED * len(newly_credited)
    queue_penalty = config.REWARD_QUEUE_PENALTY * queue_length
    emission_penalty = config.REWARD_EMISSION_PENALTY * step_emissions

    return RewardBreakdown(
        reward=passed_reward + queue_penalty + emission_penalty,
        passed_reward=passed_reward,
        queue_penalty=queue_penalty,
        emission_penalty=emission_penalty,
        newly_credited=newly_credited,
        queue_length=queue_length,
    )
