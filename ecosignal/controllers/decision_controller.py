import logging
from typing import List, Optional
from ecosignal.agents.base import Agent
from ecosignal.controllers.base import Controller, DecisionOutcome
from ecosignal.domain.models import DecisionTelemetry, Phase
from ecosignal.domain.state import EpisodeState, SimulationState
from ecosignal.learning.featurizer import build_observation
from ecosignal.learning.reward import evaluate_reward
from ecosignal.systems.signal_system import SignalSystem
from ecosignal.domain import config

logger = logging.getLogger(__name__)

class DecisionController(Controller):
    """Turns an expired phase timer into the next signal phase.

    Featurises the intersection, scores the finished interval, feeds the
    transition to the agent and applies the action it picks. When the agent
    is disposed or failing the controller falls back to DEFAULT_ACTION and
    flags the decision telemetry as degraded.
    """

    def __init__(self, agent: Optional[Agent], signal_system: Optional[SignalSystem] = None):
        self.agent = agent
        self.signal_system = signal_system or SignalSystem()
        self.degraded = False
        self.learning_failed = False

    def on_timer_expired(self, state: SimulationState, learn: bool = True) -> DecisionOutcome:
        episode = state.episode
        intersection = state.intersection
        discretionary = intersection.phase == Phase.GREEN

        # 1. Perception & reward for the interval that just ended
        observation = build_observation(state.vehicles, intersection, state.weather.factor)
        breakdown = evaluate_reward(state.vehicles, episode.credited_ids, episode.step_emissions)
        episode.credited_ids.update(breakdown.newly_credited)
        episode.step_emissions = 0.0
        episode.episode_reward += breakdown.reward

        has_previous = episode.last_observation is not None and episode.last_action is not None
        done = has_previous and episode.step_count >= config.EPISODE_HORIZON

        # 2. Learning & action selection
        action = config.DEFAULT_ACTION
        q_values: List[float] = [0.0] * len(config.ACTIONS)
        epsilon = 1.0
        recorded = False
        healthy = self._agent_available()
        if healthy:
            try:
                if has_previous:
                    self.agent.record_transition(episode.last_observation, episode.last_action,
                                                 breakdown.reward, observation, done)
                    recorded = True
                    if learn:
                        self.agent.learn_step()
                        self.learning_failed = False
                # While learning is failing the default action holds; transitions are still recorded
                if discretionary and not self.learning_failed:
                    action = self._validated(self.agent.select_action(observation))
                q_values = [float(q) for q in self.agent.estimate_values(observation)]
                epsilon = self.agent.epsilon
                state.metrics.epsilon = epsilon
                state.metrics.avg_loss = self.agent.average_loss()
            except Exception:
                logger.exception("Agent call failed; holding default action")
                healthy = False
                action = config.DEFAULT_ACTION
        healthy = healthy and not self.learning_failed
        self._set_degraded(not healthy)

        archived = None
        if done:
            archived = self._archive_episode(state)

        # 3. Apply the transition
        self.signal_system.apply_action(intersection, action)
        episode.last_observation = observation
        episode.last_action = action
        episode.step_count += 1
        state.decision_step += 1
        state.metrics.episode_reward = episode.episode_reward

        state.decision = DecisionTelemetry(
            action=config.ACTIONS[action],
            q_values=q_values,
            confidence=f"{(1 - epsilon) * 100:.0f}" if healthy else "0",
            degraded=not healthy,
        )

        return DecisionOutcome(
            action=action,
            reward=breakdown.reward,
            observation=observation,
            transition_recorded=recorded,
            done=done,
            degraded=not healthy,
            archived_reward=archived,
        )

    def note_learning_failure(self):
        """A deferred learn step failed. Decisions stay degraded until one succeeds."""
        self.learning_failed = True
        self._set_degraded(True)

    def note_learning_success(self):
        self.learning_failed = False

    def reset_episode(self, state: SimulationState):
        state.episode = EpisodeState()
        state.metrics.episode_reward = 0.0

    def _archive_episode(self, state: SimulationState) -> float:
        episode = state.episode
        reward = episode.episode_reward
        history = state.metrics.reward_history
        history.append(reward)
        if len(history) > config.REWARD_HISTORY_SIZE:
            del history[:len(history) - config.REWARD_HISTORY_SIZE]
        state.metrics.episodes += 1
        logger.info("Episode %d finished with reward %.2f", state.metrics.episodes, reward)

        episode.episode_reward = 0.0
        episode.step_count = 0
        episode.credited_ids.clear()
        return reward

    def _agent_available(self) -> bool:
        return self.agent is not None and not self.agent.is_disposed

    def _validated(self, action) -> int:
        action = int(action)
        if not 0 <= action < len(config.ACTIONS):
            raise ValueError(f"Agent returned out-of-range action {action}")
        return action

    def _set_degraded(self, degraded: bool):
        if degraded and not self.degraded:
            logger.warning("Decision loop entering degraded mode (default action %d)", config.DEFAULT_ACTION)
        elif not degraded and self.degraded:
            logger.info("Decision loop recovered from degraded mode")
        self.degraded = degraded
