import logging
import os
from typing import Optional
from ecosignal.agents.base import Agent
from ecosignal.domain.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

AGENT_KINDS = ("dqn", "fixed")

def create_agent(kind: str = "dqn", model_path: Optional[str] = None) -> Agent:
    """Build an agent, warm-starting learned weights from model_path when the file exists."""
    kind = kind.lower()
    if kind == "dqn":
        # Deferred so the rule-based agent works without loading torch
        from ecosignal.agents.dqn_agent import DQNAgent
        agent = DQNAgent()
        if model_path and os.path.exists(model_path):
            agent.load_model(model_path)
        return agent
    if kind == "fixed":
        from ecosignal.agents.fixed_time_agent import FixedTimeAgent
        return FixedTimeAgent()
    raise InvalidConfigurationError(f"Unknown agent kind '{kind}', expected one of {AGENT_KINDS}")

def save_agent(agent: Optional[Agent], model_path: Optional[str]) -> bool:
    """Persist learned weights. Agents without weights are skipped."""
    if not model_path or agent is None or agent.is_disposed:
        return False
    save_model = getattr(agent, "save_model", None)
    if save_model is None:
        logger.debug("%s has no weights to save", type(agent).__name__)
        return False
    save_model(model_path)
    return True
