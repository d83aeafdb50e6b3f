import copy
import logging
import random
import threading
from collections import deque
from typing import List, Sequence

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
import torch.optim as optim

from ecosignal.agents.base import Agent
from ecosignal.domain import config

logger = logging.getLogger(__name__)

# Define the DQN Model
class DQN(nn.Module):
    def __init__(self, input_dim, output_dim, hidden_dim=64):
        super().__init__()
        self.fc1 = nn.Linear(input_dim, hidden_dim)
        self.fc2 = nn.Linear(hidden_dim, hidden_dim)
        self.fc3 = nn.Linear(hidden_dim, output_dim)

    def forward(self, x):
        x = F.relu(self.fc1(x))
        x = F.relu(self.fc2(x))
        return self.fc3(x)

# Define the DQN Agent
class DQNAgent(Agent):
    """Epsilon-greedy DQN with replay memory and a target network.

    learn_step() may run on a worker thread. Acting reads `policy`, a copy of
    the online network refreshed after each update, so action selection
    never waits for a training pass to finish.
    """

    def __init__(self, state_size=config.OBSERVATION_SIZE, action_size=len(config.ACTIONS),
                 gamma=config.GAMMA, lr=config.LEARNING_RATE, batch_size=config.BATCH_SIZE,
                 memory_size=config.MEMORY_SIZE, target_update_every=config.TARGET_UPDATE_EVERY):
        super().__init__(action_size)
        self.state_size = state_size
        self.gamma = gamma
        self.lr = lr
        self.batch_size = batch_size
        self.target_update_every = target_update_every
        self.memory = deque(maxlen=memory_size)
        self.losses = deque(maxlen=config.LOSS_WINDOW)
        self.learn_steps = 0

        # Exploration parameters
        self._epsilon = config.INITIAL_EPSILON
        self.epsilon_min = config.EPSILON_MIN
        self.epsilon_decay = config.EPSILON_DECAY

        self.model = DQN(state_size, action_size)
        self.target_model = DQN(state_size, action_size)
        self.policy = copy.deepcopy(self.model)
        self.optimizer = optim.Adam(self.model.parameters(), lr=self.lr)
        self.update_target_model()

        self._memory_lock = threading.Lock()
        self._policy_lock = threading.Lock()
        self._train_lock = threading.Lock()

    @property
    def epsilon(self) -> float:
        self._ensure_alive()
        return self._epsilon

    def update_target_model(self):
        """Copies weights from the model to the target model"""
        self.target_model.load_state_dict(self.model.state_dict())

    def record_transition(self, prev_observation, action, reward, next_observation, done):
        """Stores experience in memory"""
        self._ensure_alive()
        with self._memory_lock:
            self.memory.append((list(prev_observation), int(action), float(reward),
                                list(next_observation), bool(done)))

    def select_action(self, observation: Sequence[float]) -> int:
        """Epsilon-greedy action selection"""
        self._ensure_alive()
        if random.uniform(0, 1) < self._epsilon:
            return random.randrange(self.action_size)  # Explore
        q_values = self.estimate_values(observation)
        return int(np.argmax(q_values))  # Exploit

    def estimate_values(self, observation: Sequence[float]) -> List[float]:
        self._ensure_alive()
        state = torch.tensor(np.asarray(observation, dtype=np.float32)).unsqueeze(0)
        with self._policy_lock, torch.no_grad():
            q_values = self.policy(state)
        return q_values.squeeze(0).tolist()

    def learn_step(self):
        """Trains the online network on one sampled minibatch"""
        self._ensure_alive()
        with self._train_lock:
            with self._memory_lock:
                if len(self.memory) < self.batch_size:
                    return None
                batch = random.sample(list(self.memory), self.batch_size)

            states, actions, rewards, next_states, dones = zip(*batch)
            states = torch.tensor(np.asarray(states, dtype=np.float32))
            next_states = torch.tensor(np.asarray(next_states, dtype=np.float32))
            actions = torch.tensor(actions, dtype=torch.long)
            rewards = torch.tensor(rewards, dtype=torch.float32)
            dones = torch.tensor(dones, dtype=torch.float32)

            q_values = self.model(states).gather(1, actions.unsqueeze(1)).squeeze(1)
            with torch.no_grad():
                next_q_values = self.target_model(next_states).max(1).values
            target_q_values = rewards + (1 - dones) * self.gamma * next_q_values

            loss = F.mse_loss(q_values, target_q_values)
            self.optimizer.zero_grad()
            loss.backward()
            self.optimizer.step()

            self.learn_steps += 1
            if self.learn_steps % self.target_update_every == 0:
                self.update_target_model()

            with self._policy_lock:
                self.policy.load_state_dict(self.model.state_dict())

            self.losses.append(loss.item())
            self._epsilon = max(self._epsilon * self.epsilon_decay, self.epsilon_min)
            return loss.item()

    def average_loss(self) -> float:
        self._ensure_alive()
        if not self.losses:
            return 0.0
        return float(np.mean(self.losses))

    def save_model(self, model_path: str):
        self._ensure_alive()
        torch.save(self.model.state_dict(), model_path)
        logger.info("Model saved to %s", model_path)

    def load_model(self, model_path: str):
        """Loads trained weights from a file."""
        self._ensure_alive()
        self.model.load_state_dict(torch.load(model_path, map_location=torch.device('cpu')))
        self.update_target_model()
        with self._policy_lock:
            self.policy.load_state_dict(self.model.state_dict())
        logger.info("Model loaded from %s", model_path)

    def shutdown(self):
        super().shutdown()
        with self._memory_lock:
            self.memory.clear()
        logger.info("DQN agent shut down after %d learn steps", self.learn_steps)
