from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .chance import (
    MAX_CHANCE_OUTCOMES,
    NUM_PLAYERS,
    action_outcomes,
    initiative_outcomes,
    sample_initiative,
    sample_slip,
)
from .layouts import parse_layout, resolve_layout
from .observation import encode_observation, observation_shape
from .renderer import action_to_string, render_world
from .resolver import ActionKind, ActionStatus, RoundOutcome, coerce_actions, coerce_initiative, resolve_round
from .rewards import RewardConfig, episode_over, max_utility, min_utility, round_reward
from .world import CellValue, Orientation, WorldState

logger = logging.getLogger(__name__)


@dataclass
class EnvConfig:
    horizon: int = 100
    layout: Union[str, Tuple[str, ...]] = "classic"  # preset name or ASCII rows
    view_radius: int = 1  # visual window is (2*view_radius + 1) squared
    action_success_prob: float = 1.0  # below 1.0 an action may slip and do nothing
    random_orientations: bool = False
    seed: Optional[int] = None
    reward: RewardConfig = field(default_factory=lambda: RewardConfig())


@dataclass
class EpisodeState:
    world: WorldState
    horizon: int
    total_moves: int = 0
    total_reward: float = 0.0
    initiative: int = 0
    win: bool = False
    last_reward: float = 0.0
    last_actions: List[Optional[ActionKind]] = field(default_factory=lambda: [None] * NUM_PLAYERS)
    last_statuses: List[ActionStatus] = field(default_factory=lambda: [ActionStatus.UNRESOLVED] * NUM_PLAYERS)

    def is_terminal(self) -> bool:
        return episode_over(self.total_moves, self.horizon, self.win)


class CoopBoxPushingEnv:
    """Two-agent cooperative box pushing with simultaneous moves.

    ``apply_round`` is the deterministic core: the caller supplies the chance
    draws. ``step`` draws them from the environment's own generator and returns
    Gymnasium-style dictionaries keyed by agent index.
    """

    def __init__(self, config: Optional[EnvConfig] = None):
        self.config = config or EnvConfig()
        self._validate_config()
        self.rng = np.random.default_rng(self.config.seed)
        self.layout_rows = resolve_layout(self.config.layout)
        self._initial_world = parse_layout(self.layout_rows)
        self.episode: Optional[EpisodeState] = None

    @property
    def world(self) -> WorldState:
        return self._require_episode().world

    def reset(self) -> Dict[int, np.ndarray]:
        world = self._initial_world.copy()
        if self.config.random_orientations:
            for agent in world.agents:
                agent.orientation = Orientation(int(self.rng.integers(0, 4)))
        self.episode = EpisodeState(world=world, horizon=self.config.horizon)
        logger.info(
            "episode reset: layout=%dx%d horizon=%d orientations=%s",
            world.grid.height,
            world.grid.width,
            self.config.horizon,
            [a.orientation.name for a in world.agents],
        )
        return self._build_observations()

    def apply_round(
        self,
        actions: Sequence[Union[ActionKind, int]],
        initiative: int,
        slipped: Optional[Sequence[bool]] = None,
    ) -> RoundOutcome:
        """Resolve one simultaneous round with the given chance draws."""
        episode = self._require_episode()
        if episode.is_terminal():
            raise RuntimeError("Episode is terminal; call reset() first.")
        kinds = coerce_actions(actions)
        initiative = coerce_initiative(initiative)
        outcome = resolve_round(episode.world, kinds, initiative, slipped)
        reward = round_reward(outcome, self.config.reward)

        episode.total_moves += 1
        episode.initiative = initiative
        episode.last_actions = list(kinds)
        episode.last_statuses = list(outcome.statuses)
        episode.last_reward = reward
        episode.total_reward += reward
        if outcome.big_box_delivered:
            episode.win = True
            logger.info("big box delivered after %d rounds, return=%.3f", episode.total_moves, episode.total_reward)
        elif episode.is_terminal():
            logger.info("horizon reached without delivery, return=%.3f", episode.total_reward)
        return outcome

    def step(
        self, actions: Mapping[int, Union[ActionKind, int]]
    ) -> Tuple[Dict[int, np.ndarray], Dict[int, float], Dict[Union[int, str], bool], Dict[int, Dict]]:
        self._require_episode()
        ordered = [actions[idx] for idx in range(NUM_PLAYERS)]
        initiative = sample_initiative(self.rng)
        slipped = [sample_slip(self.rng, self.config.action_success_prob) for _ in range(NUM_PLAYERS)]
        outcome = self.apply_round(ordered, initiative, slipped)

        observations = self._build_observations()
        rewards = dict(enumerate(self.rewards()))
        done = self.is_terminal()
        dones: Dict[Union[int, str], bool] = {idx: done for idx in range(NUM_PLAYERS)}
        dones["__all__"] = done
        infos = {
            idx: {
                "status": outcome.statuses[idx].name,
                "slipped": slipped[idx],
                "initiative": initiative,
                "win": self.episode.win,
            }
            for idx in range(NUM_PLAYERS)
        }
        return observations, rewards, dones, infos

    # Host-facing queries -------------------------------------------------
    def is_terminal(self) -> bool:
        return self._require_episode().is_terminal()

    def returns(self) -> List[float]:
        return [self._require_episode().total_reward] * NUM_PLAYERS

    def rewards(self) -> List[float]:
        return [self._require_episode().last_reward] * NUM_PLAYERS

    def legal_actions(self, agent: int) -> List[ActionKind]:
        self._check_agent(agent)
        return list(ActionKind)

    def information_state_vector(self, agent: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        self._check_agent(agent)
        acting = [not self.is_terminal()] * NUM_PLAYERS
        return encode_observation(self.world, agent, self.config.view_radius, acting=acting, out=out)

    def information_state_string(self, agent: int) -> str:
        self._check_agent(agent)
        return f"Observing player: {agent}\n{self.to_string()}"

    def observation_shape(self) -> Tuple[int]:
        return observation_shape(self.config.view_radius)

    def chance_outcomes(self) -> Dict[int, float]:
        return initiative_outcomes()

    def action_outcomes(self) -> Dict[int, float]:
        return action_outcomes(self.config.action_success_prob)

    def action_to_string(self, agent: int, action: Union[ActionKind, int]) -> str:
        self._check_agent(agent)
        return action_to_string(agent, action)

    def to_string(self) -> str:
        episode = self._require_episode()
        return (
            f"Total moves: {episode.total_moves}\n"
            f"Most recent reward: {episode.last_reward}\n"
            f"Total rewards: {episode.total_reward}\n"
            f"{render_world(episode.world)}\n"
        )

    # Game-level bounds ---------------------------------------------------
    def num_players(self) -> int:
        return NUM_PLAYERS

    def num_distinct_actions(self) -> int:
        return len(ActionKind)

    def max_chance_outcomes(self) -> int:
        return MAX_CHANCE_OUTCOMES

    def max_game_length(self) -> int:
        return self.config.horizon

    def min_utility(self) -> float:
        return min_utility(self.config.reward, self.config.horizon, NUM_PLAYERS)

    def max_utility(self) -> float:
        small_boxes = len(self._initial_world.grid.cells_with(CellValue.SMALL_BOX))
        return max_utility(self.config.reward, small_boxes)

    # Internal helpers
    def _build_observations(self) -> Dict[int, np.ndarray]:
        return {idx: self.information_state_vector(idx) for idx in range(NUM_PLAYERS)}

    def _require_episode(self) -> EpisodeState:
        if self.episode is None:
            raise RuntimeError("Environment not reset.")
        return self.episode

    def _check_agent(self, agent: int) -> None:
        if not 0 <= agent < NUM_PLAYERS:
            raise IndexError(f"Agent index {agent} out of range for {NUM_PLAYERS} agents.")

    def _validate_config(self) -> None:
        """Reject configurations that cannot produce a meaningful episode."""
        cfg = self.config
        if cfg.horizon <= 0:
            raise ValueError(f"horizon must be positive, got {cfg.horizon}.")
        if cfg.view_radius < 0:
            raise ValueError(f"view_radius must be non-negative, got {cfg.view_radius}.")
        if not 0.0 < cfg.action_success_prob <= 1.0:
            raise ValueError(f"action_success_prob must lie in (0, 1], got {cfg.action_success_prob}.")
        cfg.reward.validate(cfg.horizon)
