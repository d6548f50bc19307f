from __future__ import annotations

from dataclasses import dataclass

from .resolver import RoundOutcome


@dataclass
class RewardConfig:
    step_penalty: float = -0.1
    bump_penalty: float = -5.0
    small_box_reward: float = 10.0
    big_box_reward: float = 100.0

    def validate(self, horizon: int) -> None:
        """Reject reward shapes under which stalling could beat reaching the goal."""
        if self.step_penalty >= 0:
            raise ValueError(f"step_penalty must be strictly negative, got {self.step_penalty}.")
        if self.bump_penalty > 0:
            raise ValueError(f"bump_penalty must not be positive, got {self.bump_penalty}.")
        if self.small_box_reward < 0:
            raise ValueError(f"small_box_reward must not be negative, got {self.small_box_reward}.")
        if self.big_box_reward <= horizon * abs(self.step_penalty):
            raise ValueError(
                f"big_box_reward ({self.big_box_reward}) must exceed the step penalties of a full "
                f"horizon ({horizon} x {abs(self.step_penalty)})."
            )


def round_reward(outcome: RoundOutcome, config: RewardConfig) -> float:
    """Shared team reward for one resolved round."""
    reward = config.step_penalty
    reward += config.bump_penalty * outcome.bumps
    reward += config.small_box_reward * outcome.small_boxes_delivered
    if outcome.big_box_delivered:
        reward += config.big_box_reward
    return reward


def episode_over(total_moves: int, horizon: int, win: bool) -> bool:
    return win or total_moves >= horizon


def min_utility(config: RewardConfig, horizon: int, num_agents: int = 2) -> float:
    """Every round costs a step and every agent bumps into something."""
    return horizon * (config.step_penalty + num_agents * config.bump_penalty)


def max_utility(config: RewardConfig, num_small_boxes: int) -> float:
    """Every small box delivered and the big box delivered, paying at least one step."""
    return config.step_penalty + num_small_boxes * config.small_box_reward + config.big_box_reward
