"""Chance points of a round: who resolves first, and whether an action slips."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

import numpy as np

NUM_PLAYERS = 2


class ChanceOutcome(IntEnum):
    INITIATIVE_0 = 0
    INITIATIVE_1 = 1
    ACTION_SUCCEEDS = 2
    ACTION_SLIPS = 3


MAX_CHANCE_OUTCOMES = len(ChanceOutcome)


def initiative_outcomes() -> Dict[int, float]:
    """Uniform distribution over the agent whose move is resolved first."""
    prob = 1.0 / NUM_PLAYERS
    return {int(ChanceOutcome.INITIATIVE_0): prob, int(ChanceOutcome.INITIATIVE_1): prob}


def action_outcomes(success_prob: float) -> Dict[int, float]:
    if not 0.0 <= success_prob <= 1.0:
        raise ValueError(f"success_prob must lie in [0, 1], got {success_prob}.")
    return {
        int(ChanceOutcome.ACTION_SUCCEEDS): success_prob,
        int(ChanceOutcome.ACTION_SLIPS): 1.0 - success_prob,
    }


def _sample(outcomes: Dict[int, float], rng: np.random.Generator) -> int:
    ids = list(outcomes.keys())
    probs = np.array(list(outcomes.values()), dtype=np.float64)
    return int(ids[int(rng.choice(len(ids), p=probs))])


def sample_initiative(rng: np.random.Generator) -> int:
    return _sample(initiative_outcomes(), rng)


def sample_slip(rng: np.random.Generator, success_prob: float) -> bool:
    if success_prob >= 1.0:
        return False
    return _sample(action_outcomes(success_prob), rng) == ChanceOutcome.ACTION_SLIPS
