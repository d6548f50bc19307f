"""Simultaneous action resolution.

A round is resolved in two phases. Turns and stays have no positional side
effects and are applied first. Forward moves are then either resolved jointly
(both agents pushing the big box together) or one at a time in initiative
order: the initiative holder moves against the round-start state and the other
agent moves against whatever the holder left behind.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import List, Optional, Sequence, Union

from .chance import NUM_PLAYERS
from .world import CellValue, Coord, Orientation, WorldState, step_coord

logger = logging.getLogger(__name__)


class ActionKind(IntEnum):
    TURN_LEFT = 0
    TURN_RIGHT = 1
    MOVE_FORWARD = 2
    STAY = 3


class ActionStatus(Enum):
    UNRESOLVED = auto()
    SUCCESS = auto()
    FAIL = auto()


@dataclass
class RoundOutcome:
    statuses: List[ActionStatus] = field(default_factory=lambda: [ActionStatus.UNRESOLVED] * NUM_PLAYERS)
    bumps: int = 0
    small_boxes_delivered: int = 0
    big_box_delivered: bool = False


def coerce_actions(actions: Sequence[Union[ActionKind, int]]) -> List[ActionKind]:
    """Validate one action per agent.

    Non-integral values raise TypeError, integers outside ActionKind raise ValueError.
    """
    if len(actions) != NUM_PLAYERS:
        raise ValueError(f"Expected {NUM_PLAYERS} actions, got {len(actions)}.")
    return [ActionKind(operator.index(action)) for action in actions]


def coerce_initiative(initiative: int) -> int:
    initiative = operator.index(initiative)
    if initiative not in range(NUM_PLAYERS):
        raise ValueError(f"Initiative must be one of 0..{NUM_PLAYERS - 1}, got {initiative}.")
    return initiative


def resolve_round(
    world: WorldState,
    actions: Sequence[Union[ActionKind, int]],
    initiative: int,
    slipped: Optional[Sequence[bool]] = None,
) -> RoundOutcome:
    """Apply both agents' actions to ``world`` in place and report what happened."""
    kinds = coerce_actions(actions)
    initiative = coerce_initiative(initiative)
    slips = [False] * NUM_PLAYERS if slipped is None else [bool(s) for s in slipped]
    if len(slips) != NUM_PLAYERS:
        raise ValueError(f"Expected {NUM_PLAYERS} slip flags, got {len(slips)}.")
    for idx in range(NUM_PLAYERS):
        if world.agent(idx).orientation == Orientation.INVALID:
            raise ValueError(f"Agent {idx} has no orientation yet.")

    outcome = RoundOutcome()
    for idx, kind in enumerate(kinds):
        agent = world.agent(idx)
        if slips[idx]:
            _settle(outcome, idx, ActionStatus.FAIL, "slipped")
        elif kind == ActionKind.TURN_LEFT:
            agent.orientation = agent.orientation.turn_left()
            _settle(outcome, idx, ActionStatus.SUCCESS)
        elif kind == ActionKind.TURN_RIGHT:
            agent.orientation = agent.orientation.turn_right()
            _settle(outcome, idx, ActionStatus.SUCCESS)
        elif kind == ActionKind.STAY:
            _settle(outcome, idx, ActionStatus.SUCCESS)

    movers = [idx for idx in range(NUM_PLAYERS) if outcome.statuses[idx] == ActionStatus.UNRESOLVED]
    if len(movers) == NUM_PLAYERS and _cooperative_push_ready(world):
        _push_big_box(world, outcome)
    else:
        for idx in (initiative, 1 - initiative):
            if idx in movers:
                _move_forward(world, idx, outcome)
    return outcome


def _settle(outcome: RoundOutcome, idx: int, status: ActionStatus, reason: str = "") -> None:
    if outcome.statuses[idx] != ActionStatus.UNRESOLVED:
        raise RuntimeError(f"Action of agent {idx} already resolved this round.")
    outcome.statuses[idx] = status
    if status == ActionStatus.FAIL:
        logger.debug("agent %d action failed: %s", idx, reason)


def _cooperative_push_ready(world: WorldState) -> bool:
    """Both agents face the same way and each has a distinct big box cell ahead."""
    first, second = world.agents
    if first.orientation != second.orientation:
        return False
    ahead = (first.forward(), second.forward())
    if ahead[0] == ahead[1]:
        return False
    grid = world.grid
    return all(grid.in_bounds(c) and grid.cell_at(c) == CellValue.BIG_BOX for c in ahead)


def _push_big_box(world: WorldState, outcome: RoundOutcome) -> None:
    grid = world.grid
    orientation = world.agents[0].orientation
    box = grid.big_box_cells()
    targets = [step_coord(c, orientation) for c in box]
    for target in targets:
        if target in box:
            continue
        if not grid.is_open(target) or world.agent_at(target) is not None:
            for idx in range(NUM_PLAYERS):
                _settle(outcome, idx, ActionStatus.FAIL, f"big box blocked at {target}")
            return

    for cell in box:
        grid.clear(cell)
    for target in targets:
        grid.set_cell(target, CellValue.BIG_BOX)
    for idx, agent in enumerate(world.agents):
        agent.move_to(agent.forward())
        _settle(outcome, idx, ActionStatus.SUCCESS)
    if any(grid.is_goal(target) for target in targets):
        outcome.big_box_delivered = True
        logger.info("big box pushed onto goal at %s", targets)


def _move_forward(world: WorldState, idx: int, outcome: RoundOutcome) -> None:
    grid = world.grid
    agent = world.agents[idx]
    dest: Coord = agent.forward()

    if not grid.in_bounds(dest) or grid.cell_at(dest) == CellValue.WALL:
        outcome.bumps += 1
        _settle(outcome, idx, ActionStatus.FAIL, f"bumped into wall at {dest}")
        return
    if world.agent_at(dest, ignore=idx) is not None:
        outcome.bumps += 1
        _settle(outcome, idx, ActionStatus.FAIL, f"bumped into agent at {dest}")
        return

    cell = grid.cell_at(dest)
    if cell == CellValue.BIG_BOX:
        _settle(outcome, idx, ActionStatus.FAIL, "big box needs both agents")
        return
    if cell == CellValue.SMALL_BOX:
        beyond = step_coord(dest, agent.orientation)
        if not grid.is_open(beyond) or world.agent_at(beyond) is not None:
            _settle(outcome, idx, ActionStatus.FAIL, f"small box blocked at {beyond}")
            return
        grid.clear(dest)
        if grid.is_goal(beyond):
            outcome.small_boxes_delivered += 1
        else:
            grid.set_cell(beyond, CellValue.SMALL_BOX)

    agent.move_to(dest)
    _settle(outcome, idx, ActionStatus.SUCCESS)
