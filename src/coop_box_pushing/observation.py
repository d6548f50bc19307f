from __future__ import annotations

from enum import IntEnum
from typing import Optional, Sequence, Tuple

import numpy as np

from .chance import NUM_PLAYERS
from .world import CellValue, Orientation, WorldState


class ObservedCell(IntEnum):
    """What an agent can tell about a cell. The first five mirror CellValue."""

    EMPTY = int(CellValue.EMPTY)
    WALL = int(CellValue.WALL)
    SMALL_BOX = int(CellValue.SMALL_BOX)
    BIG_BOX = int(CellValue.BIG_BOX)
    GOAL = int(CellValue.GOAL)
    OTHER_AGENT = 5


NUM_CELL_CHANNELS = len(ObservedCell)
NUM_ORIENTATIONS = 4


def window_size(view_radius: int) -> int:
    if view_radius < 0:
        raise ValueError(f"view_radius must be non-negative, got {view_radius}.")
    return 2 * view_radius + 1


def observation_size(view_radius: int) -> int:
    size = window_size(view_radius)
    return NUM_CELL_CHANNELS * size * size + NUM_ORIENTATIONS + NUM_PLAYERS


def observation_shape(view_radius: int) -> Tuple[int]:
    return (observation_size(view_radius),)


def build_view(world: WorldState, agent_index: int, view_radius: int) -> np.ndarray:
    """Return the agent-centred window rotated so the agent faces the top row.

    Cells outside the grid read as walls.
    """
    agent = world.agent(agent_index)
    if agent.orientation == Orientation.INVALID:
        raise ValueError(f"Agent {agent_index} has no orientation yet.")
    r = view_radius
    size = window_size(r)
    window = np.full((size, size), int(ObservedCell.WALL), dtype=np.int8)
    for dr in range(-r, r + 1):
        for dc in range(-r, r + 1):
            coord = (agent.row + dr, agent.col + dc)
            if not world.grid.in_bounds(coord):
                continue
            if world.agent_at(coord, ignore=agent_index) is not None:
                window[r + dr, r + dc] = int(ObservedCell.OTHER_AGENT)
            else:
                window[r + dr, r + dc] = int(world.grid.cell_at(coord))
    # np.rot90 turns counter-clockwise, so facing east needs one turn to bring
    # the right-hand column to the top.
    return np.rot90(window, k=int(agent.orientation))


def encode_observation(
    world: WorldState,
    agent_index: int,
    view_radius: int = 1,
    acting: Sequence[bool] = (True, True),
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Flatten an agent's view into a fixed-length float64 vector.

    Layout:
      - one-hot cell planes, channels-first (6 x window x window)
      - own orientation one-hot (4)
      - to-move marker, one entry per agent (2)
    """
    length = observation_size(view_radius)
    if out is None:
        out = np.zeros((length,), dtype=np.float64)
    elif out.shape != (length,):
        raise ValueError(f"Output buffer must have shape ({length},), got {out.shape}.")
    else:
        out.fill(0.0)
    if len(acting) != NUM_PLAYERS:
        raise ValueError(f"Expected {NUM_PLAYERS} to-move flags, got {len(acting)}.")

    view = build_view(world, agent_index, view_radius)
    planes = (view[None, :, :] == np.arange(NUM_CELL_CHANNELS)[:, None, None]).astype(np.float64)
    offset = planes.size
    out[:offset] = planes.ravel()
    out[offset + int(world.agent(agent_index).orientation)] = 1.0
    offset += NUM_ORIENTATIONS
    out[offset : offset + NUM_PLAYERS] = [1.0 if flag else 0.0 for flag in acting]
    return out
