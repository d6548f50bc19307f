from __future__ import annotations

from typing import Dict, Union

from .layouts import AGENT_CHARS, CELL_CHARS
from .resolver import ActionKind
from .world import CellValue, Orientation, WorldState

_CELL_TO_CHAR: Dict[CellValue, str] = {value: char for char, value in CELL_CHARS.items()}
_ORIENTATION_TO_CHAR: Dict[Orientation, str] = {value: char for char, value in AGENT_CHARS.items()}


def render_world(world: WorldState) -> str:
    """Return an ASCII rendering of the world in the layout alphabet."""
    grid = world.grid
    display = [
        [_CELL_TO_CHAR[grid.cell_at((r, c))] for c in range(grid.width)] for r in range(grid.height)
    ]
    for agent in world.agents:
        display[agent.row][agent.col] = _ORIENTATION_TO_CHAR.get(agent.orientation, "?")
    return "\n".join("".join(row) for row in display)


def action_to_string(agent: int, action: Union[ActionKind, int]) -> str:
    kind = ActionKind(int(action))
    return f"agent {agent}: {kind.name.lower()}"
