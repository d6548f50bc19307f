from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple, Union

from .chance import NUM_PLAYERS
from .world import AgentState, CellValue, Coord, Grid, Orientation, WorldState, step_coord

CELL_CHARS: Dict[str, CellValue] = {
    ".": CellValue.EMPTY,
    "#": CellValue.WALL,
    "b": CellValue.SMALL_BOX,
    "B": CellValue.BIG_BOX,
    "G": CellValue.GOAL,
}
AGENT_CHARS: Dict[str, Orientation] = {
    "^": Orientation.NORTH,
    ">": Orientation.EAST,
    "v": Orientation.SOUTH,
    "<": Orientation.WEST,
}


@dataclass
class LayoutSpec:
    name: str
    description: str
    rows: Tuple[str, ...]


def layout_presets() -> Dict[str, LayoutSpec]:
    """Return the built-in arenas, keyed by name."""
    return {
        "classic": LayoutSpec(
            name="classic",
            description="8x8 arena with two small boxes and the big box; the whole top row is the goal.",
            rows=(
                "GGGGGGGG",
                "........",
                "........",
                "........",
                ".b.BB.b.",
                "........",
                "........",
                ".>....<.",
            ),
        ),
        "corridor": LayoutSpec(
            name="corridor",
            description="Walled corridor with both agents already behind the big box; two joint pushes win.",
            rows=(
                "#GG#",
                "#..#",
                "#BB#",
                "#^^#",
            ),
        ),
        "warmup": LayoutSpec(
            name="warmup",
            description="5x5 arena where small boxes sit one push from the goal row.",
            rows=(
                "GGGGG",
                ".b.b.",
                ".....",
                ".BB..",
                ".^^..",
            ),
        ),
    }


def resolve_layout(layout: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    """Accept a preset name or explicit ASCII rows."""
    if isinstance(layout, str):
        presets = layout_presets()
        if layout not in presets:
            raise ValueError(f"Unknown layout {layout!r}; choose from {sorted(presets)} or pass rows.")
        return presets[layout].rows
    return tuple(layout)


def parse_layout(rows: Sequence[str], validate: bool = True) -> WorldState:
    """Build a world from ASCII rows, checking it is playable when ``validate`` is set.

    Agents are numbered in row-major order and stand on empty floor.
    """
    rows = tuple(rows)
    if not rows or not rows[0]:
        raise ValueError("Layout must contain at least one non-empty row.")
    width = len(rows[0])
    if any(len(row) != width for row in rows):
        raise ValueError("Layout rows must all have the same length.")

    goals: List[Coord] = []
    boxes: List[Tuple[Coord, CellValue]] = []
    agents: List[AgentState] = []
    for r, row in enumerate(rows):
        for c, char in enumerate(row):
            if char in AGENT_CHARS:
                agents.append(AgentState(r, c, AGENT_CHARS[char]))
            elif char == "G":
                goals.append((r, c))
            elif char in CELL_CHARS:
                if CELL_CHARS[char] != CellValue.EMPTY:
                    boxes.append(((r, c), CELL_CHARS[char]))
            else:
                raise ValueError(f"Unknown layout character {char!r} at {(r, c)}.")
    if len(agents) != NUM_PLAYERS:
        raise ValueError(f"Layout must place exactly {NUM_PLAYERS} agents, found {len(agents)}.")

    grid = Grid(len(rows), width, goals=goals)
    for coord, value in boxes:
        grid.set_cell(coord, value)
    world = WorldState(grid=grid, agents=agents)
    if validate:
        validate_world(world)
    return world


def validate_world(world: WorldState) -> None:
    grid = world.grid
    if not grid.goals:
        raise ValueError("Layout has no goal cell.")
    box = grid.big_box_cells()
    if len(box) != 2 or _manhattan(box[0], box[1]) != 1:
        raise ValueError(f"Layout must hold one big box of two adjacent cells, found {box}.")
    if any(grid.is_goal(c) for c in box):
        raise ValueError("Big box must not start on a goal.")
    positions = [agent.position() for agent in world.agents]
    if len(set(positions)) != len(positions):
        raise ValueError("Agents must start on distinct cells.")
    for idx, coord in enumerate(positions):
        if not grid.is_open(coord):
            raise ValueError(f"Agent {idx} starts on a blocked cell {coord}.")
    if not big_box_can_reach_goal(grid):
        raise ValueError("No sequence of joint pushes brings the big box onto a goal.")


def _manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def big_box_can_reach_goal(grid: Grid) -> bool:
    """Breadth-first search over big box placements.

    A push needs floor for both agents behind the box and for the box ahead of
    it. Small boxes can be cleared away, so they are treated as floor.
    """

    def passable(coord: Coord) -> bool:
        return grid.in_bounds(coord) and grid.cell_at(coord) != CellValue.WALL

    start: FrozenSet[Coord] = frozenset(grid.big_box_cells())
    seen: Set[FrozenSet[Coord]] = {start}
    frontier = deque([start])
    while frontier:
        box = frontier.popleft()
        if any(grid.is_goal(c) for c in box):
            return True
        first, second = sorted(box)
        horizontal = first[0] == second[0]
        directions = (
            (Orientation.NORTH, Orientation.SOUTH) if horizontal else (Orientation.EAST, Orientation.WEST)
        )
        for direction in directions:
            behind = [step_coord(c, direction.turn_left().turn_left()) for c in box]
            ahead = frozenset(step_coord(c, direction) for c in box)
            if not all(passable(c) for c in behind) or not all(passable(c) for c in ahead):
                continue
            if ahead not in seen:
                seen.add(ahead)
                frontier.append(ahead)
    return False
