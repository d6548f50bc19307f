from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import FrozenSet, Iterable, List, Optional, Tuple

import numpy as np

Coord = Tuple[int, int]


class CellValue(IntEnum):
    EMPTY = 0
    WALL = 1
    SMALL_BOX = 2
    BIG_BOX = 3
    GOAL = 4


class Orientation(IntEnum):
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3
    INVALID = 4

    def _rotate(self, steps: int) -> "Orientation":
        if self == Orientation.INVALID:
            raise ValueError("Cannot rotate an uninitialized orientation.")
        return Orientation((int(self) + steps) % 4)

    def turn_left(self) -> "Orientation":
        return self._rotate(-1)

    def turn_right(self) -> "Orientation":
        return self._rotate(1)

    @property
    def forward_delta(self) -> Tuple[int, int]:
        if self == Orientation.NORTH:
            return (-1, 0)
        if self == Orientation.SOUTH:
            return (1, 0)
        if self == Orientation.EAST:
            return (0, 1)
        if self == Orientation.WEST:
            return (0, -1)
        raise ValueError("Uninitialized orientation has no forward direction.")


def step_coord(coord: Coord, orientation: Orientation) -> Coord:
    dr, dc = orientation.forward_delta
    return (coord[0] + dr, coord[1] + dc)


@dataclass
class AgentState:
    row: int
    col: int
    orientation: Orientation = Orientation.INVALID

    def position(self) -> Coord:
        return (self.row, self.col)

    def forward(self) -> Coord:
        return step_coord(self.position(), self.orientation)

    def move_to(self, coord: Coord) -> None:
        self.row, self.col = coord


class Grid:
    """Fixed-shape cell map. Goal coordinates survive boxes passing over them."""

    def __init__(self, height: int, width: int, goals: Iterable[Coord] = ()):
        if height <= 0 or width <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {height}x{width}.")
        self.height = height
        self.width = width
        self.cells = np.full((height, width), int(CellValue.EMPTY), dtype=np.int8)
        self.goals: FrozenSet[Coord] = frozenset(goals)
        for coord in self.goals:
            self._check(coord)
            self.cells[coord] = int(CellValue.GOAL)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def in_bounds(self, coord: Coord) -> bool:
        row, col = coord
        return 0 <= row < self.height and 0 <= col < self.width

    def _check(self, coord: Coord) -> None:
        if not self.in_bounds(coord):
            raise IndexError(f"Coordinate {coord} outside {self.height}x{self.width} grid.")

    def cell_at(self, coord: Coord) -> CellValue:
        self._check(coord)
        return CellValue(int(self.cells[coord]))

    def set_cell(self, coord: Coord, value: CellValue) -> None:
        self._check(coord)
        self.cells[coord] = int(CellValue(value))

    def clear(self, coord: Coord) -> None:
        """Reset a cell to its static background (goal or empty floor)."""
        self.set_cell(coord, CellValue.GOAL if coord in self.goals else CellValue.EMPTY)

    def is_open(self, coord: Coord) -> bool:
        """True for in-bounds floor that neither blocks nor holds a box."""
        if not self.in_bounds(coord):
            return False
        return self.cell_at(coord) in (CellValue.EMPTY, CellValue.GOAL)

    def is_goal(self, coord: Coord) -> bool:
        return coord in self.goals

    def cells_with(self, value: CellValue) -> List[Coord]:
        rows, cols = np.nonzero(self.cells == int(value))
        return [(int(r), int(c)) for r, c in zip(rows, cols)]

    def big_box_cells(self) -> List[Coord]:
        return self.cells_with(CellValue.BIG_BOX)

    def copy(self) -> "Grid":
        clone = Grid.__new__(Grid)
        clone.height = self.height
        clone.width = self.width
        clone.cells = self.cells.copy()
        clone.goals = self.goals
        return clone


@dataclass
class WorldState:
    grid: Grid
    agents: List[AgentState]

    def agent(self, index: int) -> AgentState:
        if not 0 <= index < len(self.agents):
            raise IndexError(f"Agent index {index} out of range for {len(self.agents)} agents.")
        return self.agents[index]

    def agent_at(self, coord: Coord, ignore: Optional[int] = None) -> Optional[int]:
        for idx, agent in enumerate(self.agents):
            if idx == ignore:
                continue
            if agent.position() == coord:
                return idx
        return None

    def copy(self) -> "WorldState":
        return WorldState(
            grid=self.grid.copy(),
            agents=[AgentState(a.row, a.col, a.orientation) for a in self.agents],
        )
