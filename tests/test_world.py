import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

from coop_box_pushing import AgentState, CellValue, Grid, Orientation, WorldState  # noqa: E402


def test_orientation_turns_wrap_modulo_four():
    assert Orientation.NORTH.turn_left() == Orientation.WEST
    assert Orientation.WEST.turn_right() == Orientation.NORTH
    heading = Orientation.SOUTH
    for _ in range(4):
        heading = heading.turn_right()
    assert heading == Orientation.SOUTH
    assert Orientation.EAST.forward_delta == (0, 1)


def test_invalid_orientation_cannot_turn_or_move():
    with pytest.raises(ValueError):
        Orientation.INVALID.turn_left()
    with pytest.raises(ValueError):
        Orientation.INVALID.forward_delta


def test_grid_bounds_and_cell_access():
    grid = Grid(2, 3, goals=[(0, 2)])
    assert grid.in_bounds((1, 2))
    assert not grid.in_bounds((2, 0))
    assert not grid.in_bounds((0, -1))
    assert grid.cell_at((0, 2)) == CellValue.GOAL
    with pytest.raises(IndexError):
        grid.cell_at((3, 0))
    with pytest.raises(IndexError):
        grid.set_cell((0, 3), CellValue.WALL)


def test_clear_restores_goal_under_a_box():
    grid = Grid(1, 2, goals=[(0, 1)])
    grid.set_cell((0, 1), CellValue.BIG_BOX)
    grid.set_cell((0, 0), CellValue.SMALL_BOX)
    assert not grid.is_open((0, 1))
    grid.clear((0, 1))
    grid.clear((0, 0))
    assert grid.cell_at((0, 1)) == CellValue.GOAL
    assert grid.cell_at((0, 0)) == CellValue.EMPTY


def test_grid_rejects_degenerate_shape():
    with pytest.raises(ValueError):
        Grid(0, 3)


def test_world_copy_is_independent():
    world = WorldState(
        grid=Grid(2, 2),
        agents=[AgentState(0, 0, Orientation.EAST), AgentState(1, 1, Orientation.NORTH)],
    )
    clone = world.copy()
    clone.agents[0].move_to((1, 0))
    clone.grid.set_cell((0, 1), CellValue.WALL)
    assert world.agents[0].position() == (0, 0)
    assert world.grid.cell_at((0, 1)) == CellValue.EMPTY
    assert world.agent_at((1, 1)) == 1
    assert world.agent_at((1, 1), ignore=1) is None
    with pytest.raises(IndexError):
        world.agent(2)
