import pathlib
import sys

import numpy as np
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

from coop_box_pushing import ActionKind, ActionStatus, CoopBoxPushingEnv, EnvConfig, Orientation, RewardConfig  # noqa: E402

MF = ActionKind.MOVE_FORWARD


def test_env_reset_and_step_shapes():
    cfg = EnvConfig(layout="classic", view_radius=2, horizon=10, seed=0)
    env = CoopBoxPushingEnv(config=cfg)
    obs = env.reset()
    assert set(obs) == {0, 1}
    for vec in obs.values():
        assert vec.shape == env.observation_shape()

    next_obs, rewards, dones, infos = env.step({0: ActionKind.STAY, 1: ActionKind.TURN_LEFT})
    assert set(next_obs) == set(obs)
    assert rewards[0] == rewards[1] == pytest.approx(-0.1)
    assert "__all__" in dones and not dones["__all__"]
    assert infos[1]["status"] == "SUCCESS"


def test_box_pushed_onto_goal_wins_in_the_same_round():
    rows = ("GGG", ".BB", ".^^")
    env = CoopBoxPushingEnv(config=EnvConfig(layout=rows, horizon=10))
    env.reset()
    rounds = 0
    while not env.episode.win:
        env.apply_round([MF, MF], initiative=rounds % 2)
        rounds += 1
        assert rounds <= 2
    assert env.is_terminal()
    assert env.episode.last_statuses == [ActionStatus.SUCCESS, ActionStatus.SUCCESS]
    expected = -0.1 * rounds + 100.0
    assert env.returns() == pytest.approx([expected, expected])
    assert env.rewards() == pytest.approx([expected, expected])

    with pytest.raises(RuntimeError):
        env.apply_round([MF, MF], initiative=0)
    assert env.returns()[0] == pytest.approx(expected)


def test_corridor_needs_two_joint_pushes():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="corridor"))
    env.reset()
    env.apply_round([MF, MF], initiative=0)
    assert not env.is_terminal()
    env.apply_round([MF, MF], initiative=1)
    assert env.episode.win
    assert env.returns()[0] == pytest.approx(2 * -0.1 + 100.0)


def test_horizon_ends_episode_without_win():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="corridor", horizon=5))
    env.reset()
    for _ in range(5):
        assert not env.is_terminal()
        env.apply_round([ActionKind.STAY, ActionKind.STAY], initiative=0)
    assert env.is_terminal()
    assert not env.episode.win
    assert env.returns() == pytest.approx([-0.5, -0.5])
    assert env.information_state_vector(0)[-2:].tolist() == [0.0, 0.0]


def test_bump_penalty_is_shared():
    env = CoopBoxPushingEnv(config=EnvConfig(layout=("GG", "BB", "><")))
    env.reset()
    env.apply_round([MF, MF], initiative=0)
    assert env.episode.last_statuses == [ActionStatus.FAIL, ActionStatus.FAIL]
    assert env.rewards() == pytest.approx([-0.1 - 10.0, -0.1 - 10.0])


def test_observation_length_is_stable_across_rounds():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="classic", seed=3))
    env.reset()
    lengths = set()
    for _ in range(20):
        if env.is_terminal():
            break
        env.step({0: ActionKind(int(env.rng.integers(4))), 1: MF})
        lengths.update(len(env.information_state_vector(idx)) for idx in range(2))
    assert lengths == {env.observation_shape()[0]}


def test_host_queries_and_contract_checks():
    env = CoopBoxPushingEnv()
    with pytest.raises(RuntimeError):
        env.is_terminal()
    env.reset()
    assert env.legal_actions(1) == list(ActionKind)
    assert env.chance_outcomes() == {0: 0.5, 1: 0.5}
    assert env.action_outcomes() == {2: 1.0, 3: 0.0}
    assert env.num_distinct_actions() == 4
    assert env.max_chance_outcomes() == 4
    assert env.max_game_length() == 100
    assert env.max_utility() == pytest.approx(-0.1 + 20.0 + 100.0)
    assert env.information_state_string(0).startswith("Observing player: 0\nTotal moves: 0")
    assert env.action_to_string(1, 2) == "agent 1: move_forward"
    with pytest.raises(IndexError):
        env.legal_actions(2)
    with pytest.raises(IndexError):
        env.information_state_vector(-1)
    with pytest.raises(ValueError):
        env.apply_round([MF, 4], initiative=0)
    assert env.episode.total_moves == 0


@pytest.mark.parametrize(
    "cfg",
    [
        EnvConfig(horizon=0),
        EnvConfig(view_radius=-1),
        EnvConfig(action_success_prob=0.0),
        EnvConfig(horizon=2000),
        EnvConfig(reward=RewardConfig(step_penalty=0.0)),
        EnvConfig(layout=("GG", "BB", "^.")),
    ],
)
def test_configuration_errors_surface_at_construction(cfg):
    with pytest.raises(ValueError):
        CoopBoxPushingEnv(config=cfg)


def test_slipping_agents_do_nothing():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="corridor", action_success_prob=1e-12, seed=1))
    env.reset()
    _, _, _, infos = env.step({0: MF, 1: MF})
    assert infos[0]["slipped"] and infos[1]["slipped"]
    assert env.episode.last_statuses == [ActionStatus.FAIL, ActionStatus.FAIL]
    assert env.world.grid.big_box_cells() == [(2, 1), (2, 2)]


def test_random_orientations_are_reproducible_per_seed():
    def orientations(seed):
        env = CoopBoxPushingEnv(config=EnvConfig(random_orientations=True, seed=seed))
        env.reset()
        return [agent.orientation for agent in env.world.agents]

    first = orientations(11)
    assert first == orientations(11)
    assert all(o in list(Orientation)[:4] for o in first)


def test_episodes_do_not_share_state():
    a = CoopBoxPushingEnv(config=EnvConfig(layout="corridor"))
    b = CoopBoxPushingEnv(config=EnvConfig(layout="corridor"))
    a.reset()
    b.reset()
    a.apply_round([MF, MF], initiative=0)
    assert b.world.grid.big_box_cells() == [(2, 1), (2, 2)]
    a.reset()
    assert a.world.grid.big_box_cells() == [(2, 1), (2, 2)]
    assert np.array_equal(a.information_state_vector(0), b.information_state_vector(0))


def test_float_initiative_leaves_episode_untouched():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="corridor"))
    env.reset()
    with pytest.raises(TypeError):
        env.apply_round([ActionKind.STAY, MF], initiative=1.0)
    assert env.episode.total_moves == 0
    assert [a.position() for a in env.world.agents] == [(3, 1), (3, 2)]


def test_step_redraws_initiative_every_round():
    env = CoopBoxPushingEnv(config=EnvConfig(layout="classic", seed=7))
    env.reset()
    drawn = []
    for _ in range(30):
        _, _, _, infos = env.step({0: ActionKind.STAY, 1: ActionKind.STAY})
        assert infos[0]["initiative"] == infos[1]["initiative"] == env.episode.initiative
        drawn.append(infos[0]["initiative"])
    assert set(drawn) == {0, 1}
