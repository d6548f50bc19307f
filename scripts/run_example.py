import argparse
import logging

import numpy as np

from coop_box_pushing import ActionKind, CoopBoxPushingEnv, EnvConfig, layout_presets


def main():
    parser = argparse.ArgumentParser(description="Roll out uniformly random joint actions in the box pushing world.")
    parser.add_argument("--layout", type=str, default="classic", choices=list(layout_presets().keys()))
    parser.add_argument("--episodes", type=int, default=3)
    parser.add_argument("--horizon", type=int, default=100)
    parser.add_argument("--view_radius", type=int, default=1)
    parser.add_argument("--action_success_prob", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--render_every", type=int, default=0, help="If >0, print the world every N rounds.")
    parser.add_argument("--log_level", type=str, default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")

    env = CoopBoxPushingEnv(
        config=EnvConfig(
            horizon=args.horizon,
            layout=args.layout,
            view_radius=args.view_radius,
            action_success_prob=args.action_success_prob,
            seed=args.seed,
        )
    )
    policy_rng = np.random.default_rng(args.seed)
    actions = list(ActionKind)

    for ep in range(args.episodes):
        env.reset()
        rounds = 0
        while not env.is_terminal():
            joint = {idx: actions[int(policy_rng.integers(len(actions)))] for idx in range(env.num_players())}
            env.step(joint)
            rounds += 1
            if args.render_every and rounds % args.render_every == 0:
                print(env.to_string())
        print(
            f"episode {ep + 1}/{args.episodes}: rounds={rounds} win={env.episode.win} "
            f"return={env.returns()[0]:.2f}"
        )


if __name__ == "__main__":
    main()
