"""Cooperative box pushing: a two-agent simultaneous-move grid world."""

from .chance import ChanceOutcome, initiative_outcomes  # noqa: F401
from .env import CoopBoxPushingEnv, EnvConfig, EpisodeState  # noqa: F401
from .layouts import LayoutSpec, layout_presets, parse_layout  # noqa: F401
from .observation import encode_observation, observation_size  # noqa: F401
from .resolver import ActionKind, ActionStatus, RoundOutcome, resolve_round  # noqa: F401
from .rewards import RewardConfig  # noqa: F401
from .world import AgentState, CellValue, Grid, Orientation, WorldState  # noqa: F401
