"""Small 2D arcade physics games exposed as gymnasium environments."""
from gymnasium.envs.registration import register

from arcade_games.config import BallConfig, RocketConfig, get_ball_config, get_rocket_config
from arcade_games.levels import Level, LevelError, Polygon, load_level, save_level


__version__ = "0.1.0"

register(id="arcade_games/Rocket-v0", entry_point="arcade_games.rocket_game:GameEnv")
register(id="arcade_games/Ball-v0", entry_point="arcade_games.ball_game:GameEnv")
