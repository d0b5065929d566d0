"""Shared fixtures. The games render off-screen, so no display is needed."""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pytest

from arcade_games import ball_game, rocket_game


@pytest.fixture
def rocket_env():
    env = rocket_game.GameEnv(validate=False)
    env.reset(seed=0)
    yield env
    env.close()


@pytest.fixture
def classic_rocket_env():
    env = rocket_game.GameEnv(revision="classic", validate=False)
    env.reset(seed=0)
    yield env
    env.close()


@pytest.fixture
def cage_env():
    env = ball_game.GameEnv(revision="cage", validate=False)
    env.reset(seed=0)
    yield env
    env.close()
