import numpy as np
import pytest

from arcade_games import ball_game
from arcade_games.config import get_ball_config
from arcade_games.levels import GOAL, BARRIER, Level, Polygon


NOOP = [0, 0, 0]
PULL = [0, 1, 0]


def _box(x0, y0, x1, y1, kind="solid"):
    return Polygon([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], kind)


def test_default_revision_loads_the_first_level():
    env = ball_game.GameEnv()
    try:
        assert env.level.name == "level 1"
        assert np.allclose(env.ball.pos, (100, 500))
    finally:
        env.close()


@pytest.mark.parametrize("revision", ["level", "cage"])
def test_construction_runs_self_check(capsys, revision):
    env = ball_game.GameEnv(revision=revision)
    try:
        assert "validated" in capsys.readouterr().out
        assert env.steps == 0 and env.attempts == 0
    finally:
        env.close()


def test_gravity_integrates_into_position(cage_env):
    cage_env.step(NOOP)
    assert np.allclose(cage_env.ball.vel, (0, 0.5))
    assert np.allclose(cage_env.ball.pos, (100, 500.5))


def test_effector_pulls_the_ball(cage_env):
    _, _, _, _, info = cage_env.step(PULL)
    direction = np.array([300.0, -200.0]) / np.hypot(300, 200)
    assert info["pressed"]
    assert np.allclose(cage_env.ball.vel, direction * 1.0 + (0, 0.5))


def test_pointer_hold_pulls_without_space(cage_env):
    cage_env.set_pointer(400, 300, pressed=True)
    cage_env.step(NOOP)
    assert cage_env.ball.vel[0] > 0

    cage_env.set_pointer(400, 300, pressed=False)
    vx = cage_env.ball.vel[0]
    cage_env.step(NOOP)
    assert cage_env.ball.vel[0] == pytest.approx(vx)


def test_effector_is_caged(cage_env):
    cage_env.set_pointer(0, 0)
    cage_env.step(NOOP)
    assert np.allclose(cage_env.effector.pos, (310, 210))

    cage_env.set_pointer(10000, 10000)
    cage_env.step(NOOP)
    assert np.allclose(cage_env.effector.pos, (490, 390))


def test_keyboard_moves_the_effector(cage_env):
    cage_env.step([4, 0, 0])
    assert np.allclose(cage_env.effector.pos, (406, 300))
    cage_env.step([1, 0, 0])
    assert np.allclose(cage_env.effector.pos, (406, 294))


def test_floor_bounce_uses_wall_restitution(cage_env):
    cage_env.ball.pos[:] = (100, 585)
    cage_env.ball.vel[:] = (0, 2)
    cage_env.step(NOOP)
    assert cage_env.ball.vel[1] == pytest.approx(-2.5 * 0.9)
    assert cage_env.ball.pos[1] == pytest.approx(580 - 2.25)


def test_ball_comes_to_rest_on_a_polygon(cage_env):
    platform = _box(150, 200, 250, 260)
    cage_env.reset(options={"level": Level(ball_start=(200, 100), polygons=[platform])})

    for _ in range(300):
        cage_env.step(NOOP)
        assert not platform.overlaps_circle(cage_env.ball.pos, cage_env.ball.radius - 0.01)

    assert cage_env.ball.pos[0] == pytest.approx(200)
    assert 170 < cage_env.ball.pos[1] <= 180 + 1e-6


def test_reaching_the_goal_wins(cage_env):
    level = Level(ball_start=(400, 100), polygons=[_box(350, 50, 450, 150, GOAL)])
    cage_env.reset(options={"level": level})

    _, reward, terminated, truncated, info = cage_env.step(NOOP)
    assert terminated and not truncated
    assert reward == 1
    assert info["won"]

    _, reward, terminated, _, _ = cage_env.step(NOOP)
    assert terminated
    assert reward == 0


def test_barrier_sends_ball_back_to_start(cage_env):
    level = Level(ball_start=(400, 100), polygons=[_box(380, 110, 420, 140, BARRIER)])
    cage_env.reset(options={"level": level})

    _, reward, terminated, _, info = cage_env.step(NOOP)
    assert reward == pytest.approx(-0.1)
    assert not terminated
    assert info["attempts"] == 1
    assert np.allclose(cage_env.ball.pos, (400, 100))
    assert np.allclose(cage_env.ball.vel, (0, 0))


def test_episode_is_truncated_after_max_steps():
    env = ball_game.GameEnv(config=get_ball_config("cage", max_steps=3), validate=False)
    try:
        env.reset(seed=0)
        results = [env.step(NOOP) for _ in range(3)]
        assert [r[3] for r in results] == [False, False, True]
        assert not any(r[2] for r in results)
    finally:
        env.close()


def test_reset_loads_a_bundled_level_by_name(cage_env):
    cage_env.reset(options={"level": "level2"})
    assert cage_env.level.name == "level 2"
    assert np.allclose(cage_env.ball.pos, (80, 120))


def test_unknown_revision_is_rejected():
    with pytest.raises(KeyError, match="available"):
        ball_game.GameEnv(revision="pinball", validate=False)
