import gymnasium as gym
import numpy as np

import arcade_games  # noqa: F401  registers the environments
from arcade_games.rocket_game import ACTIVE, Target
from arcade_policies import ball_policy, rocket_policy


def _play(env, policy, steps):
    total = 0
    info = {}
    for _ in range(steps):
        action = policy(env)
        assert env.action_space.contains(np.array(action))
        _, reward, terminated, truncated, info = env.step(action)
        total += reward
        if terminated or truncated:
            break
    return total, info


def _rocket_env():
    env = gym.make("arcade_games/Rocket-v0", validate=False).unwrapped
    env.reset(seed=3)
    return env


def test_rocket_policy_plays_until_the_end():
    env = _rocket_env()
    try:
        total, info = _play(env, rocket_policy.policy, 2000)
        assert total == info["score"]
        assert info["steps"] > 0
    finally:
        env.close()


def test_rocket_policy_waits_for_ignition():
    env = _rocket_env()
    try:
        assert env.rocket.state != ACTIVE
        assert rocket_policy.policy(env) == [0, 0, 0]
    finally:
        env.close()


def test_rocket_policy_aims_then_boosts():
    env = _rocket_env()
    try:
        env.rocket.state = ACTIVE
        env.rocket.pos = np.array([400.0, 300.0])
        target = Target(env.config, env.np_random)
        target.pos = np.array([400.0, 100.0])
        env.targets.append(target)
        assert rocket_policy.policy(env) == [1, 0, 0]

        target.pos = np.array([600.0, 300.0])
        assert rocket_policy.policy(env) == [4, 0, 0]
        target.pos = np.array([200.0, 300.0])
        assert rocket_policy.policy(env) == [3, 0, 0]
    finally:
        env.close()


def test_ball_policy_plays_a_level():
    env = gym.make("arcade_games/Ball-v0", validate=False).unwrapped
    try:
        env.reset(seed=0)
        _, info = _play(env, ball_policy.policy, 600)
        assert info["steps"] > 0
        assert np.all(np.isfinite(info["ball_pos"]))
    finally:
        env.close()
