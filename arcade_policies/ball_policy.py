import numpy as np


def policy(env):
    # Strategy: Park the effector on the goal side of the ball and hold the pull.
    # Release while the ball is already rising fast so it does not slam the ceiling.
    goal = env.level.goal
    ball = env.ball
    target = goal.centroid if goal is not None else np.array([env.WIDTH / 2, env.HEIGHT / 2])

    direction = target - ball.pos
    wanted = env.effector.pos + np.sign(direction) * env.config.effector_speed
    dx = wanted[0] - env.pointer[0]
    dy = wanted[1] - env.pointer[1]

    if abs(dx) >= abs(dy) and abs(dx) > 1:
        movement = 4 if dx > 0 else 3
    elif abs(dy) > 1:
        movement = 2 if dy > 0 else 1
    else:
        movement = 0

    pull = 0 if ball.vel[1] < -8 else 1
    return [movement, pull, 0]
