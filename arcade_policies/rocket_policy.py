import math


def policy(env):
    # Strategy: Aim the nose at the lowest falling target, since that one ends the
    # game first. Rotate until roughly aligned, then boost into it. With nothing to
    # hunt, stay upright and cut thrust whenever the rocket climbs too fast.
    rocket = env.rocket
    if rocket.state != "active":
        return [0, 0, 0]

    if env.targets:
        target = max(env.targets, key=lambda t: t.pos[1])
        dx = target.pos[0] - rocket.pos[0]
        dy = target.pos[1] - rocket.pos[1]
        desired = math.atan2(dx, -dy)
    else:
        desired = 0.0

    diff = (desired - rocket.angle + math.pi) % (2 * math.pi) - math.pi
    if diff > env.config.rotation_speed:
        return [4, 0, 0]  # Rotate clockwise
    if diff < -env.config.rotation_speed:
        return [3, 0, 0]  # Rotate counter-clockwise

    if not env.targets and rocket.vel[1] < -1.0:
        return [2, 0, 0]  # Cut thrust
    return [1, 0, 0] if env.targets else [0, 0, 0]
