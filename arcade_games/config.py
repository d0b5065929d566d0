"""Tuning constants for each revision of the games.

Every revision of a game differs only in its parameters, so a revision is
a frozen dataclass of constants and the presets below are looked up by name.
"""
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RocketConfig:
    width: int = 800
    height: int = 600

    # Physics
    gravity: float = 0.0375
    thrust: float = 0.06
    boost_multiplier: float = 4.0
    rotation_speed: float = 0.05     # radians per frame
    position_substeps: int = 2       # position advances this many times per frame

    # Launch sequence
    always_thrust: bool = False      # classic revision: engine always on, no launch phase
    launch_impulse: float = -1.875   # initial vertical velocity
    ignition_delay: int = 20         # position substeps between apex and ignition
    ignition_burst: int = 20

    # Rocket body
    rocket_length: int = 20
    rocket_width: int = 4
    segment_collision: bool = True   # test the whole body instead of its base
    reset_on_hit: bool = True
    explosions_hurt_rocket: bool = True

    # Targets & explosions
    target_radius: float = 18
    target_speed: float = 1.0
    target_spawn_y: float = -30
    explosion_base_radius: float = 80
    explosion_decay: float = 0.8
    explosion_speed: float = 1.5
    spawn_interval_ms: float = 3000
    spawn_interval_decay: float = 0.99

    # Effects
    particle_chance: float = 0.7
    particle_life: int = 60
    particle_drag: float = 0.97
    bonus_text_life: int = 60


@dataclass(frozen=True)
class BallConfig:
    width: int = 800
    height: int = 600

    gravity: float = 0.5
    pull_multiplier: float = 2.0     # effector pull is this many times gravity
    ball_radius: float = 20
    ball_start: tuple = (100, 500)
    effector_radius: float = 10
    effector_speed: float = 6.0      # keyboard movement, px per frame
    cage_size: tuple = (200, 200)

    wall_restitution: float = 0.9
    polygon_restitution: float = 0.8
    barrier_penalty: float = 0.1

    max_steps: int = 3600            # truncate after a minute of play

    level: str = "level1"            # None plays in an empty room

    @property
    def cage(self):
        w, h = self.cage_size
        return (self.width / 2 - w / 2, self.height / 2 - h / 2, w, h)


ROCKET_REVISIONS = {
    "classic": RocketConfig(
        gravity=0.05,
        thrust=0.15,
        boost_multiplier=1.0,
        position_substeps=1,
        always_thrust=True,
        launch_impulse=0.0,
        ignition_delay=0,
        ignition_burst=0,
        segment_collision=False,
        reset_on_hit=False,
        explosions_hurt_rocket=False,
        target_radius=30,
        explosion_base_radius=200,
    ),
    "launch": RocketConfig(),
}

BALL_REVISIONS = {
    "cage": BallConfig(level=None),
    "level": BallConfig(),
}


def _lookup(presets, name, kind):
    try:
        return presets[name]
    except KeyError:
        raise KeyError(
            f"Unknown {kind} revision {name!r}; available: {', '.join(sorted(presets))}"
        ) from None


def get_rocket_config(name="launch", **overrides):
    config = _lookup(ROCKET_REVISIONS, name, "rocket")
    return replace(config, **overrides) if overrides else config


def get_ball_config(name="level", **overrides):
    config = _lookup(BALL_REVISIONS, name, "ball")
    return replace(config, **overrides) if overrides else config
