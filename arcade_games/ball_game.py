import logging
import os

import gymnasium as gym
from gymnasium.spaces import MultiDiscrete
import numpy as np
import pygame
import pygame.gfxdraw

from arcade_games import physics
from arcade_games.config import BallConfig, get_ball_config
from arcade_games.levels import Level, load_level


os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

logger = logging.getLogger(__name__)


class Ball:
    def __init__(self, pos, radius):
        self.pos = np.array(pos, dtype=float)
        self.vel = np.zeros(2)
        self.radius = radius

    def update(self):
        self.pos += self.vel

    def draw(self, surface, color):
        pygame.draw.circle(surface, color, tuple(self.pos), self.radius, 2)


class Effector:
    """Pointer-driven anchor that pulls the ball while the pointer is held."""

    def __init__(self, pos, radius, cage):
        self.pos = np.array(pos, dtype=float)
        self.radius = radius
        self.cage = cage

    def follow(self, target):
        x, y, w, h = self.cage
        self.pos[0] = max(x + self.radius, min(x + w - self.radius, target[0]))
        self.pos[1] = max(y + self.radius, min(y + h - self.radius, target[1]))

    def draw(self, surface, color):
        pygame.draw.circle(surface, color, tuple(self.pos), self.radius, 2)


class GameEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 60}

    # Must be a short, user-facing control string:
    user_guide = (
        "Controls: Arrow keys (or the mouse) move the effector inside its cage. "
        "Hold Space (or the mouse button) to pull the ball."
    )

    # Must be a short, user-facing description of the game:
    game_description = (
        "Tug a bouncing ball around obstacles with a spring-like effector and "
        "drop it into the green goal. Red barriers send the ball back to the start."
    )

    auto_advance = True

    FPS = 60

    def __init__(self, render_mode="rgb_array", revision="level", config=None, validate=True):
        super().__init__()

        self.config = config if config is not None else get_ball_config(revision)
        self.WIDTH, self.HEIGHT = self.config.width, self.config.height

        # Colors
        self.COLOR_BG = (0, 0, 0)
        self.COLOR_BALL = (0, 0, 255)
        self.COLOR_EFFECTOR = (0, 100, 0)
        self.COLOR_CAGE = (0, 128, 0)
        self.COLOR_TETHER = (255, 255, 255)
        self.COLOR_SOLID = (140, 140, 150)
        self.COLOR_GOAL = (60, 220, 90)
        self.COLOR_BARRIER = (230, 60, 60)
        self.COLOR_TEXT = (220, 220, 240)

        # Spaces
        self.observation_space = gym.spaces.Box(
            low=0, high=255, shape=(self.HEIGHT, self.WIDTH, 3), dtype=np.uint8
        )
        self.action_space = MultiDiscrete([5, 2, 2])

        # Pygame setup
        pygame.init()
        pygame.font.init()
        self.screen = pygame.Surface((self.WIDTH, self.HEIGHT))
        self.font_small = pygame.font.Font(None, 24)
        self.font_large = pygame.font.Font(None, 72)
        self.render_mode = render_mode

        # Game state variables are initialized in reset()
        self.level = None
        self.ball = None
        self.effector = None
        self.pointer = None
        self.pointer_held = False
        self.pressed = False
        self.steps = 0
        self.attempts = 0
        self.won = False
        self.game_over = False

        self.reset()

        if validate:
            self.validate_implementation()

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        options = options or {}

        if "config" in options:
            self._apply_config(options["config"])

        if "level" in options:
            level = options["level"]
            self.level = level if isinstance(level, Level) else load_level(level)
        elif self.config.level:
            self.level = load_level(self.config.level)
        else:
            self.level = Level(name="empty", ball_start=self.config.ball_start)

        cage = self.config.cage
        self.ball = Ball(self.level.ball_start, self.config.ball_radius)
        self.effector = Effector(
            (self.WIDTH / 2, self.HEIGHT / 2), self.config.effector_radius, cage
        )
        self.pointer = self.effector.pos.copy()
        self.pointer_held = False
        self.pressed = False

        self.steps = 0
        self.attempts = 0
        self.won = False
        self.game_over = False

        logger.debug("Ball game reset on level %r", self.level.name)
        return self._get_observation(), self._get_info()

    def _apply_config(self, config):
        if isinstance(config, str):
            config = get_ball_config(config)
        if not isinstance(config, BallConfig):
            raise TypeError(f"Expected a BallConfig or revision name, got {type(config).__name__}")
        if (config.width, config.height) != (self.WIDTH, self.HEIGHT):
            raise ValueError("Screen size cannot change between episodes")
        self.config = config

    def set_pointer(self, x, y, pressed=None):
        """Moves the pointer directly, as a mouse or touch host would."""
        self.pointer = np.array([x, y], dtype=float)
        if pressed is not None:
            self.pointer_held = bool(pressed)

    def step(self, action):
        if self.game_over:
            return self._get_observation(), 0, True, False, self._get_info()

        self.steps += 1
        reward = 0

        # -- 1. Input --
        self._handle_input(action)
        self.effector.follow(self.pointer)

        # -- 2. Forces --
        cfg = self.config
        if self.pressed:
            self._apply_pull()
        self.ball.vel[1] += cfg.gravity

        # -- 3. Screen bounds, then integrate --
        physics.bounce_in_bounds(
            self.ball.pos, self.ball.vel, self.ball.radius,
            0, 0, self.WIDTH, self.HEIGHT, cfg.wall_restitution,
        )
        self.ball.update()

        # -- 4. Polygons --
        for polygon in self.level.solids:
            physics.resolve_circle_polygon(
                self.ball.pos, self.ball.vel, self.ball.radius,
                polygon.vertices, cfg.polygon_restitution,
            )

        # -- 5. Goal & barriers --
        goal = self.level.goal
        if goal is not None and goal.contains(self.ball.pos):
            # # SFX: level complete
            self.won = True
            self.game_over = True
            reward += 1
            logger.info("Level %r complete after %d steps", self.level.name, self.steps)
        elif any(b.overlaps_circle(self.ball.pos, self.ball.radius) for b in self.level.barriers):
            # # SFX: fizzle
            self.attempts += 1
            reward -= cfg.barrier_penalty
            self.ball = Ball(self.level.ball_start, cfg.ball_radius)
            logger.debug("Ball hit a barrier, attempt %d", self.attempts)

        truncated = not self.game_over and self.steps >= cfg.max_steps
        return self._get_observation(), reward, self.game_over, truncated, self._get_info()

    def _handle_input(self, action):
        movement = action[0]
        speed = self.config.effector_speed
        if movement == 1: self.pointer[1] -= speed
        elif movement == 2: self.pointer[1] += speed
        elif movement == 3: self.pointer[0] -= speed
        elif movement == 4: self.pointer[0] += speed

        # Keep the pointer where the effector can follow it
        x, y, w, h = self.config.cage
        r = self.effector.radius
        self.pointer[0] = max(x + r, min(x + w - r, self.pointer[0]))
        self.pointer[1] = max(y + r, min(y + h - r, self.pointer[1]))

        self.pressed = action[1] == 1 or self.pointer_held

    def _apply_pull(self):
        direction = self.effector.pos - self.ball.pos
        if np.linalg.norm(direction) > 0:
            force = self.config.pull_multiplier * self.config.gravity
            self.ball.vel += physics.normalize(direction) * force

    def _get_observation(self):
        self.screen.fill(self.COLOR_BG)
        self._render_game()
        self._render_ui()
        arr = pygame.surfarray.array3d(self.screen)
        return np.transpose(arr, (1, 0, 2)).astype(np.uint8)

    def _render_game(self):
        colors = {"solid": self.COLOR_SOLID, "goal": self.COLOR_GOAL, "barrier": self.COLOR_BARRIER}
        for polygon in self.level.polygons:
            points = [(int(x), int(y)) for x, y in polygon.vertices]
            pygame.gfxdraw.aapolygon(self.screen, points, colors[polygon.kind])
            pygame.draw.polygon(self.screen, colors[polygon.kind], points, 2)

        cage_rect = pygame.Rect(*(int(v) for v in self.config.cage))
        pygame.draw.rect(self.screen, self.COLOR_CAGE, cage_rect, 1)

        if self.pressed:
            offset = self.effector.pos - self.ball.pos
            if np.linalg.norm(offset) > 0:
                n = physics.normalize(offset)
                start = self.effector.pos - n * self.effector.radius
                end = self.ball.pos + n * self.ball.radius
                pygame.draw.line(self.screen, self.COLOR_TETHER, tuple(start), tuple(end), 1)

        self.ball.draw(self.screen, self.COLOR_BALL)
        self.effector.draw(self.screen, self.COLOR_EFFECTOR)

    def _render_ui(self):
        level_text = self.font_small.render(
            f"{self.level.name.upper()}   ATTEMPTS: {self.attempts}", True, self.COLOR_TEXT
        )
        self.screen.blit(level_text, (10, 10))

        if self.won:
            overlay = pygame.Surface((self.WIDTH, self.HEIGHT), pygame.SRCALPHA)
            overlay.fill((0, 0, 0, 180))
            self.screen.blit(overlay, (0, 0))

            end_text = self.font_large.render("GOAL!", True, self.COLOR_GOAL)
            text_rect = end_text.get_rect(center=(self.WIDTH / 2, self.HEIGHT / 2))
            self.screen.blit(end_text, text_rect)

    def _get_info(self):
        return {
            "steps": self.steps,
            "attempts": self.attempts,
            "won": self.won,
            "pressed": bool(self.pressed),
            "ball_pos": self.ball.pos.copy(),
            "effector_pos": self.effector.pos.copy(),
        }

    def close(self):
        pygame.font.quit()
        pygame.quit()

    def validate_implementation(self):
        assert self.action_space.nvec.tolist() == [5, 2, 2]
        assert self.observation_space.shape == (self.HEIGHT, self.WIDTH, 3)

        obs, info = self.reset()
        assert obs.shape == self.observation_space.shape and obs.dtype == np.uint8
        assert np.allclose(self.ball.pos, self.level.ball_start)
        x, y, w, h = self.config.cage
        assert x <= self.effector.pos[0] <= x + w and y <= self.effector.pos[1] <= y + h

        # One pulled frame
        obs, reward, term, trunc, info = self.step([0, 1, 0])
        assert obs.shape == self.observation_space.shape
        assert info["pressed"] and info["steps"] == 1
        assert isinstance(term, bool) and isinstance(trunc, bool)

        self.reset()
        print("✓ Implementation validated successfully")


if __name__ == "__main__":
    import sys

    # We need to unset the dummy driver to see the window
    if os.environ.get("SDL_VIDEODRIVER") == "dummy":
        del os.environ["SDL_VIDEODRIVER"]

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    env = GameEnv(render_mode="rgb_array")
    level_arg = sys.argv[1] if len(sys.argv) > 1 else None

    human_screen = pygame.display.set_mode((env.WIDTH, env.HEIGHT))
    pygame.display.set_caption("Ball")
    clock = pygame.time.Clock()

    obs, info = env.reset(options={"level": level_arg} if level_arg else None)
    running = True

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
                mx, my = pygame.mouse.get_pos()
                env.set_pointer(mx, my, pygame.mouse.get_pressed()[0])
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_r:
                obs, info = env.reset(options={"level": level_arg} if level_arg else None)

        keys = pygame.key.get_pressed()
        movement = 0  # none
        if keys[pygame.K_UP]: movement = 1
        elif keys[pygame.K_DOWN]: movement = 2
        elif keys[pygame.K_LEFT]: movement = 3
        elif keys[pygame.K_RIGHT]: movement = 4
        space_held = 1 if keys[pygame.K_SPACE] else 0

        obs, reward, terminated, truncated, info = env.step([movement, space_held, 0])

        surf = pygame.surfarray.make_surface(np.transpose(obs, (1, 0, 2)))
        human_screen.blit(surf, (0, 0))
        pygame.display.flip()

        clock.tick(env.FPS)

    env.close()
    print(f"Attempts: {info['attempts']}, Steps: {info['steps']}, Won: {info['won']}")
