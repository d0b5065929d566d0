import logging
import math
import os

import gymnasium as gym
from gymnasium.spaces import MultiDiscrete
import numpy as np
import pygame
import pygame.gfxdraw

from arcade_games import physics
from arcade_games.config import RocketConfig, get_rocket_config


os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

logger = logging.getLogger(__name__)

LAUNCHING = "launching"
ACTIVE = "active"

EXPLOSION_COLORS = [
    (255, 0, 0),      # red
    (255, 165, 0),    # orange
    (255, 255, 0),    # yellow
    (255, 255, 255),  # white
]


# Helper classes for game entities
class Rocket:
    def __init__(self, config, emit):
        self.config = config
        self.emit = emit  # callback(pos, angle, vel, boosting) for exhaust particles
        self.length = config.rocket_length
        self.width = config.rocket_width
        self.reset()

    def reset(self):
        cfg = self.config
        if cfg.always_thrust:
            self.pos = np.array([cfg.width / 2, cfg.height - 30], dtype=float)
            self.vel = np.zeros(2)
            self.state = ACTIVE
        else:
            self.pos = np.array([cfg.width / 2, cfg.height + self.length], dtype=float)
            self.vel = np.array([0.0, cfg.launch_impulse])
            self.state = LAUNCHING
        self.acc = np.zeros(2)
        self.angle = 0.0
        self.apex_reached = False
        self.ignition_delay = cfg.ignition_delay

    def apply_force(self, force):
        self.acc += force

    def direction(self):
        return np.array([math.sin(self.angle), -math.cos(self.angle)])

    def tip(self):
        return self.pos + self.direction() * self.length

    def update(self):
        for _ in range(self.config.position_substeps):
            if self.state == LAUNCHING:
                self._advance_launch()
            self.vel += self.acc
            self.pos += self.vel
            self.acc = np.zeros(2)

    def _advance_launch(self):
        if self.vel[1] >= 0 and not self.apex_reached:
            self.apex_reached = True
        if self.apex_reached:
            self.ignition_delay -= 1
            if self.ignition_delay <= 0:
                self.state = ACTIVE
                logger.debug("Engine ignition at (%.1f, %.1f)", *self.pos)
                for _ in range(self.config.ignition_burst):
                    self.emit(self.pos, self.angle, self.vel, False)

    def collides_with_circle(self, center, radius):
        if self.config.segment_collision:
            return physics.segment_circle_overlap(self.pos, self.tip(), center, radius)
        return np.linalg.norm(self.pos - center) < radius + self.length / 2

    def is_out_of_bounds(self):
        cfg = self.config
        return (self.pos[1] < -self.length or self.pos[1] > cfg.height + self.length or
                self.pos[0] < 0 or self.pos[0] > cfg.width)

    def draw(self, surface):
        pygame.draw.line(surface, (255, 255, 255), tuple(self.pos), tuple(self.tip()), self.width)


class Particle:
    COLOR_FLAME = (255, 100, 0)
    COLOR_BOOST = (255, 0, 255)

    def __init__(self, pos, rocket_angle, rocket_vel, boosting, rng, life=60, drag=0.97):
        self.pos = np.array(pos, dtype=float)
        spread = (rng.random() - 0.5) * (math.pi / 6)  # 30 degrees
        exhaust_speed = rng.random() * 5 + 3
        self.length = rng.random() * 5 + 2

        if boosting:
            exhaust_speed *= 2
            self.length *= 2
            spread /= 2

        angle = rocket_angle + spread
        self.vel = np.array([
            rocket_vel[0] - math.sin(angle) * exhaust_speed,
            rocket_vel[1] + math.cos(angle) * exhaust_speed,
        ])
        self.angle = math.atan2(self.vel[1], self.vel[0])
        self.boosting = boosting
        self.max_life = life
        self.life = life
        self.drag = drag

    @property
    def color(self):
        progress = max(0.0, self.life / self.max_life)
        if self.boosting:
            r, g, b = self.COLOR_BOOST
        else:
            r, g, b = self.COLOR_FLAME[0], round(100 * progress), 0
        # Fade towards the black background
        return (int(r * progress), int(g * progress), int(b * progress))

    def update(self):
        self.life -= 1
        self.vel *= self.drag
        self.pos += self.vel

    def draw(self, surface):
        tail = self.pos - np.array([math.cos(self.angle), math.sin(self.angle)]) * self.length
        pygame.draw.line(surface, self.color, tuple(self.pos), tuple(tail), 2)


class Target:
    def __init__(self, config, rng):
        self.radius = config.target_radius
        self.pos = np.array([rng.random() * config.width, config.target_spawn_y], dtype=float)
        angle = (rng.random() - 0.5) * (math.pi / 3)  # -30 to +30 degrees
        self.vel = np.array([math.sin(angle), math.cos(angle)]) * config.target_speed

        # Keep the straight-line path on screen until it reaches the bottom
        time_to_bottom = (config.height + self.radius) / self.vel[1]
        final_x = self.pos[0] + self.vel[0] * time_to_bottom
        if final_x < 0:
            self.pos[0] = -self.vel[0] * time_to_bottom
        elif final_x > config.width:
            self.pos[0] = config.width - self.vel[0] * time_to_bottom

    def update(self):
        self.pos += self.vel

    def draw(self, surface):
        pygame.draw.circle(surface, (0, 0, 255), tuple(self.pos), self.radius, 2)
        pygame.gfxdraw.aacircle(surface, int(self.pos[0]), int(self.pos[1]), int(self.radius), (0, 0, 255))


class Explosion:
    def __init__(self, pos, generation, config):
        self.pos = np.array(pos, dtype=float)
        self.radius = 1.0
        self.generation = generation
        self.max_radius = config.explosion_base_radius * config.explosion_decay ** (generation - 1)
        self.speed = config.explosion_speed
        self.color = EXPLOSION_COLORS[(generation - 1) % len(EXPLOSION_COLORS)]

    @property
    def done(self):
        return self.radius >= self.max_radius

    def update(self):
        self.radius += self.speed

    def draw(self, surface):
        opacity = max(0.0, 1 - self.radius / self.max_radius)
        r = int(self.radius)
        if r <= 0:
            return
        temp_surf = pygame.Surface((r * 2, r * 2), pygame.SRCALPHA)
        pygame.draw.circle(temp_surf, (*self.color, int(255 * opacity)), (r, r), r)
        surface.blit(temp_surf, (self.pos[0] - r, self.pos[1] - r))


class BonusText:
    def __init__(self, pos, text, life=60):
        self.pos = np.array(pos, dtype=float)
        self.vel = np.array([0.0, -1.0])
        self.text = text
        self.max_life = life
        self.life = life

    def update(self):
        self.pos += self.vel
        self.life -= 1

    def draw(self, surface, font):
        text_surf = font.render(self.text, True, (255, 255, 255))
        text_surf.set_alpha(int(255 * max(0.0, self.life / self.max_life)))
        surface.blit(text_surf, tuple(self.pos))


class GameEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 60}

    # Must be a short, user-facing control string:
    user_guide = (
        "Controls: Left/Right to rotate. Up (or Shift) to boost, Down to cut thrust."
    )

    # Must be a short, user-facing description of the game:
    game_description = (
        "Steer a thrusting rocket into falling targets. Explosions chain through "
        "nearby targets for bonus points. Don't let a target reach the ground."
    )

    auto_advance = True

    FPS = 60

    def __init__(self, render_mode="rgb_array", revision="launch", config=None, validate=True):
        super().__init__()

        self.config = config if config is not None else get_rocket_config(revision)
        self.WIDTH, self.HEIGHT = self.config.width, self.config.height

        # Colors
        self.COLOR_BG = (0, 0, 0)
        self.COLOR_TEXT = (255, 255, 255)

        # Spaces
        self.observation_space = gym.spaces.Box(
            low=0, high=255, shape=(self.HEIGHT, self.WIDTH, 3), dtype=np.uint8
        )
        self.action_space = MultiDiscrete([5, 2, 2])

        # Pygame setup
        pygame.init()
        pygame.font.init()
        self.screen = pygame.Surface((self.WIDTH, self.HEIGHT))
        self.font_bonus = pygame.font.Font(None, 26)
        self.font_ui = pygame.font.Font(None, 32)
        self.font_medium = pygame.font.Font(None, 46)
        self.font_large = pygame.font.Font(None, 64)
        self.render_mode = render_mode

        # Game state variables are initialized in reset()
        self.rocket = None
        self.particles = []
        self.targets = []
        self.explosions = []
        self.bonus_texts = []
        self.score = 0
        self.steps = 0
        self.game_over = False
        self.last_spawn_ms = 0
        self.spawn_interval_ms = self.config.spawn_interval_ms

        self.reset()

        if validate:
            self.validate_implementation()

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        if options and "config" in options:
            self._apply_config(options["config"])

        self.rocket = Rocket(self.config, self._emit_particle)
        self.particles.clear()
        self.targets.clear()
        self.explosions.clear()
        self.bonus_texts.clear()

        self.score = 0
        self.steps = 0
        self.game_over = False
        self.last_spawn_ms = 0
        self.spawn_interval_ms = self.config.spawn_interval_ms

        return self._get_observation(), self._get_info()

    def _apply_config(self, config):
        if isinstance(config, str):
            config = get_rocket_config(config)
        if not isinstance(config, RocketConfig):
            raise TypeError(f"Expected a RocketConfig or revision name, got {type(config).__name__}")
        if (config.width, config.height) != (self.WIDTH, self.HEIGHT):
            raise ValueError("Screen size cannot change between episodes")
        self.config = config

    @property
    def time_ms(self):
        return self.steps * 1000 / self.FPS

    def step(self, action):
        if self.game_over:
            return self._get_observation(), 0, True, False, self._get_info()

        self.steps += 1
        score_before = self.score

        # -- 1. Spawning --
        if self.time_ms - self.last_spawn_ms > self.spawn_interval_ms:
            self.last_spawn_ms = self.time_ms
            self.targets.append(Target(self.config, self.np_random))
            logger.debug("Spawned target, next in %.0f ms", self.spawn_interval_ms)

        # -- 2. Controls & forces --
        movement = action[0]
        boosting = movement == 1 or action[2] == 1
        cutting = movement == 2

        if movement == 3:
            self.rocket.angle -= self.config.rotation_speed
        elif movement == 4:
            self.rocket.angle += self.config.rotation_speed

        if self.config.always_thrust:
            self._apply_thrust(False, False)
        elif self.rocket.state == ACTIVE:
            self._apply_thrust(boosting, cutting)

        self.rocket.apply_force(np.array([0.0, self.config.gravity]))
        self.rocket.update()

        # -- 3. Collisions --
        self._handle_collisions()

        if self.rocket.is_out_of_bounds():
            self.rocket.reset()

        # -- 4. Update entities --
        for particle in self.particles[:]:
            particle.update()
            if particle.life <= 0:
                self.particles.remove(particle)

        for target in self.targets:
            target.update()
            if target.pos[1] > self.HEIGHT + target.radius:
                self.game_over = True

        for explosion in self.explosions[:]:
            explosion.update()
            if explosion.done:
                self.explosions.remove(explosion)

        for text in self.bonus_texts[:]:
            text.update()
            if text.life <= 0:
                self.bonus_texts.remove(text)

        if self.game_over:
            logger.info("Game over after %d steps with score %d", self.steps, self.score)

        reward = self.score - score_before
        return self._get_observation(), reward, self.game_over, False, self._get_info()

    def _apply_thrust(self, boosting, cutting):
        thrust = self.config.thrust
        if self.config.always_thrust:
            boosting = False
        elif boosting:
            thrust *= self.config.boost_multiplier
        elif cutting:
            thrust = 0

        if thrust > 0:
            self.rocket.apply_force(self.rocket.direction() * thrust)
            if self.np_random.random() < self.config.particle_chance:
                self._emit_particle(self.rocket.pos, self.rocket.angle, self.rocket.vel, boosting)

    def _emit_particle(self, pos, angle, vel, boosting):
        self.particles.append(Particle(
            pos, angle, vel, boosting, self.np_random,
            life=self.config.particle_life, drag=self.config.particle_drag,
        ))

    def _destroy_target(self, target, generation, bonus):
        # # SFX: explosion
        self.targets.remove(target)
        self.bonus_texts.append(BonusText(target.pos, f"x{bonus}", self.config.bonus_text_life))
        self.explosions.append(Explosion(target.pos, generation, self.config))
        self.score += bonus
        self.spawn_interval_ms *= self.config.spawn_interval_decay

    def _handle_collisions(self):
        # Rocket vs targets
        for target in self.targets[:]:
            if self.rocket.collides_with_circle(target.pos, target.radius):
                self._destroy_target(target, 1, 1)
                if self.config.reset_on_hit:
                    self.rocket.reset()

        # Explosions vs targets; explosions spawned here wait for the next frame
        for explosion in self.explosions[:]:
            for target in self.targets[:]:
                if np.linalg.norm(explosion.pos - target.pos) < explosion.radius + target.radius:
                    bonus = 2 ** explosion.generation
                    logger.debug("Chain reaction generation %d, bonus %d", explosion.generation + 1, bonus)
                    self._destroy_target(target, explosion.generation + 1, bonus)

        # Rocket vs explosions
        if self.config.explosions_hurt_rocket:
            for explosion in self.explosions:
                if self.rocket.collides_with_circle(explosion.pos, explosion.radius):
                    logger.debug("Rocket caught in explosion")
                    self.rocket.reset()
                    break

    def _get_observation(self):
        self.screen.fill(self.COLOR_BG)
        self._render_game()
        self._render_ui()
        arr = pygame.surfarray.array3d(self.screen)
        return np.transpose(arr, (1, 0, 2)).astype(np.uint8)

    def _render_game(self):
        for particle in self.particles:
            particle.draw(self.screen)
        for target in self.targets:
            target.draw(self.screen)
        for explosion in self.explosions:
            explosion.draw(self.screen)
        self.rocket.draw(self.screen)
        for text in self.bonus_texts:
            text.draw(self.screen, self.font_bonus)

    def _render_ui(self):
        score_text = self.font_ui.render(f"Score: {self.score}", True, self.COLOR_TEXT)
        self.screen.blit(score_text, (20, 20))

        if self.game_over:
            overlay = pygame.Surface((self.WIDTH, self.HEIGHT), pygame.SRCALPHA)
            overlay.fill((0, 0, 0, 180))
            self.screen.blit(overlay, (0, 0))

            lines = [
                (self.font_large, "Game Over", -60),
                (self.font_medium, f"Score: {self.score}", 0),
                (self.font_ui, "Press Space to Play Again", 60),
            ]
            for font, message, offset in lines:
                text = font.render(message, True, self.COLOR_TEXT)
                text_rect = text.get_rect(center=(self.WIDTH / 2, self.HEIGHT / 2 + offset))
                self.screen.blit(text, text_rect)

    def _get_info(self):
        return {
            "score": self.score,
            "steps": self.steps,
            "targets": len(self.targets),
            "explosions": len(self.explosions),
            "state": self.rocket.state,
            "spawn_interval_ms": self.spawn_interval_ms,
        }

    def close(self):
        pygame.font.quit()
        pygame.quit()

    def validate_implementation(self):
        assert self.action_space.nvec.tolist() == [5, 2, 2]
        assert self.observation_space.shape == (self.HEIGHT, self.WIDTH, 3)

        obs, info = self.reset()
        assert obs.shape == self.observation_space.shape and obs.dtype == np.uint8
        expected_state = ACTIVE if self.config.always_thrust else LAUNCHING
        assert self.rocket.state == expected_state
        assert not self.targets and info["score"] == 0
        assert info["spawn_interval_ms"] == self.config.spawn_interval_ms

        # A boosted frame moves the rocket and keeps the episode alive
        start = self.rocket.pos.copy()
        obs, reward, term, trunc, info = self.step([1, 0, 0])
        assert obs.shape == self.observation_space.shape
        assert not np.allclose(self.rocket.pos, start)
        assert reward == 0 and not term and not trunc
        assert info["steps"] == 1

        # Leave a fresh episode behind
        self.reset()
        print("✓ Implementation validated successfully")


if __name__ == "__main__":
    # We need to unset the dummy driver to see the window
    if os.environ.get("SDL_VIDEODRIVER") == "dummy":
        del os.environ["SDL_VIDEODRIVER"]

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    env = GameEnv(render_mode="rgb_array")

    human_screen = pygame.display.set_mode((env.WIDTH, env.HEIGHT))
    pygame.display.set_caption("Rocket")
    clock = pygame.time.Clock()

    obs, info = env.reset()
    running = True

    while running:
        keys = pygame.key.get_pressed()
        movement = 0  # none
        if keys[pygame.K_UP] or keys[pygame.K_w]: movement = 1
        elif keys[pygame.K_DOWN] or keys[pygame.K_s]: movement = 2
        elif keys[pygame.K_LEFT] or keys[pygame.K_a]: movement = 3
        elif keys[pygame.K_RIGHT] or keys[pygame.K_d]: movement = 4

        space_held = 1 if keys[pygame.K_SPACE] else 0
        shift_held = 1 if keys[pygame.K_LSHIFT] or keys[pygame.K_RSHIFT] else 0

        if env.game_over and space_held:
            obs, info = env.reset()
        else:
            obs, reward, terminated, truncated, info = env.step([movement, space_held, shift_held])

        surf = pygame.surfarray.make_surface(np.transpose(obs, (1, 0, 2)))
        human_screen.blit(surf, (0, 0))
        pygame.display.flip()

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

        clock.tick(env.FPS)

    env.close()
    print(f"Final Score: {info['score']}, Steps: {info['steps']}")
