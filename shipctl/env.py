# env.py
import math
from typing import Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces
import pygame

from .config import EpisodeParams, GraphicsParams, ShipParams, WorldParams
from .renderer import PygameRenderer
from .ship import ControlMode, Ship, Thrust

# Action vector layout for MultiBinary(6)
ACTION_ORDER = (
    Thrust.FORWARD,
    Thrust.BACKWARD,
    Thrust.ROTATE_LEFT,
    Thrust.ROTATE_RIGHT,
    Thrust.STRAFE_LEFT,
    Thrust.STRAFE_RIGHT,
)


class ShipControlEnv(gym.Env):
    """
    One ship flown in direct-physics mode toward a goal point.

    Action space: MultiBinary(6), one flag per held key for this tick, in the order
        forward, backward, rotate-left, rotate-right, strafe-left, strafe-right.
        Forward wins over backward when both are set; strafes combine freely.

    Observation: [x, y, sin(rot), cos(rot), vx, vy, w, goal_x, goal_y] (float32)

    Reward: -distance / distance_scale - 0.01 per tick, plus success_bonus on reaching the goal.
    Terminated on reaching the goal; truncated after max_steps.
    """
    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(
        self,
        params: Optional[ShipParams] = None,
        world: Optional[WorldParams] = None,
        episode: Optional[EpisodeParams] = None,
        graphics: Optional[GraphicsParams] = None,
        render_mode: Optional[str] = None,
        goal: Optional[Tuple[float, float]] = None,
    ):
        super().__init__()
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unsupported render_mode: {render_mode!r}")
        self.P = params or ShipParams()
        self.W = world or WorldParams()
        self.E = episode or EpisodeParams()
        self.G = graphics or GraphicsParams()
        self.render_mode = render_mode

        self.action_space = spaces.MultiBinary(len(ACTION_ORDER))

        W = self.W
        v = self.P.max_speed
        w = self.P.max_rotation_speed
        low = [W.min_x, W.min_y, -1.0, -1.0, -v, -v, -w, 0.0, 0.0]
        high = [W.max_x, W.max_y, 1.0, 1.0, v, v, w, W.width, W.height]
        self.observation_space = spaces.Box(
            low=np.array(low, dtype=np.float32),
            high=np.array(high, dtype=np.float32),
            dtype=np.float32
        )

        self.renderer = PygameRenderer(self.G)
        self.ship: Optional[Ship] = None
        self.goal = np.array(goal if goal is not None else [W.width / 2, W.height / 4], dtype=np.float32)
        self.steps = 0

        # Preallocated observation buffer
        self._obs_buf = np.zeros(9, dtype=np.float32)

        # Rendering
        self._screen = None
        self._clock = None
        self._surf = None

    # -------------------
    # Gym API
    # -------------------
    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        rng = self.np_random
        W = self.W

        if self.ship is not None:
            self.ship.destroy()
        x = float(np.clip(W.width / 2 + rng.normal(0, self.E.start_noise), W.min_x, W.max_x))
        y = float(np.clip(W.height / 2 + rng.normal(0, self.E.start_noise), W.min_y, W.max_y))
        self.ship = Ship(x, y, world=W, params=self.P, markers=self.renderer.markers, ship_id=1)
        self.ship.set_control_mode(ControlMode.DIRECT_PHYSICS)
        self.steps = 0

        if options and "goal" in options:
            self.goal = np.array(options["goal"], dtype=np.float32)
        elif self.E.random_goal:
            m = self.E.goal_margin
            self.goal = np.array([rng.uniform(m, W.width - m), rng.uniform(m, W.height - m)], dtype=np.float32)

        if self.render_mode is not None:
            self._render_frame()
        return self._obs(), {"goal": self.goal.copy()}

    def step(self, action):
        if self.ship is None:
            raise RuntimeError("Call reset() before step().")
        flags = np.asarray(action).reshape(-1)
        if flags.shape[0] != len(ACTION_ORDER) or not np.isin(flags, (0, 1)).all():
            raise ValueError("Invalid action for MultiBinary(6).")

        ship = self.ship
        ship.keys_held.clear()
        for flag, thrust in zip(flags, ACTION_ORDER):
            if flag:
                ship.keys_held.add(thrust)
        ship.update()
        self.steps += 1

        k = ship.kin
        distance = math.hypot(k.x - float(self.goal[0]), k.y - float(self.goal[1]))
        reward = -distance / self.E.distance_scale - 0.01

        reached = distance <= self.E.goal_radius
        if reached:
            reward += self.E.success_bonus
        terminated = reached
        truncated = self.steps >= self.E.max_steps

        info = {
            "distance": distance,
            "goal": self.goal.copy(),
            "reached_goal": reached,
            "thrust": ship.thrust,
        }

        if self.render_mode is not None:
            frame = self._render_frame()
            if self.render_mode == "rgb_array":
                info["frame"] = frame

        return self._obs(), reward, terminated, truncated, info

    def render(self):
        if self.render_mode is not None:
            return self._render_frame()
        return None

    def close(self):
        if self.ship is not None:
            self.ship.destroy()
            self.ship = None
        if self._screen is not None and pygame.get_init():
            pygame.display.quit()
            pygame.quit()
        self._screen = self._surf = self._clock = None

    # -------------------
    # Internals
    # -------------------
    def _obs(self):
        k = self.ship.kin
        buf = self._obs_buf
        buf[0] = k.x
        buf[1] = k.y
        buf[2] = math.sin(k.rotation)
        buf[3] = math.cos(k.rotation)
        buf[4] = k.velocity_x
        buf[5] = k.velocity_y
        buf[6] = k.angular_velocity
        buf[7] = self.goal[0]
        buf[8] = self.goal[1]
        return buf.copy()

    def _draw_goal(self, surf):
        gx, gy = (int(round(float(c))) for c in self.goal)
        pygame.draw.circle(surf, (0, 180, 0), (gx, gy), max(2, int(self.E.goal_radius)), 2)

    def _render_frame(self):
        size = (int(self.W.width), int(self.W.height))
        if self.render_mode == "human":
            if self._screen is None:
                pygame.init()
                pygame.display.set_caption("ShipControl")
                self._screen = pygame.display.set_mode(size)
                self._clock = pygame.time.Clock()
            pygame.event.pump()
        if self._surf is None:
            self._surf = pygame.Surface(size)

        self.renderer.draw(self._surf, [self.ship.view()], selected_id=self.ship.ship_id)
        self._draw_goal(self._surf)

        if self.render_mode == "human":
            self._screen.blit(self._surf, (0, 0))
            pygame.display.flip()
            if self._clock and self.G.fps_limit:
                self._clock.tick(self.G.fps_limit)
            return None

        arr = pygame.surfarray.array3d(self._surf)  # WxHx3
        return np.transpose(arr, (1, 0, 2)).copy()  # HxWx3
