# config.py
from dataclasses import dataclass
from typing import Tuple


# =========================
# Ship / Motion Parameters
# =========================
@dataclass
class ShipParams:
    # Queue-driven motion (units per tick)
    move_speed: float = 3.0
    arrive_radius: float = 5.0          # a command is done once closer than this
    rotation_step: float = 0.1          # max rad/tick while chasing target_rotation

    # Drag gesture thresholds (world units)
    preview_threshold: float = 10.0     # below this the preview points "up"
    commit_threshold: float = 20.0      # below this a drag is just a click

    # Direct physics (per tick)
    thrust_power: float = 0.05
    rotation_power: float = 0.003
    max_speed: float = 6.0
    max_rotation_speed: float = 0.08
    rotation_damping: float = 0.92      # applied when no rotate key is held
    damping_epsilon: float = 1e-4       # |w| below this snaps to 0
    bounce_factor: float = 0.5          # velocity kept (and inverted) on a wall hit

    # Selection
    hit_radius: float = 24.0

    def __post_init__(self):
        if self.move_speed <= 0.0:
            raise ValueError("move_speed must be positive.")
        if self.arrive_radius <= 0.0:
            raise ValueError("arrive_radius must be positive.")
        if self.rotation_step <= 0.0:
            raise ValueError("rotation_step must be positive.")
        if self.commit_threshold < self.preview_threshold:
            raise ValueError("commit_threshold must not be smaller than preview_threshold.")
        if self.max_speed <= 0.0 or self.max_rotation_speed <= 0.0:
            raise ValueError("max_speed and max_rotation_speed must be positive.")
        if not 0.0 <= self.rotation_damping <= 1.0:
            raise ValueError("rotation_damping must be within [0, 1].")


@dataclass
class WorldParams:
    # World bounds: [margin, width - margin] x [margin, height - margin]
    width: float = 1280.0
    height: float = 720.0
    margin: float = 25.0

    def __post_init__(self):
        if self.margin < 0.0:
            raise ValueError("margin must be non-negative.")
        if self.width <= 2 * self.margin or self.height <= 2 * self.margin:
            raise ValueError("World is smaller than its margins.")

    @property
    def min_x(self) -> float:
        return self.margin

    @property
    def max_x(self) -> float:
        return self.width - self.margin

    @property
    def min_y(self) -> float:
        return self.margin

    @property
    def max_y(self) -> float:
        return self.height - self.margin


# =========================
# Episode Parameters (gym)
# =========================
@dataclass
class EpisodeParams:
    max_steps: int = 2000
    start_noise: float = 20.0           # spawn jitter around the world centre
    random_goal: bool = True
    goal_margin: float = 60.0           # min distance from world edge for random goal
    goal_radius: float = 20.0

    # Rewards
    distance_scale: float = 100.0       # reward = -distance / distance_scale - 0.01
    success_bonus: float = 10.0


# =========================
# Graphics Parameters
# =========================
@dataclass
class GraphicsParams:
    fps_limit: int = 60
    background: Tuple[int, int, int] = (24, 24, 24)

    # Ship geometry (triangle, nose along the heading)
    ship_length_px: float = 36.0
    ship_width_px: float = 24.0
    ship_colors: Tuple[Tuple[int, int, int], ...] = (
        (0, 255, 136),
        (255, 170, 0),
        (120, 160, 255),
        (255, 90, 160),
    )
    highlight_color: Tuple[int, int, int] = (255, 255, 255)
    highlight_radius_px: int = 26
    flame_color: Tuple[int, int, int] = (255, 140, 40)

    # Command markers
    marker_dot_px: int = 8
    marker_ring_px: int = 15
    marker_cross_px: int = 10
    marker_arrow_head_px: int = 12

    # Facing / velocity arrow
    arrow_offset_px: float = 30.0
    arrow_head_px: float = 8.0
    velocity_arrow_color: Tuple[int, int, int] = (0, 255, 255)

    # HUD (debug state readout, top-left)
    show_hud: bool = True
    hud_color: Tuple[int, int, int] = (220, 220, 220)
    hud_font_size: int = 16
