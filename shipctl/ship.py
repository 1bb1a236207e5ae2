# ship.py
import itertools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Set, Tuple

from .commands import (
    Command,
    CommandQueue,
    DirectionCommand,
    DragSession,
    MarkerRegistry,
    PointCommand,
    attach_marker,
    command_target,
    release_command,
)
from .config import ShipParams, WorldParams

logger = logging.getLogger(__name__)

# initial_distance floor for direction commands issued right on top of the ship
MIN_INITIAL_DISTANCE = 1e-6


class ControlMode(Enum):
    POINTER_QUEUE = "pointer-queue"
    DIRECT_PHYSICS = "direct-physics"


class MovementMode(Enum):
    IDLE = "idle"
    MOVING_TO_POINT = "moving-to-point"
    MOVING_WITH_DIRECTION = "moving-with-direction"


class Thrust(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    ROTATE_LEFT = "rotate-left"
    ROTATE_RIGHT = "rotate-right"
    STRAFE_LEFT = "strafe-left"
    STRAFE_RIGHT = "strafe-right"


KEY_BINDINGS = {
    "W": Thrust.FORWARD,
    "S": Thrust.BACKWARD,
    "A": Thrust.ROTATE_LEFT,
    "D": Thrust.ROTATE_RIGHT,
    "Q": Thrust.STRAFE_LEFT,
    "E": Thrust.STRAFE_RIGHT,
}


# -------------------
# Angle helpers
# -------------------
def wrap_angle(a: float) -> float:
    """Wrap to (-pi, pi]."""
    wrapped = (a + math.pi) % (2 * math.pi) - math.pi
    return math.pi if wrapped == -math.pi else wrapped


def heading(dx: float, dy: float) -> float:
    """Rotation that points the nose along (dx, dy); 0 is "up" (0, -1)."""
    return math.atan2(dy, dx) + math.pi / 2


def approach_angle(current: float, target: float, max_delta: float) -> float:
    """Step ``current`` toward ``target`` by at most ``max_delta`` along the short way round."""
    diff = wrap_angle(target - current)
    if abs(diff) <= max_delta:
        return target
    return current + math.copysign(max_delta, diff)


def clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else hi if v > hi else v


@dataclass
class Kinematics:
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    target_rotation: float = 0.0
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    angular_velocity: float = 0.0

    @property
    def speed(self) -> float:
        return math.hypot(self.velocity_x, self.velocity_y)


@dataclass(frozen=True)
class ShipView:
    """Per-tick snapshot handed to the renderer and camera."""
    ship_id: int
    x: float
    y: float
    rotation: float
    control_mode: ControlMode
    movement_mode: MovementMode
    thrust: str
    active_command: Optional[Command]
    pending_commands: Tuple[Command, ...]
    preview: Optional[DirectionCommand]
    facing: Optional[Tuple[float, float, float]]   # (dir_x, dir_y, arrow length) or None
    velocity_x: float
    velocity_y: float
    angular_velocity: float


class Ship:
    """
    One controllable ship.

    Two mutually exclusive control modes share the same kinematics:

    * POINTER_QUEUE: commands built from pointer gestures are queued and executed
      one at a time by a small state machine (IDLE / MOVING_TO_POINT /
      MOVING_WITH_DIRECTION). Rotation chases ``target_rotation`` with a bounded
      step each tick.
    * DIRECT_PHYSICS: held keys apply thrust, strafe and angular acceleration;
      velocity is integrated and bounced off the inset world bounds.

    Input methods only touch queued/transient state. All motion happens in
    ``update()``, once per tick.
    """

    _ids = itertools.count(1)

    def __init__(
        self,
        x: float,
        y: float,
        world: Optional[WorldParams] = None,
        params: Optional[ShipParams] = None,
        markers: Any = None,
        ship_id: Optional[int] = None,
        rotation: float = 0.0,
    ):
        self.ship_id = ship_id if ship_id is not None else next(Ship._ids)
        self.world = world or WorldParams()
        self.P = params or ShipParams()
        self.markers = markers if markers is not None else MarkerRegistry()

        self.kin = Kinematics(x=x, y=y, rotation=rotation, target_rotation=rotation)
        self.control_mode = ControlMode.POINTER_QUEUE
        self.movement_mode = MovementMode.IDLE
        self.thrust = "none"

        self.queue = CommandQueue()
        self.active: Optional[Command] = None
        self.drag: Optional[DragSession] = None
        self.keys_held: Set[Thrust] = set()

        # Direction-command blend state, captured when the command is pulled
        self.initial_distance = 0.0
        self.initial_rotation = 0.0

        self.destroyed = False

    def __repr__(self):
        return (f"Ship(id={self.ship_id}, x={self.kin.x:.1f}, y={self.kin.y:.1f}, "
                f"mode={self.control_mode.value}/{self.movement_mode.value})")

    # -------------------
    # Command queue
    # -------------------
    def enqueue(self, command: Command) -> bool:
        """Queue ``command``; an idle ship starts on it immediately."""
        if self.destroyed or self.control_mode is not ControlMode.POINTER_QUEUE:
            logger.debug("%r: enqueue ignored", self)
            return False
        self.queue.push(command)
        if self.movement_mode is MovementMode.IDLE and self.active is None:
            self.process_next_command()
        return True

    def enqueue_point(self, x: float, y: float) -> bool:
        if self.destroyed or self.control_mode is not ControlMode.POINTER_QUEUE:
            logger.debug("%r: enqueue_point ignored", self)
            return False
        return self.enqueue(attach_marker(PointCommand(x, y), self.markers))

    def process_next_command(self) -> None:
        if self.active is not None:
            return
        command = self.queue.pop()
        if command is None:
            return

        self.active = command
        if command.kind == "point":
            self.movement_mode = MovementMode.MOVING_TO_POINT
        else:
            tx, ty = command_target(command)
            distance = math.hypot(tx - self.kin.x, ty - self.kin.y)
            self.initial_distance = max(MIN_INITIAL_DISTANCE, distance)
            self.initial_rotation = self.kin.rotation
            self.movement_mode = MovementMode.MOVING_WITH_DIRECTION
        logger.debug("%r: started %s command", self, command.kind)

    def clear_current_movement(self) -> None:
        release_command(self.active, self.markers)
        self.active = None
        self.movement_mode = MovementMode.IDLE

    def clear_command_queue(self) -> None:
        dropped = self.queue.clear(self.markers)
        if dropped:
            logger.debug("%r: dropped %d queued commands", self, dropped)

    # -------------------
    # Drag gesture
    # -------------------
    def begin_drag(self, x: float, y: float) -> bool:
        if self.destroyed or self.control_mode is not ControlMode.POINTER_QUEUE:
            return False
        self.cancel_drag()
        self.drag = DragSession(x, y)
        return True

    def drag_to(self, x: float, y: float) -> None:
        if self.drag is None or self.control_mode is not ControlMode.POINTER_QUEUE:
            return
        self.drag.move(x, y, self.markers, self.P.preview_threshold)

    def end_drag(self, x: float, y: float) -> Optional[Command]:
        """Resolve the open gesture into a queued command (or nothing if none is open)."""
        if self.drag is None or self.control_mode is not ControlMode.POINTER_QUEUE:
            logger.debug("%r: pointer-up without a drag session ignored", self)
            return None
        session, self.drag = self.drag, None
        command = session.resolve(x, y, self.markers, self.P.commit_threshold)
        self.enqueue(command)
        return command

    def cancel_drag(self) -> None:
        if self.drag is not None:
            self.drag.cancel(self.markers)
            self.drag = None

    # -------------------
    # Control mode / keys
    # -------------------
    def set_control_mode(self, mode: ControlMode) -> None:
        if self.destroyed or mode is self.control_mode:
            return
        self.control_mode = mode
        if mode is ControlMode.DIRECT_PHYSICS:
            self.cancel_drag()
            self.clear_current_movement()
            self.clear_command_queue()
            self.reset_velocity()
            self.keys_held.clear()
            logger.info("Ship %d control mode: DIRECT_PHYSICS - all movement commands cleared", self.ship_id)
        else:
            self.keys_held.clear()
            self.thrust = "none"
            logger.info("Ship %d control mode: POINTER_QUEUE", self.ship_id)

    def toggle_control_mode(self) -> ControlMode:
        if self.control_mode is ControlMode.POINTER_QUEUE:
            self.set_control_mode(ControlMode.DIRECT_PHYSICS)
        else:
            self.set_control_mode(ControlMode.POINTER_QUEUE)
        return self.control_mode

    def press_key(self, key: str) -> bool:
        thrust = KEY_BINDINGS.get(key.upper())
        if thrust is None or self.destroyed or self.control_mode is not ControlMode.DIRECT_PHYSICS:
            return False
        self.keys_held.add(thrust)
        return True

    def release_key(self, key: str) -> None:
        thrust = KEY_BINDINGS.get(key.upper())
        if thrust is not None:
            self.keys_held.discard(thrust)

    def deselect(self) -> None:
        """Drop everything tied to being the selected ship."""
        self.cancel_drag()
        if self.control_mode is ControlMode.DIRECT_PHYSICS:
            self.set_control_mode(ControlMode.POINTER_QUEUE)

    # Tweak-panel actions
    def reset_velocity(self) -> None:
        self.kin.velocity_x = 0.0
        self.kin.velocity_y = 0.0
        self.kin.angular_velocity = 0.0

    def reset_tuning(self) -> None:
        self.P = ShipParams()

    # -------------------
    # Tick
    # -------------------
    def update(self) -> None:
        if self.destroyed:
            return
        k = self.kin
        if self.control_mode is ControlMode.DIRECT_PHYSICS:
            self._update_direct_physics()
            k.target_rotation = k.rotation
            return

        if self.movement_mode is MovementMode.MOVING_TO_POINT:
            self._update_point_movement()
        elif self.movement_mode is MovementMode.MOVING_WITH_DIRECTION:
            self._update_direction_movement()
        k.rotation = approach_angle(k.rotation, k.target_rotation, self.P.rotation_step)

    def _step_toward(self, tx: float, ty: float) -> Tuple[float, float]:
        """
        Advance move_speed toward (tx, ty) unless already inside the arrival radius.

        Returns (distance before the step, distance after it).
        """
        k = self.kin
        dx = tx - k.x
        dy = ty - k.y
        distance = math.hypot(dx, dy)
        if distance < self.P.arrive_radius:
            return distance, distance
        k.x += dx / distance * self.P.move_speed
        k.y += dy / distance * self.P.move_speed
        return distance, math.hypot(tx - k.x, ty - k.y)

    def _arrive(self) -> None:
        """Finish the active command and pull the next one within the same tick."""
        logger.debug("%r: arrived", self)
        self.clear_current_movement()
        self.process_next_command()

    def _update_point_movement(self) -> None:
        k = self.kin
        tx, ty = command_target(self.active)
        if math.hypot(tx - k.x, ty - k.y) >= self.P.arrive_radius:
            k.target_rotation = heading(tx - k.x, ty - k.y)
        _, remaining = self._step_toward(tx, ty)
        if remaining < self.P.arrive_radius:
            self._arrive()

    def _update_direction_movement(self) -> None:
        k = self.kin
        command = self.active
        tx, ty = command_target(command)
        before, remaining = self._step_toward(tx, ty)
        if before >= self.P.arrive_radius:
            # Only this mode keeps the ship inside the world while queue-driven
            k.x = clamp(k.x, self.world.min_x, self.world.max_x)
            k.y = clamp(k.y, self.world.min_y, self.world.max_y)
            remaining = math.hypot(tx - k.x, ty - k.y)

        arrived = remaining < self.P.arrive_radius
        if arrived:
            progress = 1.0
        else:
            progress = clamp((self.initial_distance - remaining) / self.initial_distance, 0.0, 1.0)

        final_rotation = heading(command.dir_x, command.dir_y)
        delta = wrap_angle(final_rotation - self.initial_rotation)
        k.target_rotation = self.initial_rotation + delta * progress

        if arrived:
            k.rotation = k.target_rotation
            self._arrive()

    def _update_direct_physics(self) -> None:
        P = self.P
        k = self.kin
        keys = self.keys_held

        # Local refs for speed
        vx = k.velocity_x
        vy = k.velocity_y
        w = k.angular_velocity

        # ---- rotation ----
        rotating = False
        if Thrust.ROTATE_LEFT in keys:
            w -= P.rotation_power
            rotating = True
        if Thrust.ROTATE_RIGHT in keys:
            w += P.rotation_power
            rotating = True
        if not rotating:
            w *= P.rotation_damping
            if abs(w) < P.damping_epsilon:
                w = 0.0
        w = clamp(w, -P.max_rotation_speed, P.max_rotation_speed)
        k.rotation += w

        # ---- thrust (nose is "up" at rotation 0) ----
        fwd_x = math.sin(k.rotation)
        fwd_y = -math.cos(k.rotation)
        right_x = math.cos(k.rotation)
        right_y = math.sin(k.rotation)

        if Thrust.FORWARD in keys:
            vx += fwd_x * P.thrust_power
            vy += fwd_y * P.thrust_power
            self.thrust = "forward"
        elif Thrust.BACKWARD in keys:
            vx -= fwd_x * P.thrust_power
            vy -= fwd_y * P.thrust_power
            self.thrust = "backward"
        else:
            self.thrust = "none"

        if Thrust.STRAFE_LEFT in keys:
            vx -= right_x * P.thrust_power
            vy -= right_y * P.thrust_power
        if Thrust.STRAFE_RIGHT in keys:
            vx += right_x * P.thrust_power
            vy += right_y * P.thrust_power

        speed = math.hypot(vx, vy)
        if speed > P.max_speed:
            scale = P.max_speed / speed
            vx *= scale
            vy *= scale

        # ---- integrate + bounce off the inset bounds ----
        W = self.world
        x = clamp(k.x + vx, W.min_x, W.max_x)
        y = clamp(k.y + vy, W.min_y, W.max_y)
        if x <= W.min_x or x >= W.max_x:
            vx *= -P.bounce_factor
        if y <= W.min_y or y >= W.max_y:
            vy *= -P.bounce_factor

        # Commit locals back to state
        k.x = x
        k.y = y
        k.velocity_x = vx
        k.velocity_y = vy
        k.angular_velocity = w

    # -------------------
    # Renderer / lifecycle
    # -------------------
    def facing(self) -> Optional[Tuple[float, float, float]]:
        """Direction arrow the renderer draws next to the ship, as (dir_x, dir_y, length)."""
        k = self.kin
        if self.control_mode is ControlMode.DIRECT_PHYSICS:
            speed = k.speed
            if speed > 0.5:
                return k.velocity_x / speed, k.velocity_y / speed, 40.0
            return None
        if self.active is None:
            return 0.0, -1.0, 30.0
        tx, ty = command_target(self.active)
        distance = math.hypot(tx - k.x, ty - k.y)
        if distance > self.P.arrive_radius:
            return (tx - k.x) / distance, (ty - k.y) / distance, 40.0
        return None

    def view(self) -> ShipView:
        k = self.kin
        return ShipView(
            ship_id=self.ship_id,
            x=k.x,
            y=k.y,
            rotation=k.rotation,
            control_mode=self.control_mode,
            movement_mode=self.movement_mode,
            thrust=self.thrust,
            active_command=self.active,
            pending_commands=tuple(self.queue),
            preview=self.drag.preview if self.drag is not None else None,
            facing=self.facing(),
            velocity_x=k.velocity_x,
            velocity_y=k.velocity_y,
            angular_velocity=k.angular_velocity,
        )

    def contains(self, x: float, y: float) -> bool:
        return math.hypot(x - self.kin.x, y - self.kin.y) <= self.P.hit_radius

    def destroy(self) -> None:
        """Release every marker this ship still owns; the ship is inert afterwards."""
        if self.destroyed:
            return
        self.cancel_drag()
        self.clear_current_movement()
        self.clear_command_queue()
        self.keys_held.clear()
        self.destroyed = True
        logger.debug("%r: destroyed", self)
