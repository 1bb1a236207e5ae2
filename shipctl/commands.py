# commands.py
"""
Movement commands, the per-ship command queue and the drag gesture that builds them.

Commands are a tagged union: every command carries a ``kind`` string
("point" or "direction") and consumers switch on it. Each command may own a
marker handle handed out by the renderer; whoever discards a command must
release that handle.
"""
import itertools
import logging
import math
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Hashable, Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Fallback facing for a gesture too short to carry a direction
DEFAULT_DIRECTION: Tuple[float, float] = (0.0, -1.0)


@dataclass(frozen=True)
class PointCommand:
    x: float
    y: float
    handle: Optional[Hashable] = None
    kind: str = field(default="point", init=False)


@dataclass(frozen=True)
class DirectionCommand:
    origin_x: float
    origin_y: float
    end_x: float                        # gesture end, drawing only
    end_y: float
    dir_x: float = DEFAULT_DIRECTION[0]
    dir_y: float = DEFAULT_DIRECTION[1]
    handle: Optional[Hashable] = None
    kind: str = field(default="direction", init=False)


Command = Union[PointCommand, DirectionCommand]


def command_target(command: Command) -> Tuple[float, float]:
    """Where the ship has to travel to complete ``command``."""
    if command.kind == "point":
        return command.x, command.y
    if command.kind == "direction":
        return command.origin_x, command.origin_y
    raise ValueError(f"Unknown command kind: {command.kind!r}")


def unit_direction(dx: float, dy: float, threshold: float) -> Tuple[float, float]:
    """Normalize (dx, dy), or fall back to "up" when shorter than ``threshold``."""
    length = math.hypot(dx, dy)
    if length > threshold:
        return dx / length, dy / length
    return DEFAULT_DIRECTION


# -------------------
# Marker handles
# -------------------
class MarkerRegistry:
    """
    Hands out opaque marker handles and remembers which command each one draws.

    This is the contract between the core and whatever draws command markers:
    ``create_marker`` when a command (or drag preview) comes to life,
    ``update_marker`` when a preview changes, ``release_marker`` when it is
    discarded. ``live`` exposes what is still outstanding, which is what a
    renderer iterates over and what leak tests assert on.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._live: Dict[int, Command] = {}

    def create_marker(self, command: Command) -> int:
        handle = next(self._ids)
        self._live[handle] = command
        return handle

    def update_marker(self, handle: Hashable, command: Command) -> None:
        if handle in self._live:
            self._live[handle] = command

    def release_marker(self, handle: Hashable) -> None:
        if self._live.pop(handle, None) is None:
            logger.debug("release of unknown marker %r ignored", handle)

    @property
    def live(self) -> Dict[int, Command]:
        return dict(self._live)

    def __len__(self) -> int:
        return len(self._live)


def attach_marker(command: Command, markers: Any) -> Command:
    """Return ``command`` carrying a freshly created marker handle."""
    return replace(command, handle=markers.create_marker(command))


def release_command(command: Optional[Command], markers: Any) -> None:
    if command is not None and command.handle is not None:
        markers.release_marker(command.handle)


# -------------------
# Queue
# -------------------
class CommandQueue:
    """FIFO of pending commands owned by a single ship."""

    def __init__(self):
        self._pending: deque = deque()

    def push(self, command: Command) -> None:
        self._pending.append(command)

    def pop(self) -> Optional[Command]:
        """Remove and return the head, or None when empty."""
        if not self._pending:
            return None
        return self._pending.popleft()

    def peek(self) -> Optional[Command]:
        return self._pending[0] if self._pending else None

    def clear(self, markers: Any) -> int:
        """Drop everything, releasing each command's marker. Returns how many were dropped."""
        dropped = len(self._pending)
        while self._pending:
            release_command(self._pending.popleft(), markers)
        return dropped

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[Command]:
        return iter(tuple(self._pending))


# -------------------
# Drag gesture
# -------------------
@dataclass
class DragSession:
    """
    Pointer-down -> move -> up gesture in progress.

    The preview is a live DirectionCommand with its own marker. On resolve it is
    either handed over as the committed command (marker and all) or released.
    """
    start_x: float
    start_y: float
    has_moved: bool = False
    preview: Optional[DirectionCommand] = None

    def move(self, x: float, y: float, markers: Any, preview_threshold: float) -> DirectionCommand:
        self.has_moved = True
        dir_x, dir_y = unit_direction(x - self.start_x, y - self.start_y, preview_threshold)
        preview = DirectionCommand(self.start_x, self.start_y, x, y, dir_x, dir_y)
        if self.preview is None:
            preview = attach_marker(preview, markers)
        else:
            preview = replace(preview, handle=self.preview.handle)
            markers.update_marker(preview.handle, preview)
        self.preview = preview
        return preview

    def resolve(self, x: float, y: float, markers: Any, commit_threshold: float) -> Command:
        """Turn the gesture into a command; the session must not be reused afterwards."""
        distance = math.hypot(x - self.start_x, y - self.start_y)
        if self.has_moved and distance > commit_threshold and self.preview is not None:
            command: Command = self.preview
            self.preview = None
            return command

        self.cancel(markers)
        return attach_marker(PointCommand(self.start_x, self.start_y), markers)

    def cancel(self, markers: Any) -> None:
        release_command(self.preview, markers)
        self.preview = None
