from gymnasium.envs.registration import register

from .commands import CommandQueue, DirectionCommand, DragSession, MarkerRegistry, PointCommand
from .config import EpisodeParams, GraphicsParams, ShipParams, WorldParams
from .roster import PointerButton, Roster
from .ship import ControlMode, MovementMode, Ship, Thrust

# Automatically register the environment when the package is imported
register(
    id="ShipControl-v0",
    entry_point="shipctl.env:ShipControlEnv",  # package.module:Class
)

__all__ = [
    "CommandQueue",
    "ControlMode",
    "DirectionCommand",
    "DragSession",
    "EpisodeParams",
    "GraphicsParams",
    "MarkerRegistry",
    "MovementMode",
    "PointCommand",
    "PointerButton",
    "Roster",
    "Ship",
    "ShipParams",
    "Thrust",
    "WorldParams",
]
