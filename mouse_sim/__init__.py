"""Micromouse kinematics and sensor simulation core."""

from .config import MazeGeometryConfig, SimConfig
from .errors import CalibrationError, DescriptionError, InvariantError
from .sim import GridMaze, Mouse, PhysicsLoop
from .types import Direction, EncoderType

__all__ = [
    "CalibrationError",
    "DescriptionError",
    "Direction",
    "EncoderType",
    "GridMaze",
    "InvariantError",
    "MazeGeometryConfig",
    "Mouse",
    "PhysicsLoop",
    "SimConfig",
]
