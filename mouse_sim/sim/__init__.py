"""Continuous simulation of the mouse: wheels, sensors, kinematics and the physics loop."""

from .kinematics import AdjustmentFactor, CurveTurnFactors
from .loop import PhysicsLoop
from .maze import GridMaze, MazeQuery, enclosed_walls
from .mouse import Mouse
from .sensor import Sensor
from .wheel import Wheel

__all__ = [
    "AdjustmentFactor",
    "CurveTurnFactors",
    "GridMaze",
    "MazeQuery",
    "Mouse",
    "PhysicsLoop",
    "Sensor",
    "Wheel",
    "enclosed_walls",
]
