from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import math

from .constants import (
    CENTER_OF_MASS_RADIUS_M,
    CIRCLE_VERTICES,
    CURVE_TURN_ROTATION_RAD,
    SENSOR_RAYS,
    WALL_LENGTH_M,
    WALL_WIDTH_M,
)
from .geometry import wrap_to_2pi
from .types import DIRECTION_TO_ANGLE, Direction


@dataclass
class MazeGeometryConfig:
    wall_length: float = WALL_LENGTH_M
    wall_width: float = WALL_WIDTH_M

    def __post_init__(self) -> None:
        assert self.wall_length > 0.0, "wall_length must be > 0"
        assert self.wall_width >= 0.0, "wall_width must be >= 0"

    @property
    def tile_length(self) -> float:
        return self.wall_length + self.wall_width


@dataclass
class SimConfig:
    """Parameters injected into the mouse at construction.

    ``curve_turn_arc_length`` is the forward distance a curve turn should
    cover while rotating 90 degrees. When unset it is derived from the
    maze geometry as a quarter circle of radius ``wall_length / 2``.
    """

    maze: MazeGeometryConfig = field(default_factory=MazeGeometryConfig)
    direction_to_angle: Dict[Direction, float] = field(
        default_factory=lambda: dict(DIRECTION_TO_ANGLE)
    )
    curve_turn_arc_length: Optional[float] = None
    center_of_mass_radius: float = CENTER_OF_MASS_RADIUS_M
    circle_vertices: int = CIRCLE_VERTICES
    sensor_rays: int = SENSOR_RAYS

    def __post_init__(self) -> None:
        if isinstance(self.maze, Mapping):
            self.maze = MazeGeometryConfig(**self.maze)
        self.direction_to_angle = {
            Direction(k): float(v) for k, v in self.direction_to_angle.items()
        }
        missing = set(Direction) - set(self.direction_to_angle)
        assert not missing, f"direction_to_angle is missing {sorted(d.name for d in missing)}"
        angles = sorted(wrap_to_2pi(a) for a in self.direction_to_angle.values())
        gaps = [b - a for a, b in zip(angles, angles[1:])]
        assert all(abs(g - 0.5 * math.pi) < 1e-9 for g in gaps), (
            "direction_to_angle must place the four directions 90 degrees apart"
        )
        if self.curve_turn_arc_length is not None:
            assert self.curve_turn_arc_length > 0.0, "curve_turn_arc_length must be > 0"
        assert self.center_of_mass_radius > 0.0, "center_of_mass_radius must be > 0"
        assert self.circle_vertices >= 3, "circle_vertices must be >= 3"
        assert self.sensor_rays >= 1, "sensor_rays must be >= 1"

    @property
    def tile_length(self) -> float:
        return self.maze.tile_length

    @property
    def arc_length(self) -> float:
        if self.curve_turn_arc_length is not None:
            return float(self.curve_turn_arc_length)
        return (self.maze.wall_length / 2.0) * CURVE_TURN_ROTATION_RAD

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "SimConfig":
        """Build from a plain mapping; direction angles are given in degrees."""
        kwargs: Dict[str, Any] = dict(cfg)
        if "maze" in kwargs:
            kwargs["maze"] = MazeGeometryConfig(**dict(kwargs["maze"]))
        if "direction_to_angle_deg" in kwargs:
            table = kwargs.pop("direction_to_angle_deg")
            kwargs["direction_to_angle"] = {
                Direction(k): math.radians(float(v)) for k, v in table.items()
            }
        return cls(**kwargs)
