"""Range sensor model: a narrow cone of rays cast against the maze.

The reading is 1.0 when a wall touches the sensor and 0.0 when nothing is
within range, falling linearly with the distance to the nearest hit.
"""

from __future__ import annotations

from math import cos, sin

import numpy as np

from ..geometry import circle_polygon, freeze
from ..types import Polygon, Translation
from .maze import MazeQuery


class Sensor:
    def __init__(
        self,
        *,
        name: str,
        position: Translation,
        direction: float,
        radius: float,
        range_m: float,
        half_width: float,
        read_duration: float,
        num_rays: int = 5,
        polygon_vertices: int = 8,
    ) -> None:
        assert radius > 0.0, "radius must be > 0"
        assert range_m > 0.0, "range_m must be > 0"
        assert half_width >= 0.0, "half_width must be >= 0"
        assert read_duration >= 0.0, "read_duration must be >= 0"
        assert num_rays >= 1, "num_rays must be >= 1"
        self.name = str(name)
        self.initial_position: Translation = (float(position[0]), float(position[1]))
        self.initial_direction = float(direction)
        self.radius = float(radius)
        self.range = float(range_m)
        self.half_width = float(half_width)
        self.read_duration = float(read_duration)
        self.initial_polygon: Polygon = freeze(
            circle_polygon(self.initial_position, self.radius, polygon_vertices)
        )
        if num_rays == 1 or self.half_width == 0.0:
            offsets = [0.0]
        else:
            offsets = np.linspace(-self.half_width, self.half_width, num_rays).tolist()
        self._ray_offsets = tuple(float(a) for a in offsets)
        self._reading = 0.0

    def read(self) -> float:
        return self._reading

    def _cast(self, position: Translation, direction: float, maze: MazeQuery):
        x, y = position
        for offset in self._ray_offsets:
            angle = direction + offset
            yield angle, maze.ray_distance(x, y, angle, self.range)

    def update_reading(self, position: Translation, direction: float, maze: MazeQuery) -> None:
        # Runs every tick: plain loop, no intermediate containers
        x, y = position
        nearest = self.range
        for offset in self._ray_offsets:
            distance = maze.ray_distance(x, y, direction + offset, self.range)
            if distance < nearest:
                nearest = distance
        self._reading = min(1.0, max(0.0, 1.0 - nearest / self.range))

    def get_current_view_polygon(self, position: Translation, direction: float, maze: MazeQuery) -> Polygon:
        """Fan from the sensor to the end point of every ray."""
        x, y = position
        vertices = [(x, y)]
        for angle, distance in self._cast(position, direction, maze):
            vertices.append((x + distance * cos(angle), y + distance * sin(angle)))
        return np.array(vertices, dtype=np.float64)

    def __repr__(self) -> str:
        return (
            f"Sensor(name={self.name!r}, position={self.initial_position}, "
            f"direction={self.initial_direction:.3f}, range={self.range}, reading={self._reading:.3f})"
        )
