from __future__ import annotations

from enum import Enum
from math import radians
from typing import Dict, Tuple

import numpy as np

from .constants import EAST_DEG, NORTH_DEG, SOUTH_DEG, WEST_DEG

# (x, y) in meters, world frame
Translation = Tuple[float, float]
# (N, 2) float64 array of vertices, counter-clockwise where it matters
Polygon = np.ndarray


class Direction(str, Enum):
    NORTH = "n"
    EAST = "e"
    SOUTH = "s"
    WEST = "w"


class EncoderType(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


DIRECTION_TO_ANGLE: Dict[Direction, float] = {
    Direction.EAST: radians(EAST_DEG),
    Direction.NORTH: radians(NORTH_DEG),
    Direction.WEST: radians(WEST_DEG),
    Direction.SOUTH: radians(SOUTH_DEG),
}
