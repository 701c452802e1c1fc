from __future__ import annotations

import math

# Maze geometry (classic micromouse tiles)
WALL_LENGTH_M: float = 0.168
WALL_WIDTH_M: float = 0.012
TILE_LENGTH_M: float = WALL_LENGTH_M + WALL_WIDTH_M

# Canonical directions in degrees
EAST_DEG: float = 0.0
NORTH_DEG: float = 90.0
WEST_DEG: float = 180.0
SOUTH_DEG: float = 270.0

# Derived shapes
CENTER_OF_MASS_RADIUS_M: float = 0.005
CIRCLE_VERTICES: int = 8

# Sensors
SENSOR_RAYS: int = 5

# Curve turn: forward travel while rotating 90 degrees
CURVE_TURN_ROTATION_RAD: float = 0.5 * math.pi
