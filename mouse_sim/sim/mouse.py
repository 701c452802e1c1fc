"""Continuous mouse model: wheel kinematics, pose integration and sensor refresh.

Threading model:
- ``update``, wheel-speed commands, encoder access, ``teleport`` and
  ``get_elapsed_sim_time`` serialize on one lock.
- Pose and polygon queries, ``read_sensor`` and ``read_gyro`` do not take the
  lock. The translation is swapped as one tuple, so a reader never sees x
  from one tick and y from another, but translation and rotation read in two
  calls may straddle a tick.
- Everything derived at ``initialize`` (placements, factors, polygons) is
  never mutated afterwards and is safe to read from any thread.
"""

from __future__ import annotations

import logging
import threading
from math import cos, floor, isfinite, pi, sin
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import SimConfig
from ..errors import DescriptionError, InvariantError
from ..geometry import (
    circle_polygon,
    convex_hull,
    freeze,
    rotate_about_point,
    rotate_vertex_about_point,
    translate,
    translate_vertex,
    wrap_to_2pi,
)
from ..types import Direction, EncoderType, Polygon, Translation
from .description import DescriptionSource, parse_mouse_description
from .kinematics import (
    AdjustmentFactor,
    CurveTurnFactors,
    get_curve_turn_factors,
    get_movement_wheel_speeds,
    get_unit_rates_of_change,
    get_wheel_speed_adjustment_factors,
)
from .maze import MazeQuery
from .sensor import Sensor
from .wheel import Wheel

logger = logging.getLogger(__name__)

_BUCKET_WIDTH = 0.5 * pi
_BUCKET_OFFSET = 0.25 * pi


def _direction_buckets(direction_to_angle: Mapping[Direction, float]) -> Tuple[float, Tuple[Direction, ...]]:
    """Start angle and counter-clockwise order of the 90 degree direction buckets."""
    ordered = sorted((wrap_to_2pi(angle), direction) for direction, angle in direction_to_angle.items())
    return ordered[0][0], tuple(direction for _, direction in ordered)


class Mouse:
    """Kinematics engine for one mouse in one maze.

    Usage:
        mouse = Mouse(maze, SimConfig())
        if not mouse.initialize("mice/default.yaml", Direction.NORTH):
            ...  # abort startup
        mouse.set_wheel_speeds_for_move_forward(1.0)
        mouse.update(0.001)
    """

    def __init__(self, maze: MazeQuery, config: Optional[SimConfig] = None) -> None:
        self._maze = maze
        self._config = config or SimConfig()
        self._bucket_start, self._direction_buckets = _direction_buckets(self._config.direction_to_angle)
        self._lock = threading.Lock()
        self._initialized = False

        self._initial_translation: Translation = (0.0, 0.0)
        self._initial_rotation = 0.0
        self._translation: Translation = (0.0, 0.0)
        self._rotation = 0.0
        self._gyro = 0.0
        self._elapsed_sim_time = 0.0

        self._wheels: Dict[str, Wheel] = {}
        self._sensors: Dict[str, Sensor] = {}
        # (wheel, forward m/s per rad/s, rotational rad/s per rad/s)
        self._wheel_kinematics: Tuple[Tuple[Wheel, float, float], ...] = ()
        self._sensor_list: Tuple[Sensor, ...] = ()
        self._adjustment_factors: Dict[str, AdjustmentFactor] = {}
        self._curve_turn_factors = CurveTurnFactors(0.0, 0.0)

        self._initial_body_polygon: Optional[Polygon] = None
        self._initial_collision_polygon: Optional[Polygon] = None
        self._initial_center_of_mass_polygon: Optional[Polygon] = None

    # ------------------------------------------------------------------ setup

    def initialize(self, description: DescriptionSource, initial_direction: Direction) -> bool:
        """Load the description, calibrate and build the derived shapes.

        Returns False (and leaves the mouse uninitialized) when the
        description is unreadable, malformed or geometrically degenerate.
        """
        cfg = self._config
        half_tile = cfg.tile_length / 2.0
        translation: Translation = (half_tile, half_tile)
        rotation = cfg.direction_to_angle[Direction(initial_direction)]

        try:
            parsed = parse_mouse_description(
                description,
                translation,
                rotation,
                sensor_rays=cfg.sensor_rays,
                circle_vertices=cfg.circle_vertices,
            )
            adjustment_factors = get_wheel_speed_adjustment_factors(translation, rotation, parsed.wheels)
            curve_turn_factors = get_curve_turn_factors(
                translation, rotation, parsed.wheels, adjustment_factors, cfg.arc_length
            )
            unit_rates = get_unit_rates_of_change(translation, rotation, parsed.wheels)
        except DescriptionError as exc:
            logger.error("Mouse initialization failed: %s", exc)
            return False

        # Collision footprint is the hull, not the union: it may overestimate
        # the occupied area but never underestimates it
        parts: List[Polygon] = [parsed.body]
        parts.extend(w.initial_polygon for w in parsed.wheels.values())
        parts.extend(s.initial_polygon for s in parsed.sensors.values())
        collision = freeze(convex_hull(parts))
        center_of_mass = freeze(circle_polygon(translation, cfg.center_of_mass_radius, cfg.circle_vertices))

        for sensor in parsed.sensors.values():
            sensor.update_reading(sensor.initial_position, sensor.initial_direction, self._maze)

        with self._lock:
            self._initial_translation = translation
            self._initial_rotation = rotation
            self._translation = translation
            self._rotation = rotation
            self._gyro = 0.0
            self._elapsed_sim_time = 0.0
            self._wheels = parsed.wheels
            self._sensors = parsed.sensors
            self._wheel_kinematics = tuple(
                (wheel, unit_rates[name][0], unit_rates[name][1]) for name, wheel in parsed.wheels.items()
            )
            self._sensor_list = tuple(parsed.sensors.values())
            self._adjustment_factors = adjustment_factors
            self._curve_turn_factors = curve_turn_factors
            self._initial_body_polygon = parsed.body
            self._initial_collision_polygon = collision
            self._initial_center_of_mass_polygon = center_of_mass
            self._initialized = True

        logger.info(
            "Mouse initialized: %d wheels, %d sensors, facing %s, curve turn factors (%.4f, %.4f)",
            len(self._wheels),
            len(self._sensors),
            Direction(initial_direction).name,
            curve_turn_factors.forward,
            curve_turn_factors.turn,
        )
        return True

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> SimConfig:
        return self._config

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise InvariantError("Mouse used before a successful initialize()")

    # ------------------------------------------------------------------ physics

    def update(self, elapsed: float) -> None:
        """Advance the simulation by ``elapsed`` seconds.

        Order is fixed: encoders, then pose, then sensors. This is the
        hottest call in the simulator; it works on precomputed per-wheel
        coefficients and plain floats only.
        """
        if not (isfinite(elapsed) and elapsed >= 0.0):
            raise InvariantError(f"elapsed must be a finite, non-negative duration, got {elapsed!r}")
        self._require_initialized()

        with self._lock:
            sum_forward = 0.0
            sum_rotational = 0.0
            for wheel, forward_coef, rotational_coef in self._wheel_kinematics:
                omega = wheel.angular_velocity
                wheel.update_rotation(omega * elapsed)
                sum_forward += omega * forward_coef
                sum_rotational += omega * rotational_coef

            count = len(self._wheel_kinematics)
            forward = sum_forward / count
            gyro = sum_rotational / count

            theta = self._rotation
            x, y = self._translation
            translation = (x + forward * cos(theta) * elapsed, y + forward * sin(theta) * elapsed)
            rotation = theta + gyro * elapsed
            self._gyro = gyro
            self._translation = translation
            self._rotation = rotation

            dx = translation[0] - self._initial_translation[0]
            dy = translation[1] - self._initial_translation[1]
            dr = rotation - self._initial_rotation
            maze = self._maze
            for sensor in self._sensor_list:
                position = rotate_vertex_about_point(
                    translate_vertex(sensor.initial_position, (dx, dy)), dr, translation
                )
                sensor.update_reading(position, sensor.initial_direction + dr, maze)

            self._elapsed_sim_time += elapsed

    def teleport(self, translation: Translation, rotation: float) -> None:
        self._require_initialized()
        with self._lock:
            self._translation = (float(translation[0]), float(translation[1]))
            self._rotation = float(rotation)

    # ------------------------------------------------------------------ pose

    def get_initial_translation(self) -> Translation:
        self._require_initialized()
        return self._initial_translation

    def get_initial_rotation(self) -> float:
        self._require_initialized()
        return self._initial_rotation

    def get_current_translation(self) -> Translation:
        self._require_initialized()
        return self._translation

    def get_current_rotation(self) -> float:
        self._require_initialized()
        return self._rotation

    def get_current_discretized_translation(self) -> Tuple[int, int]:
        """Tile coordinates of the current translation."""
        self._require_initialized()
        tile = self._config.tile_length
        x, y = self._translation
        return int(floor(x / tile)), int(floor(y / tile))

    def get_current_discretized_rotation(self) -> Direction:
        """Nearest canonical direction.

        Buckets follow the configured direction angles. Each direction owns
        the half-open window [angle - 45deg, angle + 45deg), so a rotation
        exactly on a boundary belongs to the counter-clockwise neighbour
        (+45deg -> NORTH, +135deg -> WEST with the default table).
        """
        self._require_initialized()
        rotation = self._rotation
        if not isfinite(rotation):
            raise InvariantError(f"Rotation is not finite: {rotation!r}")
        index = int(floor(wrap_to_2pi(rotation - self._bucket_start + _BUCKET_OFFSET) / _BUCKET_WIDTH))
        if not 0 <= index < len(self._direction_buckets):
            raise InvariantError(f"Rotation {rotation!r} fell outside every direction bucket ({index})")
        return self._direction_buckets[index]

    # ------------------------------------------------------------------ polygons

    def get_current_polygon(self, initial_polygon: Polygon, translation: Translation, rotation: float) -> Polygon:
        """Place a shape captured at the initial pose at ``(translation, rotation)``."""
        delta = (
            translation[0] - self._initial_translation[0],
            translation[1] - self._initial_translation[1],
        )
        return rotate_about_point(
            translate(initial_polygon, delta), rotation - self._initial_rotation, translation
        )

    def get_current_body_polygon(self, translation: Translation, rotation: float) -> Polygon:
        self._require_initialized()
        return self.get_current_polygon(self._initial_body_polygon, translation, rotation)

    def get_current_collision_polygon(self, translation: Translation, rotation: float) -> Polygon:
        self._require_initialized()
        return self.get_current_polygon(self._initial_collision_polygon, translation, rotation)

    def get_current_center_of_mass_polygon(self, translation: Translation, rotation: float) -> Polygon:
        self._require_initialized()
        return self.get_current_polygon(self._initial_center_of_mass_polygon, translation, rotation)

    def get_current_wheel_polygons(self, translation: Translation, rotation: float) -> List[Polygon]:
        self._require_initialized()
        return [self.get_current_polygon(w.initial_polygon, translation, rotation) for w in self._wheels.values()]

    def get_current_wheel_speed_indicator_polygons(self, translation: Translation, rotation: float) -> List[Polygon]:
        self._require_initialized()
        return [
            self.get_current_polygon(w.speed_indicator_polygon, translation, rotation)
            for w in self._wheels.values()
        ]

    def get_current_sensor_polygons(self, translation: Translation, rotation: float) -> List[Polygon]:
        self._require_initialized()
        return [self.get_current_polygon(s.initial_polygon, translation, rotation) for s in self._sensors.values()]

    def get_current_sensor_view_polygons(self, translation: Translation, rotation: float) -> List[Polygon]:
        self._require_initialized()
        polygons = []
        for sensor in self._sensors.values():
            position, direction = self.get_current_sensor_position_and_direction(sensor.name, translation, rotation)
            polygons.append(sensor.get_current_view_polygon(position, direction, self._maze))
        return polygons

    def get_current_sensor_position_and_direction(
        self, name: str, translation: Translation, rotation: float
    ) -> Tuple[Translation, float]:
        self._require_initialized()
        sensor = self._sensor(name)
        delta = (
            translation[0] - self._initial_translation[0],
            translation[1] - self._initial_translation[1],
        )
        dr = rotation - self._initial_rotation
        position = rotate_vertex_about_point(translate_vertex(sensor.initial_position, delta), dr, translation)
        return position, sensor.initial_direction + dr

    # ------------------------------------------------------------------ wheels

    def has_wheel(self, name: str) -> bool:
        return name in self._wheels

    def get_wheel_names(self) -> List[str]:
        return list(self._wheels)

    def _wheel(self, name: str) -> Wheel:
        wheel = self._wheels.get(name)
        if wheel is None:
            raise InvariantError(f"Unknown wheel '{name}'")
        return wheel

    def get_wheel_max_speed(self, name: str) -> float:
        return self._wheel(name).max_angular_velocity

    def get_wheel_speed(self, name: str) -> float:
        return self._wheel(name).angular_velocity

    def get_wheel_encoder_type(self, name: str) -> EncoderType:
        return self._wheel(name).encoder_type

    def get_wheel_encoder_ticks_per_revolution(self, name: str) -> float:
        return self._wheel(name).encoder_ticks_per_revolution

    def get_wheel_speed_adjustment_factors(self) -> Dict[str, AdjustmentFactor]:
        self._require_initialized()
        return dict(self._adjustment_factors)

    def get_curve_turn_factors(self) -> CurveTurnFactors:
        self._require_initialized()
        return self._curve_turn_factors

    def set_wheel_speeds(self, wheel_speeds: Mapping[str, float]) -> None:
        """Set angular velocities (rad/s) for the named wheels, all or nothing."""
        self._require_initialized()
        validated = []
        for name, speed in wheel_speeds.items():
            wheel = self._wheel(name)
            speed = float(speed)
            if not isfinite(speed) or abs(speed) > wheel.max_angular_velocity:
                raise InvariantError(
                    f"Speed {speed!r} rad/s for wheel '{name}' exceeds its max "
                    f"{wheel.max_angular_velocity} rad/s"
                )
            validated.append((wheel, speed))
        with self._lock:
            for wheel, speed in validated:
                wheel.set_angular_velocity(speed)

    def set_wheel_speeds_for_movement(self, fraction_of_max_speed: float, forward_factor: float, turn_factor: float) -> None:
        if not 0.0 <= fraction_of_max_speed <= 1.0:
            raise InvariantError(f"fraction_of_max_speed must be in [0, 1], got {fraction_of_max_speed!r}")
        self._require_initialized()
        self.set_wheel_speeds(
            get_movement_wheel_speeds(
                self._wheels, self._adjustment_factors, fraction_of_max_speed, forward_factor, turn_factor
            )
        )

    def set_wheel_speeds_for_move_forward(self, fraction_of_max_speed: float) -> None:
        self.set_wheel_speeds_for_movement(fraction_of_max_speed, 1.0, 0.0)

    def set_wheel_speeds_for_turn_left(self, fraction_of_max_speed: float) -> None:
        self.set_wheel_speeds_for_movement(fraction_of_max_speed, 0.0, 1.0)

    def set_wheel_speeds_for_turn_right(self, fraction_of_max_speed: float) -> None:
        self.set_wheel_speeds_for_movement(fraction_of_max_speed, 0.0, -1.0)

    def set_wheel_speeds_for_curve_turn_left(self, fraction_of_max_speed: float) -> None:
        f = self._curve_turn_factors
        self.set_wheel_speeds_for_movement(fraction_of_max_speed, f.forward, f.turn)

    def set_wheel_speeds_for_curve_turn_right(self, fraction_of_max_speed: float) -> None:
        f = self._curve_turn_factors
        self.set_wheel_speeds_for_movement(fraction_of_max_speed, f.forward, -f.turn)

    def stop_all_wheels(self) -> None:
        self.set_wheel_speeds({name: 0.0 for name in self._wheels})

    def read_wheel_absolute_encoder(self, name: str) -> int:
        wheel = self._wheel(name)
        with self._lock:
            return wheel.read_absolute_encoder()

    def read_wheel_relative_encoder(self, name: str) -> int:
        wheel = self._wheel(name)
        with self._lock:
            return wheel.read_relative_encoder()

    def reset_wheel_relative_encoder(self, name: str) -> None:
        wheel = self._wheel(name)
        with self._lock:
            wheel.reset_relative_encoder()

    # ------------------------------------------------------------------ sensors

    def has_sensor(self, name: str) -> bool:
        return name in self._sensors

    def get_sensor_names(self) -> List[str]:
        return list(self._sensors)

    def _sensor(self, name: str) -> Sensor:
        sensor = self._sensors.get(name)
        if sensor is None:
            raise InvariantError(f"Unknown sensor '{name}'")
        return sensor

    def read_sensor(self, name: str) -> float:
        """Last reading in [0, 1]; 1 means a wall at the sensor."""
        return self._sensor(name).read()

    def get_sensor_read_duration(self, name: str) -> float:
        return self._sensor(name).read_duration

    def read_gyro(self) -> float:
        """Body angular rate (rad/s) computed by the last tick."""
        self._require_initialized()
        return self._gyro

    def get_elapsed_sim_time(self) -> float:
        self._require_initialized()
        with self._lock:
            return self._elapsed_sim_time
