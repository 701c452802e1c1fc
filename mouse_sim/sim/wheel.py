"""Wheel model: rigid placement, commanded angular velocity and encoders."""

from __future__ import annotations

from math import floor, pi

from ..errors import InvariantError
from ..geometry import freeze, rectangle_polygon, triangle_polygon, wrap_to_2pi
from ..types import EncoderType, Polygon, Translation


class Wheel:
    """Single wheel of the mouse.

    Placement (position, direction, radius, width) is fixed at the initial
    pose of the mouse. Angular velocity and the two encoder accumulators are
    the only mutable state; the owning ``Mouse`` serializes access to them.

    Args:
        name: unique wheel name.
        position: world position at the mouse's initial pose (meters).
        direction: world rolling direction at the initial pose (radians).
        radius: wheel radius (meters).
        width: wheel width (meters), only used for the footprint polygon.
        max_angular_velocity: magnitude limit (rad/s).
        encoder_type: which encoder this wheel exposes.
        encoder_ticks_per_revolution: encoder resolution.
    """

    def __init__(
        self,
        *,
        name: str,
        position: Translation,
        direction: float,
        radius: float,
        width: float,
        max_angular_velocity: float,
        encoder_type: EncoderType,
        encoder_ticks_per_revolution: float,
    ) -> None:
        assert radius > 0.0, "radius must be > 0"
        assert width > 0.0, "width must be > 0"
        assert max_angular_velocity >= 0.0, "max_angular_velocity must be >= 0"
        assert encoder_ticks_per_revolution > 0.0, "encoder_ticks_per_revolution must be > 0"
        self.name = str(name)
        self.initial_position: Translation = (float(position[0]), float(position[1]))
        self.initial_direction = float(direction)
        self.radius = float(radius)
        self.width = float(width)
        self.max_angular_velocity = float(max_angular_velocity)
        self.encoder_type = EncoderType(encoder_type)
        self.encoder_ticks_per_revolution = float(encoder_ticks_per_revolution)

        self.initial_polygon: Polygon = freeze(
            rectangle_polygon(self.initial_position, 2.0 * self.radius, self.width, self.initial_direction)
        )
        self.speed_indicator_polygon: Polygon = freeze(
            triangle_polygon(self.initial_position, 1.5 * self.radius, 0.8 * self.width, self.initial_direction)
        )

        self.angular_velocity = 0.0
        self._absolute_rotation = 0.0
        self._relative_rotation = 0.0

    @property
    def max_linear_velocity(self) -> float:
        return self.max_angular_velocity * self.radius

    def set_angular_velocity(self, angular_velocity: float) -> None:
        self.angular_velocity = float(angular_velocity)

    def update_rotation(self, delta: float) -> None:
        self._absolute_rotation += delta
        self._relative_rotation += delta

    def read_absolute_encoder(self) -> int:
        """Ticks within the current revolution, in [0, ticks_per_revolution)."""
        self._require(EncoderType.ABSOLUTE)
        fraction = wrap_to_2pi(self._absolute_rotation) / (2.0 * pi)
        return int(floor(fraction * self.encoder_ticks_per_revolution))

    def read_relative_encoder(self) -> int:
        """Signed ticks since the last reset, truncated toward zero."""
        self._require(EncoderType.RELATIVE)
        return int(self._relative_rotation / (2.0 * pi) * self.encoder_ticks_per_revolution)

    def reset_relative_encoder(self) -> None:
        self._require(EncoderType.RELATIVE)
        self._relative_rotation = 0.0

    def _require(self, encoder_type: EncoderType) -> None:
        if self.encoder_type is not encoder_type:
            raise InvariantError(
                f"Wheel '{self.name}' has a {self.encoder_type.value} encoder, "
                f"not {encoder_type.value}"
            )

    def __repr__(self) -> str:
        return (
            f"Wheel(name={self.name!r}, position={self.initial_position}, "
            f"direction={self.initial_direction:.3f}, radius={self.radius}, "
            f"angular_velocity={self.angular_velocity:.3f})"
        )
