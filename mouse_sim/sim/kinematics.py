"""Forward kinematics and one-time calibration for an arbitrary wheel layout.

Every wheel is a rigid point contact rolling along its own direction. At
the mouse's initial pose a wheel moving at linear speed ``v`` contributes

    forward    = v * cos(body_rotation - wheel_direction)
    rotational = v * sin(theta(center - wheel) - wheel_direction) / |center - wheel|

and the body rates are the average over all wheels. Both terms are linear in
``v`` and the wheel geometry never changes at runtime, so the relation is
evaluated once per wheel at unit speed and reused by every tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import cos, sin
from typing import Dict, Mapping, Tuple

from ..constants import CURVE_TURN_ROTATION_RAD
from ..errors import CalibrationError
from ..geometry import polar
from ..types import Translation
from .wheel import Wheel

logger = logging.getLogger(__name__)

# cos/sin below this are rounding noise of an axis-aligned wheel (cos(pi/2) != 0)
_TRIG_EPS = 1e-12


@dataclass(frozen=True)
class AdjustmentFactor:
    """Fraction of a wheel's max speed for pure forward and pure turn motion."""

    forward: float
    turn: float


@dataclass(frozen=True)
class CurveTurnFactors:
    forward: float
    turn: float


def _snap(value: float) -> float:
    return 0.0 if abs(value) < _TRIG_EPS else value


def get_rates_of_change(
    initial_translation: Translation,
    initial_rotation: float,
    wheel_position: Translation,
    wheel_direction: float,
    wheel_linear_velocity: float,
) -> Tuple[float, float]:
    """Return (forward m/s, rotational rad/s) contributed by one wheel."""
    forward = wheel_linear_velocity * _snap(cos(initial_rotation - wheel_direction))
    rho, theta = polar(
        initial_translation[0] - wheel_position[0],
        initial_translation[1] - wheel_position[1],
    )
    if rho == 0.0:
        raise CalibrationError(
            f"Wheel at {wheel_position} sits on the body center; its turning contribution is undefined"
        )
    rotational = wheel_linear_velocity * _snap(sin(theta - wheel_direction)) / rho
    return forward, rotational


def get_unit_rates_of_change(
    initial_translation: Translation,
    initial_rotation: float,
    wheels: Mapping[str, Wheel],
) -> Dict[str, Tuple[float, float]]:
    """Per-wheel (forward, rotational) rates per unit of wheel angular velocity."""
    return {
        name: get_rates_of_change(
            initial_translation,
            initial_rotation,
            wheel.initial_position,
            wheel.initial_direction,
            wheel.radius,
        )
        for name, wheel in wheels.items()
    }


def get_wheel_speed_adjustment_factors(
    initial_translation: Translation,
    initial_rotation: float,
    wheels: Mapping[str, Wheel],
) -> Dict[str, AdjustmentFactor]:
    """Normalize each wheel's max-speed contribution by the strongest wheel on each axis.

    A wheel that contributes strongly to moving forward (or turning) gets a
    large forward (or turn) factor; a wheel facing sideways is left still
    when driving forward. Results lie in [-1, 1] and at least one wheel hits
    magnitude 1 on each axis. A layout with no contribution on an axis
    cannot drive (or turn) at all and fails calibration.
    """
    rates = {
        name: get_rates_of_change(
            initial_translation,
            initial_rotation,
            wheel.initial_position,
            wheel.initial_direction,
            wheel.max_linear_velocity,
        )
        for name, wheel in wheels.items()
    }

    max_forward = max((abs(f) for f, _ in rates.values()), default=0.0)
    max_rotational = max((abs(r) for _, r in rates.values()), default=0.0)
    logger.debug("Adjustment anchors: forward=%.6f m/s rotational=%.6f rad/s", max_forward, max_rotational)
    if max_forward == 0.0:
        raise CalibrationError("No wheel contributes to forward motion; the mouse cannot drive forward")
    if max_rotational == 0.0:
        raise CalibrationError("No wheel contributes to rotation; the mouse cannot turn")

    factors: Dict[str, AdjustmentFactor] = {}
    for name, (forward, rotational) in rates.items():
        f = forward / max_forward
        t = rotational / max_rotational
        # Division by the max magnitude can only overshoot by rounding
        f = min(1.0, max(-1.0, f))
        t = min(1.0, max(-1.0, t))
        factors[name] = AdjustmentFactor(forward=f, turn=t)
    return factors


def get_curve_turn_factors(
    initial_translation: Translation,
    initial_rotation: float,
    wheels: Mapping[str, Wheel],
    adjustment_factors: Mapping[str, AdjustmentFactor],
    curve_turn_arc_length: float,
) -> CurveTurnFactors:
    """Blend coefficients (A, B) so a curve turn covers the arc while rotating 90 degrees.

    We want the forward distance and the rotation to finish together:

        total_forward * A      arc_length
        ------------------- = ----------
        total_rotational * B    pi / 2

    Both totals scale linearly with the blend, so fixing B = 1 gives A
    exactly.
    """
    total_forward = 0.0
    total_rotational = 0.0
    scale = 0.0
    for name, wheel in wheels.items():
        factor = adjustment_factors[name]
        for fraction in (factor.forward, factor.turn):
            forward, rotational = get_rates_of_change(
                initial_translation,
                initial_rotation,
                wheel.initial_position,
                wheel.initial_direction,
                wheel.max_linear_velocity * fraction,
            )
            total_forward += forward
            total_rotational += rotational
            scale += abs(wheel.max_linear_velocity * fraction)

    if abs(total_forward) <= _TRIG_EPS * scale:
        raise CalibrationError("Wheel layout has no net forward contribution; curve turns are undefined")

    b = 1.0
    a = (curve_turn_arc_length / CURVE_TURN_ROTATION_RAD) * (total_rotational / total_forward) * b
    return CurveTurnFactors(forward=a, turn=b)


def normalize_movement_factors(forward_factor: float, turn_factor: float) -> Tuple[float, float]:
    """Scale (forward, turn) so that |forward| + |turn| is 1 (or both are 0)."""
    magnitude = abs(forward_factor) + abs(turn_factor)
    if magnitude == 0.0:
        return 0.0, 0.0
    return forward_factor / magnitude, turn_factor / magnitude


def get_movement_wheel_speeds(
    wheels: Mapping[str, Wheel],
    adjustment_factors: Mapping[str, AdjustmentFactor],
    fraction_of_max_speed: float,
    forward_factor: float,
    turn_factor: float,
) -> Dict[str, float]:
    """Angular velocity per wheel for a blended forward/turn movement."""
    nf, nt = normalize_movement_factors(forward_factor, turn_factor)
    speeds: Dict[str, float] = {}
    for name, wheel in wheels.items():
        factor = adjustment_factors[name]
        # |nf| + |nt| == 1 bounds the blend by 1; clamp away rounding
        blend = min(1.0, max(-1.0, nf * factor.forward + nt * factor.turn))
        speeds[name] = wheel.max_angular_velocity * fraction_of_max_speed * blend
    return speeds
