"""Planar geometry helpers for the mouse model.

Polygons are ``(N, 2)`` float64 numpy arrays in world meters. Every
transform returns a new array; inputs are never modified, so the shapes
captured at the initial pose can be shared freely between threads.
"""

from __future__ import annotations

from math import atan2, cos, hypot, pi, sin
from typing import Iterable, Sequence, Tuple

import numpy as np
from scipy.spatial import ConvexHull

from .types import Polygon, Translation

TWO_PI = 2.0 * pi


def wrap_to_2pi(theta: float) -> float:
    """Normalize angle to [0, 2*pi)."""
    wrapped = theta % TWO_PI
    # float modulo can round up to exactly 2*pi for tiny negative inputs
    if wrapped >= TWO_PI:
        wrapped -= TWO_PI
    return wrapped


def as_polygon(points: Iterable[Sequence[float]], *, frozen: bool = False) -> Polygon:
    poly = np.array([[float(p[0]), float(p[1])] for p in points], dtype=np.float64)
    if poly.ndim != 2 or poly.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) vertices, got shape {poly.shape}")
    if frozen:
        poly.setflags(write=False)
    return poly


def freeze(poly: Polygon) -> Polygon:
    poly.setflags(write=False)
    return poly


def translate(poly: Polygon, delta: Translation) -> Polygon:
    return poly + np.array([delta[0], delta[1]], dtype=np.float64)


def rotate_about_point(poly: Polygon, angle: float, point: Translation) -> Polygon:
    """Rotate every vertex counter-clockwise by ``angle`` around ``point``."""
    c, s = cos(angle), sin(angle)
    rot = np.array([[c, s], [-s, c]], dtype=np.float64)
    origin = np.array([point[0], point[1]], dtype=np.float64)
    return (poly - origin) @ rot + origin


def translate_vertex(vertex: Translation, delta: Translation) -> Translation:
    return (vertex[0] + delta[0], vertex[1] + delta[1])


def rotate_vertex_about_point(vertex: Translation, angle: float, point: Translation) -> Translation:
    c, s = cos(angle), sin(angle)
    dx = vertex[0] - point[0]
    dy = vertex[1] - point[1]
    return (point[0] + dx * c - dy * s, point[1] + dx * s + dy * c)


def body_to_world(offset: Translation, origin: Translation, rotation: float) -> Translation:
    """Map a body-frame offset (+x forward, +y left) to world coordinates."""
    return rotate_vertex_about_point(translate_vertex(origin, offset), rotation, origin)


def polar(dx: float, dy: float) -> Tuple[float, float]:
    """Return (rho, theta) of the vector (dx, dy)."""
    return hypot(dx, dy), atan2(dy, dx)


def circle_polygon(center: Translation, radius: float, num_vertices: int) -> Polygon:
    assert radius > 0.0, "radius must be > 0"
    assert num_vertices >= 3, "a circle needs at least 3 vertices"
    angles = np.linspace(0.0, TWO_PI, num_vertices, endpoint=False)
    xs = center[0] + radius * np.cos(angles)
    ys = center[1] + radius * np.sin(angles)
    return np.column_stack((xs, ys))


def rectangle_polygon(center: Translation, length: float, width: float, angle: float) -> Polygon:
    """Rectangle of ``length`` along ``angle`` and ``width`` across it."""
    hl, hw = 0.5 * length, 0.5 * width
    corners = np.array([[hl, hw], [-hl, hw], [-hl, -hw], [hl, -hw]], dtype=np.float64)
    return rotate_about_point(corners, angle, (0.0, 0.0)) + np.array(center, dtype=np.float64)


def triangle_polygon(center: Translation, length: float, width: float, angle: float) -> Polygon:
    """Isosceles triangle pointing along ``angle``, used as an arrow head."""
    hl, hw = 0.5 * length, 0.5 * width
    corners = np.array([[hl, 0.0], [-hl, hw], [-hl, -hw]], dtype=np.float64)
    return rotate_about_point(corners, angle, (0.0, 0.0)) + np.array(center, dtype=np.float64)


def convex_hull(polygons: Sequence[Polygon]) -> Polygon:
    """Counter-clockwise convex hull of the union of all vertices."""
    points = np.vstack([np.asarray(p, dtype=np.float64) for p in polygons])
    hull = ConvexHull(points)
    # For 2-D input scipy orders hull vertices counter-clockwise
    return points[hull.vertices].copy()


def polygon_area(poly: Polygon) -> float:
    x, y = poly[:, 0], poly[:, 1]
    return 0.5 * float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))
