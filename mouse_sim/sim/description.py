"""Robot description loading.

A description is a YAML file (or an already loaded mapping) giving the body
outline, wheels and sensors in the body frame: +x forward, +y left, meters,
angles in degrees relative to forward. Parsing places everything at a given
world pose and either returns a complete ``MouseDescription`` or raises
``DescriptionError``; there is no partial result.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isfinite, radians
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Union

from omegaconf.errors import OmegaConfBaseException
import yaml

from ..errors import DescriptionError
from ..geometry import as_polygon, body_to_world
from ..types import EncoderType, Polygon, Translation
from ..utils.config import load_config_dict
from .sensor import Sensor
from .wheel import Wheel

DescriptionSource = Union[str, Path, Mapping[str, Any]]


@dataclass
class MouseDescription:
    body: Polygon
    wheels: Dict[str, Wheel]
    sensors: Dict[str, Sensor]


def _number(cfg: Mapping[str, Any], key: str, where: str, *, positive: bool = False, minimum: float | None = None) -> float:
    if key not in cfg:
        raise DescriptionError(f"{where}: missing '{key}'")
    try:
        value = float(cfg[key])
    except (TypeError, ValueError) as exc:
        raise DescriptionError(f"{where}: '{key}' is not a number: {cfg[key]!r}") from exc
    if not isfinite(value):
        raise DescriptionError(f"{where}: '{key}' must be finite")
    if positive and value <= 0.0:
        raise DescriptionError(f"{where}: '{key}' must be > 0, got {value}")
    if minimum is not None and value < minimum:
        raise DescriptionError(f"{where}: '{key}' must be >= {minimum}, got {value}")
    return value


def _point(value: Any, where: str) -> Translation:
    if not isinstance(value, Sequence) or isinstance(value, str) or len(value) != 2:
        raise DescriptionError(f"{where}: expected [x, y], got {value!r}")
    try:
        x, y = float(value[0]), float(value[1])
    except (TypeError, ValueError) as exc:
        raise DescriptionError(f"{where}: expected [x, y], got {value!r}") from exc
    if not (isfinite(x) and isfinite(y)):
        raise DescriptionError(f"{where}: coordinates must be finite")
    return (x, y)


def _section(cfg: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    section = cfg.get(key)
    if section is None:
        if required:
            raise DescriptionError(f"description has no '{key}'")
        return {}
    if not isinstance(section, Mapping):
        raise DescriptionError(f"'{key}' must be a mapping of name -> attributes")
    return section


def load_description_dict(source: DescriptionSource) -> Dict[str, Any]:
    if isinstance(source, Mapping):
        return dict(source)
    try:
        return load_config_dict(str(source))
    except (OSError, TypeError, yaml.YAMLError, OmegaConfBaseException) as exc:
        raise DescriptionError(f"Could not read mouse description {source}: {exc}") from exc


def parse_mouse_description(
    source: DescriptionSource,
    translation: Translation,
    rotation: float,
    *,
    sensor_rays: int = 5,
    circle_vertices: int = 8,
) -> MouseDescription:
    """Parse ``source`` and place the mouse at ``(translation, rotation)``."""
    cfg = load_description_dict(source)

    body_pts = cfg.get("body")
    if not isinstance(body_pts, Sequence) or isinstance(body_pts, str) or len(body_pts) < 3:
        raise DescriptionError("'body' must list at least 3 vertices")
    body = as_polygon(
        [body_to_world(_point(p, f"body[{k}]"), translation, rotation) for k, p in enumerate(body_pts)],
        frozen=True,
    )

    wheels: Dict[str, Wheel] = {}
    for name, attrs in _section(cfg, "wheels", required=True).items():
        where = f"wheel '{name}'"
        if not isinstance(attrs, Mapping):
            raise DescriptionError(f"{where}: attributes must be a mapping")
        try:
            encoder_type = EncoderType(str(attrs.get("encoder_type", "")).lower())
        except ValueError as exc:
            raise DescriptionError(
                f"{where}: encoder_type must be one of {[e.value for e in EncoderType]}"
            ) from exc
        wheels[str(name)] = Wheel(
            name=str(name),
            position=body_to_world(_point(attrs.get("position"), f"{where} position"), translation, rotation),
            direction=rotation + radians(_number(attrs, "direction", where)),
            radius=_number(attrs, "radius", where, positive=True),
            width=_number(attrs, "width", where, positive=True),
            max_angular_velocity=_number(attrs, "max_angular_velocity", where, minimum=0.0),
            encoder_type=encoder_type,
            encoder_ticks_per_revolution=_number(attrs, "encoder_ticks_per_revolution", where, positive=True),
        )
    if not wheels:
        raise DescriptionError("a mouse needs at least one wheel")

    sensors: Dict[str, Sensor] = {}
    for name, attrs in _section(cfg, "sensors", required=False).items():
        where = f"sensor '{name}'"
        if not isinstance(attrs, Mapping):
            raise DescriptionError(f"{where}: attributes must be a mapping")
        sensors[str(name)] = Sensor(
            name=str(name),
            position=body_to_world(_point(attrs.get("position"), f"{where} position"), translation, rotation),
            direction=rotation + radians(_number(attrs, "direction", where)),
            radius=_number(attrs, "radius", where, positive=True),
            range_m=_number(attrs, "range", where, positive=True),
            half_width=radians(_number(attrs, "half_width", where, minimum=0.0)),
            read_duration=_number(attrs, "read_duration", where, minimum=0.0),
            num_rays=sensor_rays,
            polygon_vertices=circle_vertices,
        )

    return MouseDescription(body=body, wheels=wheels, sensors=sensors)
