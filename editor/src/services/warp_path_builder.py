"""Warp path descriptor builder.

Builds the serializable SVG path data cached on a layer's WarpSettings.path.
The descriptor is computed once when warp settings change (not per
character) and follows the same per-type formulas as utils.warp_paths:

- arc: a single SVG arc spanning -angle/2 .. +angle/2
- circle: two half-circle arcs
- wave, spiral, zigzag, heart, star: polylines through sampled points

Paths are built in layer-local coordinates (anchor at 0,0 unless given), so
moving a layer does not invalidate its descriptor.
"""

import logging
import math
from typing import Tuple

from svgpathtools import Arc, Line, Path, parse_path

from models.text_layer import WarpSettings
from utils.warp_paths import sample_path
from constants import WARP_PATH_SAMPLES

_logger = logging.getLogger('WarpPathBuilder')


def _complex(x: float, y: float) -> complex:
    return complex(x, y)


def _arc_path(radius: float, angle: float, anchor: Tuple[float, float]) -> Path:
    cx, cy = anchor
    if abs(angle) >= 360:
        return _circle_path(radius, anchor)

    span = math.radians(angle)
    start_angle = -span / 2
    end_angle = span / 2
    start = _complex(cx + radius * math.cos(start_angle), cy + radius * math.sin(start_angle))
    end = _complex(cx + radius * math.cos(end_angle), cy + radius * math.sin(end_angle))

    if angle == 0:
        return Path(Line(start, end))

    return Path(Arc(
        start=start,
        radius=_complex(radius, radius),
        rotation=0.0,
        large_arc=abs(angle) > 180,
        sweep=angle > 0,
        end=end,
    ))


def _circle_path(radius: float, anchor: Tuple[float, float]) -> Path:
    cx, cy = anchor
    right = _complex(cx + radius, cy)
    left = _complex(cx - radius, cy)
    r = _complex(radius, radius)
    return Path(
        Arc(start=right, radius=r, rotation=0.0, large_arc=False, sweep=True, end=left),
        Arc(start=left, radius=r, rotation=0.0, large_arc=False, sweep=True, end=right),
    )


def _polyline_path(path_type: str, warp: WarpSettings, anchor: Tuple[float, float]) -> Path:
    samples = sample_path(path_type, WARP_PATH_SAMPLES, warp, anchor)
    points = [_complex(x, y) for x, y, _rotation in samples]
    segments = [Line(a, b) for a, b in zip(points, points[1:]) if a != b]
    return Path(*segments)


def build_warp_path(path_type: str, radius: float, angle: float,
                    anchor: Tuple[float, float] = (0.0, 0.0)) -> str:
    """Build the SVG path data for a warp configuration

    Args:
        path_type: One of constants.WARP_PATH_TYPES ('custom' builds an arc)
        radius: Path radius, must be > 0
        angle: Path angle in degrees (arc span, wave lobes, zigzag segments)
        anchor: Path centre

    Returns:
        SVG path 'd' string

    Raises:
        ValueError: If radius is not positive
    """
    if radius <= 0:
        raise ValueError(f"Warp radius must be > 0, got {radius}")

    if path_type in ('arc', 'custom'):
        path = _arc_path(radius, angle, anchor)
    elif path_type == 'circle':
        path = _circle_path(radius, anchor)
    else:
        warp = WarpSettings(enabled=True, path_type=path_type, radius=radius, angle=angle)
        path = _polyline_path(path_type, warp, anchor)

    d = path.d()
    _logger.debug(f"Built {path_type} warp path (radius={radius}, angle={angle}, {len(path)} segments)")
    return d


def parse_warp_path(d: str) -> Path:
    """Parse a cached descriptor back into an svgpathtools Path

    Raises:
        ValueError: If the descriptor is empty or not valid path data
    """
    if not d or not d.strip():
        raise ValueError("Warp path descriptor is empty")
    try:
        return parse_path(d)
    except (ValueError, IndexError) as e:
        raise ValueError(f"Invalid warp path descriptor: {e}")


def warp_path_length(d: str) -> float:
    """Length of a cached descriptor in image-space pixels"""
    return parse_warp_path(d).length()
