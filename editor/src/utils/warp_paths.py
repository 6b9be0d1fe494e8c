"""Warp path math - places characters along parametric paths.

Every path function takes a progress value t in [0, 1] (character index /
max(count - 1, 1)), the layer's WarpSettings and the anchor point, and returns
a GlyphPlacement (x, y, rotation in degrees). Angles coming from the layer are
in degrees and are converted to radians once, at the top of each function.

Pure functions, no state: the same inputs always give the same floats.
"""

import math
from typing import Callable, Dict, List, Tuple

import numpy as np

from models.text_layer import WarpSettings
from models.transform import GlyphPlacement
from constants import (
    WAVE_DEGREES_PER_LOBE, WAVE_AMPLITUDE_RATIO, WAVE_MAX_TILT,
    SPIRAL_TURNS, SPIRAL_RADIUS_RATIO,
    ZIGZAG_DEGREES_PER_SEGMENT, ZIGZAG_MIN_SEGMENTS, ZIGZAG_HEIGHT_RATIO,
    HEART_SCALE_DIVISOR, STAR_POINTS, STAR_INNER_RATIO,
)

Anchor = Tuple[float, float]


def progress_for(index: int, count: int) -> float:
    """Progress along the path for the index-th of count characters"""
    return index / max(count - 1, 1)


def arc_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Point on a circular arc spanning warp.angle, centred on angle 0"""
    cx, cy = anchor
    span = math.radians(warp.angle)
    angle = -span / 2 + t * span
    return GlyphPlacement(
        cx + warp.radius * math.cos(angle),
        cy + warp.radius * math.sin(angle),
        math.degrees(angle) + 90,
    )


def circle_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Full 360 degree traversal starting at angle 0"""
    cx, cy = anchor
    angle = t * 2 * math.pi
    return GlyphPlacement(
        cx + warp.radius * math.cos(angle),
        cy + warp.radius * math.sin(angle),
        math.degrees(angle) + 90,
    )


def wave_lobes(angle_degrees: float) -> int:
    return max(1, math.floor(angle_degrees / WAVE_DEGREES_PER_LOBE))


def wave_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Half-sine bumps across 2 * radius; angle / 60 sets the lobe count"""
    cx, cy = anchor
    lobes = wave_lobes(warp.angle)
    lobe_width = warp.radius * 2 / lobes
    progress = t * lobes
    index = math.floor(progress)
    fraction = progress - index

    start_x = cx + (index - lobes / 2) * lobe_width
    next_x = cx + (index + 1 - lobes / 2) * lobe_width
    amplitude = warp.radius * WAVE_AMPLITUDE_RATIO

    return GlyphPlacement(
        start_x + fraction * (next_x - start_x),
        cy + math.sin(fraction * math.pi) * amplitude,
        math.cos(fraction * math.pi) * WAVE_MAX_TILT,
    )


def spiral_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Three turns; the radius grows linearly from 0 to 0.8 * radius"""
    cx, cy = anchor
    angle = t * SPIRAL_TURNS * 2 * math.pi
    radius = warp.radius * SPIRAL_RADIUS_RATIO * t
    return GlyphPlacement(
        cx + radius * math.cos(angle),
        cy + radius * math.sin(angle),
        math.degrees(angle) + 90,
    )


def zigzag_segments(angle_degrees: float) -> int:
    return max(ZIGZAG_MIN_SEGMENTS, math.floor(angle_degrees / ZIGZAG_DEGREES_PER_SEGMENT))


def zigzag_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """x advances linearly; y alternates +/- 0.4 * radius per segment"""
    cx, cy = anchor
    segments = zigzag_segments(warp.angle)
    progress = t * segments
    index = math.floor(progress)
    fraction = progress - index

    start_x = cx - warp.radius
    end_x = cx + warp.radius
    height = warp.radius * ZIGZAG_HEIGHT_RATIO
    # Even segments start above the baseline, odd ones below
    offset = -height if index % 2 == 0 else height

    return GlyphPlacement(
        start_x + t * (end_x - start_x),
        cy + offset * (1 - fraction),
        0.0,
    )


def heart_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Classic parametric heart curve scaled by radius / 50"""
    cx, cy = anchor
    angle = t * 2 * math.pi
    scale = warp.radius / HEART_SCALE_DIVISOR
    hx = 16 * math.sin(angle) ** 3
    hy = -(13 * math.cos(angle) - 5 * math.cos(2 * angle)
           - 2 * math.cos(3 * angle) - math.cos(4 * angle))
    return GlyphPlacement(
        cx + hx * scale,
        cy + hy * scale,
        math.degrees(math.atan2(math.cos(angle), -math.sin(angle))),
    )


def star_point(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Five-point star alternating outer radius and 0.4 * radius"""
    cx, cy = anchor
    segment = 2 * math.pi / STAR_POINTS
    angle = t * 2 * math.pi
    index = math.floor(angle / segment)
    fraction = (angle % segment) / segment

    outer = warp.radius
    inner = warp.radius * STAR_INNER_RATIO
    current_radius = outer if index % 2 == 0 else inner
    next_radius = inner if index % 2 == 0 else outer

    radius = current_radius + fraction * (next_radius - current_radius)
    point_angle = index * segment + fraction * segment
    return GlyphPlacement(
        cx + radius * math.cos(point_angle),
        cy + radius * math.sin(point_angle),
        math.degrees(point_angle) + 90,
    )


PATH_FUNCTIONS: Dict[str, Callable[[float, WarpSettings, Anchor], GlyphPlacement]] = {
    'arc': arc_point,
    'circle': circle_point,
    'wave': wave_point,
    'spiral': spiral_point,
    'zigzag': zigzag_point,
    'heart': heart_point,
    'star': star_point,
}


def path_function(path_type: str) -> Callable[[float, WarpSettings, Anchor], GlyphPlacement]:
    """Formula for a path type; 'custom' and unknown types use the arc"""
    return PATH_FUNCTIONS.get(path_type, arc_point)


def point_at(t: float, warp: WarpSettings, anchor: Anchor) -> GlyphPlacement:
    """Placement at progress t, with the spacing multiplier applied

    spacing scales the offset from the anchor (1.0 leaves the formula as is).
    """
    placement = path_function(warp.path_type)(t, warp, anchor)
    if warp.spacing == 1.0:
        return placement
    cx, cy = anchor
    return GlyphPlacement(
        cx + (placement.x - cx) * warp.spacing,
        cy + (placement.y - cy) * warp.spacing,
        placement.rotation,
    )


def place_characters(text: str, warp: WarpSettings, anchor: Anchor) -> List[GlyphPlacement]:
    """One placement per character of text, in reading order"""
    count = len(text)
    return [point_at(progress_for(i, count), warp, anchor) for i in range(count)]


def sample_path(path_type: str, count: int, warp: WarpSettings, anchor: Anchor = (0.0, 0.0)) -> np.ndarray:
    """Sample count evenly spaced progress values along a path.

    Args:
        path_type: Path type, overrides warp.path_type
        count: Number of samples
        warp: Radius/angle/spacing source
        anchor: Path centre

    Returns:
        Nx3 numpy array [[x, y, rotation], ...]
    """
    if count < 1:
        return np.array([]).reshape(0, 3)

    func = path_function(path_type)
    samples = np.zeros((count, 3))
    for i in range(count):
        t = 0.5 if count == 1 else i / (count - 1)
        samples[i] = tuple(func(t, warp, anchor))
    return samples
