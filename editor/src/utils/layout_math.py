"""Spacing, alignment and distribution math for groups of text layers.

Pure functions over layer values. They never mutate layers; they return the
new coordinates keyed by layer id and the LayerStore applies them.

Sorting is stable everywhere: layers sharing a coordinate keep their
collection (z-order) order.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from models.text_layer import TextLayer
from models.transform import Vec2
from constants import DEFAULT_HINT_COLOR, DEFAULT_HINT_OPACITY

AXES = ('x', 'y')
MIN_ALIGN_COUNT = 2
MIN_DISTRIBUTE_COUNT = 3


@dataclass(frozen=True)
class SpacingHint:
    """Gap between two neighbouring layers along one axis.

    axis is 'horizontal' (gap in x) or 'vertical' (gap in y). anchor is the
    midpoint where the annotation is drawn.
    """
    axis: str
    start_id: str
    end_id: str
    gap: float
    anchor: Vec2
    color: str
    opacity: float

    @property
    def label(self) -> str:
        return f"{round(self.gap)}px"


def _check_axis(axis: str):
    if axis not in AXES:
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")


def _hint_style(layer: TextLayer):
    # Falsy values fall back to the defaults (an opacity of 0 included)
    return (layer.hints.color or DEFAULT_HINT_COLOR,
            layer.hints.opacity or DEFAULT_HINT_OPACITY)


def compute_spacing_hints(layers: Iterable[TextLayer]) -> List[SpacingHint]:
    """Gap annotations between layers that have spacing hints enabled

    Horizontal hints come from one pass over the layers sorted by x, vertical
    hints from an independent pass sorted by y. Both lists are returned
    together, horizontal first.
    """
    with_hints = [layer for layer in layers if layer.hints.enabled]
    if len(with_hints) < 2:
        return []

    hints = []

    by_x = sorted(with_hints, key=lambda layer: layer.x)
    for current, following in zip(by_x, by_x[1:]):
        gap = following.x - current.x
        color, opacity = _hint_style(current)
        hints.append(SpacingHint(
            axis='horizontal',
            start_id=current.id,
            end_id=following.id,
            gap=gap,
            anchor=Vec2(current.x + gap / 2, (current.y + following.y) / 2),
            color=color,
            opacity=opacity,
        ))

    by_y = sorted(with_hints, key=lambda layer: layer.y)
    for current, following in zip(by_y, by_y[1:]):
        gap = following.y - current.y
        color, opacity = _hint_style(current)
        hints.append(SpacingHint(
            axis='vertical',
            start_id=current.id,
            end_id=following.id,
            gap=gap,
            anchor=Vec2((current.x + following.x) / 2, current.y + gap / 2),
            color=color,
            opacity=opacity,
        ))

    return hints


def align_positions(layers: Sequence[TextLayer], axis: str) -> Dict[str, float]:
    """Center-align layers on one axis (every coordinate becomes the mean)

    Args:
        layers: Selected layers, at least 2
        axis: 'x' or 'y'

    Returns:
        Dict mapping layer id -> new coordinate

    Raises:
        ValueError: If fewer than 2 layers or an unknown axis
    """
    _check_axis(axis)
    if len(layers) < MIN_ALIGN_COUNT:
        raise ValueError(f"Need at least {MIN_ALIGN_COUNT} layers to align, got {len(layers)}")

    mean = sum(getattr(layer, axis) for layer in layers) / len(layers)
    return {layer.id: mean for layer in layers}


def distribute_positions(layers: Sequence[TextLayer], axis: str) -> Dict[str, float]:
    """Spread layers evenly between the first and last along one axis

    Layers are sorted by their current coordinate (stable, ties keep the
    given order); the i-th layer in that order is placed at
    first + i * (last - first) / (count - 1).

    Raises:
        ValueError: If fewer than 3 layers or an unknown axis
    """
    _check_axis(axis)
    if len(layers) < MIN_DISTRIBUTE_COUNT:
        raise ValueError(f"Need at least {MIN_DISTRIBUTE_COUNT} layers to distribute, got {len(layers)}")

    ordered = sorted(layers, key=lambda layer: getattr(layer, axis))
    first = getattr(ordered[0], axis)
    last = getattr(ordered[-1], axis)
    spacing = (last - first) / (len(ordered) - 1)
    return {layer.id: first + index * spacing for index, layer in enumerate(ordered)}
