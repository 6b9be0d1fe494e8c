"""Renderer bridge - turns layer state into draw instructions.

The rendering surface (a canvas widget, or the exporter) never reads layers
directly. It receives a RenderFrame: draw instructions in paint order followed
by the spacing hint overlays, and paints them as given.

- A plain layer becomes one DrawInstruction for the whole text run.
- A warped layer with a cached path becomes one DrawInstruction per
  character, positioned and rotated by utils.warp_paths (scale 1, no shadow).
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from models.text_layer import TextLayer, TextShadow
from models.transform import Vec2
from utils.layout_math import SpacingHint, compute_spacing_hints
from utils.warp_paths import place_characters
from constants import (
    HINT_LINE_HALF_LENGTH, HINT_LINE_WIDTH, HINT_DASH,
    HINT_LABEL_FONT_SIZE, HINT_LABEL_OFFSET,
    CANVAS_MAX_WIDTH, CANVAS_MAX_HEIGHT,
)

_logger = logging.getLogger('RenderBridge')


@dataclass(frozen=True)
class DrawInstruction:
    """One text node to paint

    char_index is the character position for warped glyphs, None for a
    whole-run instruction. width is the wrap width (None for glyphs).
    """
    layer_id: str
    text: str
    x: float
    y: float
    rotation: float
    scale_x: float
    scale_y: float
    font_family: str
    font_size: float
    font_weight: str
    font_style: str
    fill: str
    stroke: str
    stroke_width: float
    opacity: float
    draggable: bool
    align: str = 'left'
    line_height: float = 1.0
    letter_spacing: float = 0.0
    width: Optional[float] = None
    decoration: Optional[str] = None
    shadow: Optional[TextShadow] = None
    char_index: Optional[int] = None

    @property
    def is_glyph(self) -> bool:
        return self.char_index is not None


@dataclass(frozen=True)
class HintOverlay:
    """A dashed gap line plus its pixel label"""
    axis: str
    start: Vec2
    end: Vec2
    color: str
    opacity: float
    label: str
    label_pos: Vec2
    label_align: str
    stroke_width: float = HINT_LINE_WIDTH
    dash: Tuple[int, int] = HINT_DASH
    font_size: int = HINT_LABEL_FONT_SIZE


@dataclass(frozen=True)
class RenderFrame:
    instructions: Tuple[DrawInstruction, ...]
    overlays: Tuple[HintOverlay, ...]

    def instructions_for(self, layer_id: str) -> List[DrawInstruction]:
        return [item for item in self.instructions if item.layer_id == layer_id]


def _whole_run(layer: TextLayer) -> DrawInstruction:
    return DrawInstruction(
        layer_id=layer.id,
        text=layer.text,
        x=layer.x,
        y=layer.y,
        rotation=layer.rotation,
        scale_x=layer.scale_x,
        scale_y=layer.scale_y,
        font_family=layer.font_family,
        font_size=layer.font_size,
        font_weight=layer.font_weight_numeric,
        font_style=layer.font_style,
        fill=layer.fill,
        stroke=layer.stroke,
        stroke_width=layer.stroke_width,
        opacity=layer.opacity,
        draggable=not layer.locked,
        align=layer.text_align,
        line_height=layer.line_height,
        letter_spacing=layer.letter_spacing,
        width=layer.paragraph_width,
        decoration=None if layer.text_decoration == 'none' else layer.text_decoration,
        shadow=layer.shadow if layer.shadow.visible else None,
    )


def _glyphs(layer: TextLayer) -> List[DrawInstruction]:
    placements = place_characters(layer.text, layer.warp, (layer.x, layer.y))
    return [
        DrawInstruction(
            layer_id=layer.id,
            text=char,
            x=placement.x,
            y=placement.y,
            rotation=placement.rotation,
            scale_x=1.0,
            scale_y=1.0,
            font_family=layer.font_family,
            font_size=layer.font_size,
            font_weight=layer.font_weight_numeric,
            font_style=layer.font_style,
            fill=layer.fill,
            stroke=layer.stroke,
            stroke_width=layer.stroke_width,
            opacity=layer.opacity,
            draggable=not layer.locked,
            char_index=index,
        )
        for index, (char, placement) in enumerate(zip(layer.text, placements))
    ]


def build_draw_instructions(layers: Sequence[TextLayer]) -> List[DrawInstruction]:
    """Draw instructions for all layers, bottom-most first"""
    instructions = []
    for layer in layers:
        if layer.is_warped:
            instructions.extend(_glyphs(layer))
        else:
            instructions.append(_whole_run(layer))
    return instructions


def hint_overlay(hint: SpacingHint) -> HintOverlay:
    cx, cy = hint.anchor
    half = HINT_LINE_HALF_LENGTH
    if hint.axis == 'horizontal':
        start, end = Vec2(cx - half, cy), Vec2(cx + half, cy)
        label_pos, label_align = Vec2(cx, cy - HINT_LABEL_OFFSET), 'center'
    else:
        start, end = Vec2(cx, cy - half), Vec2(cx, cy + half)
        label_pos, label_align = Vec2(cx + HINT_LABEL_OFFSET, cy), 'left'
    return HintOverlay(
        axis=hint.axis,
        start=start,
        end=end,
        color=hint.color,
        opacity=hint.opacity,
        label=hint.label,
        label_pos=label_pos,
        label_align=label_align,
    )


def build_hint_overlays(layers: Sequence[TextLayer]) -> List[HintOverlay]:
    return [hint_overlay(hint) for hint in compute_spacing_hints(layers)]


def build_frame(layers: Sequence[TextLayer]) -> RenderFrame:
    """Everything the rendering surface needs to repaint"""
    frame = RenderFrame(
        instructions=tuple(build_draw_instructions(layers)),
        overlays=tuple(build_hint_overlays(layers)),
    )
    _logger.debug(f"Frame: {len(frame.instructions)} instruction(s), {len(frame.overlays)} overlay(s)")
    return frame


def fit_canvas(image_width: float, image_height: float,
               max_width: float = CANVAS_MAX_WIDTH,
               max_height: float = CANVAS_MAX_HEIGHT) -> Tuple[float, float, float]:
    """Display size for an image inside the canvas bounds

    Returns:
        (canvas_width, canvas_height, scale) preserving the aspect ratio

    Raises:
        ValueError: If a dimension is not positive
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
    scale = min(max_width / image_width, max_height / image_height)
    return image_width * scale, image_height * scale, scale
