"""
Image Text Composer - Text Layer Data Model

Provides the immutable value types for one editable text object:
- TextLayer with typography, transform, lock, warp and spacing-hint state
- TextShadow, WarpSettings, SpacingHintSettings sub-records
- TextStyle, the non-persisted "current style" template for new layers
- Conversion to/from the persisted record layout (camelCase keys)

This is part of the MODEL layer - pure data, no UI logic. Layers are frozen;
every edit produces a new value (copy-on-write), so a history snapshot can
hold references to them without ever seeing later changes.

Usage:
    layer = TextLayer.create(TextStyle())
    moved = layer.with_changes(x=250.0, y=80.0)
    data = moved.to_dict()
    again = TextLayer.from_dict(data)
"""

import logging
import uuid as uuid_module
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from models.color import Color
from constants import (
    DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, DEFAULT_FONT_WEIGHT, DEFAULT_FONT_STYLE,
    DEFAULT_FILL, DEFAULT_STROKE, DEFAULT_STROKE_WIDTH, DEFAULT_TEXT_ALIGN,
    DEFAULT_TEXT, DEFAULT_POSITION_X, DEFAULT_POSITION_Y,
    DEFAULT_ROTATION, DEFAULT_SCALE_X, DEFAULT_SCALE_Y,
    DEFAULT_OPACITY, DEFAULT_LINE_HEIGHT, DEFAULT_LETTER_SPACING,
    DEFAULT_TEXT_DECORATION, DEFAULT_PARAGRAPH_WIDTH,
    DEFAULT_SHADOW_COLOR, DEFAULT_SHADOW_BLUR, DEFAULT_SHADOW_OFFSET_X, DEFAULT_SHADOW_OFFSET_Y,
    DEFAULT_WARP_PATH_TYPE, DEFAULT_WARP_RADIUS, DEFAULT_WARP_ANGLE, DEFAULT_WARP_SPACING,
    DEFAULT_HINT_COLOR, DEFAULT_HINT_OPACITY,
    FONT_WEIGHT_NUMERIC, TEXT_ALIGNMENTS, FONT_STYLES, TEXT_DECORATIONS, WARP_PATH_TYPES,
)

_logger = logging.getLogger('TextLayer')


def _check_color(name: str, value: str):
    if not Color.is_valid(value):
        raise ValueError(f"{name} must be a CSS color, got {value!r}")


def _check_unit(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def _check_choice(name: str, value: str, choices):
    if value not in choices:
        raise ValueError(f"Invalid {name}: {value!r} (expected one of {', '.join(choices)})")


@dataclass(frozen=True)
class TextShadow:
    """Drop shadow behind a text run."""
    color: str = DEFAULT_SHADOW_COLOR
    blur: float = DEFAULT_SHADOW_BLUR
    offset_x: float = DEFAULT_SHADOW_OFFSET_X
    offset_y: float = DEFAULT_SHADOW_OFFSET_Y

    def __post_init__(self):
        _check_color('shadow color', self.color)
        if self.blur < 0:
            raise ValueError(f"shadow blur must be >= 0, got {self.blur}")

    @property
    def visible(self) -> bool:
        """A shadow is only drawn when it blurs or is offset"""
        return self.blur > 0 or self.offset_x != 0 or self.offset_y != 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'color': self.color,
            'blur': self.blur,
            'offsetX': self.offset_x,
            'offsetY': self.offset_y,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextShadow':
        if not isinstance(data, dict):
            raise TypeError(f"Shadow record must be a dict, got {type(data).__name__}")
        return cls(
            color=data.get('color', DEFAULT_SHADOW_COLOR),
            blur=float(data.get('blur', DEFAULT_SHADOW_BLUR)),
            offset_x=float(data.get('offsetX', DEFAULT_SHADOW_OFFSET_X)),
            offset_y=float(data.get('offsetY', DEFAULT_SHADOW_OFFSET_Y)),
        )


@dataclass(frozen=True)
class WarpSettings:
    """Text-on-a-path settings.

    path is the cached SVG path descriptor built by
    services.warp_path_builder; an empty string means "not built yet".
    """
    enabled: bool = False
    path_type: str = DEFAULT_WARP_PATH_TYPE
    radius: float = DEFAULT_WARP_RADIUS
    angle: float = DEFAULT_WARP_ANGLE
    spacing: float = DEFAULT_WARP_SPACING
    path: str = ''

    def __post_init__(self):
        _check_choice('warp path type', self.path_type, WARP_PATH_TYPES)
        if self.enabled and self.radius <= 0:
            raise ValueError(f"warp radius must be > 0 when warp is enabled, got {self.radius}")


@dataclass(frozen=True)
class SpacingHintSettings:
    """Whether this layer shows gap annotations to its neighbours."""
    enabled: bool = False
    color: str = DEFAULT_HINT_COLOR
    opacity: float = DEFAULT_HINT_OPACITY

    def __post_init__(self):
        _check_color('spacing hint color', self.color)
        _check_unit('spacing hint opacity', self.opacity)


@dataclass(frozen=True)
class TextStyle:
    """Template used to seed the next created layer (never persisted)."""
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    font_weight: str = DEFAULT_FONT_WEIGHT
    fill: str = DEFAULT_FILL
    stroke: str = DEFAULT_STROKE
    stroke_width: float = DEFAULT_STROKE_WIDTH
    text_align: str = DEFAULT_TEXT_ALIGN
    font_style: str = DEFAULT_FONT_STYLE

    def __post_init__(self):
        _check_color('fill', self.fill)
        _check_color('stroke', self.stroke)
        _check_choice('text alignment', self.text_align, TEXT_ALIGNMENTS)
        _check_choice('font style', self.font_style, FONT_STYLES)
        if self.font_size <= 0:
            raise ValueError(f"font size must be > 0, got {self.font_size}")
        if self.stroke_width < 0:
            raise ValueError(f"stroke width must be >= 0, got {self.stroke_width}")

    def with_changes(self, **changes) -> 'TextStyle':
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in changes.items() if k in known})


@dataclass(frozen=True)
class TextLayer:
    """One editable text object.

    Layer identity is the id string; it is assigned once at creation and kept
    through every edit, undo and autosave round-trip.
    """
    id: str
    x: float = DEFAULT_POSITION_X
    y: float = DEFAULT_POSITION_Y
    text: str = DEFAULT_TEXT

    # Typography
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = DEFAULT_FONT_SIZE
    font_weight: str = DEFAULT_FONT_WEIGHT
    font_style: str = DEFAULT_FONT_STYLE
    fill: str = DEFAULT_FILL
    stroke: str = DEFAULT_STROKE
    stroke_width: float = DEFAULT_STROKE_WIDTH
    text_align: str = DEFAULT_TEXT_ALIGN
    line_height: float = DEFAULT_LINE_HEIGHT
    letter_spacing: float = DEFAULT_LETTER_SPACING
    text_decoration: str = DEFAULT_TEXT_DECORATION
    opacity: float = DEFAULT_OPACITY
    shadow: TextShadow = field(default_factory=TextShadow)
    paragraph_width: float = DEFAULT_PARAGRAPH_WIDTH

    # Transform extras
    rotation: float = DEFAULT_ROTATION
    scale_x: float = DEFAULT_SCALE_X
    scale_y: float = DEFAULT_SCALE_Y

    locked: bool = False
    warp: WarpSettings = field(default_factory=WarpSettings)
    hints: SpacingHintSettings = field(default_factory=SpacingHintSettings)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Layer id must be a non-empty string")
        _check_unit('opacity', self.opacity)
        _check_color('fill', self.fill)
        _check_color('stroke', self.stroke)
        _check_choice('text alignment', self.text_align, TEXT_ALIGNMENTS)
        _check_choice('font style', self.font_style, FONT_STYLES)
        _check_choice('text decoration', self.text_decoration, TEXT_DECORATIONS)
        if self.font_size <= 0:
            raise ValueError(f"font size must be > 0, got {self.font_size}")
        if self.stroke_width < 0:
            raise ValueError(f"stroke width must be >= 0, got {self.stroke_width}")
        if self.paragraph_width <= 0:
            raise ValueError(f"paragraph width must be > 0, got {self.paragraph_width}")

    # ========================================
    # Construction
    # ========================================

    @staticmethod
    def new_id() -> str:
        return str(uuid_module.uuid4())

    @classmethod
    def create(cls, style: Optional[TextStyle] = None, layer_id: Optional[str] = None) -> 'TextLayer':
        """Create a layer with default values plus the given style template

        Args:
            style: Style template (current style), defaults to TextStyle()
            layer_id: Explicit id, a fresh UUID if omitted

        Returns:
            New TextLayer
        """
        style = style or TextStyle()
        return cls(
            id=layer_id or cls.new_id(),
            font_size=style.font_size,
            font_family=style.font_family,
            font_weight=style.font_weight,
            fill=style.fill,
            stroke=style.stroke,
            stroke_width=style.stroke_width,
            text_align=style.text_align,
            font_style=style.font_style,
        )

    def with_changes(self, **changes) -> 'TextLayer':
        """Return a copy with the given attributes replaced (validated again)"""
        return replace(self, **changes)

    # ========================================
    # Derived values
    # ========================================

    @property
    def font_weight_numeric(self) -> str:
        """Weight token as drawn: 'normal' -> '400', 'bold' -> '700', else unchanged"""
        return FONT_WEIGHT_NUMERIC.get(self.font_weight, self.font_weight)

    @property
    def is_warped(self) -> bool:
        """True when characters are drawn along the cached warp path"""
        return self.warp.enabled and bool(self.warp.path)

    # ========================================
    # Persisted record layout
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Export to the persisted record layout (JSON-compatible)"""
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'text': self.text,
            'fontSize': self.font_size,
            'fontFamily': self.font_family,
            'fontWeight': self.font_weight,
            'fill': self.fill,
            'stroke': self.stroke,
            'strokeWidth': self.stroke_width,
            'textAlign': self.text_align,
            'fontStyle': self.font_style,
            'opacity': self.opacity,
            'lineHeight': self.line_height,
            'letterSpacing': self.letter_spacing,
            'textDecoration': self.text_decoration,
            'textShadow': self.shadow.to_dict(),
            'paragraphWidth': self.paragraph_width,
            'rotation': self.rotation,
            'scaleX': self.scale_x,
            'scaleY': self.scale_y,
            'locked': self.locked,
            'isWarped': self.warp.enabled,
            'warpPath': self.warp.path,
            'warpPathType': self.warp.path_type,
            'warpRadius': self.warp.radius,
            'warpAngle': self.warp.angle,
            'warpSpacing': self.warp.spacing,
            'showSpacingHints': self.hints.enabled,
            'spacingHintColor': self.hints.color,
            'spacingHintOpacity': self.hints.opacity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextLayer':
        """Create a layer from the persisted record layout

        Missing keys take their defaults (records written before a field
        existed still load).

        Raises:
            ValueError: If the id is missing or a value breaks an invariant
            TypeError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise TypeError(f"Layer record must be a dict, got {type(data).__name__}")
        if not data.get('id'):
            raise ValueError("Layer record has no id")

        return cls(
            id=str(data['id']),
            x=float(data.get('x', DEFAULT_POSITION_X)),
            y=float(data.get('y', DEFAULT_POSITION_Y)),
            text=str(data.get('text', DEFAULT_TEXT)),
            font_family=data.get('fontFamily', DEFAULT_FONT_FAMILY),
            font_size=float(data.get('fontSize', DEFAULT_FONT_SIZE)),
            font_weight=str(data.get('fontWeight', DEFAULT_FONT_WEIGHT)),
            font_style=data.get('fontStyle', DEFAULT_FONT_STYLE),
            fill=data.get('fill', DEFAULT_FILL),
            stroke=data.get('stroke', DEFAULT_STROKE),
            stroke_width=float(data.get('strokeWidth', DEFAULT_STROKE_WIDTH)),
            text_align=data.get('textAlign', DEFAULT_TEXT_ALIGN),
            line_height=float(data.get('lineHeight', DEFAULT_LINE_HEIGHT)),
            letter_spacing=float(data.get('letterSpacing', DEFAULT_LETTER_SPACING)),
            text_decoration=data.get('textDecoration', DEFAULT_TEXT_DECORATION),
            opacity=float(data.get('opacity', DEFAULT_OPACITY)),
            shadow=TextShadow.from_dict(data.get('textShadow') or {}),
            paragraph_width=float(data.get('paragraphWidth') or DEFAULT_PARAGRAPH_WIDTH),
            rotation=float(data.get('rotation', DEFAULT_ROTATION)),
            scale_x=float(data.get('scaleX', DEFAULT_SCALE_X)),
            scale_y=float(data.get('scaleY', DEFAULT_SCALE_Y)),
            locked=bool(data.get('locked', False)),
            warp=WarpSettings(
                enabled=bool(data.get('isWarped', False)),
                path_type=data.get('warpPathType') or DEFAULT_WARP_PATH_TYPE,
                radius=float(data.get('warpRadius', DEFAULT_WARP_RADIUS)),
                angle=float(data.get('warpAngle', DEFAULT_WARP_ANGLE)),
                spacing=float(data.get('warpSpacing', DEFAULT_WARP_SPACING)),
                path=str(data.get('warpPath') or ''),
            ),
            hints=SpacingHintSettings(
                enabled=bool(data.get('showSpacingHints', False)),
                color=data.get('spacingHintColor') or DEFAULT_HINT_COLOR,
                opacity=float(data.get('spacingHintOpacity', DEFAULT_HINT_OPACITY)),
            ),
        )

    def __repr__(self) -> str:
        return f"TextLayer(id='{self.id}', text={self.text!r}, x={self.x:.1f}, y={self.y:.1f})"
