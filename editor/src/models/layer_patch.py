"""
Image Text Composer - Typed Layer Patches

Property updates are expressed as one patch type per property group instead
of an open "set property X to Y" bag:

    ContentPatch       text
    TypographyPatch    font, colors, alignment, spacing, opacity, wrap width
    ShadowPatch        text shadow
    TransformPatch     position, rotation, scale
    WarpPatch          text-on-a-path settings
    SpacingHintPatch   gap annotation settings

Every field defaults to None, meaning "leave unchanged". Patches only build new
layer values; the LayerStore decides which layers they apply to.

Usage:
    patch = TypographyPatch(font_size=64, fill='#00ff00')
    store.update_layers({layer_id}, patch)

    # From UI/persisted keys (unknown keys raise ValueError)
    patch = patch_from_dict('typography', {'fontSize': 64})
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Optional

from models.text_layer import TextLayer, TextStyle


class LayerPatch:
    """Base for all patch groups.

    Subclasses set GROUP, ALIASES (persisted camelCase key -> field name) and
    SINGLE_TARGET (True when the group edits position/shape and therefore
    needs exactly one selected layer).
    """

    GROUP = ''
    ALIASES: Dict[str, str] = {}
    SINGLE_TARGET = False

    def changes(self) -> Dict[str, Any]:
        """Fields that are set on this patch"""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        return not self.changes()

    def apply(self, layer: TextLayer) -> TextLayer:
        return layer.with_changes(**self.changes())

    @classmethod
    def field_names(cls):
        return {f.name for f in fields(cls)}

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> 'LayerPatch':
        """Build a patch from snake_case or persisted camelCase keys

        Raises:
            ValueError: If any key is not a property of this group
        """
        known = cls.field_names()
        kwargs = {}
        unknown = []
        for key, value in mapping.items():
            name = cls.ALIASES.get(key, key)
            if name not in known:
                unknown.append(key)
                continue
            kwargs[name] = value
        if unknown:
            raise ValueError(f"Unknown {cls.GROUP} properties: {', '.join(sorted(unknown))}")
        return cls(**kwargs)


@dataclass(frozen=True)
class ContentPatch(LayerPatch):
    text: Optional[str] = None

    GROUP = 'content'
    ALIASES = {}
    SINGLE_TARGET = True


@dataclass(frozen=True)
class TypographyPatch(LayerPatch):
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[str] = None
    font_style: Optional[str] = None
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    text_align: Optional[str] = None
    line_height: Optional[float] = None
    letter_spacing: Optional[float] = None
    text_decoration: Optional[str] = None
    opacity: Optional[float] = None
    paragraph_width: Optional[float] = None

    GROUP = 'typography'
    ALIASES = {
        'fontFamily': 'font_family',
        'fontSize': 'font_size',
        'fontWeight': 'font_weight',
        'fontStyle': 'font_style',
        'strokeWidth': 'stroke_width',
        'textAlign': 'text_align',
        'lineHeight': 'line_height',
        'letterSpacing': 'letter_spacing',
        'textDecoration': 'text_decoration',
        'paragraphWidth': 'paragraph_width',
    }

    def style_changes(self) -> Dict[str, Any]:
        """Subset of this patch that also belongs to the current style template"""
        style_fields = {f.name for f in fields(TextStyle)}
        return {k: v for k, v in self.changes().items() if k in style_fields}


@dataclass(frozen=True)
class ShadowPatch(LayerPatch):
    color: Optional[str] = None
    blur: Optional[float] = None
    offset_x: Optional[float] = None
    offset_y: Optional[float] = None

    GROUP = 'shadow'
    ALIASES = {'offsetX': 'offset_x', 'offsetY': 'offset_y'}

    def apply(self, layer: TextLayer) -> TextLayer:
        return layer.with_changes(shadow=replace(layer.shadow, **self.changes()))


@dataclass(frozen=True)
class TransformPatch(LayerPatch):
    x: Optional[float] = None
    y: Optional[float] = None
    rotation: Optional[float] = None
    scale_x: Optional[float] = None
    scale_y: Optional[float] = None

    GROUP = 'transform'
    ALIASES = {'scaleX': 'scale_x', 'scaleY': 'scale_y'}
    SINGLE_TARGET = True


@dataclass(frozen=True)
class WarpPatch(LayerPatch):
    enabled: Optional[bool] = None
    path_type: Optional[str] = None
    radius: Optional[float] = None
    angle: Optional[float] = None
    spacing: Optional[float] = None

    GROUP = 'warp'
    ALIASES = {
        'isWarped': 'enabled',
        'warpPathType': 'path_type',
        'warpRadius': 'radius',
        'warpAngle': 'angle',
        'warpSpacing': 'spacing',
    }
    SINGLE_TARGET = True

    def apply(self, layer: TextLayer,
              path_builder: Optional[Callable[[str, float, float], str]] = None) -> TextLayer:
        """Apply the warp changes, rebuilding the cached path when needed

        Args:
            layer: Layer to update
            path_builder: Callable (path_type, radius, angle) -> path descriptor

        Returns:
            Updated layer
        """
        warp = replace(layer.warp, **self.changes())
        geometry_changed = (warp.path_type, warp.radius, warp.angle) != \
            (layer.warp.path_type, layer.warp.radius, layer.warp.angle)
        if warp.enabled and path_builder and (geometry_changed or not warp.path):
            warp = replace(warp, path=path_builder(warp.path_type, warp.radius, warp.angle))
        return layer.with_changes(warp=warp)


@dataclass(frozen=True)
class SpacingHintPatch(LayerPatch):
    enabled: Optional[bool] = None
    color: Optional[str] = None
    opacity: Optional[float] = None

    GROUP = 'hints'
    ALIASES = {
        'showSpacingHints': 'enabled',
        'spacingHintColor': 'color',
        'spacingHintOpacity': 'opacity',
    }

    def apply(self, layer: TextLayer) -> TextLayer:
        return layer.with_changes(hints=replace(layer.hints, **self.changes()))


PATCH_GROUPS = {
    cls.GROUP: cls
    for cls in (ContentPatch, TypographyPatch, ShadowPatch, TransformPatch, WarpPatch, SpacingHintPatch)
}


def patch_from_dict(group: str, mapping: Dict[str, Any]) -> LayerPatch:
    """Build a typed patch for a property group

    Args:
        group: One of PATCH_GROUPS ('content', 'typography', ...)
        mapping: Property values keyed by field name or persisted key

    Raises:
        ValueError: If the group or any key is unknown
    """
    if group not in PATCH_GROUPS:
        raise ValueError(f"Unknown property group: {group!r}")
    return PATCH_GROUPS[group].from_mapping(mapping)
