"""
Image Text Composer - Data Models

This module contains the data model classes for the text layer engine.
This is the MODEL in MVC architecture.

Public API: TextLayer and its sub-records, the typed patches, LayerStore and
SelectionController.
"""

from .text_layer import TextLayer, TextStyle, TextShadow, WarpSettings, SpacingHintSettings
from .layer_patch import (
    LayerPatch, ContentPatch, TypographyPatch, ShadowPatch, TransformPatch,
    WarpPatch, SpacingHintPatch, patch_from_dict,
)
from .selection import SelectionController
from .layer_store import LayerStore

__all__ = [
    'TextLayer', 'TextStyle', 'TextShadow', 'WarpSettings', 'SpacingHintSettings',
    'LayerPatch', 'ContentPatch', 'TypographyPatch', 'ShadowPatch', 'TransformPatch',
    'WarpPatch', 'SpacingHintPatch', 'patch_from_dict',
    'SelectionController', 'LayerStore',
]
