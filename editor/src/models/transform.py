"""Transform data structures for coordinate and placement representation."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec2:
    """2D vector for coordinate pairs.

    Used for any x/y pair in image space (pixels, top-left origin):
    - Layer anchors
    - Spacing hint midpoints
    - Path sample points
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))


@dataclass(frozen=True)
class GlyphPlacement:
    """Position and rotation of one character placed along a warp path.

    rotation is in degrees, clockwise, as expected by the rendering surface.
    """
    x: float
    y: float
    rotation: float = 0.0

    def __iter__(self):
        return iter((self.x, self.y, self.rotation))
