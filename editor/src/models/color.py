"""
Image Text Composer - Color Domain Model

Canonical color representation for the engine. Layers store colors as the CSS
strings the user picked (e.g. '#ff0000'); this class parses them for
validation and for compositing.
"""

from typing import Optional, Tuple

from PIL import ImageColor


class Color:
    """Immutable color with uint8 RGB storage and the original CSS text.

    Internal storage: _r, _g, _b (uint8 0-255), _css (string as given)
    """

    def __init__(self, r: int, g: int, b: int, css: str = ""):
        """Direct construction from RGB uint8 values (0-255).

        Args:
            r: Red component (0-255)
            g: Green component (0-255)
            b: Blue component (0-255)
            css: Original CSS text, defaults to the hex form
        """
        self._r = max(0, min(255, int(r)))
        self._g = max(0, min(255, int(g)))
        self._b = max(0, min(255, int(b)))
        self._css = css or self.to_hex()

    @property
    def r(self) -> int:
        """Red component (0-255) - READ ONLY"""
        return self._r

    @property
    def g(self) -> int:
        """Green component (0-255) - READ ONLY"""
        return self._g

    @property
    def b(self) -> int:
        """Blue component (0-255) - READ ONLY"""
        return self._b

    @property
    def css(self) -> str:
        """CSS text this color was parsed from - READ ONLY"""
        return self._css

    # ========================================
    # Output Methods
    # ========================================

    def to_hex(self) -> str:
        """Convert to hex color string: #rrggbb (lowercase, as stored on layers)."""
        return f"#{self._r:02x}{self._g:02x}{self._b:02x}"

    def to_rgb255(self) -> Tuple[int, int, int]:
        return (self._r, self._g, self._b)

    def to_rgba255(self, opacity: float = 1.0) -> Tuple[int, int, int, int]:
        """Convert to an RGBA tuple with alpha taken from an opacity in [0, 1].

        Args:
            opacity: Opacity value, clamped to [0, 1]

        Returns:
            Tuple of (r, g, b, a) in 0-255 range
        """
        opacity = max(0.0, min(1.0, float(opacity)))
        return (self._r, self._g, self._b, int(round(opacity * 255)))

    # ========================================
    # Static Factory Methods
    # ========================================

    @staticmethod
    def from_css(css: str) -> Optional['Color']:
        """Create Color from any CSS color string Pillow understands.

        Accepts '#rgb', '#rrggbb', 'rgb(...)', 'hsl(...)' and named colors.

        Returns:
            Color object if parse succeeds, None otherwise
        """
        if not isinstance(css, str) or not css.strip():
            return None
        try:
            rgb = ImageColor.getrgb(css.strip())
        except ValueError:
            return None
        return Color(rgb[0], rgb[1], rgb[2], css=css)

    @staticmethod
    def is_valid(css: str) -> bool:
        return Color.from_css(css) is not None

    # ========================================
    # Equality and Hashing
    # ========================================

    def __eq__(self, other) -> bool:
        """Test equality based on RGB values."""
        if not isinstance(other, Color):
            return False
        return self.to_rgb255() == other.to_rgb255()

    def __hash__(self) -> int:
        return hash(self.to_rgb255())

    def __repr__(self) -> str:
        return f"Color({self._r}, {self._g}, {self._b})"

    def __str__(self) -> str:
        return self.to_hex()
