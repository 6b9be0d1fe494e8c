"""
Image Text Composer - Constants and Configuration

This module contains all constant values used throughout the engine:
- Default style template and default layer values
- Warp path and spacing hint defaults
- History and autosave limits
- Image, font and export constraints

Values mirror what the editor shows to the user, so changing them changes
persisted defaults for newly created layers only.
"""

# ======================================================================
# DEFAULT TEXT STYLE (template for the next created layer)
# ======================================================================

DEFAULT_FONT_FAMILY = 'Arial'
DEFAULT_FONT_SIZE = 40
DEFAULT_FONT_WEIGHT = 'normal'
DEFAULT_FONT_STYLE = 'normal'
DEFAULT_FILL = '#ff0000'    # Red text for visibility on most photos
DEFAULT_STROKE = '#000000'
DEFAULT_STROKE_WIDTH = 2
DEFAULT_TEXT_ALIGN = 'left'

# Font weight tokens -> numeric weights used when drawing
FONT_WEIGHT_NUMERIC = {
    'normal': '400',
    'bold': '700',
}

TEXT_ALIGNMENTS = ('left', 'center', 'right')
FONT_STYLES = ('normal', 'italic')
TEXT_DECORATIONS = ('none', 'underline', 'line-through')

# ======================================================================
# DEFAULT LAYER VALUES
# ======================================================================

DEFAULT_TEXT = 'Double click to edit'
DEFAULT_POSITION_X = 100.0
DEFAULT_POSITION_Y = 100.0
DEFAULT_ROTATION = 0.0
DEFAULT_SCALE_X = 1.0
DEFAULT_SCALE_Y = 1.0
DEFAULT_OPACITY = 1.0
DEFAULT_LINE_HEIGHT = 1.2
DEFAULT_LETTER_SPACING = 0.0
DEFAULT_TEXT_DECORATION = 'none'
DEFAULT_PARAGRAPH_WIDTH = 300.0

DEFAULT_SHADOW_COLOR = '#000000'
DEFAULT_SHADOW_BLUR = 0.0
DEFAULT_SHADOW_OFFSET_X = 0.0
DEFAULT_SHADOW_OFFSET_Y = 0.0

# Offset applied to a duplicated layer (image-space pixels, both axes)
DUPLICATE_OFFSET_X = 20.0
DUPLICATE_OFFSET_Y = 20.0

# ======================================================================
# WARP (TEXT ON A PATH)
# ======================================================================

WARP_PATH_TYPES = ('arc', 'circle', 'wave', 'spiral', 'zigzag', 'heart', 'star', 'custom')

DEFAULT_WARP_PATH_TYPE = 'arc'
DEFAULT_WARP_RADIUS = 100.0
DEFAULT_WARP_ANGLE = 180.0
DEFAULT_WARP_SPACING = 1.0

WAVE_DEGREES_PER_LOBE = 60      # angle / 60 = number of wave lobes
WAVE_AMPLITUDE_RATIO = 0.3      # lobe height as a fraction of the radius
WAVE_MAX_TILT = 45.0            # degrees

SPIRAL_TURNS = 3
SPIRAL_RADIUS_RATIO = 0.8

ZIGZAG_DEGREES_PER_SEGMENT = 45
ZIGZAG_MIN_SEGMENTS = 2
ZIGZAG_HEIGHT_RATIO = 0.4

HEART_SCALE_DIVISOR = 50.0

STAR_POINTS = 5
STAR_INNER_RATIO = 0.4

# Number of samples used when a curve is written out as a polyline
WARP_PATH_SAMPLES = 64

# ======================================================================
# SPACING HINTS
# ======================================================================

DEFAULT_HINT_COLOR = '#3B82F6'
DEFAULT_HINT_OPACITY = 0.6
HINT_LINE_HALF_LENGTH = 20.0
HINT_LINE_WIDTH = 2
HINT_DASH = (5, 5)
HINT_LABEL_FONT_SIZE = 12
HINT_LABEL_OFFSET = 15.0

# ======================================================================
# HISTORY MANAGEMENT
# ======================================================================

# Maximum undo/redo history
MAX_HISTORY_ENTRIES = 20

# ======================================================================
# AUTOSAVE
# ======================================================================

AUTOSAVE_KEY = 'text-editor-autosave'
AUTOSAVE_DELAY_MS = 2000
AUTOSAVE_SCHEMA_VERSION = '1.0'

# ======================================================================
# IMAGE UPLOAD
# ======================================================================

ACCEPTED_IMAGE_TYPES = ('image/png',)
DEFAULT_MAX_IMAGE_SIZE_MB = 10

# Canvas fitting (the image is scaled to fit inside this box)
CANVAS_MAX_WIDTH = 800
CANVAS_MAX_HEIGHT = 600

# ======================================================================
# FONTS
# ======================================================================

FONT_FILE_EXTENSIONS = ('.ttf', '.otf', '.woff', '.woff2')

# ======================================================================
# EXPORT
# ======================================================================

EXPORT_PIXEL_RATIO = 2
EXPORT_FILENAME = 'image-with-text.png'
