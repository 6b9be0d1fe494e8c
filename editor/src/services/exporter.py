"""PNG export - composites draw instructions over the background image.

Purely a read of the editor state: the layers are turned into a RenderFrame
(services.render_bridge) and every draw instruction is rasterized on its own
RGBA tile, scaled and rotated about its origin, then alpha-composited onto
the image. Spacing hint overlays are editing aids and are not exported.

Output resolution is the image size times pixel_ratio.
"""

import io
import logging
from typing import Callable, Optional, Sequence

from PIL import Image, ImageDraw, ImageFilter, ImageOps

from models.color import Color
from models.text_layer import TextLayer
from services.render_bridge import DrawInstruction, build_draw_instructions
from services.font_loader import default_font
from constants import EXPORT_PIXEL_RATIO, EXPORT_FILENAME

_logger = logging.getLogger('Exporter')

FontResolver = Callable[[str, float], object]


def _rgba(css: str, opacity: float = 1.0):
    color = Color.from_css(css) or Color(0, 0, 0)
    return color.to_rgba255(opacity)


def _wrap_lines(text: str, font, width: Optional[float], letter_spacing: float):
    """Split on line breaks, then word-wrap each paragraph to width"""
    def length(s):
        return font.getlength(s) + letter_spacing * len(s)

    lines = []
    for paragraph in text.split('\n'):
        if width is None:
            lines.append(paragraph)
            continue
        current = ''
        for word in paragraph.split(' '):
            candidate = f"{current} {word}" if current else word
            if current and length(candidate) > width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def _draw_line(draw, origin, line, font, fill, stroke, stroke_width, letter_spacing):
    x, y = origin
    if not letter_spacing:
        draw.text((x, y), line, font=font, fill=fill, stroke_width=stroke_width, stroke_fill=stroke)
        return
    for char in line:
        draw.text((x, y), char, font=font, fill=fill, stroke_width=stroke_width, stroke_fill=stroke)
        x += font.getlength(char) + letter_spacing


def _render_block(item: DrawInstruction, font, ratio: float):
    """Rasterize one instruction unrotated; returns (tile, origin_x, origin_y)"""
    size = item.font_size * ratio
    stroke_width = int(round(item.stroke_width * ratio))
    letter_spacing = item.letter_spacing * ratio
    width = item.width * ratio if item.width else None

    lines = _wrap_lines(item.text, font, width, letter_spacing)
    line_step = size * item.line_height
    text_width = max((font.getlength(line) + letter_spacing * len(line) for line in lines), default=0)
    block_width = width if width else text_width

    shadow = item.shadow
    margin = stroke_width + 2
    if shadow:
        margin += int(shadow.blur * ratio * 2 + max(abs(shadow.offset_x), abs(shadow.offset_y)) * ratio)

    tile_w = int(block_width + 2 * margin) + 1
    tile_h = int(line_step * len(lines) + size * 0.3 + 2 * margin) + 1

    def paint(target, dx, dy, fill, stroke):
        draw = ImageDraw.Draw(target)
        for index, line in enumerate(lines):
            line_width = font.getlength(line) + letter_spacing * len(line)
            if item.align == 'center':
                lx = (block_width - line_width) / 2
            elif item.align == 'right':
                lx = block_width - line_width
            else:
                lx = 0
            top = margin + dy + index * line_step
            left = margin + dx + lx
            _draw_line(draw, (left, top), line, font, fill, stroke, stroke_width, letter_spacing)
            if item.decoration:
                thickness = max(1, int(size / 15))
                offset = size * (0.95 if item.decoration == 'underline' else 0.55)
                draw.line([(left, top + offset), (left + line_width, top + offset)],
                          fill=fill, width=thickness)

    tile = Image.new('RGBA', (tile_w, tile_h), (0, 0, 0, 0))
    if shadow:
        shadow_tile = Image.new('RGBA', tile.size, (0, 0, 0, 0))
        shadow_rgba = _rgba(shadow.color)
        paint(shadow_tile, shadow.offset_x * ratio, shadow.offset_y * ratio, shadow_rgba, shadow_rgba)
        if shadow.blur > 0:
            shadow_tile = shadow_tile.filter(ImageFilter.GaussianBlur(shadow.blur * ratio / 2))
        tile = Image.alpha_composite(tile, shadow_tile)

    text_tile = Image.new('RGBA', tile.size, (0, 0, 0, 0))
    paint(text_tile, 0, 0, _rgba(item.fill), _rgba(item.stroke) if stroke_width else None)
    tile = Image.alpha_composite(tile, text_tile)
    return tile, margin, margin


def _transform_tile(tile, origin_x, origin_y, item: DrawInstruction):
    """Scale then rotate a tile about its origin; returns (tile, half_size)"""
    if item.scale_x < 0:
        tile = ImageOps.mirror(tile)
        origin_x = tile.width - origin_x
    if item.scale_y < 0:
        tile = ImageOps.flip(tile)
        origin_y = tile.height - origin_y

    sx, sy = abs(item.scale_x), abs(item.scale_y)
    if (sx, sy) != (1.0, 1.0):
        new_size = (max(1, int(round(tile.width * sx))), max(1, int(round(tile.height * sy))))
        tile = tile.resize(new_size, Image.Resampling.LANCZOS)
        origin_x *= sx
        origin_y *= sy

    # Square canvas centred on the origin, large enough for any rotation
    corners = [(0, 0), (tile.width, 0), (0, tile.height), (tile.width, tile.height)]
    half = int(max(((cx - origin_x) ** 2 + (cy - origin_y) ** 2) ** 0.5 for cx, cy in corners)) + 1
    canvas = Image.new('RGBA', (2 * half, 2 * half), (0, 0, 0, 0))
    canvas.paste(tile, (int(round(half - origin_x)), int(round(half - origin_y))))
    if item.rotation:
        # Pillow rotates counter-clockwise; the surface rotates clockwise
        canvas = canvas.rotate(-item.rotation, resample=Image.Resampling.BICUBIC, center=(half, half))
    return canvas, half


def _apply_opacity(tile, opacity: float):
    if opacity >= 1.0:
        return tile
    alpha = tile.getchannel('A').point(lambda a: int(a * opacity))
    tile.putalpha(alpha)
    return tile


def render_image(image_path: str, layers: Sequence[TextLayer],
                 pixel_ratio: float = EXPORT_PIXEL_RATIO,
                 font_resolver: Optional[FontResolver] = None) -> Image.Image:
    """Composite the layers over the image

    Args:
        image_path: Background image
        layers: Layers in paint order
        pixel_ratio: Output scale relative to the image size
        font_resolver: (family, pixel size) -> Pillow face, defaults to
            Pillow's built-in face

    Returns:
        RGBA image

    Raises:
        ValueError: If pixel_ratio is not positive
        OSError: If the image cannot be read
    """
    if pixel_ratio <= 0:
        raise ValueError(f"pixel_ratio must be > 0, got {pixel_ratio}")
    resolve = font_resolver or (lambda _family, size: default_font(size))

    with Image.open(image_path) as source:
        base = source.convert('RGBA')
    if pixel_ratio != 1:
        size = (int(round(base.width * pixel_ratio)), int(round(base.height * pixel_ratio)))
        base = base.resize(size, Image.Resampling.LANCZOS)

    instructions = build_draw_instructions(layers)
    for item in instructions:
        if not item.text.strip():
            continue
        font = resolve(item.font_family, item.font_size * pixel_ratio)
        tile, ox, oy = _render_block(item, font, pixel_ratio)
        tile, half = _transform_tile(tile, ox, oy, item)
        tile = _apply_opacity(tile, item.opacity)

        overlay = Image.new('RGBA', base.size, (0, 0, 0, 0))
        overlay.paste(tile, (int(round(item.x * pixel_ratio - half)), int(round(item.y * pixel_ratio - half))))
        base = Image.alpha_composite(base, overlay)

    _logger.debug(f"Rendered {len(instructions)} instruction(s) at {base.width}x{base.height}")
    return base


def export_png(image_path: str, layers: Sequence[TextLayer],
               pixel_ratio: float = EXPORT_PIXEL_RATIO,
               font_resolver: Optional[FontResolver] = None) -> bytes:
    """Render the layers over the image and encode as PNG bytes"""
    image = render_image(image_path, layers, pixel_ratio, font_resolver)
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    data = buffer.getvalue()
    _logger.info(f"Exported {image.width}x{image.height} PNG ({len(data)} bytes)")
    return data


def default_export_name() -> str:
    return EXPORT_FILENAME
