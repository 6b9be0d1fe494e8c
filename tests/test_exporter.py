"""
Tests for PNG export.

Checks the output size and that text pixels land near the layer anchor,
using Pillow's built-in face so no font files are needed.
"""
import io

import pytest
from PIL import Image, ImageChops

from models.text_layer import TextLayer, WarpSettings
from services.exporter import default_export_name, export_png, render_image

BACKGROUND = (30, 120, 200, 255)


def decode(data):
    return Image.open(io.BytesIO(data))


def changed_box(image):
    """Bounding box of pixels that differ from the plain background"""
    plain = Image.new("RGB", image.size, BACKGROUND[:3])
    return ImageChops.difference(image.convert("RGB"), plain).getbbox()


class TestExport:

    def test_png_bytes_at_pixel_ratio(self, png_path):
        data = export_png(png_path, [], pixel_ratio=2)
        assert data.startswith(b'\x89PNG')
        assert decode(data).size == (240, 160)

    def test_pixel_ratio_one(self, png_path):
        assert render_image(png_path, [], pixel_ratio=1).size == (120, 80)

    def test_no_layers_is_background(self, png_path):
        assert changed_box(render_image(png_path, [], pixel_ratio=1)) is None

    def test_text_drawn_near_anchor(self, png_path):
        layer = TextLayer(id='a', text='Hi', x=20.0, y=20.0, font_size=16, fill='#ffffff')
        box = changed_box(render_image(png_path, [layer], pixel_ratio=1))
        assert box is not None
        left, top, _right, _bottom = box
        assert 14 <= left <= 30
        assert 14 <= top <= 40

    def test_rotated_scaled_layer(self, png_path):
        layer = TextLayer(id='a', text='Hello', x=60.0, y=40.0, font_size=12,
                          rotation=90.0, scale_x=-1.5, opacity=0.5)
        assert changed_box(render_image(png_path, [layer], pixel_ratio=1)) is not None

    def test_warped_layer(self, png_path):
        layer = TextLayer(id='w', text='ARC', x=60.0, y=40.0, font_size=10,
                          warp=WarpSettings(True, 'arc', 20.0, 180.0, 1.0, 'M 0 0 L 1 1'))
        assert changed_box(render_image(png_path, [layer], pixel_ratio=1)) is not None

    def test_blank_text_skipped(self, png_path):
        layer = TextLayer(id='a', text='   ', stroke_width=0)
        assert changed_box(render_image(png_path, [layer], pixel_ratio=1)) is None

    def test_resolver_gets_scaled_size(self, png_path):
        from services.font_loader import default_font
        calls = []

        def resolve(family, size):
            calls.append((family, size))
            return default_font(size)
        layer = TextLayer(id='a', text='x', font_family='Georgia', font_size=20)
        render_image(png_path, [layer], pixel_ratio=2, font_resolver=resolve)
        assert calls == [('Georgia', 40)]

    @pytest.mark.parametrize('ratio', [0, -1])
    def test_invalid_pixel_ratio(self, png_path, ratio):
        with pytest.raises(ValueError):
            render_image(png_path, [], pixel_ratio=ratio)

    def test_default_name(self):
        assert default_export_name() == 'image-with-text.png'
