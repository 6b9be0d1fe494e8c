"""
Tests for background image validation and loading.
"""
import base64

import pytest
from PIL import Image

from services.image_loader import ImageValidationError, load_image, orientation, validate_image_file


class TestValidation:

    def test_valid_png(self, png_path):
        validate_image_file(png_path)

    @pytest.mark.parametrize('name', ['photo.jpg', 'notes.txt', 'photo.gif'])
    def test_wrong_type(self, tmp_path, name):
        path = tmp_path / name
        path.write_bytes(b'x')
        with pytest.raises(ImageValidationError, match='Please upload a PNG file only'):
            validate_image_file(str(path))

    def test_size_limit(self, png_path):
        with pytest.raises(ImageValidationError, match='File size must be less than'):
            validate_image_file(png_path, max_size_mb=1e-6)

    def test_size_message(self, tmp_path):
        path = tmp_path / 'big.png'
        path.write_bytes(b'\0' * 2048)
        with pytest.raises(ImageValidationError) as excinfo:
            validate_image_file(str(path), max_size_mb=0.001)
        assert str(excinfo.value) == 'File size must be less than 0.001MB'

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageValidationError, match='Failed to process image'):
            validate_image_file(str(tmp_path / 'gone.png'))


class TestLoadImage:

    def test_load_png(self, png_path):
        info = load_image(png_path)
        assert (info.width, info.height) == (120, 80)
        assert info.aspect_ratio == pytest.approx(1.5)
        assert info.orientation == 'Landscape'
        assert info.mime_type == 'image/png'

    def test_data_url(self, png_path):
        info = load_image(png_path)
        prefix = 'data:image/png;base64,'
        assert info.preview_url.startswith(prefix)
        with open(png_path, 'rb') as f:
            assert base64.b64decode(info.preview_url[len(prefix):]) == f.read()

    def test_corrupt_png(self, tmp_path):
        path = tmp_path / 'broken.png'
        path.write_bytes(b'\x89PNG not really')
        with pytest.raises(ImageValidationError, match='Failed to process image'):
            load_image(str(path))

    def test_jpeg_named_png(self, tmp_path):
        path = tmp_path / 'sneaky.png'
        Image.new('RGB', (10, 10)).save(path, format='JPEG')
        with pytest.raises(ImageValidationError, match='Please upload a PNG file only'):
            load_image(str(path))

    @pytest.mark.parametrize('ratio,expected', [(1.5, 'Landscape'), (0.5, 'Portrait'), (1.0, 'Square')])
    def test_orientation(self, ratio, expected):
        assert orientation(ratio) == expected
