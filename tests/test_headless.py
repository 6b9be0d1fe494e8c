"""
Tests for the headless export CLI.
"""
import argparse
import os

import pytest
from PIL import Image

import headless
from models.text_layer import TextLayer
from services.persistence import EditorState, ImageIdentity, JsonFileStorage, PersistenceAdapter


@pytest.fixture
def autosave_file(qtbot, tmp_path, png_path):
    path = str(tmp_path / 'autosave.json')
    identity = ImageIdentity(os.path.abspath(png_path), 120, 80)
    layers = (TextLayer(id='a', text='Hello', x=10.0, y=10.0, font_size=12),)
    PersistenceAdapter(JsonFileStorage(path), identity).save(
        EditorState(layers=layers, history=((), layers), current_step=1))
    return path


class TestArguments:

    def test_font_argument(self):
        assert headless._parse_font_arg('Brand = fonts/brand.ttf') == ('Brand', 'fonts/brand.ttf')

    @pytest.mark.parametrize('value', ['Brand', '=x.ttf', 'Brand='])
    def test_bad_font_argument(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            headless._parse_font_arg(value)

    def test_defaults(self):
        args = headless.build_parser().parse_args(['photo.png'])
        assert args.autosave is None
        assert args.font == []
        assert args.pixel_ratio is None


class TestMain:

    def test_export_with_autosave(self, qtbot, png_path, autosave_file, tmp_path, capsys):
        out = tmp_path / 'out' / 'result.png'
        code = headless.main([png_path, '--autosave', autosave_file, '-o', str(out), '--pixel-ratio', '1'])
        assert code == 0
        assert Image.open(out).size == (120, 80)
        assert 'Rendering 1 layer(s)' in capsys.readouterr().out

    def test_export_without_autosave(self, qtbot, png_path, tmp_path):
        out = tmp_path / 'plain.png'
        assert headless.main([png_path, '-o', str(out)]) == 0
        assert Image.open(out).size == (240, 160)

    def test_rejects_non_png(self, qtbot, tmp_path, capsys):
        path = tmp_path / 'photo.jpg'
        Image.new('RGB', (4, 4)).save(path, format='JPEG')
        assert headless.main([str(path), '-o', str(tmp_path / 'x.png')]) == 1
        assert 'Please upload a PNG file only' in capsys.readouterr().out

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            headless.build_parser().parse_args(['--version'])
        assert excinfo.value.code == 0
        assert '1.0.0' in capsys.readouterr().out

    def test_missing_font_reported(self, qtbot, png_path, tmp_path, capsys):
        out = tmp_path / 'fonts.png'
        code = headless.main([png_path, '-o', str(out), '--pixel-ratio', '1',
                              '--font', f"Ghost={tmp_path / 'ghost.ttf'}"])
        assert code == 0
        assert "font 'Ghost' could not be loaded" in capsys.readouterr().out
