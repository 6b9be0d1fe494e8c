"""
Tests for custom font loading on worker threads.

Font files are not read from disk here: load_font_face is replaced with a
stub returning Pillow's built-in face, or raising like FreeType would.
"""
import pytest
from PIL import ImageFont

import services.font_loader as font_loader
from services.font_loader import FontRegistry, FontSource, FontValidationError, validate_font_source


@pytest.fixture
def fake_faces(monkeypatch):
    """Record load calls and return the built-in face"""
    calls = []

    def _load(path, size=40):
        calls.append((path, size))
        return ImageFont.load_default()
    monkeypatch.setattr(font_loader, 'load_font_face', _load)
    return calls


@pytest.fixture
def broken_faces(monkeypatch):
    def _load(path, size=40):
        raise OSError("unknown file format")
    monkeypatch.setattr(font_loader, 'load_font_face', _load)


@pytest.fixture
def registry(qtbot):
    reg = FontRegistry()
    yield reg
    reg.wait()


# ══════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════

class TestValidation:

    @pytest.mark.parametrize('url', ['fonts/Brand.ttf', 'fonts/Brand.OTF', 'a.woff', 'a.woff2'])
    def test_accepted_extensions(self, url):
        validate_font_source(FontSource('Brand', url))

    def test_bad_extension(self):
        with pytest.raises(FontValidationError, match='valid font file'):
            validate_font_source(FontSource('Brand', 'fonts/brand.zip'))

    def test_name_required(self):
        with pytest.raises(FontValidationError):
            validate_font_source(FontSource('  ', 'fonts/brand.ttf'))

    def test_file_url_path(self):
        assert FontSource('Brand', 'file:///usr/share/fonts/My%20Font.ttf').path == '/usr/share/fonts/My Font.ttf'
        assert FontSource('Brand', 'fonts/brand.ttf').path == 'fonts/brand.ttf'


# ══════════════════════════════════════════════════════════════════════════
# Loading
# ══════════════════════════════════════════════════════════════════════════

class TestFontRegistry:

    def test_load_emits_signal(self, qtbot, registry, fake_faces):
        with qtbot.waitSignal(registry.fontLoaded, timeout=5000) as blocker:
            assert registry.request(FontSource('Brand', 'fonts/brand.ttf'))
        assert blocker.args == ['Brand']
        assert registry.is_loaded('Brand')
        assert not registry.is_pending('Brand')
        assert registry.loaded_fonts == ('Brand',)

    def test_duplicate_request_skipped(self, qtbot, registry, fake_faces):
        with qtbot.waitSignal(registry.fontLoaded, timeout=5000):
            assert registry.request(FontSource('Brand', 'fonts/brand.ttf'))
            assert not registry.request(FontSource('Brand', 'fonts/other.ttf'))
        assert not registry.request(FontSource('Brand', 'fonts/brand.ttf'))
        assert len(fake_faces) == 1

    def test_failure_signal(self, qtbot, registry, broken_faces):
        with qtbot.waitSignal(registry.fontFailed, timeout=5000) as blocker:
            registry.request(FontSource('Broken', 'fonts/broken.ttf'))
        assert blocker.args[0] == 'Broken'
        assert 'unknown file format' in blocker.args[1]
        assert not registry.is_loaded('Broken')
        assert not registry.is_pending('Broken')
        assert registry.failed_fonts == ('Broken',)

    def test_invalid_source_raises(self, registry):
        with pytest.raises(FontValidationError):
            registry.request(FontSource('Brand', 'brand.exe'))

    def test_unloaded_family_uses_default(self, registry, fake_faces):
        face = registry.font_for('Nope', 24)
        assert face is not None
        assert fake_faces == []

    def test_font_for_other_size_reopens(self, qtbot, registry, fake_faces):
        with qtbot.waitSignal(registry.fontLoaded, timeout=5000):
            registry.request(FontSource('Brand', 'fonts/brand.ttf'))
        registry.font_for('Brand', 40)
        registry.font_for('Brand', 18)
        registry.font_for('Brand', 18)
        assert fake_faces == [('fonts/brand.ttf', 40), ('fonts/brand.ttf', 18)]

    def test_measure(self, registry):
        assert registry.measure('Nope', 20, 'wide text') > registry.measure('Nope', 20, 'w')
