"""
Shared fixtures for Image Text Composer tests.

Provides layer factories, stores wired to a history, sessions with in-memory
autosave, and sample PNG files.
"""
import sys
import os
import pytest

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))

# Qt widgets/timers without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')


# ── Layer factories ─────────────────────────────────────────────────────

@pytest.fixture
def make_layer():
    """Factory: make_layer('a', x=10, y=20, ...) -> TextLayer"""
    from models.text_layer import TextLayer

    def _make(layer_id, **changes):
        return TextLayer(id=layer_id, **changes)
    return _make


def _fake_path_builder(path_type, radius, angle):
    return f"M 0 0 L {radius} {angle}"


@pytest.fixture
def fake_path_builder():
    """Deterministic warp path builder (no svgpathtools involved)"""
    return _fake_path_builder


# ── Store / history ─────────────────────────────────────────────────────

@pytest.fixture
def history():
    from utils.history_manager import HistoryManager
    return HistoryManager()


@pytest.fixture
def store(history):
    """LayerStore recording into `history`, with an initial empty snapshot"""
    from models.layer_store import LayerStore
    s = LayerStore(recorder=history.record, path_builder=_fake_path_builder)
    history.record(s.layers)
    return s


@pytest.fixture
def three_layers(store):
    """Store with layers a, b, c at x = 0, 10, 100 and y = 10, 20, 30"""
    from models.text_layer import TextLayer
    layers = (
        TextLayer(id='a', x=0.0, y=10.0),
        TextLayer(id='b', x=10.0, y=20.0),
        TextLayer(id='c', x=100.0, y=30.0),
    )
    store.replace_layers(layers, record=True)
    return store


# ── Session / persistence ───────────────────────────────────────────────

@pytest.fixture
def memory_storage():
    from services.persistence import MemoryStorage
    return MemoryStorage()


@pytest.fixture
def image_identity():
    from services.persistence import ImageIdentity
    return ImageIdentity('file:///photos/beach.png', 800, 600)


@pytest.fixture
def persistence(qtbot, memory_storage, image_identity):
    from services.persistence import PersistenceAdapter
    return PersistenceAdapter(memory_storage, image_identity, delay_ms=50)


@pytest.fixture
def session(persistence):
    from editor_session import EditorSession
    return EditorSession(persistence=persistence)


# ── Images ──────────────────────────────────────────────────────────────

@pytest.fixture
def png_path(tmp_path):
    """A 120x80 RGB PNG on disk"""
    from PIL import Image
    path = tmp_path / 'photo.png'
    Image.new('RGB', (120, 80), (30, 120, 200)).save(path, format='PNG')
    return str(path)
