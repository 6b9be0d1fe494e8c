"""
Font loader - registers custom font faces on worker threads.

A FontSource names a face and points at its file. request() validates the
source and loads the face with Pillow on a QThread so the editor stays
responsive; results come back through queued signals on the registry's
thread.

Requests are de-duplicated by name: a face that is loaded or still loading
is never requested again, so out-of-order completions cannot register the
same family twice. Failures are logged and reported through fontFailed but
never raised; layers using the family fall back to the default face.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Set, Tuple
from urllib.parse import unquote, urlparse

from PyQt5.QtCore import QObject, QThread, pyqtSignal

from PIL import ImageFont

from constants import DEFAULT_FONT_SIZE, FONT_FILE_EXTENSIONS

_logger = logging.getLogger('FontRegistry')


class FontValidationError(ValueError):
    """The font source cannot be used"""


@dataclass(frozen=True)
class FontSource:
    name: str
    source_url: str
    type: str = ''

    @property
    def path(self) -> str:
        """Local file path for a plain path or a file:// URL"""
        parsed = urlparse(self.source_url)
        if parsed.scheme == 'file':
            return unquote(parsed.path)
        return self.source_url


def validate_font_source(source: FontSource):
    """
    Raises:
        FontValidationError: Missing name or unsupported file type
    """
    if not source.name or not source.name.strip():
        raise FontValidationError("Font name is required")
    extension = os.path.splitext(source.path)[1].lower()
    if extension not in FONT_FILE_EXTENSIONS:
        raise FontValidationError(
            f"Please upload a valid font file ({', '.join(FONT_FILE_EXTENSIONS)})")


def load_font_face(path: str, size: float = DEFAULT_FONT_SIZE):
    """Open a font file as a Pillow face

    Raises:
        OSError: File missing or not a font FreeType can read
    """
    return ImageFont.truetype(path, int(round(size)))


def default_font(size: float = DEFAULT_FONT_SIZE):
    """Pillow's built-in face, used for families that are not loaded"""
    return ImageFont.load_default(size)


class FontLoadWorker(QThread):
    """Worker thread loading one font face"""

    loaded = pyqtSignal(str, object, str)  # name, face (None on failure), error

    def __init__(self, source: FontSource):
        super().__init__()
        self.source = source

    def run(self):
        try:
            face = load_font_face(self.source.path)
        except (OSError, ValueError) as e:
            self.loaded.emit(self.source.name, None, str(e))
            return
        self.loaded.emit(self.source.name, face, '')


class FontRegistry(QObject):
    """Custom font faces available to measurement and export"""

    fontLoaded = pyqtSignal(str)       # name
    fontFailed = pyqtSignal(str, str)  # name, error message

    def __init__(self, parent=None):
        super().__init__(parent)
        self._paths: Dict[str, str] = {}
        self._faces: Dict[Tuple[str, int], object] = {}
        self._sources: Dict[str, FontSource] = {}  # pending loads by name
        self._workers: Set[FontLoadWorker] = set()  # kept alive until finished
        self._failed: Dict[str, str] = {}  # name -> last error

    # ========================================
    # Queries
    # ========================================

    def is_loaded(self, name: str) -> bool:
        return name in self._paths

    def is_pending(self, name: str) -> bool:
        return name in self._sources

    @property
    def loaded_fonts(self) -> Tuple[str, ...]:
        return tuple(self._paths)

    @property
    def failed_fonts(self) -> Tuple[str, ...]:
        return tuple(self._failed)

    def font_for(self, name: str, size: float):
        """A face for drawing name at size, the default face if not loaded"""
        key = (name, int(round(size)))
        if key in self._faces:
            return self._faces[key]
        path = self._paths.get(name)
        if path is None:
            return default_font(size)
        try:
            face = load_font_face(path, size)
        except OSError as e:
            _logger.warning(f"Cannot reopen font '{name}' at size {size}: {e}")
            return default_font(size)
        self._faces[key] = face
        return face

    def measure(self, name: str, size: float, text: str) -> float:
        """Width of a single-line text run in pixels"""
        left, _top, right, _bottom = self.font_for(name, size).getbbox(text)
        return float(right - left)

    # ========================================
    # Loading
    # ========================================

    def request(self, source: FontSource) -> bool:
        """Start loading a face unless it is already loaded or pending

        Returns:
            True if a load was started

        Raises:
            FontValidationError: If the source is invalid
        """
        validate_font_source(source)
        if self.is_loaded(source.name) or self.is_pending(source.name):
            _logger.debug(f"Font '{source.name}' already loaded or pending, skipped")
            return False

        worker = FontLoadWorker(source)
        worker.loaded.connect(self._on_loaded)
        worker.finished.connect(lambda: self._workers.discard(worker))
        self._workers.add(worker)
        self._sources[source.name] = source
        worker.start()
        _logger.debug(f"Loading font '{source.name}' from {source.path}")
        return True

    def wait(self, timeout_ms: int = 5000) -> bool:
        """Block until the running workers finish (CLI use)"""
        return all(worker.wait(timeout_ms) for worker in list(self._workers))

    def _on_loaded(self, name: str, face, error: str):
        source = self._sources.pop(name, None)

        if face is None:
            _logger.warning(f"Failed to load custom font {name}: {error}")
            self._failed[name] = error
            self.fontFailed.emit(name, error)
            return
        if name in self._paths:
            return

        self._failed.pop(name, None)
        self._paths[name] = source.path if source else ''
        self._faces[(name, int(round(DEFAULT_FONT_SIZE)))] = face
        _logger.info(f"Custom font loaded: {name}")
        self.fontLoaded.emit(name)
