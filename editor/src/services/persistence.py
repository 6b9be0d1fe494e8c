"""
Image Text Composer - Autosave Persistence

Serializes the editor state (layers, history, cursor) together with the
identity of the image it belongs to, and writes it to a key-value store on
a debounce timer. At session start the record is read back once; it is
discarded when the image identity or the schema version does not match.

Record layout (JSON):
    {
        "textLayers": [...],          current collection
        "history": [[...], ...],      snapshots, oldest first
        "currentStep": 3,             history cursor
        "imageUrl": "...",
        "imageWidth": 800,
        "imageHeight": 600,
        "timestamp": "2024-05-01T12:00:00+00:00",
        "version": "1.0"
    }

Storage errors are transient: they are logged and never raised to the
editor. A failed load yields an empty session.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from PyQt5.QtCore import QObject, QTimer

from models.text_layer import TextLayer
from utils.logger import loggerWarn
from constants import AUTOSAVE_KEY, AUTOSAVE_DELAY_MS, AUTOSAVE_SCHEMA_VERSION

SCHEMA_VERSION = AUTOSAVE_SCHEMA_VERSION


class StorageError(Exception):
    """Read or write failure in a storage backend"""


# ========================================
# Storage backends
# ========================================

class MemoryStorage:
    """In-process key-value store"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        if not isinstance(value, str):
            raise StorageError(f"Value for '{key}' must be a string")
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)


class JsonFileStorage:
    """Key-value store kept as one JSON object file

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str):
        self.path = path
        self._logger = logging.getLogger('JsonFileStorage')

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.autosave-', suffix='.tmp', dir=directory)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str):
        data = self._read_all()
        data[key] = value
        self._write_all(data)
        self._logger.debug(f"Wrote '{key}' to {self.path} ({len(value)} chars)")

    def remove(self, key: str):
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


# ========================================
# Records
# ========================================

@dataclass(frozen=True)
class ImageIdentity:
    """Which image an autosave belongs to"""
    url: str
    width: int
    height: int


@dataclass(frozen=True)
class EditorState:
    """Layers plus history as restored from (or handed to) the adapter"""
    layers: Tuple[TextLayer, ...] = ()
    history: Tuple[Tuple[TextLayer, ...], ...] = ()
    current_step: int = 0


@dataclass
class AutosaveRecord:
    text_layers: List[Dict[str, Any]]
    history: List[List[Dict[str, Any]]]
    current_step: int
    image_url: str
    image_width: int
    image_height: int
    timestamp: str = ''
    version: str = SCHEMA_VERSION

    @classmethod
    def from_state(cls, state: EditorState, image: ImageIdentity) -> 'AutosaveRecord':
        return cls(
            text_layers=[layer.to_dict() for layer in state.layers],
            history=[[layer.to_dict() for layer in snapshot] for snapshot in state.history],
            current_step=state.current_step,
            image_url=image.url,
            image_width=image.width,
            image_height=image.height,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'textLayers': self.text_layers,
            'history': self.history,
            'currentStep': self.current_step,
            'imageUrl': self.image_url,
            'imageWidth': self.image_width,
            'imageHeight': self.image_height,
            'timestamp': self.timestamp,
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AutosaveRecord':
        """
        Raises:
            KeyError: Required key missing
            TypeError/ValueError: Malformed values
        """
        if not isinstance(data, dict):
            raise TypeError(f"Autosave record must be a dict, got {type(data).__name__}")
        return cls(
            text_layers=list(data['textLayers']),
            history=[list(entry) for entry in data.get('history', [])],
            current_step=int(data.get('currentStep', 0)),
            image_url=str(data['imageUrl']),
            image_width=int(data['imageWidth']),
            image_height=int(data['imageHeight']),
            timestamp=str(data.get('timestamp', '')),
            version=str(data.get('version', '')),
        )

    def matches(self, image: ImageIdentity) -> bool:
        return (self.image_url, self.image_width, self.image_height) == \
            (image.url, image.width, image.height)

    def to_state(self) -> EditorState:
        """Rebuild frozen layers

        Raises:
            TypeError/ValueError: A layer record is malformed
        """
        layers = tuple(TextLayer.from_dict(item) for item in self.text_layers)
        history = tuple(
            tuple(TextLayer.from_dict(item) for item in snapshot)
            for snapshot in self.history
        )
        if not history:
            history = (layers,)
        return EditorState(layers=layers, history=history, current_step=self.current_step)


def is_compatible_version(version: str, expected: str = SCHEMA_VERSION) -> bool:
    """Compatible when the major version numbers match"""
    return bool(version) and version.split('.')[0] == expected.split('.')[0]


# ========================================
# Adapter
# ========================================

class PersistenceAdapter(QObject):
    """Debounced autosave of the editor state for one image"""

    def __init__(self, storage, image: ImageIdentity,
                 delay_ms: int = AUTOSAVE_DELAY_MS, key: str = AUTOSAVE_KEY, parent=None):
        """
        Args:
            storage: Backend with get/set/remove (JsonFileStorage, MemoryStorage)
            image: Identity of the image being edited
            delay_ms: Debounce delay for schedule_save
            key: Storage key
        """
        super().__init__(parent)
        self.storage = storage
        self.image = image
        self.key = key
        self._logger = logging.getLogger('Persistence')
        self._pending: Optional[Callable[[], EditorState]] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self.flush)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def save(self, state: EditorState) -> bool:
        """Write the state now

        Returns:
            True if written, False on a storage error (logged)
        """
        record = AutosaveRecord.from_state(state, self.image)
        try:
            self.storage.set(self.key, json.dumps(record.to_dict()))
        except (StorageError, TypeError, ValueError) as e:
            loggerWarn(e, "Autosave failed")
            return False
        self._logger.debug(f"Autosaved {len(state.layers)} layer(s), step {state.current_step}")
        return True

    def schedule_save(self, state_provider: Callable[[], EditorState]):
        """Write the state after the debounce delay

        Each call restarts the timer; only the last provider is used.
        """
        self._pending = state_provider
        self._timer.stop()
        self._timer.start()

    def flush(self) -> bool:
        """Write a pending save immediately (no-op without one)"""
        self._timer.stop()
        provider, self._pending = self._pending, None
        if provider is None:
            return False
        return self.save(provider())

    def cancel(self):
        """Drop a pending save"""
        if self._pending is not None:
            self._logger.debug("Pending autosave cancelled")
        self._timer.stop()
        self._pending = None

    def load(self) -> Optional[EditorState]:
        """Read the autosave for this image

        Returns:
            The saved state, or None if there is none, it belongs to another
            image, its version is incompatible or it cannot be parsed
        """
        try:
            raw = self.storage.get(self.key)
        except StorageError as e:
            loggerWarn(e, "Autosave read failed")
            return None
        if not raw:
            return None

        try:
            record = AutosaveRecord.from_dict(json.loads(raw))
        except (KeyError, TypeError, ValueError) as e:
            loggerWarn(e, "Discarding unreadable autosave")
            return None

        if not is_compatible_version(record.version):
            self._logger.warning(f"Discarding autosave with incompatible version {record.version!r}")
            return None
        if not record.matches(self.image):
            self._logger.warning(f"Discarding autosave for another image ({record.image_url})")
            return None

        try:
            state = record.to_state()
        except (TypeError, ValueError) as e:
            loggerWarn(e, "Discarding autosave with invalid layers")
            return None

        self._logger.info(f"Restored autosave from {record.timestamp or 'unknown time'}: "
                          f"{len(state.layers)} layer(s), {len(state.history)} history entries")
        return state

    def clear(self):
        """Remove the stored autosave"""
        self.cancel()
        try:
            self.storage.remove(self.key)
        except StorageError as e:
            loggerWarn(e, "Autosave remove failed")
