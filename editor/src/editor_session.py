"""
Image Text Composer - Editor Session

Wires the engine together for one background image:

    gesture -> LayerStore mutation -> HistoryManager.record
                                   -> SelectionController.reconcile
                                   -> PersistenceAdapter.schedule_save
                                   -> frame listeners (repaint)

The session owns the history and selection; the store only knows how to
hand each new collection to its recorder. Collaborators are passed in, so
tests and the CLI can run the same wiring with in-memory storage and no
font registry.

Usage:
    session = EditorSession(persistence=PersistenceAdapter(storage, identity))
    session.restore()
    layer_id = session.add_layer()
    session.on_drag_end(layer_id, 240.0, 90.0)
    session.undo()
"""

import logging
from typing import Callable, List, Optional

from models.layer_patch import LayerPatch
from models.layer_store import LayerStore
from models.selection import SelectionController
from models.text_layer import TextStyle
from utils.history_manager import HistoryManager
from utils.logger import loggerRaise
from services.persistence import EditorState, PersistenceAdapter
from services.render_bridge import RenderFrame, build_frame
from constants import EXPORT_PIXEL_RATIO


class EditorSession:
    """Engine container for one editing session"""

    def __init__(self, persistence: Optional[PersistenceAdapter] = None,
                 fonts=None,
                 history: Optional[HistoryManager] = None,
                 store: Optional[LayerStore] = None):
        """
        Args:
            persistence: Autosave adapter for the current image (optional)
            fonts: FontRegistry used for export (optional)
            history: History manager, a new bounded one if omitted
            store: Layer store, a new one if omitted (its recorder is replaced)
        """
        self._logger = logging.getLogger('EditorSession')
        self.history = history or HistoryManager()
        self.store = store or LayerStore(SelectionController())
        self.store.set_recorder(self.history.record)
        self.persistence = persistence
        self.fonts = fonts

        self._restoring = False
        self._listeners: List[Callable[[RenderFrame], None]] = []
        self.store.add_listener(self._on_layers_changed)

        # Initial empty snapshot so the first action is undoable
        self.history.record(self.store.layers)

    @property
    def selection(self) -> SelectionController:
        return self.store.selection

    @property
    def layers(self):
        return self.store.layers

    # ========================================
    # Change propagation
    # ========================================

    def add_listener(self, callback: Callable[[RenderFrame], None]):
        """Add a callback receiving a fresh RenderFrame after each change"""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _on_layers_changed(self, layers):
        if self.persistence is not None and not self._restoring:
            self.persistence.schedule_save(self.state)
        if self._listeners:
            frame = build_frame(layers)
            for callback in self._listeners:
                try:
                    callback(frame)
                except Exception:
                    self._logger.exception("Error notifying frame listener")

    def state(self) -> EditorState:
        """Current layers and history, as autosaved"""
        return EditorState(
            layers=self.store.layers,
            history=self.history.history,
            current_step=self.history.current_index,
        )

    def render_frame(self) -> RenderFrame:
        return build_frame(self.store.layers)

    # ========================================
    # Undo / redo
    # ========================================

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        """Install the previous snapshot and clear the selection"""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._install_replay(snapshot)
        return True

    def redo(self) -> bool:
        """Install the next snapshot and clear the selection"""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._install_replay(snapshot)
        return True

    def _install_replay(self, snapshot):
        self.selection.clear()
        try:
            # The history consumes its replay flag on this record
            self.store.replace_layers(snapshot, record=True)
        except ValueError as e:
            self.history.cancel_replay()
            loggerRaise(e, "Cannot restore this history step")

    # ========================================
    # Rendering surface gestures
    # ========================================

    def on_click(self, layer_id: str, multi: bool = False) -> bool:
        return self.store.select(layer_id, multi)

    def on_background_click(self):
        self.selection.clear()

    def on_drag_end(self, layer_id: str, x: float, y: float) -> bool:
        return self.store.apply_drag(layer_id, x, y)

    def on_transform_end(self, layer_id: str, x: float, y: float, rotation: float,
                         scale_x: float, scale_y: float) -> bool:
        return self.store.apply_transform(layer_id, x, y, rotation, scale_x, scale_y)

    # ========================================
    # Editing commands on the selection
    # ========================================

    def add_layer(self, template_style: Optional[TextStyle] = None) -> str:
        return self.store.add_layer(template_style)

    def update_selected(self, patch: LayerPatch) -> bool:
        return self.store.update_layers(self.selection.selected_ids, patch)

    def delete_selected(self) -> int:
        return self.store.delete_layers(self.selection.selected_ids)

    def duplicate_selected(self) -> Optional[str]:
        layer_id = self.selection.single_id
        if layer_id is None:
            return None
        return self.store.duplicate(layer_id)

    def reorder_selected(self, direction: str) -> bool:
        layer_id = self.selection.single_id
        if layer_id is None:
            raise ValueError("Reorder needs exactly one selected layer")
        return self.store.reorder(layer_id, direction)

    def toggle_lock_selected(self) -> bool:
        return self.store.toggle_lock()

    def align_horizontally(self) -> bool:
        return self.store.align_horizontally()

    def align_vertically(self) -> bool:
        return self.store.align_vertically()

    def distribute_evenly(self, axis: str) -> bool:
        return self.store.distribute_evenly(axis)

    def reset(self):
        """Remove every layer (undoable)"""
        self.store.reset()

    # ========================================
    # Session lifecycle
    # ========================================

    def restore(self) -> bool:
        """Load the autosave for the current image, if any

        Returns:
            True if a saved state was installed
        """
        if self.persistence is None:
            return False
        state = self.persistence.load()
        if state is None:
            return False

        self._restoring = True
        try:
            self.selection.clear()
            self.history.load(state.history, state.current_step)
            self.store.replace_layers(state.layers, record=False)
        finally:
            self._restoring = False
        self._logger.info(f"Session restored: {len(state.layers)} layer(s)")
        return True

    def flush(self) -> bool:
        """Write a pending autosave now"""
        if self.persistence is None:
            return False
        return self.persistence.flush()

    def close(self):
        """Drop the pending autosave and all in-memory state

        Used when switching images; the session is empty afterwards and can
        be reused with open_image().
        """
        if self.persistence is not None:
            self.persistence.cancel()
        self._restoring = True
        try:
            self.selection.clear()
            self.store.replace_layers((), record=False)
            self.store.set_current_style(TextStyle())
            self.history.clear()
            self.history.record(self.store.layers)
        finally:
            self._restoring = False
        self._logger.info("Session closed")

    def open_image(self, persistence: Optional[PersistenceAdapter]) -> bool:
        """Switch to another image: close, then restore its autosave"""
        self.close()
        self.persistence = persistence
        return self.restore()

    # ========================================
    # Export
    # ========================================

    def export_png(self, image_path: str, pixel_ratio: float = EXPORT_PIXEL_RATIO) -> bytes:
        from services.exporter import export_png
        resolver = self.fonts.font_for if self.fonts is not None else None
        return export_png(image_path, self.store.layers, pixel_ratio, resolver)
