"""
Image Text Composer - Layer Store

The canonical ordered collection of text layers plus the selection set and
every mutation operation on them.

List order is paint order: index 0 is bottom-most, the last layer is on top.
The collection is a tuple of frozen TextLayer values and is replaced as a
whole on each mutation, so the previous tuple can be kept as a history
snapshot as-is.

Each mutation that changes persisted content hands the new collection to the
recorder (normally HistoryManager.record) exactly once, then notifies the
change listeners. No-op calls record and notify nothing.

Methods:
    Layer CRUD:
        - add_layer
        - update_layers
        - delete_layers
        - duplicate
        - reorder
        - toggle_lock

    Gestures:
        - select
        - apply_drag
        - apply_transform

    Group geometry:
        - align_horizontally / align_vertically / align
        - distribute_evenly

    Bulk:
        - replace_layers
        - reset
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from models.text_layer import TextLayer, TextStyle
from models.layer_patch import LayerPatch, TransformPatch, TypographyPatch, WarpPatch
from models.selection import SelectionController
from utils.layout_math import align_positions, distribute_positions
from constants import DUPLICATE_OFFSET_X, DUPLICATE_OFFSET_Y

REORDER_DIRECTIONS = ('up', 'down', 'front', 'back')

Recorder = Callable[[Tuple[TextLayer, ...]], object]
PathBuilder = Callable[[str, float, float], str]


class LayerStore:
    """Ordered text layer collection with selection and mutations"""

    def __init__(self, selection: Optional[SelectionController] = None,
                 recorder: Optional[Recorder] = None,
                 path_builder: Optional[PathBuilder] = None):
        """
        Args:
            selection: Selection set to maintain (a new one if omitted)
            recorder: Called with the new collection after each recorded change
            path_builder: (path_type, radius, angle) -> warp path descriptor,
                defaults to services.warp_path_builder.build_warp_path
        """
        self._layers: Tuple[TextLayer, ...] = ()
        self._current_style = TextStyle()
        self.selection = selection if selection is not None else SelectionController()
        self._recorder = recorder
        if path_builder is None:
            from services.warp_path_builder import build_warp_path
            path_builder = build_warp_path
        self._path_builder = path_builder
        self._listeners: List[Callable[[Tuple[TextLayer, ...]], None]] = []
        self._logger = logging.getLogger('LayerStore')

    # ========================================
    # Queries
    # ========================================

    @property
    def layers(self) -> Tuple[TextLayer, ...]:
        return self._layers

    @property
    def current_style(self) -> TextStyle:
        """Template for the next created layer"""
        return self._current_style

    def set_current_style(self, style: TextStyle):
        self._current_style = style

    def __len__(self) -> int:
        return len(self._layers)

    def get_layer_count(self) -> int:
        return len(self._layers)

    def has_layer(self, layer_id: str) -> bool:
        return any(layer.id == layer_id for layer in self._layers)

    def get_layer_by_id(self, layer_id: str) -> Optional[TextLayer]:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def get_index_by_id(self, layer_id: str) -> int:
        """Index of a layer in paint order

        Raises:
            ValueError: If id not found
        """
        for index, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return index
        raise ValueError(f"Layer with id '{layer_id}' not found")

    def selected_layers(self) -> List[TextLayer]:
        return self.selection.selected_layers(self._layers)

    def can_reorder(self, direction: str) -> bool:
        """Whether reorder(selected, direction) would move anything"""
        layer_id = self.selection.single_id
        if layer_id is None:
            return False
        layer = self.get_layer_by_id(layer_id)
        if layer is None or layer.locked:
            return False
        index = self.get_index_by_id(layer_id)
        if direction in ('up', 'front'):
            return index < len(self._layers) - 1
        if direction in ('down', 'back'):
            return index > 0
        return False

    # ========================================
    # Recording / listeners
    # ========================================

    def set_recorder(self, recorder: Optional[Recorder]):
        self._recorder = recorder

    def add_listener(self, callback: Callable[[Tuple[TextLayer, ...]], None]):
        """Add a callback receiving the new collection after each change"""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _commit(self, layers: Sequence[TextLayer], action: str, record: bool = True,
                select: Optional[Iterable[str]] = None):
        """Install a new collection, reconcile selection, record, notify

        Ids in select replace the selection before listeners run.
        """
        layers = tuple(layers)
        ids = [layer.id for layer in layers]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate layer ids in collection ({action})")

        self._layers = layers
        if select is not None:
            self.selection.set(select)
        self.selection.reconcile(layers)
        if record and self._recorder is not None:
            self._recorder(layers)
        self._logger.debug(f"{action} -> {len(layers)} layer(s)")

        for callback in self._listeners:
            try:
                callback(layers)
            except Exception:
                self._logger.exception("Error notifying layer listener")

    # ========================================
    # Layer CRUD
    # ========================================

    def add_layer(self, template_style: Optional[TextStyle] = None) -> str:
        """Add a layer with default values on top of the z-order

        Args:
            template_style: Style to seed from, defaults to the current style

        Returns:
            id of the new layer (which becomes the sole selection)
        """
        layer = TextLayer.create(template_style or self._current_style)
        self._commit(self._layers + (layer,), f"Added layer {layer.id}", select=[layer.id])
        return layer.id

    def update_layers(self, layer_ids: Iterable[str], patch: LayerPatch) -> bool:
        """Apply a typed patch to every layer whose id is in layer_ids

        Typography patches also update the current style so the next created
        layer inherits them. Locked layers are skipped for transform patches.

        Args:
            layer_ids: Target ids (unknown ids are ignored)
            patch: Typed property patch

        Returns:
            True if any layer changed

        Raises:
            TypeError: If patch is not a LayerPatch
            ValueError: If a position/shape patch targets more than one layer,
                or a patched value breaks a layer invariant
        """
        if not isinstance(patch, LayerPatch):
            raise TypeError(f"Expected a LayerPatch, got {type(patch).__name__}")

        targets = set(layer_ids)
        present = [layer for layer in self._layers if layer.id in targets]
        if patch.SINGLE_TARGET and len(present) > 1:
            raise ValueError(f"{patch.GROUP} edits need a single target layer, got {len(present)}")
        if patch.is_empty():
            return False

        style = self._current_style
        if isinstance(patch, TypographyPatch):
            style = style.with_changes(**patch.style_changes())

        # Build every new layer first: an invalid value aborts before any change
        updated = {}
        for layer in present:
            if isinstance(patch, TransformPatch) and layer.locked:
                self._logger.debug(f"Skipping locked layer {layer.id} for transform")
                continue
            if isinstance(patch, WarpPatch):
                new_layer = patch.apply(layer, self._path_builder)
            else:
                new_layer = patch.apply(layer)
            if new_layer != layer:
                updated[layer.id] = new_layer

        self._current_style = style

        if not updated:
            return False

        self._commit(
            tuple(updated.get(layer.id, layer) for layer in self._layers),
            f"Updated {patch.GROUP} on {len(updated)} layer(s)",
        )
        return True

    def delete_layers(self, layer_ids: Iterable[str]) -> int:
        """Remove layers by id

        Returns:
            Number of layers removed
        """
        targets = set(layer_ids)
        remaining = tuple(layer for layer in self._layers if layer.id not in targets)
        removed = len(self._layers) - len(remaining)
        if removed:
            self._commit(remaining, f"Deleted {removed} layer(s)")
        return removed

    def duplicate(self, layer_id: str) -> str:
        """Clone a layer with a fresh id, offset and unlocked, on top

        Returns:
            id of the clone (which becomes the sole selection)

        Raises:
            ValueError: If id not found
        """
        source = self.get_layer_by_id(layer_id)
        if source is None:
            raise ValueError(f"Layer with id '{layer_id}' not found")

        clone = source.with_changes(
            id=TextLayer.new_id(),
            x=source.x + DUPLICATE_OFFSET_X,
            y=source.y + DUPLICATE_OFFSET_Y,
            locked=False,
        )
        self._commit(self._layers + (clone,), f"Duplicated {layer_id} -> {clone.id}",
                     select=[clone.id])
        return clone.id

    def reorder(self, layer_id: str, direction: str) -> bool:
        """Move the single selected, unlocked layer in paint order

        'up'/'down' swap with the adjacent layer, 'front'/'back' move to the
        top/bottom. At the boundary nothing happens and nothing is recorded.

        Returns:
            True if the order changed

        Raises:
            ValueError: Unknown direction, or the layer is not the single
                selected, unlocked layer
        """
        if direction not in REORDER_DIRECTIONS:
            raise ValueError(f"Invalid reorder direction: {direction!r}")
        if self.selection.single_id != layer_id:
            raise ValueError(f"Reorder needs '{layer_id}' to be the only selected layer")
        layer = self.get_layer_by_id(layer_id)
        if layer is None:
            raise ValueError(f"Layer with id '{layer_id}' not found")
        if layer.locked:
            raise ValueError(f"Layer '{layer_id}' is locked")

        layers = list(self._layers)
        index = layers.index(layer)
        last = len(layers) - 1

        if direction in ('up', 'front') and index == last:
            return False
        if direction in ('down', 'back') and index == 0:
            return False

        if direction == 'up':
            layers[index], layers[index + 1] = layers[index + 1], layers[index]
        elif direction == 'down':
            layers[index], layers[index - 1] = layers[index - 1], layers[index]
        elif direction == 'front':
            layers.append(layers.pop(index))
        else:
            layers.insert(0, layers.pop(index))

        self._commit(layers, f"Moved {layer_id} {direction}")
        return True

    def toggle_lock(self, layer_ids: Optional[Iterable[str]] = None) -> bool:
        """Group-consistent lock toggle

        If every target is locked, unlock them all; otherwise lock them all.

        Args:
            layer_ids: Targets, defaults to the current selection

        Returns:
            The new locked state, or False when there were no targets
        """
        targets = set(self.selection.selected_ids if layer_ids is None else layer_ids)
        present = [layer for layer in self._layers if layer.id in targets]
        if not present:
            return False

        locked = not all(layer.locked for layer in present)
        if all(layer.locked == locked for layer in present):
            return locked
        self._commit(
            tuple(layer.with_changes(locked=locked) if layer.id in targets else layer
                  for layer in self._layers),
            f"{'Locked' if locked else 'Unlocked'} {len(present)} layer(s)",
        )
        return locked

    # ========================================
    # Gestures
    # ========================================

    def select(self, layer_id: str, multi: bool = False) -> bool:
        """Click selection from the rendering surface

        Clicks on locked layers are ignored.

        Returns:
            True if the selection changed

        Raises:
            ValueError: If id not found
        """
        layer = self.get_layer_by_id(layer_id)
        if layer is None:
            raise ValueError(f"Layer with id '{layer_id}' not found")
        if layer.locked:
            self._logger.debug(f"Ignoring click on locked layer {layer_id}")
            return False
        self.selection.select(layer_id, multi)
        return True

    def apply_drag(self, layer_id: str, x: float, y: float) -> bool:
        """Drag-end: move a layer (ignored for locked or unknown layers)"""
        return self._apply_gesture(layer_id, {'x': x, 'y': y}, 'Dragged')

    def apply_transform(self, layer_id: str, x: float, y: float, rotation: float,
                        scale_x: float, scale_y: float) -> bool:
        """Transform-end: set position, rotation and scale of a layer"""
        return self._apply_gesture(layer_id, {
            'x': x, 'y': y, 'rotation': rotation, 'scale_x': scale_x, 'scale_y': scale_y,
        }, 'Transformed')

    def _apply_gesture(self, layer_id: str, changes: Dict[str, float], action: str) -> bool:
        layer = self.get_layer_by_id(layer_id)
        if layer is None:
            self._logger.debug(f"{action} unknown layer {layer_id}, ignored")
            return False
        if layer.locked:
            self._logger.debug(f"{action} locked layer {layer_id}, ignored")
            return False
        moved = layer.with_changes(**changes)
        if moved == layer:
            return False
        self._commit(
            tuple(moved if item.id == layer_id else item for item in self._layers),
            f"{action} {layer_id}",
        )
        return True

    # ========================================
    # Group geometry
    # ========================================

    def align_horizontally(self) -> bool:
        """Put the selected layers on one horizontal line (common y = mean y)"""
        return self.align('y')

    def align_vertically(self) -> bool:
        """Put the selected layers on one vertical line (common x = mean x)"""
        return self.align('x')

    def align(self, axis: str) -> bool:
        """Set the selected layers' axis coordinate to their mean

        Locked layers count toward the mean but are not moved.

        Raises:
            ValueError: Fewer than 2 selected layers or unknown axis
        """
        selected = self.selected_layers()
        return self._move_on_axis(align_positions(selected, axis), axis, f"Aligned on {axis}")

    def distribute_evenly(self, axis: str) -> bool:
        """Space the selected layers evenly between the outermost two

        Raises:
            ValueError: Fewer than 3 selected layers or unknown axis
        """
        selected = self.selected_layers()
        return self._move_on_axis(distribute_positions(selected, axis), axis, f"Distributed on {axis}")

    def _move_on_axis(self, positions: Dict[str, float], axis: str, action: str) -> bool:
        layers = []
        changed = False
        for layer in self._layers:
            if layer.id in positions and not layer.locked and getattr(layer, axis) != positions[layer.id]:
                layer = layer.with_changes(**{axis: positions[layer.id]})
                changed = True
            layers.append(layer)
        if changed:
            self._commit(layers, action)
        return changed

    # ========================================
    # Bulk
    # ========================================

    def replace_layers(self, layers: Sequence[TextLayer], record: bool = False):
        """Install a whole collection (undo/redo replay, autosave restore)

        Args:
            layers: New collection in paint order
            record: Hand the collection to the recorder. Undo/redo replays
                pass True so the history consumes its replay flag.
        """
        self._commit(layers, "Replaced layers", record=record)

    def reset(self):
        """Remove every layer and clear the selection"""
        self.selection.clear()
        self._current_style = TextStyle()
        self._commit((), "Reset")
