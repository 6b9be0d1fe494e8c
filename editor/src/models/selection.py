"""
Image Text Composer - Selection Model

The set of layer ids currently active for editing. Order does not matter.

    size 0   nothing selected
    size 1   single select: position/shape edits allowed
    size >=2 multi-select: shared-property edits, align
    size >=3 distribute

Invariant: every selected id references a layer present in the collection.
reconcile() restores it after any collection change; it is idempotent and
never touches history.
"""

import logging
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence

from models.text_layer import TextLayer
from utils.layout_math import MIN_ALIGN_COUNT, MIN_DISTRIBUTE_COUNT


class SelectionController:
    """Selection set with single/multi-select queries"""

    def __init__(self):
        self._ids = set()
        self._listeners: List[Callable[[FrozenSet[str]], None]] = []
        self._logger = logging.getLogger('Selection')

    # ========================================
    # Queries
    # ========================================

    @property
    def selected_ids(self) -> FrozenSet[str]:
        return frozenset(self._ids)

    def __contains__(self, layer_id) -> bool:
        return layer_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def is_empty(self) -> bool:
        return not self._ids

    @property
    def is_single(self) -> bool:
        return len(self._ids) == 1

    @property
    def is_multi(self) -> bool:
        return len(self._ids) >= 2

    @property
    def can_align(self) -> bool:
        return len(self._ids) >= MIN_ALIGN_COUNT

    @property
    def can_distribute(self) -> bool:
        return len(self._ids) >= MIN_DISTRIBUTE_COUNT

    @property
    def single_id(self) -> Optional[str]:
        """The selected id under single select, else None"""
        if len(self._ids) == 1:
            return next(iter(self._ids))
        return None

    def selected_layers(self, layers: Sequence[TextLayer]) -> List[TextLayer]:
        """Selected layers in collection (z) order"""
        return [layer for layer in layers if layer.id in self._ids]

    # ========================================
    # Mutation
    # ========================================

    def select(self, layer_id: str, multi: bool = False):
        """Replace the selection with {layer_id}, or toggle it when multi is set"""
        if multi:
            if layer_id in self._ids:
                self._ids.discard(layer_id)
            else:
                self._ids.add(layer_id)
        else:
            self._ids = {layer_id}
        self._logger.debug(f"Selected {layer_id} (multi={multi}) -> {len(self._ids)} selected")
        self._notify_listeners()

    def set(self, layer_ids: Iterable[str]):
        self._ids = set(layer_ids)
        self._notify_listeners()

    def clear(self):
        if self._ids:
            self._ids = set()
            self._notify_listeners()

    def reconcile(self, layers: Iterable[TextLayer]) -> FrozenSet[str]:
        """Drop selected ids whose layer no longer exists

        Returns:
            The ids that were dropped (empty when nothing changed)
        """
        present = {layer.id for layer in layers}
        stale = self._ids - present
        if stale:
            self._ids -= stale
            self._logger.debug(f"Pruned {len(stale)} stale selected id(s)")
            self._notify_listeners()
        return frozenset(stale)

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback: Callable[[FrozenSet[str]], None]):
        """Add a callback receiving the new selection after each change"""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self):
        selected = self.selected_ids
        for callback in self._listeners:
            try:
                callback(selected)
            except Exception:
                self._logger.exception("Error notifying selection listener")
