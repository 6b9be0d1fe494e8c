"""
Tests for undo/redo state management.

Covers:
- HistoryManager as a standalone snapshot stack
- Replay discrimination (undo/redo never record themselves)
- Redo branch truncation
- History trimming at max capacity
- Loading a persisted history with cursor clamping
- Listener notifications
"""
import pytest

from models.text_layer import TextLayer
from utils.history_manager import HistoryManager


def snap(*xs):
    """Snapshot with one layer per x value"""
    return tuple(TextLayer(id=f"l{i}", x=float(x)) for i, x in enumerate(xs))


# ══════════════════════════════════════════════════════════════════════════
# HistoryManager (standalone snapshot stack)
# ══════════════════════════════════════════════════════════════════════════

class TestHistoryManagerStack:

    @pytest.fixture
    def hm(self):
        return HistoryManager()

    # ── basic operations ────────────────────────────────────────────

    def test_initial_state_empty(self, hm):
        assert not hm.can_undo()
        assert not hm.can_redo()
        assert hm.current_index == -1
        assert hm.current() is None

    def test_single_record_no_undo(self, hm):
        hm.record(snap())
        assert not hm.can_undo()
        assert not hm.can_redo()
        assert hm.current_index == 0

    def test_undo_returns_previous_snapshot(self, hm):
        hm.record(snap())
        hm.record(snap(1))
        assert hm.undo() == snap()

    def test_redo_returns_next_snapshot(self, hm):
        hm.record(snap())
        hm.record(snap(1))
        hm.undo()
        hm.cancel_replay()
        assert hm.redo() == snap(1)

    def test_undo_at_beginning_returns_none(self, hm):
        hm.record(snap())
        assert hm.undo() is None
        assert not hm.is_replaying

    def test_redo_at_end_returns_none(self, hm):
        hm.record(snap())
        assert hm.redo() is None

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            HistoryManager(max_history=0)

    # ── replay discrimination ───────────────────────────────────────

    def test_record_after_undo_is_consumed(self, hm):
        hm.record(snap())
        hm.record(snap(1))
        restored = hm.undo()
        assert hm.is_replaying
        assert hm.record(restored) is False
        assert not hm.is_replaying
        assert len(hm) == 2
        assert hm.can_redo()

    def test_record_after_consumed_replay_truncates_redo(self, hm):
        for x in range(3):
            hm.record(snap(x))
        hm.record(hm.undo())
        assert hm.record(snap(99)) is True
        assert hm.history == (snap(0), snap(1), snap(99))
        assert not hm.can_redo()

    def test_cancel_replay(self, hm):
        hm.record(snap())
        hm.record(snap(1))
        hm.undo()
        hm.cancel_replay()
        assert hm.record(snap(5)) is True

    # ── capacity ────────────────────────────────────────────────────

    def test_default_capacity_is_twenty(self, hm):
        assert hm.max_history == 20

    def test_oldest_evicted(self, hm):
        for x in range(25):
            hm.record(snap(x))
        assert len(hm) == 20
        assert hm.history[0] == snap(5)
        assert hm.current() == snap(24)
        assert hm.current_index == 19

    def test_undo_after_eviction(self):
        hm = HistoryManager(max_history=3)
        for x in range(5):
            hm.record(snap(x))
        undone = []
        while hm.can_undo():
            undone.append(hm.undo())
            hm.cancel_replay()
        assert undone == [snap(3), snap(2)]

    # ── snapshots are shared, not copied ────────────────────────────

    def test_snapshot_stored_as_tuple(self, hm):
        layers = [TextLayer(id='a')]
        hm.record(layers)
        layers.append(TextLayer(id='b'))
        assert hm.current() == (TextLayer(id='a'),)


# ══════════════════════════════════════════════════════════════════════════
# Loading persisted history
# ══════════════════════════════════════════════════════════════════════════

class TestHistoryLoad:

    def test_load_sets_cursor(self):
        hm = HistoryManager()
        hm.load([snap(), snap(1), snap(2)], 1)
        assert hm.current() == snap(1)
        assert hm.can_undo() and hm.can_redo()

    @pytest.mark.parametrize('cursor,expected', [(-4, 0), (10, 2)])
    def test_cursor_clamped(self, cursor, expected):
        hm = HistoryManager()
        hm.load([snap(), snap(1), snap(2)], cursor)
        assert hm.current_index == expected

    def test_oversized_keeps_newest(self):
        hm = HistoryManager(max_history=2)
        hm.load([snap(0), snap(1), snap(2), snap(3)], 3)
        assert hm.history == (snap(2), snap(3))
        assert hm.current_index == 1

    def test_load_empty(self):
        hm = HistoryManager()
        hm.record(snap())
        hm.load([], 0)
        assert len(hm) == 0
        assert hm.current_index == -1

    def test_load_disarms_replay(self):
        hm = HistoryManager()
        hm.record(snap())
        hm.record(snap(1))
        hm.undo()
        hm.load([snap()], 0)
        assert not hm.is_replaying

    def test_clear(self):
        hm = HistoryManager()
        hm.record(snap())
        hm.clear()
        assert len(hm) == 0
        assert not hm.can_undo()


# ══════════════════════════════════════════════════════════════════════════
# Listeners
# ══════════════════════════════════════════════════════════════════════════

class TestHistoryListeners:

    def test_listener_receives_flags(self):
        hm = HistoryManager()
        calls = []
        hm.add_listener(lambda can_undo, can_redo: calls.append((can_undo, can_redo)))
        hm.record(snap())
        hm.record(snap(1))
        hm.undo()
        assert calls == [(False, False), (True, False), (False, True)]

    def test_removed_listener_not_called(self):
        hm = HistoryManager()
        calls = []
        listener = lambda *flags: calls.append(flags)
        hm.add_listener(listener)
        hm.remove_listener(listener)
        hm.record(snap())
        assert calls == []

    def test_failing_listener_isolated(self):
        hm = HistoryManager()

        def bad(*_):
            raise RuntimeError("boom")
        hm.add_listener(bad)
        assert hm.record(snap()) is True


# ══════════════════════════════════════════════════════════════════════════
# Store + history integration
# ══════════════════════════════════════════════════════════════════════════

class TestStoreHistory:

    def test_each_mutation_records_once(self, store, history):
        layer_id = store.add_layer()
        store.apply_drag(layer_id, 5.0, 5.0)
        store.duplicate(layer_id)
        assert len(history) == 4

    def test_replay_through_store_not_recorded(self, store, history):
        store.add_layer()
        before = len(history)
        store.replace_layers(history.undo(), record=True)
        assert len(history) == before
        assert store.layers == ()
