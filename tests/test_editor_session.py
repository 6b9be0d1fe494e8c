"""
Tests for the EditorSession wiring.

Covers:
- Action → undo → verify → redo → verify workflows
- Selection cleared on undo/redo
- Autosave scheduling, restore and close
- Frame listeners
"""
import pytest

from models.layer_patch import TypographyPatch, ContentPatch
from services.persistence import PersistenceAdapter, ImageIdentity
from editor_session import EditorSession


@pytest.fixture
def offline_session(fake_path_builder):
    """Session with no persistence and a deterministic warp path builder"""
    from models.layer_store import LayerStore
    return EditorSession(store=LayerStore(path_builder=fake_path_builder))


# ══════════════════════════════════════════════════════════════════════════
# Undo / redo
# ══════════════════════════════════════════════════════════════════════════

class TestUndoRedo:

    def test_fresh_session(self, offline_session):
        assert offline_session.layers == ()
        assert not offline_session.can_undo()
        assert not offline_session.can_redo()

    def test_n_actions_then_n_undos(self, offline_session):
        s = offline_session
        first = s.add_layer()
        s.on_drag_end(first, 10.0, 10.0)
        s.update_selected(TypographyPatch(font_size=64))
        s.duplicate_selected()
        states = []
        while s.can_undo():
            states.append(s.layers)
            assert s.undo()
        assert s.layers == ()
        assert len(states) == 4

    def test_undo_then_redo_restores(self, offline_session):
        s = offline_session
        layer_id = s.add_layer()
        s.update_selected(ContentPatch(text='Sale!'))
        after = s.layers
        s.undo()
        assert s.store.get_layer_by_id(layer_id).text == 'Double click to edit'
        s.redo()
        assert s.layers == after

    def test_undo_at_start_is_noop(self, offline_session):
        assert offline_session.undo() is False
        assert offline_session.layers == ()

    def test_redo_at_end_is_noop(self, offline_session):
        offline_session.add_layer()
        layers = offline_session.layers
        assert offline_session.redo() is False
        assert offline_session.layers == layers

    def test_undo_does_not_record(self, offline_session):
        s = offline_session
        s.add_layer()
        s.add_layer()
        size = len(s.history)
        s.undo()
        s.undo()
        assert len(s.history) == size
        assert s.can_redo()

    def test_undo_clears_selection(self, offline_session):
        s = offline_session
        s.add_layer()
        s.add_layer()
        assert not s.selection.is_empty
        s.undo()
        assert s.selection.is_empty

    def test_new_action_after_undo_drops_redo(self, offline_session):
        s = offline_session
        s.add_layer()
        s.add_layer()
        s.undo()
        s.add_layer()
        assert not s.can_redo()

    def test_reset_is_undoable(self, offline_session):
        s = offline_session
        s.add_layer()
        s.reset()
        assert s.layers == ()
        s.undo()
        assert len(s.layers) == 1


# ══════════════════════════════════════════════════════════════════════════
# Commands on the selection
# ══════════════════════════════════════════════════════════════════════════

class TestSelectionCommands:

    def test_click_and_background_click(self, offline_session):
        s = offline_session
        a = s.add_layer()
        b = s.add_layer()
        s.on_click(a)
        s.on_click(b, multi=True)
        assert s.selection.selected_ids == {a, b}
        s.on_background_click()
        assert s.selection.is_empty

    def test_delete_selected(self, offline_session):
        s = offline_session
        s.add_layer()
        s.add_layer()
        assert s.delete_selected() == 1
        assert len(s.layers) == 1
        assert s.selection.is_empty

    def test_duplicate_needs_single(self, offline_session):
        assert offline_session.duplicate_selected() is None

    def test_reorder_needs_single(self, offline_session):
        with pytest.raises(ValueError):
            offline_session.reorder_selected('up')

    def test_reorder_selected(self, offline_session):
        s = offline_session
        a = s.add_layer()
        s.add_layer()
        s.on_click(a)
        assert s.reorder_selected('front')
        assert s.layers[-1].id == a

    def test_lock_blocks_drag(self, offline_session):
        s = offline_session
        a = s.add_layer()
        assert s.toggle_lock_selected() is True
        assert not s.on_drag_end(a, 0.0, 0.0)

    def test_transform_end(self, offline_session):
        s = offline_session
        a = s.add_layer()
        s.on_transform_end(a, 1.0, 2.0, 15.0, 1.5, 1.5)
        assert s.store.get_layer_by_id(a).rotation == 15.0

    def test_align_and_distribute(self, offline_session):
        s = offline_session
        ids = [s.add_layer() for _ in range(3)]
        for index, layer_id in enumerate(ids):
            s.on_drag_end(layer_id, index * 10.0, index * 100.0)
        s.selection.set(ids)
        s.align_vertically()
        assert {layer.x for layer in s.layers} == {10.0}
        s.distribute_evenly('y')
        assert [layer.y for layer in s.layers] == [0.0, 100.0, 200.0]
        s.align_horizontally()
        assert {layer.y for layer in s.layers} == {100.0}

    def test_frame_listener(self, offline_session):
        frames = []
        offline_session.add_listener(frames.append)
        layer_id = offline_session.add_layer()
        assert frames[-1].instructions[0].layer_id == layer_id
        assert offline_session.render_frame() == frames[-1]


# ══════════════════════════════════════════════════════════════════════════
# Autosave
# ══════════════════════════════════════════════════════════════════════════

class TestAutosave:

    def test_change_schedules_save(self, session, persistence):
        session.add_layer()
        assert persistence.has_pending

    def test_debounced_save_written(self, qtbot, session, persistence, memory_storage):
        session.add_layer()
        qtbot.waitUntil(lambda: memory_storage.get(persistence.key) is not None, timeout=2000)

    def test_restore_round_trip(self, qtbot, session, memory_storage, image_identity):
        session.add_layer()
        session.update_selected(TypographyPatch(fill='#00ff00'))
        assert session.flush()
        saved_layers, saved_step = session.layers, session.history.current_index

        restored = EditorSession(persistence=PersistenceAdapter(memory_storage, image_identity))
        assert restored.restore()
        assert restored.layers == saved_layers
        assert restored.history.current_index == saved_step
        assert restored.selection.is_empty
        assert not restored.persistence.has_pending
        assert restored.undo()
        assert restored.layers[0].fill == '#ff0000'

    def test_restore_other_image(self, qtbot, session, memory_storage):
        session.add_layer()
        session.flush()
        other = EditorSession(persistence=PersistenceAdapter(
            memory_storage, ImageIdentity('file:///photos/other.png', 800, 600)))
        assert not other.restore()
        assert other.layers == ()

    def test_restore_without_persistence(self, offline_session):
        assert not offline_session.restore()
        assert not offline_session.flush()

    def test_close_cancels_pending_save(self, qtbot, session, persistence, memory_storage):
        session.add_layer()
        session.close()
        assert not persistence.has_pending
        qtbot.wait(120)
        assert memory_storage.get(persistence.key) is None
        assert session.layers == ()
        assert not session.can_undo()

    def test_open_image_switches(self, qtbot, session, memory_storage):
        session.add_layer()
        other = PersistenceAdapter(memory_storage, ImageIdentity('file:///photos/other.png', 10, 10))
        assert not session.open_image(other)
        assert session.persistence is other
        assert session.layers == ()

    def test_export_png(self, png_path, offline_session):
        offline_session.add_layer()
        data = offline_session.export_png(png_path, pixel_ratio=1)
        assert data.startswith(b'\x89PNG')
