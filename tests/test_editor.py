"""Annotation editing engine: strokes, labels, undo/clear, export, lifecycle."""

from unittest.mock import patch

import pytest
from PyQt5.QtGui import QImage

from frame_annote.editor import AnnotationEditor, EditorState, StrokeWidth, TextLabel, ToolMode
from frame_annote.errors import EditorStateError, ExportFailed
from frame_annote.snapshots import encode_png

DISPLAY = (100.0, 100.0)


@pytest.fixture
def editor(make_png):
    ed = AnnotationEditor()
    ed.load(make_png(100, 100, "#ffffff"))
    return ed


def _draw_line(ed, x0, y0, x1, y1, display=DISPLAY):
    ed.press(x0, y0, display)
    ed.move((x0 + x1) / 2, (y0 + y1) / 2, display)
    return ed.release(x1, y1, display)


def _pixel(ed, x, y):
    return ed.surface().pixelColor(x, y).name()


def _same_pixels(a, b):
    return a.convertToFormat(QImage.Format_ARGB32) == b.convertToFormat(QImage.Format_ARGB32)


# ---------------- Lifecycle ----------------

def test_new_editor_is_uninitialized():
    ed = AnnotationEditor()
    assert ed.state == EditorState.UNINITIALIZED
    with pytest.raises(EditorStateError):
        ed.press(1, 1, DISPLAY)
    with pytest.raises(EditorStateError):
        ed.export()


def test_load_starts_idle_with_pristine_snapshot(editor):
    assert editor.state == EditorState.IDLE
    assert editor.history_length == 1
    assert editor.size() == (100, 100)
    assert editor.tool == ToolMode.PEN
    assert editor.stroke_width == StrokeWidth.THIN
    assert not editor.can_undo()


def test_load_twice_is_rejected(editor, make_png):
    with pytest.raises(EditorStateError):
        editor.load(make_png())


def test_load_rejects_undecodable_frame():
    with pytest.raises(ValueError):
        AnnotationEditor().load(b"garbage")


def test_close_is_terminal(editor):
    editor.close()
    assert editor.state == EditorState.CLOSED
    for op in (editor.undo, editor.clear, editor.export, editor.surface):
        with pytest.raises(EditorStateError):
            op()
    with pytest.raises(EditorStateError):
        editor.press(10, 10, DISPLAY)
    assert not editor.can_undo()


# ---------------- Pen ----------------

def test_stroke_appends_one_snapshot_and_paints_red(editor):
    assert _draw_line(editor, 10, 50, 90, 50) is True
    assert editor.history_length == 2
    assert editor.state == EditorState.IDLE
    assert _pixel(editor, 50, 50) == "#ff0000"
    assert _pixel(editor, 50, 10) == "#ffffff"


def test_drawing_state_until_release(editor):
    editor.press(10, 10, DISPLAY)
    assert editor.state == EditorState.DRAWING
    editor.move(20, 20, DISPLAY)
    assert editor.history_length == 1
    editor.release(30, 30, DISPLAY)
    assert editor.state == EditorState.IDLE


def test_press_release_without_move_leaves_a_dot(editor):
    editor.set_stroke_width(StrokeWidth.THICK)
    editor.press(50, 50, DISPLAY)
    assert editor.release(50, 50, DISPLAY) is True
    assert editor.history_length == 2
    assert _pixel(editor, 50, 50) == "#ff0000"


def test_move_without_press_is_ignored(editor):
    editor.move(40, 40, DISPLAY)
    assert editor.state == EditorState.IDLE
    assert editor.release(40, 40, DISPLAY) is False
    assert editor.history_length == 1


def test_in_progress_stroke_is_rendered_but_not_committed(editor):
    editor.set_stroke_width(StrokeWidth.THICK)
    editor.press(10, 50, DISPLAY)
    editor.move(90, 50, DISPLAY)
    assert editor.render().pixelColor(50, 50).name() == "#ff0000"
    assert _pixel(editor, 50, 50) == "#ffffff"


def test_finish_stroke_commits_at_last_point(editor):
    editor.press(10, 50, DISPLAY)
    editor.move(90, 50, DISPLAY)
    assert editor.finish_stroke() is True
    assert editor.history_length == 2
    assert editor.finish_stroke() is False


def test_stroke_width_presets_only(editor):
    editor.set_stroke_width(StrokeWidth.THICK)
    assert editor.stroke_width == 5
    editor.set_stroke_width(2)
    assert editor.stroke_width == StrokeWidth.THIN
    with pytest.raises(ValueError):
        editor.set_stroke_width(7)


def test_switching_tool_drops_unfinished_stroke(editor):
    editor.press(10, 10, DISPLAY)
    editor.move(60, 60, DISPLAY)
    editor.set_tool(ToolMode.TEXT)
    assert editor.state == EditorState.IDLE
    assert editor.history_length == 1
    assert editor.tool == ToolMode.TEXT


# ---------------- Coordinates ----------------

def test_map_to_bitmap_scales_axes_independently(make_png):
    ed = AnnotationEditor()
    ed.load(make_png(200, 100))
    pt = ed.map_to_bitmap(50, 25, 100, 50)
    assert (pt.x(), pt.y()) == (100.0, 50.0)
    pt = ed.map_to_bitmap(50, 25, 400, 25)
    assert (pt.x(), pt.y()) == (25.0, 100.0)


def test_map_to_bitmap_rejects_empty_display(editor):
    with pytest.raises(ValueError):
        editor.map_to_bitmap(1, 1, 0, 100)


def test_stroke_lands_at_mapped_position(make_png):
    ed = AnnotationEditor()
    ed.load(make_png(200, 200, "#ffffff"))
    ed.set_stroke_width(StrokeWidth.THICK)
    # display is half the bitmap size, so coordinates double
    ed.press(5, 50, (100, 100))
    ed.release(45, 50, (100, 100))
    assert ed.surface().pixelColor(50, 100).name() == "#ff0000"
    assert ed.surface().pixelColor(150, 100).name() == "#ffffff"


# ---------------- Text ----------------

def test_text_press_creates_pending_label(editor):
    editor.set_tool(ToolMode.TEXT)
    label = editor.press(20, 30, DISPLAY)
    assert isinstance(label, TextLabel)
    assert editor.pending_labels == (label,)
    assert (label.anchor.x(), label.anchor.y()) == (20.0, 30.0)
    assert editor.history_length == 1


def test_commit_text_adds_snapshot(editor):
    editor.set_tool(ToolMode.TEXT)
    label = editor.press(20, 50, DISPLAY)
    editor.set_text(label, "Hello")
    assert editor.commit_text(label) is True
    assert editor.history_length == 2
    assert editor.pending_labels == ()


def test_blank_text_is_dropped_without_snapshot(editor):
    editor.set_tool(ToolMode.TEXT)
    label = editor.press(20, 50, DISPLAY)
    editor.set_text(label, "   ")
    assert editor.commit_text(label) is False
    assert editor.history_length == 1
    assert editor.pending_labels == ()


def test_discard_text(editor):
    editor.set_tool(ToolMode.TEXT)
    label = editor.press(20, 50, DISPLAY)
    editor.set_text(label, "gone")
    editor.discard_text(label)
    assert editor.pending_labels == ()
    assert editor.history_length == 1
    with pytest.raises(EditorStateError):
        editor.set_text(label, "again")


def test_failed_text_commit_keeps_label_pending(editor):
    pristine = editor.surface()
    editor.set_tool(ToolMode.TEXT)
    label = editor.press(20, 50, DISPLAY)
    editor.set_text(label, "keep me")
    with patch.object(editor._snapshots, "push", side_effect=ValueError("PNG encoder failed")):
        with pytest.raises(ExportFailed):
            editor.commit_text(label)
    assert editor.pending_labels == (label,)
    assert editor.history_length == 1
    assert _same_pixels(editor.surface(), pristine)

    assert editor.commit_text(label) is True
    assert editor.pending_labels == ()
    assert editor.history_length == 2


def test_new_label_commits_the_open_one(editor):
    editor.set_tool(ToolMode.TEXT)
    first = editor.press(10, 20, DISPLAY)
    editor.set_text(first, "one")
    second = editor.press(10, 60, DISPLAY)
    assert editor.history_length == 2
    assert editor.pending_labels == (second,)


# ---------------- Undo / clear ----------------

def test_undo_restores_previous_surface(editor):
    pristine = editor.surface()
    _draw_line(editor, 10, 50, 90, 50)
    assert editor.can_undo()
    assert editor.undo() is True
    assert editor.history_length == 1
    assert _same_pixels(editor.surface(), pristine)
    assert editor.undo() is False


def test_undo_steps_back_one_edit_at_a_time(editor):
    pristine = editor.surface()
    _draw_line(editor, 10, 20, 90, 20)
    _draw_line(editor, 10, 50, 90, 50)
    _draw_line(editor, 10, 80, 90, 80)
    assert editor.history_length == 4

    assert editor.undo() is True
    assert _pixel(editor, 50, 50) == "#ff0000"
    assert _pixel(editor, 50, 80) == "#ffffff"
    assert editor.undo() is True
    assert _pixel(editor, 50, 20) == "#ff0000"
    assert _pixel(editor, 50, 50) == "#ffffff"
    assert editor.undo() is True
    assert _same_pixels(editor.surface(), pristine)

    assert editor.undo() is False
    assert editor.history_length == 1
    assert _same_pixels(editor.surface(), pristine)


def test_clear_returns_to_pristine(editor):
    pristine = editor.pristine()
    _draw_line(editor, 10, 20, 90, 20)
    _draw_line(editor, 10, 80, 90, 80)
    editor.set_tool(ToolMode.TEXT)
    editor.press(30, 30, DISPLAY)
    editor.clear()
    assert editor.history_length == 1
    assert editor.pending_labels == ()
    assert _same_pixels(editor.surface(), pristine)
    assert not editor.can_undo()


# ---------------- Export ----------------

def test_export_is_png_of_current_surface(editor):
    _draw_line(editor, 10, 50, 90, 50)
    data = editor.export()
    assert data.startswith(b"\x89PNG")
    assert data == encode_png(editor.surface())


def test_export_commits_pending_work(editor):
    editor.press(10, 50, DISPLAY)
    editor.move(90, 50, DISPLAY)
    editor.export()
    assert editor.history_length == 2

    editor.set_tool(ToolMode.TEXT)
    label = editor.press(10, 80, DISPLAY)
    editor.set_text(label, "note")
    editor.export()
    assert editor.history_length == 3
    assert editor.pending_labels == ()
