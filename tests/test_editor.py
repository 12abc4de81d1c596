import pathlib
import subprocess

import pytest

from hajimi.compactor import compact
from hajimi.editor import ExternalEditorBridge
from hajimi.errors import EditorError
from hajimi.persistence import dumps_history, parse_history

from conftest import text_turn


class FakeEditor:
    """Stands in for subprocess.run; records argv and optionally rewrites the file."""

    def __init__(self, write=None, returncode=0, delete=False, raises=None):
        self.write = write
        self.returncode = returncode
        self.delete = delete
        self.raises = raises
        self.argv = None
        self.seen = None

    def __call__(self, argv, *args, **kwargs):
        self.argv = argv
        if self.raises is not None:
            raise self.raises
        path = pathlib.Path(argv[-1])
        self.seen = path.read_text(encoding="utf-8") if path.exists() else None
        if self.write is not None:
            path.write_text(self.write, encoding="utf-8")
        if self.delete and path.exists():
            path.unlink()
        return subprocess.CompletedProcess(argv, self.returncode)


@pytest.fixture
def fake(monkeypatch):
    def _install(**kwargs):
        editor = FakeEditor(**kwargs)
        monkeypatch.setattr("hajimi.editor.subprocess.run", editor)
        return editor

    return _install


def test_returns_written_text_trimmed(ctx, fake):
    editor = fake(write="draft message\n\n  ")
    assert ExternalEditorBridge(ctx, command="myedit --wait").edit() == "draft message"
    assert editor.argv[:2] == ["myedit", "--wait"]
    assert editor.seen is None


def test_initial_content_is_materialized(ctx, fake):
    editor = fake()
    assert ExternalEditorBridge(ctx, command="ed").edit("prefilled\n") == "prefilled"
    assert editor.seen == "prefilled\n"


def test_scratch_directory_is_removed_on_success(ctx, fake):
    editor = fake(write="x")
    ExternalEditorBridge(ctx, command="ed").edit()
    assert not pathlib.Path(editor.argv[-1]).parent.exists()


def test_scratch_directory_is_removed_on_failure(ctx, fake):
    editor = fake(returncode=1)
    with pytest.raises(EditorError):
        ExternalEditorBridge(ctx, command="ed").edit("content")
    assert not pathlib.Path(editor.argv[-1]).parent.exists()


def test_launch_failure_is_an_editor_error(ctx, fake):
    editor = fake(raises=FileNotFoundError(2, "No such file or directory"))
    with pytest.raises(EditorError) as exc:
        ExternalEditorBridge(ctx, command="missing-editor").edit("x")
    assert "missing-editor" in str(exc.value)
    assert not pathlib.Path(editor.argv[-1]).parent.exists()


def test_unsaved_new_file_is_an_editor_error(ctx, fake):
    fake()
    with pytest.raises(EditorError):
        ExternalEditorBridge(ctx, command="ed").edit()


def test_deleted_file_is_an_editor_error(ctx, fake):
    fake(delete=True)
    with pytest.raises(EditorError):
        ExternalEditorBridge(ctx, command="ed").edit("x")


def test_empty_command_is_an_editor_error(ctx, fake):
    fake()
    with pytest.raises(EditorError):
        ExternalEditorBridge(ctx, command="   ").edit("x")


def test_unchanged_history_round_trips_through_editor(ctx, fake):
    fake()
    history = [text_turn("user", "a"), text_turn("user", "b"), text_turn("model", "c", "d")]
    edited = ExternalEditorBridge(ctx, command="ed").edit(dumps_history(history), filename="history.json")
    assert parse_history(edited) == compact(history)


def test_cleanup_failure_is_logged_not_raised(ctx, fake, monkeypatch):
    fake(write="ok")

    def _boom(path, *args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("hajimi.editor.shutil.rmtree", _boom)
    assert ExternalEditorBridge(ctx, command="ed").edit() == "ok"
    assert any("scratch" in line for line in ctx.logs)
