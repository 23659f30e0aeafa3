import shutil

import pytest

from betternotes.services.latex import workspace as workspace_module
from betternotes.services.latex.workspace import (
    acquire_workspace,
    release_workspace,
    resolve_workspace_path,
    workspace_scope,
    write_workspace_file,
)
from betternotes.utils.exceptions import InvalidInputError

from .factories import VALID_LATEX


def test_acquire_writes_entry_file(temp_root):
    workspace = acquire_workspace(VALID_LATEX)
    try:
        assert workspace.root.parent == temp_root.resolve()
        assert workspace.root.name.startswith("betternotes-tex-")
        assert workspace.entry_file.read_text(encoding="utf-8") == VALID_LATEX
        assert workspace.artifact_path.name == "main.pdf"
        assert workspace.log_path.name == "main.log"
        assert workspace.work_dir == workspace.root
    finally:
        release_workspace(workspace)

    assert not workspace.root.exists()


def test_workspaces_are_unique(temp_root):
    first = acquire_workspace("a")
    second = acquire_workspace("b")
    try:
        assert first.root != second.root
    finally:
        release_workspace(first)
        release_workspace(second)
    assert list(temp_root.iterdir()) == []


def test_release_is_idempotent(temp_root):
    workspace = acquire_workspace("x")
    release_workspace(workspace)
    release_workspace(workspace)
    assert not workspace.root.exists()


def test_release_swallows_deletion_errors(temp_root, monkeypatch):
    workspace = acquire_workspace("x")

    def boom(path, *args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(workspace_module.shutil, "rmtree", boom)
    release_workspace(workspace)

    monkeypatch.undo()
    shutil.rmtree(workspace.root)


def test_scope_removes_directory_when_block_raises(temp_root):
    with pytest.raises(RuntimeError):
        with workspace_scope(VALID_LATEX) as workspace:
            assert workspace.entry_file.exists()
            raise RuntimeError("boom")

    assert not workspace.root.exists()
    assert list(temp_root.iterdir()) == []


def test_nested_entry_derives_artifact_names(temp_root):
    with workspace_scope(entry_name="thesis/paper.tex") as workspace:
        assert workspace.work_dir == workspace.root / "thesis"
        assert workspace.artifact_path == workspace.root / "thesis" / "paper.pdf"
        assert workspace.log_path == workspace.root / "thesis" / "paper.log"


@pytest.mark.parametrize("bad_path", ["../evil.tex", "/etc/passwd", "C:\\evil.tex", "a/../../b.tex", "", "~/x.tex"])
def test_resolve_rejects_escaping_paths(tmp_path, bad_path):
    with pytest.raises(InvalidInputError):
        resolve_workspace_path(tmp_path, bad_path)


def test_resolve_accepts_nested_relative_path(tmp_path):
    resolved = resolve_workspace_path(tmp_path, "chapters/ch1.tex")
    assert resolved == (tmp_path / "chapters" / "ch1.tex").resolve()


def test_unsafe_entry_name_leaves_no_directory(temp_root):
    with pytest.raises(InvalidInputError):
        acquire_workspace("x", entry_name="../main.tex")
    assert list(temp_root.iterdir()) == []


def test_write_workspace_file_creates_parents(temp_root):
    with workspace_scope(entry_name="main.tex") as workspace:
        target = write_workspace_file(workspace, "figures/plot.png", b"\x89PNG")
        assert target.read_bytes() == b"\x89PNG"
        assert target.parent.name == "figures"
