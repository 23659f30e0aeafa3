"""
Per-request isolated workspaces for LaTeX compilation.

Every compile call gets its own directory from ``tempfile.mkdtemp`` and that
directory is removed when the call ends, whatever the outcome.
"""

from __future__ import annotations

import re
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional, Union

from loguru import logger

from betternotes.utils.exceptions import InvalidInputError

WORKSPACE_PREFIX = "betternotes-tex-"
PROJECT_WORKSPACE_PREFIX = "betternotes-project-"
ENTRY_FILE_NAME = "main.tex"


@dataclass(frozen=True)
class Workspace:
    """A private compile directory and the entry file inside it."""

    root: Path
    entry_file: Path

    @property
    def work_dir(self) -> Path:
        """Directory the toolchain runs in (the entry file's directory)."""
        return self.entry_file.parent

    @property
    def artifact_path(self) -> Path:
        return self.entry_file.with_suffix(".pdf")

    @property
    def log_path(self) -> Path:
        return self.entry_file.with_suffix(".log")


def resolve_workspace_path(root: Path, relative_path: str) -> Path:
    """
    Resolve a caller-supplied relative path inside ``root``.

    Raises:
        InvalidInputError: if the path is empty, absolute, or escapes ``root``
    """
    raw = (relative_path or "").strip().replace("\\", "/")
    if not raw:
        raise InvalidInputError("File path must not be empty.", field="path")
    if raw.startswith(("/", "~")) or re.match(r"^[a-zA-Z]:", raw):
        raise InvalidInputError(f"Absolute paths are not allowed: {relative_path}", field="path")
    if ".." in PurePosixPath(raw).parts:
        raise InvalidInputError(f"Path escapes the project directory: {relative_path}", field="path")

    candidate = (root / raw).resolve()
    if not candidate.is_relative_to(root.resolve()):
        raise InvalidInputError(f"Path escapes the project directory: {relative_path}", field="path")
    return candidate


def write_workspace_file(workspace: Workspace, relative_path: str, data: Union[str, bytes]) -> Path:
    """Write one file into the workspace, creating parent directories as needed."""
    target = resolve_workspace_path(workspace.root, relative_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, bytes):
        target.write_bytes(data)
    else:
        target.write_text(data, encoding="utf-8")
    return target


def acquire_workspace(
    source: Optional[str] = None,
    *,
    entry_name: str = ENTRY_FILE_NAME,
    prefix: str = WORKSPACE_PREFIX,
) -> Workspace:
    """
    Create a uniquely named directory under the system temp root.

    Args:
        source: LaTeX source written to the entry file; ``None`` leaves the
            entry to be written by the caller (multi-file projects)
        entry_name: Entry file path relative to the workspace root
        prefix: Directory name prefix

    Returns:
        The new Workspace. If writing the entry file fails, the directory is
        removed before the error propagates.
    """
    root = Path(tempfile.mkdtemp(prefix=prefix)).resolve()
    try:
        entry_file = resolve_workspace_path(root, entry_name)
        workspace = Workspace(root=root, entry_file=entry_file)
        if source is not None:
            write_workspace_file(workspace, entry_name, source)
    except BaseException:
        shutil.rmtree(root, ignore_errors=True)
        raise

    logger.debug(f"Acquired LaTeX workspace {root}")
    return workspace


def release_workspace(workspace: Workspace) -> None:
    """Recursively delete the workspace. Failures are logged, never raised."""
    try:
        shutil.rmtree(workspace.root)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning(f"Failed to remove LaTeX workspace {workspace.root}: {exc}")
    else:
        logger.debug(f"Released LaTeX workspace {workspace.root}")


@contextmanager
def workspace_scope(
    source: Optional[str] = None,
    *,
    entry_name: str = ENTRY_FILE_NAME,
    prefix: str = WORKSPACE_PREFIX,
) -> Iterator[Workspace]:
    """Acquire a workspace for the duration of a ``with`` block."""
    workspace = acquire_workspace(source, entry_name=entry_name, prefix=prefix)
    try:
        yield workspace
    finally:
        release_workspace(workspace)
